"""The architectural register file and its rename status."""

import enum
from dataclasses import dataclass
from typing import Optional

from .decoder import REGISTER_NAMES
from .entry import ONE_REGISTER, PC_ONLY, TWO_REGISTER

REGISTER_COUNT = 32
_MASK = 0xFFFFFFFF


def _s32(value):
    value &= _MASK
    return value - 0x100000000 if value & 0x80000000 else value


class Operand(enum.Enum):
    """Which field of an entry a station operand stands for."""

    NONE = "none"
    RS1 = "rs1"
    RS2 = "rs2"
    IMM = "imm"
    RD = "rd"


@dataclass
class OperandSlots:
    """Operands of a reservation station.

    ``vj``/``vk`` hold available values (None while pending); ``qj``/``qk``
    hold the reorder-buffer tag still to be waited for (None when ready).
    """

    vj: Optional[int] = None
    vk: Optional[int] = None
    qj: Optional[int] = None
    qk: Optional[int] = None
    pj: Operand = Operand.NONE
    pk: Operand = Operand.NONE


class RegisterFile:
    """Thirty-two 32-bit registers with their busy flags and rename tags."""

    def __init__(self):
        self.regs = [0] * REGISTER_COUNT
        self.busy = [False] * REGISTER_COUNT
        self.reorder = [None] * REGISTER_COUNT
        self.pc = 0
        self.pc_busy = False

    def read(self, reg):
        """Unsigned contents of a register."""
        return self.regs[reg]

    def write(self, reg, value):
        """Store the low 32 bits of ``value``."""
        self.regs[reg] = value & _MASK

    def reset_zero(self):
        """Force ``x0`` back to zero."""
        self.regs[0] = 0

    def read_pc(self):
        """The program counter, or None while it is being changed."""
        return None if self.pc_busy else self.pc

    def mark(self, reg, tag):
        """Record that reorder-buffer entry ``tag`` will produce ``reg``."""
        self.reorder[reg] = tag
        self.busy[reg] = True

    def commit(self, tag, reg, value):
        """Write ``value`` if ``tag`` is still the pending producer of ``reg``.

        Returns whether the register was written.
        """
        if self.reorder[reg] != tag:
            return False
        self.busy[reg] = False
        self.reorder[reg] = None
        self.write(reg, value)
        return True

    def _source(self, reg):
        if self.busy[reg]:
            return None, self.reorder[reg]
        return _s32(self.regs[reg]), None

    def read_operands(self, entry):
        """Gather the operands of ``entry``; ready values are copied into it."""
        slots = OperandSlots()
        if entry.op in TWO_REGISTER:
            slots.vj, slots.qj = self._source(entry.rs1)
            if slots.qj is None:
                entry.rs1_val = slots.vj
            slots.pj = Operand.RS1
            slots.vk, slots.qk = self._source(entry.rs2)
            if slots.qk is None:
                entry.rs2_val = slots.vk
            slots.pk = Operand.RS2
        elif entry.op in ONE_REGISTER:
            slots.vj, slots.qj = self._source(entry.rs1)
            if slots.qj is None:
                entry.rs1_val = slots.vj
            slots.pj = Operand.RS1
            slots.vk = entry.imm
            slots.pk = Operand.IMM
        elif entry.op in PC_ONLY:
            slots.vk = entry.imm
        return slots

    def dump(self):
        """Register names over their busy flags, as two lines."""
        names = "        " + "".join(f"{name} " for name in REGISTER_NAMES)
        flags = "Reorder:" + "".join(f"{int(flag)}  " for flag in self.busy)
        return f"{names}\n{flags}"