"""The functional units: arithmetic, address generation and control flow."""

import operator
from dataclasses import dataclass
from typing import Optional

_MASK = 0xFFFFFFFF
_SHIFT_MASK = 0x1F


def _s32(value):
    value &= _MASK
    return value - 0x100000000 if value & 0x80000000 else value


def _u32(value):
    return value & _MASK


def _slt(a, b):
    return int(a < b)


def _sltu(a, b):
    return int(_u32(a) < _u32(b))


def _sll(a, b):
    return a << (b & _SHIFT_MASK)


def _srl(a, b):
    return _u32(a) >> (b & _SHIFT_MASK)


def _sra(a, b):
    return _s32(a) >> (b & _SHIFT_MASK)


_BINARY = {
    "add": operator.add,
    "sub": operator.sub,
    "and": operator.and_,
    "or": operator.or_,
    "xor": operator.xor,
    "sll": _sll,
    "srl": _srl,
    "sra": _sra,
    "slt": _slt,
    "sltu": _sltu,
}

_IMMEDIATE = {
    "addi": operator.add,
    "andi": operator.and_,
    "ori": operator.or_,
    "xori": operator.xor,
    "slli": _sll,
    "srli": _srl,
    "srai": _sra,
    "slti": _slt,
    "sltiu": _sltu,
}

# Loads and stores only compute their effective address here.
_ADDRESS = frozenset({"lb", "lbu", "lh", "lhu", "lw", "sb", "sh", "sw"})

_CONDITIONS = {
    "beq": lambda a, b: a == b,
    "bne": lambda a, b: a != b,
    "blt": lambda a, b: a < b,
    "bge": lambda a, b: a >= b,
    "bltu": lambda a, b: _u32(a) < _u32(b),
    "bgeu": lambda a, b: _u32(a) >= _u32(b),
}

_NOTICES = {
    "ebreak": "Asking the debugger to do something",
    "ecall": "Asking the OS to do something",
}


@dataclass(frozen=True)
class AluOutcome:
    """What the pipeline has to do once an entry has been computed.

    ``redirect`` is the new fetch address when control flow changes.
    ``branch`` marks a resolved conditional branch and ``taken`` its result;
    a redirect without ``branch`` comes from ``jal`` or ``jalr``.
    ``notice`` is a line for standard output; ``unknown`` marks an
    operation no unit recognises.
    """

    redirect: Optional[int] = None
    branch: bool = False
    taken: bool = False
    notice: Optional[str] = None
    unknown: bool = False


def execute(entry):
    """Compute ``entry.value`` from its operands and report side effects."""
    op = entry.op
    a = _s32(entry.rs1_val)
    b = _s32(entry.rs2_val)
    imm = _s32(entry.imm)

    if op in _BINARY:
        entry.value = _s32(_BINARY[op](a, b))
        return AluOutcome()
    if op in _IMMEDIATE:
        entry.value = _s32(_IMMEDIATE[op](a, imm))
        return AluOutcome()
    if op in _ADDRESS:
        entry.value = _s32(a + imm)
        return AluOutcome()
    if op in _CONDITIONS:
        if _CONDITIONS[op](a, b):
            entry.value = _s32(entry.pc + imm)
            return AluOutcome(redirect=entry.value, branch=True, taken=True)
        return AluOutcome(branch=True)
    if op == "jal":
        entry.value = _s32(entry.pc + 4)
        return AluOutcome(redirect=_s32(entry.pc + imm))
    if op == "jalr":
        entry.value = _s32(entry.pc + 4)
        return AluOutcome(redirect=_s32(a + imm))
    if op == "auipc":
        entry.imm = _s32(imm << 12)
        entry.value = _s32(entry.imm + entry.pc)
        return AluOutcome()
    if op == "lui":
        entry.imm = _s32(imm << 12)
        entry.value = entry.imm
        return AluOutcome()
    if op in _NOTICES:
        return AluOutcome(notice=_NOTICES[op])
    return AluOutcome(unknown=True)