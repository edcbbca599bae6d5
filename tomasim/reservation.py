"""Reservation stations: two each for memory, arithmetic and branch units."""

from dataclasses import dataclass, field
from typing import Optional

from .entry import READ_MEMORY, State, Unit, unit_for
from .registers import Operand, OperandSlots

_LAYOUT = (
    Unit.LOAD_STORE,
    Unit.LOAD_STORE,
    Unit.ALU,
    Unit.ALU,
    Unit.BRANCH,
    Unit.BRANCH,
)


@dataclass
class Station:
    """A reservation station slot."""

    unit: Unit
    busy: bool = False
    op: str = ""
    dest: Optional[int] = None
    operands: OperandSlots = field(default_factory=OperandSlots)
    speculative: bool = False

    def reset(self):
        self.busy = False
        self.op = ""
        self.dest = None
        self.operands = OperandSlots()
        self.speculative = False


def _writes_register(unit, op):
    if unit is Unit.LOAD_STORE:
        return op in READ_MEMORY
    if unit is Unit.BRANCH:
        return op in ("jal", "jalr")
    return True


def _store_operand(entry, position, value):
    if position is Operand.RS1:
        entry.rs1_val = value
    elif position is Operand.RS2:
        entry.rs2_val = value


def _show(value):
    return -1 if value is None else value


class ReservationStations:
    """The six stations; ``table`` is the reorder buffer indexed by tag."""

    def __init__(self, registers, table):
        self.registers = registers
        self.table = table
        self.slots = [Station(unit) for unit in _LAYOUT]

    def _station(self, slot):
        if not 0 <= slot < len(self.slots):
            raise IndexError(f"no reservation station {slot}")
        return self.slots[slot]

    def _forward(self, slots, entry):
        """Take operands that were already broadcast but not yet committed."""
        if slots.qj is not None and self.table[slots.qj].broadcast:
            slots.vj = self.table[slots.qj].value
            slots.qj = None
            _store_operand(entry, slots.pj, slots.vj)
        if slots.qk is not None and self.table[slots.qk].broadcast:
            slots.vk = self.table[slots.qk].value
            slots.qk = None
            _store_operand(entry, slots.pk, slots.vk)

    def launch(self, entry, tag):
        """Issue ``entry`` (reorder-buffer index ``tag``) to a free station.

        Returns the station index, or None if no suitable station is free.
        """
        unit = unit_for(entry.op)
        if unit is None:
            return None
        slot = next(
            (i for i, s in enumerate(self.slots) if s.unit is unit and not s.busy),
            None,
        )
        if slot is None:
            return None
        station = self.slots[slot]
        entry.state = State.ISSUE
        station.busy = True
        station.op = entry.op
        station.dest = tag
        station.operands = self.registers.read_operands(entry)
        self._forward(station.operands, entry)
        if _writes_register(unit, entry.op):
            self.registers.mark(entry.rd, tag)
        station.speculative = entry.predicting
        return slot

    def ready(self, slot):
        """Whether every operand of the station is available."""
        operands = self._station(slot).operands
        return operands.qj is None and operands.qk is None

    def clear(self, slot):
        """Free a station."""
        self._station(slot).reset()

    def describe(self, slot):
        """One line describing a station."""
        s = self._station(slot)
        o = s.operands
        return (
            f"pos:({s.unit.value}){slot}\u3000busy:{int(s.busy)} op:{s.op}"
            f" Vj:{_show(o.vj)} Vk:{_show(o.vk)} Qj:{_show(o.qj)} Qk:{_show(o.qk)}"
            f" pj:{o.pj.value} pk:{o.pk.value}"
        )

    def describe_all(self):
        """Every station, one per line."""
        return "\n".join(self.describe(slot) for slot in range(len(self.slots)))