"""The common data bus broadcasting results to waiting stations."""

import logging

from .registers import Operand

_log = logging.getLogger(__name__)

_PER_CYCLE = 2


def _store_operand(entry, position, value):
    if position is Operand.RS1:
        entry.rs1_val = value
    elif position is Operand.RS2:
        entry.rs2_val = value


class CommonDataBus:
    """Results waiting to be broadcast, keyed by reorder-buffer tag."""

    def __init__(self, stations, table):
        self.stations = stations
        self.table = table
        self.pending = {}

    def add(self, tag, value):
        """Queue a result; a tag already queued keeps its first value."""
        self.pending.setdefault(tag, value)

    def execute(self):
        """Broadcast up to two results, lowest tags first; return them."""
        sent = []
        for tag in sorted(self.pending)[:_PER_CYCLE]:
            value = self.pending.pop(tag)
            self.broadcast(tag, value)
            sent.append((tag, value))
        return sent

    def broadcast(self, tag, value):
        """Deliver ``value`` to every busy station waiting on ``tag``."""
        _log.debug("broadcasting %d = %x", tag, value)
        self.table[tag].broadcast = True
        for station in self.stations.slots:
            if not station.busy:
                continue
            operands = station.operands
            if operands.qj == tag:
                operands.qj = None
                operands.vj = value
                _store_operand(self.table[station.dest], operands.pj, value)
            if operands.qk == tag:
                operands.qk = None
                operands.vk = value
                _store_operand(self.table[station.dest], operands.pk, value)