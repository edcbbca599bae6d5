"""Speculation past a conditional branch, predicted not taken."""

import logging

from .registers import REGISTER_COUNT

_log = logging.getLogger(__name__)
_MASK = 0xFFFFFFFF


class Predictor:
    """Tracks the window of speculative reorder-buffer entries.

    While busy, a snapshot of the registers is kept up to date with every
    commit so it can be restored if the branch turns out to be taken.
    """

    def __init__(self, registers, stations, table):
        self.registers = registers
        self.stations = stations
        self.table = table
        self.predicting_times = 0
        self.success_times = 0
        self.head = -1
        self.tail = -1
        self.busy = False
        self.saved = [0] * REGISTER_COUNT

    def start(self, index):
        """Begin speculating after the branch at reorder-buffer ``index``."""
        self.predicting_times += 1
        self.busy = True
        self.head = self.tail = index
        self.saved = list(self.registers.regs)

    def extend(self):
        """Note one more speculative entry loaded into the buffer."""
        self.tail = (self.tail + 1) % len(self.table)

    def record(self, rd, value):
        """Keep the register snapshot in step with a committed write."""
        self.saved[rd] = value & _MASK

    def flush(self):
        """Undo the speculation; return how many entries were discarded."""
        self.busy = False
        regs = self.registers
        regs.regs[:] = self.saved
        regs.reorder[:] = [None] * REGISTER_COUNT
        regs.busy[:] = [False] * REGISTER_COUNT
        for slot, station in enumerate(self.stations.slots):
            if station.speculative:
                self.stations.clear(slot)
        size = len(self.table)
        discarded = (self.tail - self.head) % size
        for k in range(discarded):
            index = (self.head + 1 + k) % size
            old = self.table[index]
            _log.debug("flushing %d: pc %x word %x", index, old.pc, old.word)
            self.table[index] = type(old)()
        self.head = self.tail = -1
        regs.pc_busy = False
        return discarded

    def confirm(self):
        """The prediction held: keep the speculative entries."""
        self.busy = False
        self.success_times += 1
        if self.head == self.tail or self.table[self.tail].op not in ("jal", "jalr"):
            self.registers.pc_busy = False
        for entry in self.table:
            entry.predicting = False
        for station in self.stations.slots:
            station.speculative = False

    def accuracy(self):
        """Fraction of predictions that held, or None before any."""
        if self.predicting_times == 0:
            return None
        return self.success_times / self.predicting_times