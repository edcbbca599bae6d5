"""The load/store buffer: memory accesses performed strictly in program order."""

import enum
from dataclasses import dataclass
from typing import Optional

from .memory import TimedAccess

_ADDRESS_MASK = 0xFFFFFFFF


class Access(enum.Enum):
    """Kind and width of a memory access; values name the TimedAccess step."""

    NOTHING = "nothing"
    READ1 = "read1"
    READ2 = "read2"
    READ4 = "read4"
    WRITE1 = "write1"
    WRITE2 = "write2"
    WRITE4 = "write4"


_READS = frozenset({Access.READ1, Access.READ2, Access.READ4})

_ACCESS_BY_OP = {
    "lb": Access.READ1,
    "lbu": Access.READ1,
    "lh": Access.READ2,
    "lhu": Access.READ2,
    "lw": Access.READ4,
    "sb": Access.WRITE1,
    "sh": Access.WRITE2,
    "sw": Access.WRITE4,
}


@dataclass(eq=False)
class LoadStoreEntry:
    """One queued memory access.

    It is added when its instruction is decoded and becomes ``ready`` once
    its address (and, for stores, its data) is known.
    """

    op: str
    access: Access = Access.NOTHING
    ready: bool = False
    timed: Optional[TimedAccess] = None

    @property
    def is_read(self):
        """Whether the access loads from memory."""
        return self.access in _READS

    @property
    def value(self):
        """The value read (for loads) or to be written (for stores)."""
        return self.timed.value if self.timed is not None else 0

    def step(self):
        """Advance the access by one cycle; True once it has completed."""
        if not self.ready or self.access is Access.NOTHING or self.timed is None:
            return False
        return getattr(self.timed, self.access.value)()


class LoadStoreBuffer:
    """Memory accesses keyed by tag; only the oldest one may proceed."""

    def __init__(self, memory):
        self.memory = memory
        self.counter = 0
        self.entries = {}

    def __len__(self):
        return len(self.entries)

    def add(self, op):
        """Queue an access for ``op`` and return its tag."""
        tag = self.counter
        self.counter += 1
        self.entries[tag] = LoadStoreEntry(op, _ACCESS_BY_OP.get(op, Access.NOTHING))
        return tag

    def prepare(self, tag, address, value=0):
        """Give access ``tag`` its address and data, making it ready."""
        try:
            entry = self.entries[tag]
        except KeyError:
            raise KeyError(f"no pending memory access with tag {tag}") from None
        entry.ready = True
        entry.timed = TimedAccess(self.memory, address & _ADDRESS_MASK, value)

    def step(self):
        """Advance the oldest access; return it once completed, else None."""
        if not self.entries:
            return None
        tag, entry = next(iter(self.entries.items()))
        if not entry.step():
            return None
        del self.entries[tag]
        return entry