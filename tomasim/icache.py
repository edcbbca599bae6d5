"""Instruction cache filled from memory in batches of eight words."""

import enum
from collections import deque

from .memory import TimedAccess

BATCH = 8
REFILL_THRESHOLD = 3


class CacheStatus(enum.Enum):
    """Fetch state of the instruction cache."""

    NONE = enum.auto()
    WAITING = enum.auto()
    FINISHED = enum.auto()
    LAST_READ = enum.auto()
    UNABLED = enum.auto()


class InstructionCache:
    """Queue of fetched ``(word, pc)`` pairs and the fetches in flight.

    A zero word in memory marks the end of the program; once it has been
    reached no further fetches are started.
    """

    def __init__(self, memory):
        self.memory = memory
        self.status = CacheStatus.NONE
        self.pc = 0
        self.pending = deque()
        self.queue = deque()

    def __len__(self):
        return len(self.queue)

    def read(self):
        """Take the oldest fetched ``(word, pc)``; IndexError when empty."""
        return self.queue.popleft()

    def clear(self, pc):
        """Drop everything fetched or in flight and restart at ``pc``."""
        self.pc = pc
        self.queue.clear()
        self.pending.clear()
        self.status = CacheStatus.NONE

    def is_fetching(self):
        """Whether words are still on their way from memory."""
        return bool(self.pending) or self.status in (
            CacheStatus.WAITING,
            CacheStatus.LAST_READ,
        )

    def _start(self, count):
        """Queue up to ``count`` fetches; True if the program end was hit."""
        for _ in range(count):
            if self.memory.read4(self.pc) == 0:
                return True
            self.pending.append((TimedAccess(self.memory, self.pc), self.pc))
            self.pc += 4
        return False

    def _advance(self):
        """Step every fetch in flight; True once the batch has landed."""
        done = False
        for access, _ in self.pending:
            done = access.read4()
        if not done:
            return False
        self.queue.extend((access.value, pc) for access, pc in self.pending)
        self.pending.clear()
        return True

    def check(self, pc_busy):
        """Advance fetching by one cycle unless the pc is being changed."""
        if self.status is CacheStatus.UNABLED or pc_busy:
            return
        if self.status is CacheStatus.NONE:
            ended = self._start(BATCH)
            self.status = CacheStatus.LAST_READ if ended else CacheStatus.WAITING
        elif self.status is CacheStatus.WAITING:
            if self._advance():
                self.status = CacheStatus.FINISHED
        elif self.status is CacheStatus.LAST_READ:
            if self._advance():
                self.status = CacheStatus.UNABLED
        elif self.status is CacheStatus.FINISHED:
            if len(self.queue) <= REFILL_THRESHOLD:
                ended = self._start(BATCH - len(self.queue))
                self.status = CacheStatus.LAST_READ if ended else CacheStatus.WAITING