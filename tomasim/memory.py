"""Byte-addressed main memory and multi-cycle accesses to it."""

from dataclasses import dataclass, field

ADDRESS_MASK = 0xFFFFFFFF
ACCESS_LATENCY = 3


def byte_swap(word):
    """Reverse the byte order of a 32-bit word."""
    return int.from_bytes((word & 0xFFFFFFFF).to_bytes(4, "little"), "big")


def _take(chars, count):
    taken = "".join(next(chars, "") for _ in range(count))
    if len(taken) != count:
        raise ValueError("truncated program text")
    return taken


class Memory:
    """Sparse little-endian memory; unwritten bytes read as a zero word."""

    def __init__(self):
        self.cells = {}

    def _read(self, address, size):
        addresses = [(address + k) & ADDRESS_MASK for k in range(size)]
        if any(a not in self.cells for a in addresses):
            return 0
        return int.from_bytes(bytes(self.cells[a] for a in addresses), "little")

    def _store(self, address, data):
        for offset, byte in enumerate(data):
            self.cells[(address + offset) & ADDRESS_MASK] = byte

    def read4(self, address):
        """Read a word; 0 unless all four bytes have been written."""
        return self._read(address, 4)

    def read2(self, address):
        """Read a halfword; 0 unless both bytes have been written."""
        return self._read(address, 2)

    def read1(self, address):
        """Read a byte; 0 if it was never written."""
        return self._read(address, 1)

    def write4(self, address, value):
        """Store the low 32 bits of ``value`` little-endian."""
        self._store(address, (value & 0xFFFFFFFF).to_bytes(4, "little"))

    def write2(self, address, value):
        """Store the low 16 bits of ``value`` little-endian."""
        self._store(address, (value & 0xFFFF).to_bytes(2, "little"))

    def write1(self, address, value):
        """Store the low byte of ``value``."""
        self._store(address, bytes([value & 0xFF]))

    def load(self, text):
        """Load a hex image: ``@XXXXXXXX`` sets the address, bytes follow in order.

        Whitespace is ignored; bytes are consumed four at a time.
        """
        chars = (c for c in text if not c.isspace())
        address = 0
        for first in chars:
            if first == "@":
                address = int(_take(chars, 8), 16) & ADDRESS_MASK
            else:
                digits = first + _take(chars, 7)
                self._store(address, bytes.fromhex(digits))
                address = (address + 4) & ADDRESS_MASK

    def dump(self):
        """List every stored byte as ``address:binary``, one per line."""
        return "\n".join(f"{address:4x}:{byte:08b}" for address, byte in sorted(self.cells.items()))


@dataclass(eq=False)
class TimedAccess:
    """A memory access that completes on its third step.

    Reads place their result in ``value``; writes store ``value``.
    A finished access never completes again.
    """

    memory: Memory
    address: int
    value: int = 0
    ticker: int = field(default=0, init=False)

    def _tick(self):
        self.ticker += 1
        return self.ticker == ACCESS_LATENCY

    def read4(self):
        if not self._tick():
            return False
        self.value = self.memory.read4(self.address)
        return True

    def read2(self):
        if not self._tick():
            return False
        self.value = self.memory.read2(self.address)
        return True

    def read1(self):
        if not self._tick():
            return False
        self.value = self.memory.read1(self.address)
        return True

    def write4(self):
        if not self._tick():
            return False
        self.memory.write4(self.address, self.value)
        return True

    def write2(self):
        if not self._tick():
            return False
        self.memory.write2(self.address, self.value)
        return True

    def write1(self):
        if not self._tick():
            return False
        self.memory.write1(self.address, self.value)
        return True