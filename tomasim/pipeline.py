"""The reorder buffer: fetch, decode, issue, execute and in-order commit."""

import logging

from . import alu
from .cdb import CommonDataBus
from .decoder import UNKNOWN, decode
from .entry import (
    ALU_OPS,
    BRANCH_OPS,
    LOAD_STORE_OPS,
    WRITE_MEMORY,
    RobEntry,
    State,
)
from .icache import InstructionCache
from .lsb import LoadStoreBuffer
from .predictor import Predictor
from .registers import RegisterFile
from .reservation import ReservationStations

_log = logging.getLogger(__name__)

ROB_SIZE = 500
# ``addi a0, zero, 255`` ends the program when it reaches commit.
EXIT_WORD = 0x0FF00513
_MASK = 0xFFFFFFFF


def _s32(value):
    value &= _MASK
    return value - 0x100000000 if value & 0x80000000 else value


class ProgramExit(Exception):
    """Raised when the exit instruction commits.

    ``result`` is the low byte of ``a0`` at that moment; ``accuracy`` is the
    fraction of branch predictions that held, or None if none were made.
    """

    def __init__(self, result, accuracy=None):
        super().__init__(f"program exited with {result}")
        self.result = result
        self.accuracy = accuracy


class ReorderBuffer:
    """A circular buffer of in-flight instructions and the units they use."""

    def __init__(self, memory):
        self.memory = memory
        self.registers = RegisterFile()
        self.table = [RobEntry() for _ in range(ROB_SIZE)]
        self.stations = ReservationStations(self.registers, self.table)
        self.cdb = CommonDataBus(self.stations, self.table)
        self.predictor = Predictor(self.registers, self.stations, self.table)
        self.icache = InstructionCache(memory)
        self.lsb = LoadStoreBuffer(memory)
        self.head = 0
        self.tail = 0
        self.station_of = [None] * ROB_SIZE
        self.specific_stop = False
        self.exit_pending = False

    def _previous_committed(self, index):
        return self.table[(index - 1) % ROB_SIZE].state is State.COMMIT

    def _retire(self, index, entry):
        self.registers.commit(index, entry.rd, entry.value)
        if self.predictor.busy:
            self.predictor.record(entry.rd, entry.value)
        entry.state = State.COMMIT
        self.head += 1
        _log.debug("%d committing %s", index, entry.op)

    def _check_exit(self, entry):
        if entry.word == EXIT_WORD:
            accuracy = self.predictor.accuracy()
            if accuracy is not None:
                _log.info("prediction accuracy %s", accuracy)
            raise ProgramExit(self.registers.read(10) & 0xFF, accuracy)

    def _memory_step(self, index, entry):
        done = self.lsb.step()
        if done is None:
            return
        if done.is_read:
            entry.value = _s32(done.value)
        if entry.op in WRITE_MEMORY:
            self.head += 1
            entry.state = State.COMMIT
            _log.debug("%d committing %s", index, entry.op)
        else:
            entry.state = State.WRITE
            self.cdb.add(index, entry.value)
        self.stations.clear(self.station_of[index])

    def _apply(self, outcome):
        if outcome.notice is not None:
            print(outcome.notice)
        if outcome.unknown:
            _log.warning("unknown instruction")
        if outcome.branch:
            if outcome.taken:
                self.registers.pc = outcome.redirect
                self.icache.clear(outcome.redirect)
                if self.predictor.busy:
                    self.tail -= self.predictor.flush()
                else:
                    self.registers.pc_busy = False
            elif self.predictor.busy:
                self.predictor.confirm()
            else:
                self.registers.pc_busy = False
            self.specific_stop = False
        elif outcome.redirect is not None:
            self.registers.pc = outcome.redirect
            self.registers.pc_busy = False
            self.icache.clear(outcome.redirect)

    def _execute(self, index, entry):
        slot = self.station_of[index]
        self._apply(alu.execute(entry))
        _log.debug("%d computed %s -> %d", index, entry.op, entry.value)
        entry.state = State.EXEC
        if entry.op not in LOAD_STORE_OPS:
            self.cdb.add(index, entry.value)
            self.stations.clear(slot)
            if entry.op in BRANCH_OPS:
                self.registers.pc_busy = False
            return
        if entry.op == "sb":
            data = entry.rs2_val & 0xFF
        elif entry.op == "sh":
            data = entry.rs2_val & 0xFFFF
        elif entry.op == "sw":
            data = entry.rs2_val
        else:
            data = 0
        self.lsb.prepare(entry.lsb_tag, entry.value, data)

    def _decode(self, index, entry):
        """Decode a fetched entry; False if the pipeline must stall here."""
        instruction = decode(entry.word, entry.pc)
        if instruction.op == UNKNOWN:
            return True
        _log.debug("%d decoding %s", index, instruction.disassemble())
        op = instruction.op
        if self.predictor.busy:
            if op in BRANCH_OPS or op in LOAD_STORE_OPS:
                self.specific_stop = True
                return False
        elif op in BRANCH_OPS:
            if op in ("jal", "jalr"):
                self.icache.clear(self.registers.pc)
                self.registers.pc_busy = True
            else:
                self.predictor.start(index)
        fresh = RobEntry.from_instruction(instruction)
        if self.predictor.busy:
            fresh.predicting = True
        if op in LOAD_STORE_OPS:
            fresh.lsb_tag = self.lsb.add(op)
        self.table[index] = fresh
        return True

    def step(self):
        """Run one cycle over the buffer; False once nothing is left to do.

        Raises ProgramExit when the exit instruction commits.
        """
        end = False
        alu_used = committed = lsb_used = launched = False
        t = self.head
        while t <= self.tail:
            index = t % ROB_SIZE
            entry = self.table[index]
            state = entry.state
            first = index == 0 and self.head == 0

            if state is State.DECODED:
                if not launched:
                    self.station_of[index] = self.stations.launch(entry, index)
                    launched = True
                end = True

            elif state is State.ISSUE:
                if not alu_used and self.stations.ready(self.station_of[index]):
                    self._execute(index, entry)
                    alu_used = True
                    end = True

            elif state is State.EXEC:
                if first or (self._previous_committed(index) and not committed):
                    if entry.op in ALU_OPS:
                        self._check_exit(entry)
                        self._retire(index, entry)
                        committed = True
                    elif entry.op in LOAD_STORE_OPS:
                        if not lsb_used:
                            lsb_used = True
                            self._memory_step(index, entry)
                    elif first:
                        entry.state = State.COMMIT
                        self.head += 1
                        committed = True
                    else:
                        self._retire(index, entry)
                end = True

            elif state is State.WRITE:
                if first or (self._previous_committed(index) and not committed):
                    self._retire(index, entry)
                    committed = True
                end = True

            elif state in (State.NONE, State.COMMIT):
                if (
                    len(self.icache)
                    and not self.registers.pc_busy
                    and not self.exit_pending
                    and not self.specific_stop
                ):
                    word, pc = self.icache.read()
                    entry.pc = pc
                    entry.word = word
                    entry.state = State.WAITING
                    self.tail += 1
                    self.registers.pc = pc
                    _log.debug("%d loading pc %x word %08x", index, pc, word)
                    if word == EXIT_WORD:
                        self.exit_pending = True
                    if self.predictor.busy:
                        self.predictor.extend()
                    return True
                if self.icache.is_fetching():
                    end = True

            else:
                if not self._decode(index, entry):
                    return True
                end = True
            t += 1
        return end