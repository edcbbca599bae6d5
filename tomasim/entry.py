"""Reorder-buffer entries and the opcode groups that route them."""

import enum
from dataclasses import dataclass

READ_MEMORY = frozenset({"lb", "lbu", "lh", "lhu", "lw"})
WRITE_MEMORY = frozenset({"sb", "sh", "sw"})
TWO_REGISTER = frozenset({
    "add", "sub", "and", "or", "xor", "sll", "srl", "sra", "slt", "sltu",
    "sb", "sh", "sw", "beq", "bge", "bgeu", "blt", "bltu", "bne",
})
ONE_REGISTER = frozenset({
    "jalr", "addi", "andi", "ori", "xori", "slli", "srli", "srai", "slti", "sltiu",
    "lb", "lbu", "lh", "lhu", "lw",
})
PC_ONLY = frozenset({"jal", "auipc", "lui"})
LOAD_STORE_OPS = READ_MEMORY | WRITE_MEMORY
ALU_OPS = frozenset({
    "auipc", "lui", "ebreak", "ecall", "add", "sub", "and", "or", "xor", "sll",
    "srl", "sra", "slt", "sltu", "addi", "andi", "ori", "xori", "slli", "srli",
    "srai", "slti", "sltiu",
})
BRANCH_OPS = frozenset({"beq", "bge", "bgeu", "blt", "bltu", "bne", "jal", "jalr"})


class State(enum.Enum):
    """Progress of an instruction through the pipeline."""

    NONE = enum.auto()
    WAITING = enum.auto()
    DECODED = enum.auto()
    ISSUE = enum.auto()
    EXEC = enum.auto()
    WRITE = enum.auto()
    COMMIT = enum.auto()


class Unit(enum.Enum):
    """Kind of reservation station an instruction needs."""

    LOAD_STORE = "load"
    ALU = "add"
    BRANCH = "jump"


def unit_for(op):
    """The unit that executes ``op``, or None if no unit handles it."""
    if op in LOAD_STORE_OPS:
        return Unit.LOAD_STORE
    if op in ALU_OPS:
        return Unit.ALU
    if op in BRANCH_OPS:
        return Unit.BRANCH
    return None


@dataclass
class RobEntry:
    """One slot of the reorder buffer."""

    lsb_tag: int = 0
    word: int = 0
    op: str = ""
    pc: int = -1
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    rs1_val: int = 0
    rs2_val: int = 0
    imm: int = 0
    state: State = State.NONE
    value: int = 0
    broadcast: bool = False
    predicting: bool = False

    @classmethod
    def from_instruction(cls, instruction):
        """A freshly decoded entry built from a decoded instruction."""
        return cls(
            lsb_tag=-1,
            word=instruction.word,
            op=instruction.op,
            pc=instruction.pc,
            rd=instruction.rd,
            rs1=instruction.rs1,
            rs2=instruction.rs2,
            imm=instruction.imm,
            state=State.DECODED,
        )