"""Decoding of 32-bit RV32I instruction words."""

from dataclasses import dataclass

REGISTER_NAMES = (
    "zero", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
)

UNKNOWN = "uk"

LOAD_OPS = frozenset({"lb", "lbu", "lh", "lhu", "lw"})

_R_OPS = {7: "and", 6: "or", 4: "xor", 1: "sll", 2: "slt", 3: "sltu"}
_I_OPS = {0: "addi", 7: "andi", 6: "ori", 4: "xori", 2: "slti", 3: "sltiu"}
_LOAD_BY_FUNCT3 = {0: "lb", 4: "lbu", 1: "lh", 5: "lhu", 2: "lw"}
_STORE_OPS = {0: "sb", 1: "sh", 2: "sw"}
_BRANCH_OPS = {0: "beq", 1: "bne", 4: "blt", 5: "bge", 6: "bltu", 7: "bgeu"}
# The system opcode is told apart by its immediate field alone.
_SYSTEM_OPS = {0: "ebreak", 1: "ecall"}


def sign_extend_12(value):
    """Sign-extend a 12-bit immediate to a signed integer."""
    value &= 0xFFF
    return value - 0x1000 if value & 0x800 else value


def register_name(index):
    """ABI name of a register, or "uk" when the index is out of range."""
    if 0 <= index < len(REGISTER_NAMES):
        return REGISTER_NAMES[index]
    return UNKNOWN


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word together with its address."""

    word: int
    pc: int
    op: str = UNKNOWN
    kind: str = ""
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    imm: int = 0

    def disassemble(self):
        """Render the instruction as a single line of text."""
        prefix = f"{self.word:08x}" + " " * 12
        rd, rs1, rs2 = (register_name(r) for r in (self.rd, self.rs1, self.rs2))
        raw_hex = f"{self.imm & 0xFFFFFFFF:x}"
        if self.kind == "R":
            body = f"{self.op} {rd} {rs1} {rs2}"
        elif self.kind == "S":
            body = f"{self.op} {rs2} {self.imm}({rs1})"
        elif self.kind == "B":
            body = f"{self.op} {rs1} {rs2} {self.imm}"
        elif self.kind == "U" or self.op == "jal":
            body = f"{self.op} {rd} {raw_hex}"
        elif self.op in ("ebreak", "ecall"):
            body = self.op
        elif self.op == "jalr":
            body = f"{self.op} {rd} {rs1} {raw_hex}"
        elif self.op in LOAD_OPS:
            body = f"{self.op} {rd} {self.imm}({rs1})"
        else:
            body = f"{self.op} {rd} {rs1} {self.imm}"
        return prefix + body


def decode(word, pc):
    """Decode a 32-bit instruction word fetched from address ``pc``."""
    word &= 0xFFFFFFFF
    opcode = word & 0x7F
    rd = (word >> 7) & 0x1F
    funct3 = (word >> 12) & 0x7
    rs1 = (word >> 15) & 0x1F
    rs2 = (word >> 20) & 0x1F
    funct7 = (word >> 25) & 0x7F
    upper12 = (word >> 20) & 0xFFF

    if opcode == 0b0110011:
        if funct3 == 0:
            op = {0: "add", 0x20: "sub"}.get(funct7, UNKNOWN)
        elif funct3 == 5:
            op = {0: "srl", 0x20: "sra"}.get(funct7, UNKNOWN)
        else:
            op = _R_OPS.get(funct3, UNKNOWN)
        return Instruction(word, pc, op, "R", rd, rs1, rs2)

    if opcode == 0b0010011:
        if funct3 == 1:
            return Instruction(word, pc, "slli", "I*", rd, rs1, imm=upper12 & 0x1F)
        if funct3 == 5:
            op = {0: "srli", 0x20: "srai"}.get(funct7, UNKNOWN)
            return Instruction(word, pc, op, "I*", rd, rs1, imm=upper12 & 0x1F)
        op = _I_OPS.get(funct3, UNKNOWN)
        return Instruction(word, pc, op, "I", rd, rs1, imm=sign_extend_12(upper12))

    if opcode == 0b0000011:
        op = _LOAD_BY_FUNCT3.get(funct3, UNKNOWN)
        return Instruction(word, pc, op, "I", rd, rs1, imm=sign_extend_12(upper12))

    if opcode == 0b0100011:
        imm = sign_extend_12((funct7 << 5) | rd)
        op = _STORE_OPS.get(funct3, UNKNOWN)
        return Instruction(word, pc, op, "S", 0, rs1, rs2, imm)

    if opcode == 0b1100011:
        raw = (
            ((word >> 31) & 1) << 12
            | ((word >> 25) & 0x3F) << 5
            | ((word >> 7) & 1) << 11
            | ((word >> 8) & 0xF) << 1
        )
        imm = raw - 0x2000 if raw & 0x1000 else raw
        op = _BRANCH_OPS.get(funct3, UNKNOWN)
        return Instruction(word, pc, op, "B", 0, rs1, rs2, imm)

    if opcode == 0b1101111:
        raw = (
            ((word >> 31) & 1) << 20
            | ((word >> 12) & 0xFF) << 12
            | ((word >> 20) & 1) << 11
            | ((word >> 21) & 0x3FF) << 1
        )
        imm = raw - 0x200000 if raw & 0x100000 else raw
        return Instruction(word, pc, "jal", "J", rd, imm=imm)

    if opcode == 0b1100111:
        op = "jalr" if funct3 == 0 else UNKNOWN
        return Instruction(word, pc, op, "I", rd, rs1, imm=upper12)

    if opcode == 0b0010111:
        return Instruction(word, pc, "auipc", "U", rd, imm=(word >> 12) & 0xFFFFF)

    if opcode == 0b0110111:
        return Instruction(word, pc, "lui", "U", rd, imm=(word >> 12) & 0xFFFFF)

    if opcode == 0b1110011:
        op = _SYSTEM_OPS.get(upper12, UNKNOWN)
        return Instruction(word, pc, op, "I", rd, rs1, imm=upper12)

    return Instruction(word, pc)