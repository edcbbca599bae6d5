import pytest

from tomasim.decoder import decode, register_name, sign_extend_12


def r_type(funct3, funct7, rd, rs1, rs2):
    return funct7 << 25 | rs2 << 20 | rs1 << 15 | funct3 << 12 | rd << 7 | 0x33


def i_type(opcode, funct3, rd, rs1, imm):
    return (imm & 0xFFF) << 20 | rs1 << 15 | funct3 << 12 | rd << 7 | opcode


def s_type(funct3, rs1, rs2, imm):
    imm &= 0xFFF
    return (imm >> 5) << 25 | rs2 << 20 | rs1 << 15 | funct3 << 12 | (imm & 0x1F) << 7 | 0x23


def b_type(funct3, rs1, rs2, offset):
    o = offset & 0x1FFF
    return (
        ((o >> 12) & 1) << 31
        | ((o >> 5) & 0x3F) << 25
        | rs2 << 20
        | rs1 << 15
        | funct3 << 12
        | ((o >> 1) & 0xF) << 8
        | ((o >> 11) & 1) << 7
        | 0x63
    )


def j_type(rd, offset):
    o = offset & 0x1FFFFF
    return (
        ((o >> 20) & 1) << 31
        | ((o >> 1) & 0x3FF) << 21
        | ((o >> 11) & 1) << 20
        | ((o >> 12) & 0xFF) << 12
        | rd << 7
        | 0x6F
    )


def test_sign_extend_keeps_low_bits_and_sign():
    for value in range(0, 0x1000, 7):
        result = sign_extend_12(value)
        assert result & 0xFFF == value
        assert (result < 0) == bool(value & 0x800)


def test_sign_extend_values():
    assert sign_extend_12(0x7FF) == 0x7FF
    assert sign_extend_12(0x800) == -2048


def test_register_names():
    assert register_name(0) == "zero"
    assert register_name(10) == "a0"
    assert register_name(31) == "t6"
    assert register_name(32) == "uk"


@pytest.mark.parametrize(
    "funct3, funct7, op",
    [
        (0, 0, "add"), (0, 0x20, "sub"), (7, 0, "and"), (6, 0, "or"),
        (4, 0, "xor"), (1, 0, "sll"), (5, 0, "srl"), (5, 0x20, "sra"),
        (2, 0, "slt"), (3, 0, "sltu"), (0, 1, "uk"), (5, 3, "uk"),
    ],
)
def test_r_type(funct3, funct7, op):
    ins = decode(r_type(funct3, funct7, 5, 6, 7), 0x40)
    assert (ins.op, ins.kind) == (op, "R")
    assert (ins.rd, ins.rs1, ins.rs2) == (5, 6, 7)
    assert ins.pc == 0x40


@pytest.mark.parametrize(
    "funct3, op", [(0, "addi"), (7, "andi"), (6, "ori"), (4, "xori"), (2, "slti"), (3, "sltiu")]
)
@pytest.mark.parametrize("imm", [-5, 0, 2047, -2048])
def test_i_type_arithmetic(funct3, op, imm):
    ins = decode(i_type(0x13, funct3, 9, 3, imm), 0)
    assert (ins.op, ins.kind) == (op, "I")
    assert (ins.rd, ins.rs1, ins.rs2) == (9, 3, 0)
    assert ins.imm == imm


def test_shift_immediates_take_low_five_bits():
    ins = decode(i_type(0x13, 1, 1, 2, 0x23), 0)
    assert (ins.op, ins.kind) == ("slli", "I*")
    assert ins.imm == 0x23 & 0x1F
    srai = decode(i_type(0x13, 5, 1, 2, (0x20 << 5) | 7), 0)
    assert srai.op == "srai"
    assert srai.imm == 7
    srli = decode(i_type(0x13, 5, 1, 2, 9), 0)
    assert srli.op == "srli"


@pytest.mark.parametrize("funct3, op", [(0, "lb"), (4, "lbu"), (1, "lh"), (5, "lhu"), (2, "lw"), (3, "uk")])
def test_loads(funct3, op):
    ins = decode(i_type(0x03, funct3, 4, 2, -12), 0)
    assert ins.op == op
    assert ins.imm == -12
    assert (ins.rd, ins.rs1) == (4, 2)


@pytest.mark.parametrize("funct3, op", [(0, "sb"), (1, "sh"), (2, "sw"), (3, "uk")])
@pytest.mark.parametrize("imm", [-4, 100, -2048, 2047])
def test_stores(funct3, op, imm):
    ins = decode(s_type(funct3, 2, 11, imm), 0)
    assert (ins.op, ins.kind) == (op, "S")
    assert (ins.rs1, ins.rs2, ins.rd) == (2, 11, 0)
    assert ins.imm == imm


@pytest.mark.parametrize(
    "funct3, op", [(0, "beq"), (1, "bne"), (4, "blt"), (5, "bge"), (6, "bltu"), (7, "bgeu"), (2, "uk")]
)
@pytest.mark.parametrize("offset", [-4096, -8, 8, 2048, 4094])
def test_branches(funct3, op, offset):
    ins = decode(b_type(funct3, 14, 15, offset), 0x100)
    assert (ins.op, ins.kind) == (op, "B")
    assert (ins.rs1, ins.rs2) == (14, 15)
    assert ins.imm == offset


@pytest.mark.parametrize("offset", [-(1 << 20), -4, 2048, (1 << 20) - 2])
def test_jal(offset):
    ins = decode(j_type(1, offset), 0)
    assert (ins.op, ins.kind, ins.rd) == ("jal", "J", 1)
    assert ins.imm == offset


def test_jalr_immediate_is_not_sign_extended():
    ins = decode(i_type(0x67, 0, 1, 5, 0xFFF), 0)
    assert ins.op == "jalr"
    assert ins.imm == 0xFFF
    assert decode(i_type(0x67, 1, 1, 5, 0), 0).op == "uk"


@pytest.mark.parametrize("opcode, op", [(0x37, "lui"), (0x17, "auipc")])
def test_upper_immediates(opcode, op):
    ins = decode((0xABCDE << 12) | (7 << 7) | opcode, 0)
    assert (ins.op, ins.kind, ins.rd) == (op, "U", 7)
    assert ins.imm == 0xABCDE


@pytest.mark.parametrize("imm, op", [(0, "ebreak"), (1, "ecall"), (2, "uk")])
def test_system(imm, op):
    assert decode(i_type(0x73, 0, 0, 0, imm), 0).op == op


def test_unknown_opcode():
    ins = decode(0, 0)
    assert (ins.op, ins.kind) == ("uk", "")


def test_exit_instruction():
    ins = decode(0x0FF00513, 0)
    assert ins.op == "addi"
    assert register_name(ins.rd) == "a0"
    assert register_name(ins.rs1) == "zero"


def test_disassemble_r_type():
    word = r_type(0, 0, 10, 11, 12)
    text = decode(word, 0).disassemble()
    assert text == f"{word:08x}" + " " * 12 + "add a0 a1 a2"


def test_disassemble_store():
    text = decode(s_type(2, 2, 11, -4), 0).disassemble()
    assert text.endswith("sw a1 -4(sp)")


def test_disassemble_system_is_bare():
    word = i_type(0x73, 0, 0, 0, 1)
    assert decode(word, 0).disassemble() == f"{word:08x}" + " " * 12 + "ecall"