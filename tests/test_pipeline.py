import pytest

from tomasim.decoder import decode
from tomasim.entry import State
from tomasim.memory import Memory
from tomasim.pipeline import EXIT_WORD, ProgramExit, ReorderBuffer

ZERO, RA, T0, T1, A0 = 0, 1, 5, 6, 10


def enc_i(rd, rs1, imm, funct3=0, opcode=0x13):
    return ((imm & 0xFFF) << 20) | (rs1 << 15) | (funct3 << 12) | (rd << 7) | opcode


def enc_r(funct3, rd, rs1, rs2, funct7=0):
    return (funct7 << 25) | (rs2 << 20) | (rs1 << 15) | (funct3 << 12) | (rd << 7) | 0x33


def enc_s(funct3, rs1, rs2, imm):
    return (
        (((imm >> 5) & 0x7F) << 25) | (rs2 << 20) | (rs1 << 15)
        | (funct3 << 12) | ((imm & 0x1F) << 7) | 0x23
    )


def enc_b(funct3, rs1, rs2, imm):
    return (
        (((imm >> 12) & 1) << 31) | (((imm >> 5) & 0x3F) << 25) | (rs2 << 20)
        | (rs1 << 15) | (funct3 << 12) | (((imm >> 1) & 0xF) << 8)
        | (((imm >> 11) & 1) << 7) | 0x63
    )


def enc_j(rd, imm):
    return (
        (((imm >> 20) & 1) << 31) | (((imm >> 1) & 0x3FF) << 21)
        | (((imm >> 11) & 1) << 20) | (((imm >> 12) & 0xFF) << 12) | (rd << 7) | 0x6F
    )


PAD = enc_i(T1, ZERO, 1)


def program(words):
    memory = Memory()
    for offset, word in enumerate(words):
        memory.write4(4 * offset, word)
    return memory


def run(rob, limit=1000):
    for _ in range(limit):
        rob.registers.reset_zero()
        rob.cdb.execute()
        rob.icache.check(rob.registers.pc_busy)
        if not rob.step():
            return False
    raise AssertionError("pipeline did not finish")


def run_to_exit(words):
    rob = ReorderBuffer(program(words))
    with pytest.raises(ProgramExit) as info:
        run(rob)
    return rob, info.value


def test_exit_word_is_li_a0_255():
    assert enc_i(A0, ZERO, 255) == EXIT_WORD
    ins = decode(EXIT_WORD, 0)
    assert (ins.op, ins.rd, ins.rs1, ins.imm) == ("addi", A0, ZERO, 255)


def test_fresh_buffer_has_nothing_to_do():
    rob = ReorderBuffer(Memory())
    assert rob.step() is False
    assert (rob.head, rob.tail) == (0, 0)


def test_exit_reports_a0():
    _, stop = run_to_exit([enc_i(A0, ZERO, 5), PAD, PAD, PAD, EXIT_WORD])
    assert stop.result == 5
    assert stop.accuracy is None


def test_result_is_low_byte_of_a0():
    _, stop = run_to_exit([enc_i(A0, ZERO, -1), PAD, PAD, PAD, EXIT_WORD])
    assert stop.result == 0xFF


def test_program_without_exit_drains():
    rob = ReorderBuffer(program([enc_i(A0, ZERO, 5)]))
    assert run(rob) is False
    assert rob.registers.read(A0) == 5
    assert rob.table[0].state is State.COMMIT
    assert rob.head == rob.tail == 1


def test_dependent_operands_are_forwarded():
    words = [enc_i(T0, ZERO, 7), enc_r(6, A0, T0, T0), PAD, PAD, PAD, EXIT_WORD]
    rob, stop = run_to_exit(words)
    assert stop.result == 7
    assert rob.registers.read(T0) == 7


def test_taken_branch_discards_speculation():
    words = [
        enc_i(T0, ZERO, 1),
        enc_b(1, T0, ZERO, 16),
        enc_i(A0, ZERO, 2),
        PAD,
        EXIT_WORD,
        enc_i(A0, ZERO, 9),
        PAD, PAD, PAD,
        EXIT_WORD,
    ]
    rob, stop = run_to_exit(words)
    assert stop.result == 9
    assert rob.predictor.predicting_times == 1
    assert rob.predictor.success_times == 0
    assert stop.accuracy == 0


def test_not_taken_branch_keeps_speculation():
    words = [
        enc_i(T0, ZERO, 1),
        enc_b(0, T0, ZERO, 16),
        enc_i(A0, ZERO, 2),
        PAD, PAD, PAD,
        EXIT_WORD,
    ]
    rob, stop = run_to_exit(words)
    assert stop.result == 2
    assert rob.predictor.success_times == 1
    assert stop.accuracy == 1.0
    assert not any(entry.predicting for entry in rob.table)


def test_jal_links_and_redirects():
    words = [
        PAD,
        enc_j(RA, 12),
        enc_i(A0, ZERO, 2),
        EXIT_WORD,
        enc_i(A0, ZERO, 9),
        PAD, PAD, PAD,
        EXIT_WORD,
    ]
    rob, stop = run_to_exit(words)
    assert stop.result == 9
    assert rob.registers.read(RA) == 8
    assert rob.registers.pc_busy is False


def test_ebreak_prints_notice(capsys):
    words = [0x00000073, PAD, PAD, PAD, EXIT_WORD]
    _, stop = run_to_exit(words)
    assert "Asking the debugger to do something" in capsys.readouterr().out
    assert stop.result == 0