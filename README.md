# tomasim

`tomasim` simulates a 32-bit RISC-V (RV32I) processor clock cycle by clock
cycle. It uses an out-of-order design built on Tomasulo's algorithm:

- an instruction cache (`tomasim.icache.InstructionCache`) that prefetches
  words from memory in batches of eight, with each fetch taking three cycles;
- a reorder buffer (`tomasim.pipeline.ReorderBuffer`) of 500 entries that
  fetches, decodes, issues, executes and commits instructions, committing
  them in program order;
- six reservation stations (`tomasim.reservation.ReservationStations`), two
  each for loads and stores, arithmetic, and jumps;
- a common data bus (`tomasim.cdb.CommonDataBus`) that broadcasts up to two
  results per cycle, lowest reorder-buffer index first;
- a load/store buffer (`tomasim.lsb.LoadStoreBuffer`) that performs memory
  accesses strictly in program order, each taking three cycles;
- a predictor (`tomasim.predictor.Predictor`) that runs ahead on the
  not-taken path of a conditional branch and flushes that work when the
  branch is taken.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running a program

```
tomasim program.data
tomasim < program.data
```

The program image is read from the file given, or from standard input if
no file is given. It is a hex dump:

- `@XXXXXXXX` sets the address that the following bytes go to;
- the remaining hex digits are taken eight at a time, each group being four
  bytes stored at increasing addresses in the order they are written.
  Whitespace is ignored.

Fetching stops at the first all-zero word. The program ends when the
instruction `addi a0, zero, 255` (`0x0ff00513`) commits. The simulator then
prints the low byte of register `a0` in decimal, with no trailing newline,
and writes `clk:<cycles>` to standard error. If the pipeline runs dry
without reaching that instruction, nothing is printed.

`ebreak` and `ecall` print a one-line notice to standard output and do
nothing else. Per-cycle tracing goes through the `logging` module at debug
level under the `tomasim` logger names; configure logging to see it.

## Using it from Python

```python
from tomasim.memory import Memory
from tomasim.cpu import Simulator

memory = Memory()
with open("program.data") as handle:
    memory.load(handle.read())
simulator = Simulator(memory)
result = simulator.run()      # low byte of a0, or None
print(result, simulator.ticker)
```

`Simulator.tick()` advances one cycle and returns False once nothing is
left to do; it raises `tomasim.pipeline.ProgramExit` (with `result` and
`accuracy` attributes) when the exit instruction commits.

The pieces can also be used on their own:

- `tomasim.decoder.decode(word, pc)` turns a 32-bit word into an
  `Instruction`; its `disassemble()` method returns a line of text with the
  word in hex followed by the assembly. Unrecognised words decode with the
  op `"uk"`.
- `tomasim.memory.Memory` is a sparse byte-addressed store. `read4`/`write4`,
  `read2`/`write2` and `read1`/`write1` work in little-endian order; a read
  returns 0 unless every byte it covers has been written. `dump()` lists
  the stored bytes.
- `tomasim.alu.execute(entry)` computes the result of a reorder-buffer entry
  and returns an `AluOutcome` describing any change of control flow.
- `tomasim.registers.RegisterFile` holds the 32 registers, their busy flags
  and rename tags.

## Limits

- Only the base RV32I integer instructions are modelled: no multiply or
  divide, no floating point, no CSR instructions.
- There is no operating system: `ecall` and `ebreak` only print a notice,
  and the only way for a program to end with a result is the exit
  instruction above.
- Loads all read the raw byte, halfword or word from memory; `lb` and `lh`
  are not sign-extended differently from `lbu` and `lhu`.