"""The clocked simulator and its command-line entry point."""

import argparse
import sys

from .memory import Memory
from .pipeline import ProgramExit, ReorderBuffer


class Simulator:
    """Drives the reorder buffer and its units one clock cycle at a time."""

    def __init__(self, memory):
        self.memory = memory
        self.rob = ReorderBuffer(memory)
        self.ticker = 0

    def tick(self):
        """Advance one cycle; False once nothing is left to do.

        Raises ProgramExit when the exit instruction commits.
        """
        self.rob.registers.reset_zero()
        self.rob.cdb.execute()
        self.ticker += 1
        self.rob.icache.check(self.rob.registers.pc_busy)
        return self.rob.step()

    def run(self):
        """Run until the program exits or stalls for good.

        Returns the exit result (the low byte of ``a0``), or None if the
        pipeline ran dry without reaching the exit instruction.
        """
        try:
            while self.tick():
                pass
        except ProgramExit as exit_:
            return exit_.result
        return None


def main(argv=None):
    """Load a hex program image, run it and print its result."""
    parser = argparse.ArgumentParser(
        prog="tomasim",
        description="Run an RV32I hex image on an out-of-order pipeline model.",
    )
    parser.add_argument(
        "program",
        nargs="?",
        help="hex image to run (standard input if omitted)",
    )
    args = parser.parse_args(argv)

    if args.program is None:
        text = sys.stdin.read()
    else:
        with open(args.program, encoding="ascii") as handle:
            text = handle.read()

    memory = Memory()
    memory.load(text)
    simulator = Simulator(memory)
    result = simulator.run()
    if result is not None:
        print(result, end="")
        sys.stdout.flush()
        print(f"clk:{simulator.ticker}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())