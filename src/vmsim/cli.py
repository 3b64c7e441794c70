"""Command-line front end — ``vmsim [options] PROGRAM``.

The CLI is the thin I/O layer around a ``Machine``:

    1. Parse options and pick the replacement policy (once, up front).
    2. Assemble the program file.
    3. Build the machine, load the program, and run it.
    4. Print registers and statistics on halt, or the coremap, page
       table and statistics when the operator interrupts with Ctrl+C.

Configuration mistakes (unknown policy, unreadable program, bad
geometry, syntax errors) are reported before the first instruction
runs.  Runtime failures (illegal instruction, out of swap, address out
of range) end the run with ``error: ...``.

The optimal policy needs to know the future.  Unless a trace file is
given, the CLI obtains one the only way possible: it runs the program
once on a FIFO machine with trace recording switched on, then runs it
again with the recorded trace.  Ctrl+C reaches whichever of the two
machines is running; interrupting the recording run reports its tables.
"""

import argparse
import re
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from types import FrameType

from vmsim.config import (
    DEFAULT_FRAMES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SWAP_SLOTS,
    DEFAULT_VIRTUAL_PAGES,
    ConfigurationError,
    MachineConfig,
)
from vmsim.cpu.executor import IllegalInstructionError, RunOutcome
from vmsim.loader import load_file
from vmsim.logging import Logger, LogLevel
from vmsim.machine import Machine
from vmsim.memory.pager import AddressError
from vmsim.memory.replacement import PolicyKind
from vmsim.memory.swap import OutOfSwapError
from vmsim.report import format_registers, format_statistics, format_tables

EXIT_OK = 0
EXIT_FAILURE = 1

# Newest entries a verbose run keeps in memory; every entry is still printed
VERBOSE_LOG_CAPACITY = 1000

_POLICY_BANNERS = {
    PolicyKind.FIFO: "FIFO page replacement algorithm.",
    PolicyKind.SECOND_CHANCE: "Second chance page replacement algorithm.",
    PolicyKind.OPTIMAL: "Optimal page replacement algorithm.",
}


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``vmsim`` command."""
    parser = argparse.ArgumentParser(
        prog="vmsim",
        description="Run a program on a simulated demand-paged machine.",
    )
    parser.add_argument("program", type=Path, help="assembly program to run")
    parser.add_argument(
        "-p",
        "--policy",
        default=PolicyKind.FIFO.value,
        help="page replacement algorithm: fifo, second-chance or optimal (default: fifo)",
    )
    parser.add_argument("--trace", type=Path, help="page access trace for the optimal policy")
    parser.add_argument("--frames", type=int, default=DEFAULT_FRAMES, help="physical frames")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="words per page")
    parser.add_argument("--swap-slots", type=int, default=DEFAULT_SWAP_SLOTS, help="swap slots")
    parser.add_argument(
        "--virtual-pages",
        type=int,
        default=DEFAULT_VIRTUAL_PAGES,
        help="pages in the virtual address space",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="trace every instruction")
    return parser


def read_trace(path: Path) -> list[int]:
    """Read a trace file of page numbers separated by commas or whitespace.

    Raises:
        ConfigurationError: If the file is unreadable or holds a non-number.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"cannot open trace file {str(path)!r}: {e.strerror}"
        raise ConfigurationError(msg) from e
    tokens = [t for t in re.split(r"[\s,{}]+", text) if t]
    try:
        return [int(t) for t in tokens]
    except ValueError as e:
        msg = f"trace file {str(path)!r} must contain page numbers only"
        raise ConfigurationError(msg) from e


class StopRelay:
    """SIGINT handler that forwards Ctrl+C to whichever machine is running.

    An optimal run without a trace file uses two machines in turn, so
    the handler is installed once and re-pointed with ``attach``.  A
    Ctrl+C that arrives while no machine is attached is held and
    delivered to the next one.
    """

    def __init__(self) -> None:
        """Create a relay with no machine attached."""
        self._machine: Machine | None = None
        self._requested = False

    def attach(self, machine: Machine) -> None:
        """Make *machine* the target of future stop requests."""
        self._machine = machine
        if self._requested:
            machine.request_stop()

    def __call__(self, signum: int, frame: FrameType | None) -> None:  # noqa: ARG002
        """Handle SIGINT by asking the attached machine to stop."""
        self._requested = True
        if self._machine is not None:
            self._machine.request_stop()


def record_trace(
    config: MachineConfig,
    program: Sequence[int],
    relay: StopRelay,
) -> tuple[Machine, RunOutcome]:
    """Run *program* on a FIFO machine that records every page it touches.

    Returns:
        The recording machine (its ``access_trace`` holds the trace) and
        how its run ended.

    """
    recorder = Machine(config, policy=PolicyKind.FIFO, record_trace=True)
    relay.attach(recorder)
    recorder.load_program(program)
    return recorder, recorder.run()


def report(machine: Machine, outcome: RunOutcome) -> int:
    """Print the end-of-run report and return the exit status."""
    if outcome is RunOutcome.INTERRUPTED:
        print(format_tables(machine.coremap, machine.page_table))  # noqa: T201
        print()  # noqa: T201
        print(format_statistics(machine.statistics))  # noqa: T201
        return EXIT_FAILURE
    print(format_registers(machine.cpu.registers))  # noqa: T201
    print()  # noqa: T201
    print(format_statistics(machine.statistics))  # noqa: T201
    return EXIT_OK


def _fail(message: str) -> int:
    print(f"error: {message}", file=sys.stderr)  # noqa: T201
    return EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``vmsim`` console script.

    Returns:
        The process exit status.

    """
    args = build_parser().parse_args(argv)
    try:
        policy = PolicyKind.parse(args.policy)
        config = MachineConfig(
            page_size=args.page_size,
            virtual_pages=args.virtual_pages,
            frames=args.frames,
            swap_slots=args.swap_slots,
        )
        program = load_file(args.program)
        trace = read_trace(args.trace) if args.trace is not None else None
    except ConfigurationError as e:
        return _fail(str(e))

    print(_POLICY_BANNERS[policy])  # noqa: T201
    if args.verbose:
        logger = Logger(min_level=LogLevel.DEBUG, sink=print, capacity=VERBOSE_LOG_CAPACITY)
    else:
        logger = Logger()

    relay = StopRelay()
    previous = signal.signal(signal.SIGINT, relay)
    try:
        if policy is PolicyKind.OPTIMAL and trace is None:
            recorder, outcome = record_trace(config, program, relay)
            if outcome is RunOutcome.INTERRUPTED:
                return report(recorder, outcome)
            trace = recorder.access_trace
        machine = Machine(config, policy=policy, trace=trace, logger=logger)
        relay.attach(machine)
        machine.load_program(program)
        outcome = machine.run()
    except (ConfigurationError, IllegalInstructionError, OutOfSwapError, AddressError) as e:
        return _fail(str(e))
    finally:
        signal.signal(signal.SIGINT, previous)
    return report(machine, outcome)
