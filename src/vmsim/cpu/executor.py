"""Instruction executor — the CPU's fetch, decode, execute loop.

Each iteration of the loop runs exactly one instruction:

    1. **Fetch** — read the word at ``pc`` (a translated read access).
    2. **Decode** — split it into opcode, dest, source and constant.
    3. **Execute** — compute a result, touch memory, or redirect ``pc``.
    4. **Writeback** — store the result in the destination register,
       unless the instruction has no result or the destination is r0.

The executor never sees physical addresses: all memory traffic goes
through a ``WordMemory`` (the machine), which translates and faults.

Between instructions the executor services pending interrupts.  An
operator stop request is honoured there, never in the middle of an
instruction.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from vmsim.cpu.isa import Opcode, decode
from vmsim.interrupts import InterruptController
from vmsim.logging import Logger, LogLevel

WORD_MASK = 0xFFFF_FFFF
_SIGN_BIT = 0x8000_0000
LINK_REGISTER = 31


def to_signed(value: int) -> int:
    """Interpret a 32-bit word as a two's complement integer."""
    value &= WORD_MASK
    return value - (WORD_MASK + 1) if value & _SIGN_BIT else value


class IllegalInstructionError(Exception):
    """Raised when the CPU fetches a word with an unknown opcode."""

    def __init__(self, pc: int, opcode: int) -> None:
        """Record where the illegal instruction was found."""
        super().__init__(f"illegal instruction at pc = {pc}: opcode = {opcode}")
        self.pc = pc
        self.opcode = opcode


class RunOutcome(StrEnum):
    """Why ``Executor.run()`` returned."""

    HALTED = "halted"
    INTERRUPTED = "interrupted"
    STEP_LIMIT = "step-limit"


class WordMemory(Protocol):
    """Translated, word-addressed memory as seen by the CPU."""

    def read_word(self, address: int) -> int:
        """Return the word at a virtual address."""
        ...  # pragma: no cover

    def write_word(self, address: int, value: int) -> None:
        """Store a word at a virtual address."""
        ...  # pragma: no cover


@dataclass
class CPUState:
    """Program counter and register file."""

    registers: list[int] = field(default_factory=lambda: [0] * 32)
    pc: int = 0


class Executor:
    """Run instructions from translated memory.

    Args:
        memory: Where instructions and data are read and written.
        register_count: Size of the register file (a power of two).
        interrupts: Controller serviced between instructions.
        logger: Receives one DEBUG entry per executed instruction.

    """

    def __init__(
        self,
        *,
        memory: WordMemory,
        register_count: int,
        interrupts: InterruptController,
        logger: Logger,
    ) -> None:
        """Create a CPU with pc = 0 and every register zero."""
        self._memory = memory
        self._register_mask = register_count - 1
        self._interrupts = interrupts
        self._logger = logger
        self.state = CPUState(registers=[0] * register_count)
        self._halted = False
        self._stop_requested = False
        self._steps = 0

    @property
    def halted(self) -> bool:
        """Return True once a HALT instruction has executed."""
        return self._halted

    @property
    def steps(self) -> int:
        """Return the number of instructions executed so far."""
        return self._steps

    def stop(self) -> None:
        """Ask the run loop to return at the next instruction boundary."""
        self._stop_requested = True

    def run(self, *, max_steps: int | None = None) -> RunOutcome:
        """Execute instructions until HALT, a stop request, or *max_steps*.

        Raises:
            IllegalInstructionError: If an unknown opcode is fetched.

        """
        executed = 0
        while True:
            self._interrupts.service_pending()
            if self._stop_requested:
                self._stop_requested = False
                return RunOutcome.INTERRUPTED
            if self._halted:
                return RunOutcome.HALTED
            if max_steps is not None and executed >= max_steps:
                return RunOutcome.STEP_LIMIT
            self.step()
            executed += 1

    def step(self) -> None:  # noqa: C901, PLR0912
        """Fetch, decode and execute a single instruction."""
        state = self.state
        regs = state.registers
        pc = state.pc

        instr = decode(self._memory.read_word(pc))
        try:
            opcode = Opcode(instr.opcode)
        except ValueError:
            raise IllegalInstructionError(pc, instr.opcode) from None

        dest_reg = instr.dest
        constant = instr.constant
        source1 = to_signed(regs[instr.source])
        source2 = to_signed(regs[constant & self._register_mask])

        if self._logger.enabled_for(LogLevel.DEBUG):
            self._logger.log(LogLevel.DEBUG, f"pc = {pc:3d}: {opcode.name}", source="cpu", tick=self._steps)

        result = 0
        writeback = True
        next_pc: int | None = None

        match opcode:
            case Opcode.ADD:
                result = source1 + source2
            case Opcode.ADDI:
                result = source1 + constant
            case Opcode.SUB:
                result = source1 - source2
            case Opcode.SUBI:
                result = source1 - constant
            case Opcode.MUL:
                result = source1 * source2
            case Opcode.SGE:
                result = int(source1 >= source2)
            case Opcode.SGT:
                result = int(source1 > source2)
            case Opcode.SEQ:
                result = int(source1 == source2)
            case Opcode.SEQI:
                result = int(source1 == constant)
            case Opcode.BT:
                writeback = False
                if source1 != 0:
                    next_pc = constant
            case Opcode.BF:
                writeback = False
                if source1 == 0:
                    next_pc = constant
            case Opcode.BA:
                writeback = False
                next_pc = constant
            case Opcode.LD:
                result = self._memory.read_word((source1 + constant) & WORD_MASK)
            case Opcode.ST:
                writeback = False
                self._memory.write_word((source1 + constant) & WORD_MASK, regs[dest_reg])
            case Opcode.CALL:
                result = pc + 1
                dest_reg = LINK_REGISTER
                next_pc = constant
            case Opcode.JMP:
                writeback = False
                next_pc = source1
            case Opcode.HALT:
                writeback = False
                next_pc = pc
                self._halted = True

        if writeback and dest_reg != 0:
            regs[dest_reg] = result & WORD_MASK

        state.pc = (pc + 1 if next_pc is None else next_pc) & WORD_MASK
        self._steps += 1
