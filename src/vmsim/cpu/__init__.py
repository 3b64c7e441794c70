"""CPU subsystem — instruction set and executor.

Re-exports public symbols so callers can write::

    from vmsim.cpu import Executor, Opcode
"""

from vmsim.cpu.executor import (
    CPUState,
    Executor,
    IllegalInstructionError,
    RunOutcome,
    WordMemory,
    to_signed,
)
from vmsim.cpu.isa import MNEMONICS, Instruction, Opcode, decode, encode

__all__ = [
    "MNEMONICS",
    "CPUState",
    "Executor",
    "IllegalInstructionError",
    "Instruction",
    "Opcode",
    "RunOutcome",
    "WordMemory",
    "decode",
    "encode",
    "to_signed",
]
