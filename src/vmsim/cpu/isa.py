"""Instruction set — opcodes and the 32-bit instruction word.

Every instruction is one word with fixed bit fields::

     31      26 25   21 20   16 15                0
    +----------+-------+-------+-------------------+
    |  opcode  | dest  |  src  |     constant      |
    +----------+-------+-------+-------------------+

The constant is a signed 16-bit immediate.  Register-register
operations take their second operand from the register numbered by the
low bits of the constant.
"""

from dataclasses import dataclass
from enum import IntEnum

_OPCODE_SHIFT = 26
_DEST_SHIFT = 21
_SOURCE_SHIFT = 16
_FIELD_MASK = 0x1F
_CONSTANT_MASK = 0xFFFF
_SIGN_BIT = 0x8000


class Opcode(IntEnum):
    """The seventeen operations the CPU understands."""

    ADD = 0
    ADDI = 1
    SUB = 2
    SUBI = 3
    SGE = 4
    SGT = 5
    SEQ = 6
    BT = 7
    BF = 8
    BA = 9
    ST = 10
    LD = 11
    CALL = 12
    JMP = 13
    MUL = 14
    SEQI = 15
    HALT = 16

    @property
    def mnemonic(self) -> str:
        """Return the assembler spelling (lowercase name)."""
        return self.name.lower()


MNEMONICS: dict[str, Opcode] = {op.mnemonic: op for op in Opcode}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word.

    ``opcode`` is kept as a plain int so that words holding unknown
    opcodes can still be decoded and reported.
    """

    opcode: int
    dest: int
    source: int
    constant: int

    def encode(self) -> int:
        """Pack the fields back into a 32-bit word."""
        return encode(self.opcode, self.dest, self.source, self.constant)


def encode(opcode: int, dest: int, source: int, constant: int) -> int:
    """Pack instruction fields into one word.

    The constant is truncated to 16 bits, so negative immediates are
    stored in two's complement.
    """
    return (
        (opcode << _OPCODE_SHIFT)
        | ((dest & _FIELD_MASK) << _DEST_SHIFT)
        | ((source & _FIELD_MASK) << _SOURCE_SHIFT)
        | (constant & _CONSTANT_MASK)
    )


def decode(word: int) -> Instruction:
    """Split a word into its instruction fields."""
    constant = word & _CONSTANT_MASK
    if constant & _SIGN_BIT:
        constant -= _CONSTANT_MASK + 1
    return Instruction(
        opcode=word >> _OPCODE_SHIFT,
        dest=(word >> _DEST_SHIFT) & _FIELD_MASK,
        source=(word >> _SOURCE_SHIFT) & _FIELD_MASK,
        constant=constant,
    )
