"""Program loader — assemble text into instruction words.

Programs are plain text, one instruction per line::

    ; r1 = 10
    addi 1,0,10
    halt 0,0,0

Each line is ``mnemonic dst,src,imm`` with decimal operands.  Lines
starting with ``;`` are comments and blank lines are ignored.  The
assembler is a pure function from lines to words; writing the words
into a machine is ``Machine.load_program()``'s job.
"""

import re
from collections.abc import Iterable
from pathlib import Path

from vmsim.config import ConfigurationError
from vmsim.cpu.isa import MNEMONICS, encode

_LINE = re.compile(r"^\s*(\S+)\s+([+-]?\d+)\s*,\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*$")


class AssemblyError(ConfigurationError):
    """Raised when a program line cannot be assembled."""

    def __init__(self, line_number: int, text: str, reason: str) -> None:
        """Record the offending line."""
        super().__init__(f"line {line_number}: {reason} near: {text.strip()!r}")
        self.line_number = line_number
        self.text = text


def assemble_line(text: str, *, line_number: int = 1) -> int:
    """Assemble one instruction line into a word.

    Raises:
        AssemblyError: If the line is malformed or the mnemonic is unknown.

    """
    match = _LINE.match(text)
    if match is None:
        raise AssemblyError(line_number, text, "syntax error")
    mnemonic, dest, source, constant = match.groups()
    opcode = MNEMONICS.get(mnemonic)
    if opcode is None:
        raise AssemblyError(line_number, text, f"unknown mnemonic {mnemonic!r}")
    return encode(opcode, int(dest), int(source), int(constant))


def assemble(lines: Iterable[str]) -> list[int]:
    """Assemble a program, skipping comments and blank lines.

    Raises:
        AssemblyError: On the first line that cannot be assembled.

    """
    words: list[int] = []
    for line_number, text in enumerate(lines, start=1):
        if text.startswith(";") or not text.strip():
            continue
        words.append(assemble_line(text, line_number=line_number))
    return words


def load_file(path: Path) -> list[int]:
    """Read and assemble a program file.

    Raises:
        ConfigurationError: If the file cannot be read.
        AssemblyError: If any line cannot be assembled.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"cannot open file {str(path)!r}: {e.strerror}"
        raise ConfigurationError(msg) from e
    return assemble(text.splitlines())
