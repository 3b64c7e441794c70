"""Machine configuration — the fixed hardware parameters.

A real machine's geometry is decided when it is built: how many words
fit in a page, how many frames of RAM are installed, how large the
swap partition is.  None of it changes while a program runs.  Our
``MachineConfig`` captures those constants in one immutable record
that every subsystem reads from.

Several values are used as bit masks (the offset within a page, the
register index taken from an immediate), so they must be powers of
two.  Validation happens once, at construction, so a bad configuration
is reported before any instruction runs.
"""

from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 4
DEFAULT_VIRTUAL_PAGES = 2048
DEFAULT_FRAMES = 8
DEFAULT_SWAP_SLOTS = 128
DEFAULT_REGISTERS = 32
MIN_REGISTERS = 32


class ConfigurationError(Exception):
    """Raise when the simulator is set up with invalid parameters."""


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


@dataclass(frozen=True)
class MachineConfig:
    """Immutable hardware geometry for one simulated machine.

    Attributes:
        page_size: Words per page (and per frame, and per swap slot).
        virtual_pages: Number of pages in the virtual address space.
        frames: Number of physical frames of RAM.
        swap_slots: Number of page-sized slots on the swap device.
        registers: Number of general-purpose CPU registers.

    """

    page_size: int = DEFAULT_PAGE_SIZE
    virtual_pages: int = DEFAULT_VIRTUAL_PAGES
    frames: int = DEFAULT_FRAMES
    swap_slots: int = DEFAULT_SWAP_SLOTS
    registers: int = DEFAULT_REGISTERS

    def __post_init__(self) -> None:
        """Reject geometries the hardware could not be built with."""
        for name in ("page_size", "frames", "swap_slots", "registers"):
            value = getattr(self, name)
            if not _is_power_of_two(value):
                msg = f"{name} must be a power of two, got {value}"
                raise ConfigurationError(msg)
        if self.registers < MIN_REGISTERS:
            msg = f"registers must be at least {MIN_REGISTERS} (5-bit register fields), got {self.registers}"
            raise ConfigurationError(msg)
        if self.virtual_pages <= 0:
            msg = f"virtual_pages must be positive, got {self.virtual_pages}"
            raise ConfigurationError(msg)

    @property
    def address_space(self) -> int:
        """Return the size of the virtual address space in words."""
        return self.virtual_pages * self.page_size

    @property
    def ram_words(self) -> int:
        """Return the size of physical memory in words."""
        return self.frames * self.page_size
