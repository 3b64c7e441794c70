"""Physical memory — the machine's RAM, organised into frames.

RAM is a flat array of 32-bit words.  The pager thinks of it in
page-sized chunks called **frames**: frame ``f`` covers words
``f * page_size`` up to ``(f + 1) * page_size - 1``.  The CPU only ever
reaches it through physical addresses produced by the translator.
"""

WORD_MASK = 0xFFFF_FFFF


class PhysicalMemory:
    """Word-addressable RAM with frame-level block operations."""

    def __init__(self, *, frames: int, page_size: int) -> None:
        """Create zeroed RAM with the given number of frames.

        Args:
            frames: Number of physical frames.
            page_size: Words per frame.

        """
        self._frames = frames
        self._page_size = page_size
        self._words: list[int] = [0] * (frames * page_size)

    @property
    def frames(self) -> int:
        """Return the number of physical frames."""
        return self._frames

    @property
    def page_size(self) -> int:
        """Return the number of words per frame."""
        return self._page_size

    def read(self, physical_address: int) -> int:
        """Return the word at a physical address."""
        return self._words[physical_address]

    def write(self, physical_address: int, value: int) -> None:
        """Store a word (truncated to 32 bits) at a physical address."""
        self._words[physical_address] = value & WORD_MASK

    def read_frame(self, frame: int) -> list[int]:
        """Return a copy of every word in a frame."""
        start = frame * self._page_size
        return self._words[start : start + self._page_size]

    def write_frame(self, frame: int, words: list[int]) -> None:
        """Overwrite a whole frame with the given words.

        Raises:
            ValueError: If *words* is not exactly one page long.

        """
        if len(words) != self._page_size:
            msg = f"Frame data must be {self._page_size} words, got {len(words)}"
            raise ValueError(msg)
        start = frame * self._page_size
        self._words[start : start + self._page_size] = words

    def zero_frame(self, frame: int) -> None:
        """Fill a frame with zeros."""
        self.write_frame(frame, [0] * self._page_size)
