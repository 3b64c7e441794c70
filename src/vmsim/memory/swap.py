"""Swap space — simulated disk storage for evicted pages.

When the pager evicts a page that was modified, the page's contents
must survive somewhere until it is needed again.  In a real OS that
somewhere is a swap partition or a swap file.  Ours is a fixed array of
page-sized **slots**.

Slot allocation is deliberately simple:
    - A page receives a slot the first time it is written back, and
      keeps that slot for the life of the machine.  Later write-backs of
      the same page overwrite it in place.
    - Slots are handed out in increasing order and never reclaimed.
      With one program and one address space a page never disappears,
      so a slot never becomes garbage; what remains is a capacity limit.
    - Running out of slots raises ``OutOfSwapError`` — the workload is
      bigger than the configured disk, not a bug in the pager.
"""


class OutOfSwapError(MemoryError):
    """Raised when every swap slot is already bound to a page."""


class SwapSpace:
    """Fixed-capacity slot store with a monotonic allocator."""

    def __init__(self, *, slots: int, page_size: int) -> None:
        """Create zeroed swap space.

        Args:
            slots: Number of page-sized slots on the device.
            page_size: Words per slot.

        """
        self._capacity = slots
        self._page_size = page_size
        self._slots: list[list[int]] = [[0] * page_size for _ in range(slots)]
        self._next_slot = 0

    @property
    def capacity(self) -> int:
        """Return the total number of slots."""
        return self._capacity

    @property
    def used(self) -> int:
        """Return the number of slots handed out so far."""
        return self._next_slot

    def allocate(self) -> int:
        """Hand out the next unused slot.

        Raises:
            OutOfSwapError: If every slot is already allocated.

        """
        if self._next_slot >= self._capacity:
            msg = f"Swap space full ({self._capacity} slots)"
            raise OutOfSwapError(msg)
        slot = self._next_slot
        self._next_slot += 1
        return slot

    def _check(self, slot: int) -> None:
        if not 0 <= slot < self._next_slot:
            msg = f"Swap slot {slot} has not been allocated"
            raise KeyError(msg)

    def store(self, slot: int, words: list[int]) -> None:
        """Write one page of words into an allocated slot.

        Raises:
            KeyError: If the slot has not been allocated.
            ValueError: If *words* is not exactly one page long.

        """
        self._check(slot)
        if len(words) != self._page_size:
            msg = f"Slot data must be {self._page_size} words, got {len(words)}"
            raise ValueError(msg)
        self._slots[slot] = list(words)

    def retrieve(self, slot: int) -> list[int]:
        """Return a copy of the words stored in an allocated slot.

        Raises:
            KeyError: If the slot has not been allocated.

        """
        self._check(slot)
        return list(self._slots[slot])
