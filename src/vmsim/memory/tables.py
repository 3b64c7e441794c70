"""Page table and coremap — the pager's two bookkeeping structures.

The **page table** is indexed by virtual page number and answers "where
is this page right now?"  The **coremap** is indexed by physical frame
and answers the reverse question, "which page lives in this frame?"
The pager keeps them consistent:

    page_table[vpn].resident and page_table[vpn].location == f
        ⇔  coremap[f].owner == vpn

The coremap stores the owner as a virtual page *number* rather than a
reference to the entry object, so "no owner" is simply ``None`` and
the page table never has to worry about entries moving.
"""

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass
class PageTableEntry:
    """Metadata for one virtual page.

    Attributes:
        resident: The page currently occupies a physical frame.
        on_disk: The page has a swap slot holding its contents.
        dirty: The page was written since it was last saved to swap.
        referenced: The page was accessed since the bit was last cleared.
        read_only: Advisory flag; writes are never checked against it.
        touched: The page has been faulted in at least once.
        location: Frame index when resident, swap slot when only on disk,
            0 otherwise.

    """

    resident: bool = False
    on_disk: bool = False
    dirty: bool = False
    referenced: bool = False
    read_only: bool = False
    touched: bool = False
    location: int = 0

    @property
    def untouched(self) -> bool:
        """Return True if the page has never been brought in."""
        return not (self.touched or self.resident or self.on_disk)


class PageTable:
    """Fixed-size array of page table entries, one per virtual page."""

    def __init__(self, *, virtual_pages: int) -> None:
        """Create a page table with every page absent."""
        self._entries = [PageTableEntry() for _ in range(virtual_pages)]

    def __getitem__(self, vpn: int) -> PageTableEntry:
        """Return the entry for a virtual page number."""
        return self._entries[vpn]

    def __len__(self) -> int:
        """Return the number of virtual pages."""
        return len(self._entries)

    def __iter__(self) -> Iterator[PageTableEntry]:
        """Iterate over entries in page-number order."""
        return iter(self._entries)

    def resident_pages(self) -> list[int]:
        """Return the page numbers currently in RAM."""
        return [vpn for vpn, entry in enumerate(self._entries) if entry.resident]


@dataclass
class CoremapEntry:
    """Metadata for one physical frame.

    Attributes:
        owner: Virtual page number occupying the frame, or None if the
            frame has never been used.
        swap_slot: Swap slot last associated with the frame's content,
            or None if the content did not come from swap.

    """

    owner: int | None = None
    swap_slot: int | None = None


class Coremap:
    """Fixed-size array of coremap entries, one per physical frame."""

    def __init__(self, *, frames: int) -> None:
        """Create a coremap with every frame unowned."""
        self._entries = [CoremapEntry() for _ in range(frames)]

    def __getitem__(self, frame: int) -> CoremapEntry:
        """Return the entry for a frame index."""
        return self._entries[frame]

    def __len__(self) -> int:
        """Return the number of frames."""
        return len(self._entries)

    def __iter__(self) -> Iterator[CoremapEntry]:
        """Iterate over entries in frame order."""
        return iter(self._entries)

    def frame_of(self, vpn: int) -> int | None:
        """Return the frame owned by *vpn*, or None if it owns none."""
        for frame, entry in enumerate(self._entries):
            if entry.owner == vpn:
                return frame
        return None
