"""Pager — address translation and demand paging.

The pager sits between the CPU and physical memory.  Every load, store
and instruction fetch goes through ``translate()``, which turns a
virtual address into a physical one:

    virtual address  →  (virtual page number, offset within page)
    page table[vpn]  →  frame (faulting the page in if needed)
    physical address →  frame * page_size + offset

When the page is not resident the pager handles the **page fault**
itself, synchronously:

    1. Find a frame — an unused one while any remain, otherwise the
       replacement policy's victim.
    2. Evict the victim's page, writing it to swap first if dirty.
    3. Fill the frame from swap (page was evicted before) or with zeros
       (first touch).
    4. Point the coremap and the page table at each other.

The page table and coremap are only ever inconsistent inside a single
call to ``translate()``, so anything that runs between CPU instructions
sees them in agreement.
"""

from dataclasses import dataclass

from vmsim.logging import Logger, LogLevel
from vmsim.memory.physical import PhysicalMemory
from vmsim.memory.replacement import ReplacementPolicy
from vmsim.memory.swap import SwapSpace
from vmsim.memory.tables import Coremap, PageTable


class AddressError(ValueError):
    """Raised when a virtual address lies outside the address space."""


@dataclass
class Statistics:
    """Counters accumulated over the life of one machine."""

    memory_accesses: int = 0
    page_faults: int = 0
    disk_reads: int = 0
    disk_writes: int = 0


class Pager:
    """Translate virtual addresses and service page faults.

    Args:
        page_table: Per-virtual-page metadata.
        coremap: Per-frame metadata.
        physical: The RAM frames are taken from.
        swap: Backing store for evicted dirty pages.
        policy: The replacement algorithm consulted once RAM is full.
        statistics: Counters to update.
        logger: Destination for fault and eviction events.

    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        page_table: PageTable,
        coremap: Coremap,
        physical: PhysicalMemory,
        swap: SwapSpace,
        policy: ReplacementPolicy,
        statistics: Statistics,
        logger: Logger,
    ) -> None:
        """Create a pager over the given tables and devices."""
        self._page_table = page_table
        self._coremap = coremap
        self._physical = physical
        self._swap = swap
        self._policy = policy
        self._stats = statistics
        self._logger = logger
        self._page_size = physical.page_size
        self._next_unused_frame = 0
        self._trace: list[int] | None = None

    @property
    def policy(self) -> ReplacementPolicy:
        """Return the active replacement policy."""
        return self._policy

    def record_trace(self, trace: list[int]) -> None:
        """Append the page number of every future access to *trace*."""
        self._trace = trace

    def _log(self, level: LogLevel, message: str) -> None:
        self._logger.log(level, message, source="pager", tick=self._stats.memory_accesses)

    def translate(self, virtual_address: int, *, write: bool) -> int:
        """Translate a virtual address into a physical address.

        Faults the page in when it is not resident, marks it referenced,
        and marks it dirty on writes.

        Args:
            virtual_address: The address the CPU asked for.
            write: True for a store, False for a load or fetch.

        Returns:
            The physical address in RAM.

        Raises:
            AddressError: If the address is beyond the virtual address space.
            OutOfSwapError: If an eviction needs a swap slot and none is left.

        """
        self._stats.memory_accesses += 1
        vpn = virtual_address // self._page_size
        offset = virtual_address % self._page_size
        if not 0 <= vpn < len(self._page_table):
            msg = (
                f"Virtual address {virtual_address} beyond address space "
                f"(max page {len(self._page_table) - 1})"
            )
            raise AddressError(msg)

        if self._trace is not None:
            self._trace.append(vpn)
        self._policy.record_access(vpn)

        entry = self._page_table[vpn]
        if not entry.resident:
            self.handle_fault(vpn)

        entry.referenced = True
        if write:
            entry.dirty = True
        return entry.location * self._page_size + offset

    def handle_fault(self, vpn: int) -> None:
        """Bring a non-resident virtual page into a physical frame."""
        self._stats.page_faults += 1
        frame = self.take_frame()
        entry = self._page_table[vpn]
        slot = self._coremap[frame]

        if entry.on_disk:
            self._physical.write_frame(frame, self._swap.retrieve(entry.location))
            self._stats.disk_reads += 1
            slot.swap_slot = entry.location
            self._log(LogLevel.DEBUG, f"page {vpn} read from swap slot {entry.location} into frame {frame}")
        else:
            self._physical.zero_frame(frame)
            slot.swap_slot = None
            self._log(LogLevel.DEBUG, f"page {vpn} zero-filled in frame {frame}")

        slot.owner = vpn
        entry.touched = True
        entry.resident = True
        entry.location = frame
        entry.dirty = False
        entry.referenced = False

    def take_frame(self) -> int:
        """Return a frame that is free for reuse, evicting its page if needed.

        Never-used frames are handed out in index order first; after
        that the replacement policy chooses.  The coremap entry keeps
        naming the evicted page until ``handle_fault`` installs the new
        owner.
        """
        if self._next_unused_frame < len(self._coremap):
            frame = self._next_unused_frame
            self._next_unused_frame += 1
            return frame

        frame = self._policy.select_victim(self._coremap, self._page_table)
        self._evict(frame)
        return frame

    def _evict(self, frame: int) -> None:
        """Detach the page occupying *frame*, saving it to swap if dirty."""
        slot = self._coremap[frame]
        if slot.owner is None:
            return
        owner = self._page_table[slot.owner]

        if owner.dirty:
            if not owner.on_disk or slot.swap_slot is None:
                slot.swap_slot = self._swap.allocate()
                self._log(LogLevel.INFO, f"page {slot.owner} assigned swap slot {slot.swap_slot}")
            self._swap.store(slot.swap_slot, self._physical.read_frame(frame))
            self._stats.disk_writes += 1
            owner.on_disk = True

        owner.resident = False
        owner.dirty = False
        owner.location = slot.swap_slot if owner.on_disk and slot.swap_slot is not None else 0
        self._log(LogLevel.DEBUG, f"page {slot.owner} evicted from frame {frame}")
