"""Page replacement policies — choosing which frame to reclaim.

Once every physical frame holds a page, a page fault can only be
satisfied by evicting somebody.  Which frame to take is the
**replacement policy**'s decision, kept separate from the mechanics of
eviction (Strategy pattern, like a scheduler's policy):

    - **FIFO** — a cursor walks the frames in a fixed round-robin
      order.  Frames are filled in index order at cold start, so the
      round-robin order is exactly load order.  Access history is
      ignored.
    - **Clock (second chance)** — the cursor sweeps the frames; a frame
      whose page has its reference bit set loses the bit and is
      skipped, the first frame with a clear bit is the victim.  The
      cursor resumes just past the victim next time.
    - **Optimal** — evicts the resident page whose next use lies
      farthest in the future.  The future is not knowable while a
      program runs, so this policy is handed a recorded trace of page
      accesses (for instance from an earlier FIFO run of the same
      program) and serves as a yardstick for the other two.

Each policy keeps its cursor or trace position as instance state, and
the machine builds exactly one of them at start-up from a
``PolicyKind``.
"""

from __future__ import annotations

from bisect import bisect_left
from collections import defaultdict
from collections.abc import Sequence
from enum import StrEnum
from typing import Protocol

from vmsim.config import ConfigurationError
from vmsim.memory.tables import Coremap, PageTable


class PolicyKind(StrEnum):
    """The closed set of replacement policies."""

    FIFO = "fifo"
    SECOND_CHANCE = "second-chance"
    OPTIMAL = "optimal"

    @classmethod
    def parse(cls, name: str) -> PolicyKind:
        """Look up a policy by its command-line name.

        Raises:
            ConfigurationError: If *name* is not a known policy.

        """
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            msg = f"Unknown page replacement algorithm {name!r} (choose from {choices})"
            raise ConfigurationError(msg) from None


class ReplacementPolicy(Protocol):
    """Interface for page replacement algorithms."""

    def record_access(self, vpn: int) -> None:
        """Observe one translated access to a virtual page."""
        ...  # pragma: no cover

    def select_victim(self, coremap: Coremap, page_table: PageTable) -> int:
        """Return the index of the frame to reclaim."""
        ...  # pragma: no cover


class FIFOPolicy:
    """First In, First Out — rotate through frames in a fixed order."""

    def __init__(self, *, frame_count: int) -> None:
        """Create a FIFO policy whose cursor starts at frame 0."""
        self._frame_count = frame_count
        self._cursor = 0

    def record_access(self, vpn: int) -> None:
        """FIFO ignores accesses — order is purely by load time."""

    def select_victim(self, coremap: Coremap, page_table: PageTable) -> int:  # noqa: ARG002
        """Return the frame under the cursor and advance the cursor."""
        frame = self._cursor
        self._cursor = (self._cursor + 1) % self._frame_count
        return frame


class ClockPolicy:
    """Second Chance (Clock) — approximate LRU with reference bits.

    The reference bits live in the page table (the translator sets them
    on every access); the policy only owns the clock hand.
    """

    def __init__(self, *, frame_count: int) -> None:
        """Create a clock policy whose hand starts at frame 0."""
        self._frame_count = frame_count
        self._hand = 0

    def record_access(self, vpn: int) -> None:
        """Reference bits are kept in the page table, nothing to do."""

    def select_victim(self, coremap: Coremap, page_table: PageTable) -> int:
        """Sweep the hand until a frame with a clear reference bit is found.

        Terminates within two sweeps: the first pass clears every bit it
        skips.
        """
        while True:
            frame = self._hand
            self._hand = (self._hand + 1) % self._frame_count
            owner = coremap[frame].owner
            if owner is None:
                return frame
            entry = page_table[owner]
            if not entry.referenced:
                return frame
            # Second chance: clear the bit, move on
            entry.referenced = False


class OptimalPolicy:
    """Belady's optimal replacement over a fixed, pre-recorded trace.

    ``record_access`` advances the position in the trace; the access
    that caused the fault is the one at ``position - 1``.  The trace is
    indexed once, page by page, so finding a page's next use is a
    binary search rather than a scan.
    """

    def __init__(self, *, trace: Sequence[int]) -> None:
        """Create an optimal policy replaying *trace* (virtual page numbers)."""
        self._length = len(trace)
        self._occurrences: dict[int, list[int]] = defaultdict(list)
        for index, vpn in enumerate(trace):
            self._occurrences[vpn].append(index)
        self._position = 0

    @property
    def position(self) -> int:
        """Return how many accesses have been observed."""
        return self._position

    def record_access(self, vpn: int) -> None:  # noqa: ARG002
        """Advance one step along the trace."""
        self._position += 1

    def _distance(self, vpn: int, start: int) -> int:
        uses = self._occurrences.get(vpn, [])
        i = bisect_left(uses, start)
        if i == len(uses):
            # Never used again: farther than anything in the trace
            return self._length + 1
        return uses[i] - start

    def select_victim(self, coremap: Coremap, page_table: PageTable) -> int:  # noqa: ARG002
        """Return the frame whose page is next used farthest in the future.

        Ties (including several pages never used again) go to the lowest
        frame index.
        """
        start = max(self._position - 1, 0)
        victim = 0
        farthest = -1
        for frame, entry in enumerate(coremap):
            if entry.owner is None:
                return frame
            distance = self._distance(entry.owner, start)
            if distance > farthest:
                farthest = distance
                victim = frame
        return victim


def create_policy(
    kind: PolicyKind,
    *,
    frame_count: int,
    trace: Sequence[int] | None = None,
) -> FIFOPolicy | ClockPolicy | OptimalPolicy:
    """Build the replacement policy for *kind*.

    Args:
        kind: Which algorithm to use.
        frame_count: Number of physical frames the policy rotates over.
        trace: Future page accesses; required for the optimal policy.

    Raises:
        ConfigurationError: If the optimal policy is requested without a trace.

    """
    match kind:
        case PolicyKind.FIFO:
            return FIFOPolicy(frame_count=frame_count)
        case PolicyKind.SECOND_CHANCE:
            return ClockPolicy(frame_count=frame_count)
        case PolicyKind.OPTIMAL:
            if trace is None:
                msg = "The optimal policy needs a trace of future page accesses"
                raise ConfigurationError(msg)
            return OptimalPolicy(trace=trace)
