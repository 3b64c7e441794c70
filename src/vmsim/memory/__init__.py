"""Memory subsystem — RAM, swap, page tables, replacement, and paging.

Re-exports public symbols so callers can write::

    from vmsim.memory import Pager, PageTable, PolicyKind
"""

from vmsim.memory.pager import AddressError, Pager, Statistics
from vmsim.memory.physical import PhysicalMemory
from vmsim.memory.replacement import (
    ClockPolicy,
    FIFOPolicy,
    OptimalPolicy,
    PolicyKind,
    ReplacementPolicy,
    create_policy,
)
from vmsim.memory.swap import OutOfSwapError, SwapSpace
from vmsim.memory.tables import Coremap, CoremapEntry, PageTable, PageTableEntry

__all__ = [
    "AddressError",
    "ClockPolicy",
    "Coremap",
    "CoremapEntry",
    "FIFOPolicy",
    "OptimalPolicy",
    "OutOfSwapError",
    "PageTable",
    "PageTableEntry",
    "Pager",
    "PhysicalMemory",
    "PolicyKind",
    "ReplacementPolicy",
    "Statistics",
    "SwapSpace",
    "create_policy",
]
