"""vmsim — a demand-paged virtual memory simulator.

A small CPU runs programs over a virtual address space much larger than
its RAM.  Pages move between RAM and a simulated swap device on demand,
and a pluggable replacement policy picks which page to evict.

Re-exports the main entry points so callers can write::

    from vmsim import Machine, MachineConfig, PolicyKind
"""

from vmsim.config import ConfigurationError, MachineConfig
from vmsim.machine import Machine
from vmsim.memory.replacement import PolicyKind

__all__ = [
    "ConfigurationError",
    "Machine",
    "MachineConfig",
    "PolicyKind",
]
