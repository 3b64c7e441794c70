"""Reporting — text views of a machine's state.

Every function here is pure: it takes data and returns a string, so the
same formatting serves a normal halt, an operator interrupt, and the
tests.  Printing is left to the caller.
"""

from vmsim.cpu.executor import to_signed
from vmsim.memory.pager import Statistics
from vmsim.memory.tables import Coremap, PageTable

_REGISTERS_PER_ROW = 4


def format_statistics(stats: Statistics) -> str:
    """Format the access, fault and disk counters, one per line."""
    return "\n".join(
        [
            f"{stats.memory_accesses} memory accesses",
            f"{stats.page_faults} page faults",
            f"{stats.disk_reads} disk reads",
            f"{stats.disk_writes} disk writes",
        ]
    )


def format_coremap(coremap: Coremap) -> str:
    """Format one line per physical frame."""
    lines = ["Core map:"]
    for frame, entry in enumerate(coremap):
        slot = "-" if entry.swap_slot is None else str(entry.swap_slot)
        owner = "No owner." if entry.owner is None else f"Owner = {entry.owner}."
        lines.append(f"Entry {frame}: Swap page = {slot}. {owner}")
    return "\n".join(lines)


def format_page_table(page_table: PageTable) -> str:
    """Format every page that has ever been brought in; absent pages are skipped."""
    lines = ["Page table:"]
    for vpn, entry in enumerate(page_table):
        if entry.untouched:
            continue
        lines.append(
            f"Entry {vpn}: Ram/Swap page = {entry.location}. "
            f"In memory = {int(entry.resident)}. "
            f"On disk = {int(entry.on_disk)}. "
            f"Modified = {int(entry.dirty)}. "
            f"Referenced = {int(entry.referenced)}. "
            f"Readonly = {int(entry.read_only)}."
        )
    return "\n".join(lines)


def format_tables(coremap: Coremap, page_table: PageTable) -> str:
    """Format the coremap followed by the page table."""
    return f"{format_coremap(coremap)}\n\n{format_page_table(page_table)}"


def format_registers(registers: list[int]) -> str:
    """Format the register file four to a row (``R00 = 0 | R01 = 5 ...``)."""
    rows: list[str] = []
    for start in range(0, len(registers), _REGISTERS_PER_ROW):
        cells = [
            f"R{index:02d} = {to_signed(registers[index]):<12d}"
            for index in range(start, min(start + _REGISTERS_PER_ROW, len(registers)))
        ]
        rows.append("| ".join(cells).rstrip())
    return "\n".join(rows)
