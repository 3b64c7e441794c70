"""The machine — one simulated computer, all of its state in one place.

A ``Machine`` owns everything a run touches: RAM, swap, the page table
and coremap, the statistics counters, the replacement policy, the CPU
and the interrupt controller.  Nothing lives at module level, so
several machines can exist side by side (the CLI builds two for an
optimal-policy run: one to record the access trace, one to replay it)
and every test starts from a fresh one.

Construction order (each part needs the ones before it):
    0. Logger — capture events from the start.
    1. Devices — physical memory and swap.
    2. Tables — page table and coremap.
    3. Policy and pager.
    4. Interrupt controller and CPU.
"""

from collections.abc import Iterable, Sequence

from vmsim.config import MachineConfig
from vmsim.cpu.executor import CPUState, Executor, RunOutcome
from vmsim.interrupts import VECTOR_STOP, InterruptController, InterruptRequest
from vmsim.logging import Logger, LogLevel
from vmsim.memory.pager import Pager, Statistics
from vmsim.memory.physical import PhysicalMemory
from vmsim.memory.replacement import PolicyKind, ReplacementPolicy, create_policy
from vmsim.memory.swap import SwapSpace
from vmsim.memory.tables import Coremap, PageTable


class Machine:
    """A CPU, its memory hierarchy, and its counters.

    Args:
        config: Hardware geometry (defaults to ``MachineConfig()``).
        policy: Which replacement algorithm the pager uses.
        trace: Future page accesses, required for the optimal policy.
        record_trace: Keep the page number of every access in
            ``access_trace``.
        logger: Event log (a fresh INFO-level logger by default).

    Raises:
        ConfigurationError: If the optimal policy is chosen without a trace.

    """

    def __init__(
        self,
        config: MachineConfig | None = None,
        *,
        policy: PolicyKind = PolicyKind.FIFO,
        trace: Sequence[int] | None = None,
        record_trace: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Build and wire every subsystem."""
        self._config = config or MachineConfig()
        self._logger = logger or Logger()
        cfg = self._config

        self._physical = PhysicalMemory(frames=cfg.frames, page_size=cfg.page_size)
        self._swap = SwapSpace(slots=cfg.swap_slots, page_size=cfg.page_size)

        self._page_table = PageTable(virtual_pages=cfg.virtual_pages)
        self._coremap = Coremap(frames=cfg.frames)
        self._stats = Statistics()

        self._policy_kind = policy
        self._pager = Pager(
            page_table=self._page_table,
            coremap=self._coremap,
            physical=self._physical,
            swap=self._swap,
            policy=create_policy(policy, frame_count=cfg.frames, trace=trace),
            statistics=self._stats,
            logger=self._logger,
        )
        self._access_trace: list[int] = []
        if record_trace:
            self._pager.record_trace(self._access_trace)

        self._interrupts = InterruptController()
        self._interrupts.register_vector(VECTOR_STOP)
        self._interrupts.register_handler(VECTOR_STOP, self._on_stop)
        self._cpu = Executor(
            memory=self,
            register_count=cfg.registers,
            interrupts=self._interrupts,
            logger=self._logger,
        )
        self._logger.log(
            LogLevel.INFO,
            f"{policy} replacement, {cfg.frames} frames of {cfg.page_size} words, "
            f"{cfg.swap_slots} swap slots",
            source="machine",
        )

    # -- Accessors -------------------------------------------------------------

    @property
    def config(self) -> MachineConfig:
        """Return the hardware geometry."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the machine's event log."""
        return self._logger

    @property
    def policy_kind(self) -> PolicyKind:
        """Return which replacement algorithm is active."""
        return self._policy_kind

    @property
    def policy(self) -> ReplacementPolicy:
        """Return the active replacement policy instance."""
        return self._pager.policy

    @property
    def statistics(self) -> Statistics:
        """Return the access, fault and disk counters."""
        return self._stats

    @property
    def page_table(self) -> PageTable:
        """Return the page table."""
        return self._page_table

    @property
    def coremap(self) -> Coremap:
        """Return the coremap."""
        return self._coremap

    @property
    def physical(self) -> PhysicalMemory:
        """Return physical memory."""
        return self._physical

    @property
    def swap(self) -> SwapSpace:
        """Return the swap device."""
        return self._swap

    @property
    def interrupts(self) -> InterruptController:
        """Return the interrupt controller."""
        return self._interrupts

    @property
    def cpu(self) -> CPUState:
        """Return the CPU's program counter and registers."""
        return self._cpu.state

    @property
    def executor(self) -> Executor:
        """Return the instruction executor."""
        return self._cpu

    @property
    def access_trace(self) -> list[int]:
        """Return the recorded page numbers (empty unless recording)."""
        return list(self._access_trace)

    # -- Translated memory -----------------------------------------------------

    def read_word(self, address: int) -> int:
        """Read a word from a virtual address, faulting as needed."""
        return self._physical.read(self._pager.translate(address, write=False))

    def write_word(self, address: int, value: int) -> None:
        """Write a word to a virtual address, faulting as needed."""
        self._physical.write(self._pager.translate(address, write=True), value)

    def load_program(self, words: Iterable[int]) -> int:
        """Store instruction words at consecutive addresses from 0.

        Loading goes through the translator like any other store, so it
        shows up in the statistics.

        Returns:
            The number of words loaded.

        """
        count = 0
        for address, word in enumerate(words):
            self.write_word(address, word)
            count += 1
        self._logger.log(LogLevel.INFO, f"loaded {count} instructions", source="machine")
        return count

    # -- Execution -------------------------------------------------------------

    def run(self, *, max_steps: int | None = None) -> RunOutcome:
        """Run the loaded program from the current pc.

        Raises:
            IllegalInstructionError: If an unknown opcode is fetched.
            OutOfSwapError: If an eviction finds the swap device full.
            AddressError: If the program touches memory beyond the address space.

        """
        outcome = self._cpu.run(max_steps=max_steps)
        self._logger.log(
            LogLevel.INFO,
            f"run ended ({outcome}) after {self._cpu.steps} instructions",
            source="machine",
            tick=self._stats.memory_accesses,
        )
        return outcome

    def request_stop(self) -> None:
        """Ask the running program to stop at the next instruction boundary.

        Only queues an interrupt, so it is safe to call from a signal
        handler.
        """
        self._interrupts.raise_interrupt(VECTOR_STOP)

    def _on_stop(self, irq: InterruptRequest) -> None:  # noqa: ARG002
        self._logger.log(
            LogLevel.WARNING,
            f"stop requested at pc = {self._cpu.state.pc}",
            source="machine",
            tick=self._stats.memory_accesses,
        )
        self._cpu.stop()

    # -- Consistency -----------------------------------------------------------

    def residency_violations(self) -> list[str]:
        """Check the page table and coremap against each other.

        Returns:
            One message per broken invariant (empty when consistent).

        """
        problems: list[str] = []
        resident = self._page_table.resident_pages()
        if len(resident) > len(self._coremap):
            problems.append(f"{len(resident)} resident pages exceed {len(self._coremap)} frames")
        for vpn in resident:
            frame = self._page_table[vpn].location
            if not 0 <= frame < len(self._coremap):
                problems.append(f"page {vpn} claims nonexistent frame {frame}")
            elif self._coremap[frame].owner != vpn:
                problems.append(f"page {vpn} claims frame {frame} owned by {self._coremap[frame].owner}")
        seen: set[int] = set()
        for frame, entry in enumerate(self._coremap):
            if entry.owner is None:
                continue
            if entry.owner in seen:
                problems.append(f"page {entry.owner} owns more than one frame")
            seen.add(entry.owner)
            owner = self._page_table[entry.owner]
            if not owner.resident or owner.location != frame:
                problems.append(f"frame {frame} owned by page {entry.owner} which is not resident there")
        return problems
