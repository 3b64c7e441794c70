"""Tests for the machine — the whole simulator working together.

These tests check the properties that must hold however the pieces are
combined: the page table and coremap always agree, no more pages are
resident than there are frames, data survives eviction, and each
replacement policy makes the choices it promises.
"""

import pytest

from vmsim.config import ConfigurationError, MachineConfig
from vmsim.cpu.executor import IllegalInstructionError, RunOutcome
from vmsim.loader import assemble
from vmsim.logging import Logger, LogLevel
from vmsim.machine import Machine
from vmsim.memory.pager import AddressError
from vmsim.memory.replacement import PolicyKind
from vmsim.memory.swap import OutOfSwapError

PAGE_SIZE = 4
VALUE = 0xCAFE
STORED_COUNT = 10

# Classic reference string (Silberschatz); with 4 frames FIFO faults 10 times, OPT 8.
REFERENCE_STRING = [7, 0, 1, 2, 0, 3, 0, 4, 2, 3, 0, 3, 2, 1, 2, 0, 1, 7, 0, 1]
FIFO_FAULTS = 10
OPTIMAL_FAULTS = 8

# Stores i at address 16 * i for i = 10 down to 1, touching a new page each time.
SCATTER_PROGRAM = """\
; r1 = counter, r3 = stride
addi 1,0,10
addi 3,0,16
mul 2,1,3
st 1,2,0
subi 1,1,1
bt 0,1,2
halt 0,0,0
"""

# Builds opcode 17 in r4, stores it at address 20, and jumps there.
ILLEGAL_PROGRAM = """\
addi 1,0,17
addi 2,0,8192
mul 3,2,2
mul 4,3,1
st 4,0,20
ba 0,0,20
"""


def _small(frames: int = 2, **overrides: int) -> MachineConfig:
    return MachineConfig(page_size=PAGE_SIZE, frames=frames, **overrides)


def _machine_for(policy: PolicyKind, program: list[int], config: MachineConfig) -> Machine:
    if policy is PolicyKind.OPTIMAL:
        recorder = Machine(config, record_trace=True)
        recorder.load_program(program)
        recorder.run()
        return Machine(config, policy=policy, trace=recorder.access_trace)
    return Machine(config, policy=policy)


class TestConstruction:
    """Verify machine set-up."""

    def test_default_geometry(self) -> None:
        """A default machine has the stock geometry and FIFO replacement."""
        machine = Machine()
        assert machine.config == MachineConfig()
        assert machine.policy_kind is PolicyKind.FIFO
        assert len(machine.page_table) == machine.config.virtual_pages
        assert len(machine.coremap) == machine.config.frames

    def test_optimal_without_trace_is_rejected(self) -> None:
        """Choosing the optimal policy without a trace is a configuration error."""
        with pytest.raises(ConfigurationError):
            Machine(policy=PolicyKind.OPTIMAL)

    def test_machines_are_independent(self) -> None:
        """Two machines never share tables or counters."""
        first = Machine(_small())
        second = Machine(_small())
        first.write_word(0, VALUE)
        assert second.statistics.memory_accesses == 0
        assert second.read_word(0) == 0

    def test_start_up_is_logged(self) -> None:
        """Construction should log the chosen policy and geometry."""
        logger = Logger()
        Machine(_small(), logger=logger)
        assert "fifo replacement" in logger.entries[0].message


class TestWorkedScenario:
    """Two frames of four words, FIFO, writes to 0, 4, 8 then a read of 0."""

    def test_faults_and_disk_traffic(self) -> None:
        """Three cold faults, one eviction write, then a reload from swap."""
        machine = Machine(_small(frames=2))
        machine.write_word(0, VALUE)
        machine.write_word(4, 1)
        stats = machine.statistics
        assert stats.page_faults == 2
        assert stats.disk_writes == 0

        machine.write_word(8, 2)
        assert stats.page_faults == 3
        assert stats.disk_writes == 1
        assert stats.disk_reads == 0
        assert not machine.page_table[0].resident

        assert machine.read_word(0) == VALUE
        assert stats.page_faults == 4
        assert stats.disk_reads == 1
        # Reloading page 0 evicted dirty page 1 as well
        assert stats.disk_writes == 2
        assert stats.memory_accesses == 4


class TestProperties:
    """Verify invariants that hold for every policy."""

    def test_round_trip_through_swap(self) -> None:
        """A value survives being evicted and reloaded."""
        machine = Machine(_small(frames=2))
        machine.write_word(3, VALUE)
        for page in range(1, 6):
            machine.read_word(page * PAGE_SIZE)
        assert not machine.page_table[0].resident
        assert machine.read_word(3) == VALUE

    def test_first_access_faults_repeat_does_not(self) -> None:
        """The first touch of a page faults; an immediate repeat does not."""
        machine = Machine(_small(frames=2))
        machine.read_word(PAGE_SIZE)
        assert machine.statistics.page_faults == 1
        machine.read_word(PAGE_SIZE + 1)
        assert machine.statistics.page_faults == 1

    def test_fifo_evicts_first_page_once(self) -> None:
        """With F frames, touching pages 0..F evicts page 0 and nothing else."""
        frames = 4
        machine = Machine(_small(frames=frames))
        for page in range(frames + 1):
            machine.read_word(page * PAGE_SIZE + page % PAGE_SIZE)
        assert machine.statistics.page_faults == frames + 1
        assert not machine.page_table[0].resident
        assert machine.page_table.resident_pages() == list(range(1, frames + 1))
        assert machine.coremap[0].owner == frames

    @pytest.mark.parametrize("policy", list(PolicyKind))
    def test_invariants_hold_after_every_instruction(self, policy: PolicyKind) -> None:
        """Residency and frame-bound invariants hold at every instruction boundary."""
        config = _small(frames=2)
        program = assemble(SCATTER_PROGRAM.splitlines())
        machine = _machine_for(policy, program, config)
        machine.load_program(program)
        while not machine.executor.halted:
            machine.executor.step()
            assert machine.residency_violations() == []
            assert len(machine.page_table.resident_pages()) <= config.frames
        for i in range(1, STORED_COUNT + 1):
            assert machine.read_word(16 * i) == i

    @pytest.mark.parametrize("policy", list(PolicyKind))
    def test_policies_compute_the_same_result(self, policy: PolicyKind) -> None:
        """The replacement policy changes performance, never results."""
        config = _small(frames=2)
        program = assemble(SCATTER_PROGRAM.splitlines())
        machine = _machine_for(policy, program, config)
        machine.load_program(program)
        assert machine.run() is RunOutcome.HALTED
        assert machine.cpu.registers[1] == 0
        assert machine.cpu.registers[2] == 16


class TestPolicies:
    """Compare the policies on a known reference string."""

    def _replay(self, machine: Machine) -> None:
        for page in REFERENCE_STRING:
            machine.read_word(page * PAGE_SIZE)

    def test_fifo_fault_count(self) -> None:
        """FIFO with four frames faults ten times on the reference string."""
        machine = Machine(_small(frames=4), record_trace=True)
        self._replay(machine)
        assert machine.statistics.page_faults == FIFO_FAULTS
        assert machine.access_trace == REFERENCE_STRING

    def test_optimal_fault_count(self) -> None:
        """Optimal with four frames faults eight times on the same string."""
        machine = Machine(_small(frames=4), policy=PolicyKind.OPTIMAL, trace=REFERENCE_STRING)
        self._replay(machine)
        assert machine.statistics.page_faults == OPTIMAL_FAULTS

    def test_clock_spares_referenced_page(self) -> None:
        """A page touched again after loading survives the next clock eviction."""
        machine = Machine(_small(frames=4), policy=PolicyKind.SECOND_CHANCE)
        for page in range(4):
            machine.read_word(page * PAGE_SIZE)
        # Fault on page 4: every bit set, the sweep clears them all and takes frame 0
        machine.read_word(4 * PAGE_SIZE)
        # Page 1 is touched again, pages 2 and 3 are not
        machine.read_word(PAGE_SIZE)
        machine.read_word(5 * PAGE_SIZE)
        assert machine.page_table[1].resident
        assert not machine.page_table[2].resident
        assert machine.page_table[3].resident


class TestProgramExecution:
    """Verify loading and running programs."""

    def test_load_program_counts_accesses(self) -> None:
        """Loading writes every word through the translator."""
        machine = Machine(_small())
        words = assemble(SCATTER_PROGRAM.splitlines())
        assert machine.load_program(words) == len(words)
        assert machine.statistics.memory_accesses == len(words)
        assert machine.page_table[0].dirty

    def test_illegal_instruction(self) -> None:
        """Jumping into a data word with an unknown opcode is fatal."""
        machine = Machine()
        machine.load_program(assemble(ILLEGAL_PROGRAM.splitlines()))
        with pytest.raises(IllegalInstructionError, match="pc = 20: opcode = 17"):
            machine.run()

    def test_request_stop(self) -> None:
        """A stop request is honoured before the next instruction."""
        machine = Machine()
        machine.load_program(assemble(SCATTER_PROGRAM.splitlines()))
        machine.run(max_steps=5)
        machine.request_stop()
        assert machine.run() is RunOutcome.INTERRUPTED
        assert machine.executor.steps == 5
        assert machine.residency_violations() == []
        warnings = machine.logger.filter(min_level=LogLevel.WARNING)
        assert "stop requested" in warnings[0].message

    def test_out_of_swap_surfaces(self) -> None:
        """A workload larger than swap fails with OutOfSwapError."""
        machine = Machine(_small(frames=2, swap_slots=2))
        with pytest.raises(OutOfSwapError):
            for page in range(5):
                machine.write_word(page * PAGE_SIZE, page)

    def test_address_beyond_space(self) -> None:
        """Addresses past the virtual address space are rejected."""
        machine = Machine(_small(virtual_pages=4))
        with pytest.raises(AddressError):
            machine.read_word(machine.config.address_space)
