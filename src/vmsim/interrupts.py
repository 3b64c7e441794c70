"""Interrupt controller — external events delivered between instructions.

An **interrupt** is a request from outside the running program; here,
the operator pressing Ctrl+C.  Each source has its own numbered
**vector**, and a handler registered on the vector runs when the
request is serviced.

Our controller does not preempt Python code.  Raising an interrupt only
queues an ``InterruptRequest``; the CPU calls ``service_pending()`` at
every instruction boundary.  That is what keeps the page table and
coremap safe: a handler can never run in the middle of a page fault,
so it never sees a frame whose owner has been detached but whose new
page has not been installed yet.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeAlias

# Operator-requested termination, numbered after SIGINT
VECTOR_STOP = 2


@dataclass(frozen=True)
class InterruptRequest:
    """A pending interrupt waiting to be serviced."""

    vector: int


InterruptHandler: TypeAlias = Callable[[InterruptRequest], None]


@dataclass
class _VectorEntry:
    """Internal bookkeeping for a registered vector."""

    handler: InterruptHandler | None = None
    pending: deque[InterruptRequest] = field(
        default_factory=lambda: deque[InterruptRequest](),
    )


class InterruptController:
    """Manage interrupt vectors, handlers, and pending IRQs."""

    def __init__(self) -> None:
        """Create an interrupt controller with no registered vectors."""
        self._vectors: dict[int, _VectorEntry] = {}

    def _entry(self, vector: int) -> _VectorEntry:
        entry = self._vectors.get(vector)
        if entry is None:
            msg = f"Vector {vector} not registered"
            raise KeyError(msg)
        return entry

    def register_vector(self, vector: int) -> None:
        """Register an interrupt vector in the descriptor table.

        Raises:
            ValueError: If the vector number is already registered.

        """
        if vector in self._vectors:
            msg = f"Vector {vector} already registered"
            raise ValueError(msg)
        self._vectors[vector] = _VectorEntry()

    def register_handler(self, vector: int, handler: InterruptHandler) -> None:
        """Attach a handler to a vector, replacing any previous one.

        Raises:
            KeyError: If the vector is not registered.

        """
        self._entry(vector).handler = handler

    def raise_interrupt(self, vector: int) -> None:
        """Queue an interrupt request on the given vector.

        Safe to call from a signal handler: it only appends to a queue.

        Raises:
            KeyError: If the vector is not registered.

        """
        self._entry(vector).pending.append(InterruptRequest(vector=vector))

    def service_pending(self) -> int:
        """Dispatch every pending IRQ, vectors in registration order.

        Vectors without a handler keep their requests queued.

        Returns:
            The number of interrupts serviced in this call.

        """
        serviced = 0
        for entry in self._vectors.values():
            if entry.handler is None:
                continue
            while entry.pending:
                entry.handler(entry.pending.popleft())
                serviced += 1
        return serviced
