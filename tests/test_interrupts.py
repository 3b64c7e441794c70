"""Tests for the interrupt controller."""

import pytest

from vmsim.interrupts import VECTOR_STOP, InterruptController, InterruptRequest

OTHER_VECTOR = 8
EXPECTED_PENDING = 2


def _controller() -> InterruptController:
    ic = InterruptController()
    ic.register_vector(VECTOR_STOP)
    ic.register_vector(OTHER_VECTOR)
    return ic


class TestRegistration:
    """Verify vector and handler registration."""

    def test_duplicate_vector_raises(self) -> None:
        """Registering the same vector twice raises ValueError."""
        ic = _controller()
        with pytest.raises(ValueError, match="already registered"):
            ic.register_vector(VECTOR_STOP)

    def test_unknown_vector_raises(self) -> None:
        """Using a vector that was never registered raises KeyError."""
        ic = InterruptController()
        with pytest.raises(KeyError):
            ic.raise_interrupt(VECTOR_STOP)
        with pytest.raises(KeyError):
            ic.register_handler(VECTOR_STOP, lambda _irq: None)


class TestServicing:
    """Verify queuing and dispatch."""

    def test_raise_only_queues(self) -> None:
        """Raising an interrupt does not run its handler until serviced."""
        ic = _controller()
        received: list[InterruptRequest] = []
        ic.register_handler(VECTOR_STOP, received.append)
        ic.raise_interrupt(VECTOR_STOP)
        ic.raise_interrupt(VECTOR_STOP)
        assert received == []
        assert ic.service_pending() == EXPECTED_PENDING
        assert received == [InterruptRequest(vector=VECTOR_STOP)] * EXPECTED_PENDING

    def test_service_drains_the_queue(self) -> None:
        """A request is dispatched once; a second service finds nothing."""
        ic = _controller()
        received: list[InterruptRequest] = []
        ic.register_handler(VECTOR_STOP, received.append)
        ic.raise_interrupt(VECTOR_STOP)
        assert ic.service_pending() == 1
        assert ic.service_pending() == 0
        assert len(received) == 1

    def test_vectors_serviced_in_registration_order(self) -> None:
        """Pending requests on several vectors are dispatched vector by vector."""
        ic = _controller()
        order: list[int] = []
        ic.register_handler(VECTOR_STOP, lambda irq: order.append(irq.vector))
        ic.register_handler(OTHER_VECTOR, lambda irq: order.append(irq.vector))
        ic.raise_interrupt(OTHER_VECTOR)
        ic.raise_interrupt(VECTOR_STOP)
        ic.service_pending()
        assert order == [VECTOR_STOP, OTHER_VECTOR]

    def test_no_handler_keeps_request_pending(self) -> None:
        """A request on a vector with no handler waits for one to be attached."""
        ic = _controller()
        ic.raise_interrupt(OTHER_VECTOR)
        assert ic.service_pending() == 0
        received: list[InterruptRequest] = []
        ic.register_handler(OTHER_VECTOR, received.append)
        assert ic.service_pending() == 1
        assert received == [InterruptRequest(vector=OTHER_VECTOR)]
