import itertools

import pytest

from orders.domain.entities import OrderStatus, InvalidTransitionException
from orders.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    assert_transition,
    can_transition,
    is_terminal,
)

ALLOWED = {
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus.ALL)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal(OrderStatus.SHIPPED)

    @pytest.mark.parametrize("current,requested", list(itertools.product(OrderStatus.ALL, repeat=2)))
    def test_all_pairs(self, current, requested):
        expected = (current, requested) in ALLOWED
        assert can_transition(current, requested) is expected
        if expected:
            assert_transition(current, requested)
        else:
            with pytest.raises(InvalidTransitionException) as exc_info:
                assert_transition(current, requested)
            assert exc_info.value.details() == {"current": current, "requested": requested}

    def test_unknown_current_status_cannot_move(self):
        assert not can_transition("ARCHIVED", OrderStatus.PENDING)


class TestInvalidTransitionException:
    def test_kind_and_message(self):
        exc = InvalidTransitionException(OrderStatus.PENDING, OrderStatus.DELIVERED)
        assert exc.kind == "InvalidTransition"
        assert exc.retriable is False
        assert "PENDING" in str(exc) and "DELIVERED" in str(exc)
