"""Unit tests for order status transition guardrails."""

import pytest

from cardgate.common.state_machine import CANCELLED, COMPLETED, PENDING, validate_transition


def test_valid_transition():
    """Sanity check: paying a pending order is legal."""

    validate_transition(PENDING, COMPLETED)


@pytest.mark.parametrize("current", [COMPLETED, CANCELLED])
def test_terminal_states_reject_completion(current):
    """Completed and cancelled orders must never be completed again."""

    with pytest.raises(ValueError):
        validate_transition(current, COMPLETED)
