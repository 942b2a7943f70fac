"""Order status transitions enforced by the order ledger."""

PENDING = "pending"
COMPLETED = "completed"
CANCELLED = "cancelled"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")
