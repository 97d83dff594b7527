"""
Withdrawal State Machine

Single source of truth for withdrawal status transitions.

    PENDING ──► COMPLETED
            ├─► FAILED
            └─► CANCELLED

PENDING is the only state a withdrawal can leave. The three outcomes are
terminal: once an admin has processed a request nothing moves it again.
"""

from typing import Dict, List

from app.services.ledger_errors import AlreadyProcessedError, InvalidStatusError


# =============================================================================
# STATUS DEFINITIONS
# =============================================================================

class WithdrawalStatus:
    """Withdrawal status constants - use these instead of strings."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.COMPLETED, cls.FAILED, cls.CANCELLED]

    @classmethod
    def terminal(cls) -> List[str]:
        return [cls.COMPLETED, cls.FAILED, cls.CANCELLED]


# =============================================================================
# TRANSITION RULES
# =============================================================================

WITHDRAWAL_TRANSITIONS: Dict[str, List[str]] = {
    WithdrawalStatus.PENDING: [
        WithdrawalStatus.COMPLETED,   # Paid out
        WithdrawalStatus.FAILED,      # Bank/UPI rejected the transfer
        WithdrawalStatus.CANCELLED,   # Withdrawn by admin
    ],
    WithdrawalStatus.COMPLETED: [],   # Terminal
    WithdrawalStatus.FAILED: [],      # Terminal
    WithdrawalStatus.CANCELLED: [],   # Terminal
}

TRANSITION_ACTIONS: Dict[tuple, str] = {
    (WithdrawalStatus.PENDING, WithdrawalStatus.COMPLETED): "completed",
    (WithdrawalStatus.PENDING, WithdrawalStatus.FAILED): "failed",
    (WithdrawalStatus.PENDING, WithdrawalStatus.CANCELLED): "cancelled",
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def is_terminal(status: str) -> bool:
    return status in WithdrawalStatus.terminal()


def can_transition(current_status: str, new_status: str) -> bool:
    """Check if a transition is allowed."""
    return new_status in WITHDRAWAL_TRANSITIONS.get(current_status, [])


def get_transition_action(current_status: str, new_status: str) -> str:
    """Past-tense verb describing a transition, for user-facing messages."""
    return TRANSITION_ACTIONS.get((current_status, new_status), new_status.lower())


def validate_target_status(new_status: str) -> None:
    """Only terminal statuses can be requested by an admin."""
    if new_status not in WithdrawalStatus.terminal():
        raise InvalidStatusError(
            "Invalid status. Must be COMPLETED, FAILED, or CANCELLED",
            details={"status": new_status},
        )


def validate_transition(current_status: str, new_status: str) -> None:
    """
    Validate a status transition. Raises a ledger error if invalid.

    Unlike most state machines a same-status "transition" is not a no-op
    here: re-processing a finished withdrawal is always AlreadyProcessed.
    """
    validate_target_status(new_status)

    if not can_transition(current_status, new_status):
        raise AlreadyProcessedError(
            "Withdrawal already processed",
            details={"current_status": current_status},
        )
