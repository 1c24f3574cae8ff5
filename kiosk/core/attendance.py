"""Two-state attendance toggle driven by the ledger's last known status."""

from enum import Enum
from typing import Optional


class AttendanceStatus(str, Enum):
    CLOCKED_IN = "CLOCKED_IN"
    CLOCKED_OUT = "CLOCKED_OUT"


class Action(str, Enum):
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"

    @property
    def resulting_status(self) -> AttendanceStatus:
        return AttendanceStatus.CLOCKED_IN if self is Action.CLOCK_IN else AttendanceStatus.CLOCKED_OUT

    @property
    def past_tense(self) -> str:
        return "clocked in" if self is Action.CLOCK_IN else "clocked out"


def next_action(last_status: Optional[AttendanceStatus]) -> Action:
    """CLOCK_OUT only when the identity is currently clocked in."""
    if last_status == AttendanceStatus.CLOCKED_IN:
        return Action.CLOCK_OUT
    return Action.CLOCK_IN


def status_from_action(action: str) -> AttendanceStatus:
    """Map a stored ledger action ("CLOCK_IN"/"CLOCK_OUT") to the status it leaves behind."""
    return Action(action).resulting_status
