from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Admission outcome persisted with every recorded attempt."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    INVALID = "INVALID"
