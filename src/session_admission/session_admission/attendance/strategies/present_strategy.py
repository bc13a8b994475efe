from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import Session
from .base import AdmissionStrategy, StatusDecision


class PresentStrategy(AdmissionStrategy):
    """Inside the geofence, on time."""

    def decide(self, *, distance: float, session: Session, now: datetime) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            message=f"Attendance marked as present for {session.course_name}",
        )
