from __future__ import annotations

from datetime import datetime

from ...common.geoclock import late_cutoff
from ...core.enums import AttendanceStatus
from ...sessions.model import Session
from .base import AdmissionStrategy, StatusDecision


class LateStrategy(AdmissionStrategy):
    """Inside the geofence, after the late cutoff."""

    def decide(self, *, distance: float, session: Session, now: datetime) -> StatusDecision:
        cutoff = late_cutoff(session.start_time, session.late_threshold_minutes)
        minutes_late = max(1, int((now - cutoff).total_seconds() // 60))
        return StatusDecision(
            status=AttendanceStatus.LATE,
            message=f"Attendance marked as late ({minutes_late} min after the cutoff) for {session.course_name}",
        )
