from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import Session
from .base import AdmissionStrategy, StatusDecision


class OutOfRangeStrategy(AdmissionStrategy):
    """Outside the geofence. Recorded as INVALID regardless of time."""

    def decide(self, *, distance: float, session: Session, now: datetime) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.INVALID,
            message=(
                f"You are {round(distance)}m away from the class location "
                f"(allowed radius {round(session.radius_meters)}m)"
            ),
        )
