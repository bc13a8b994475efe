from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.geoclock import classify
from ..core.enums import AttendanceStatus
from ..sessions.model import Session
from .strategies.base import AdmissionStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.out_of_range_strategy import OutOfRangeStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AdmissionStrategyFactory:
    """Factory Pattern: choose the strategy for the status GeoClock assigns."""

    def for_attempt(self, *, distance: float, session: Session, now: datetime) -> AdmissionStrategy:
        status = classify(
            distance,
            session.radius_meters,
            session.start_time,
            session.late_threshold_minutes,
            now,
        )
        if status == AttendanceStatus.INVALID:
            return OutOfRangeStrategy()
        if status == AttendanceStatus.LATE:
            return LateStrategy()
        return PresentStrategy()
