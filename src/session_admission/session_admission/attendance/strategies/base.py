from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import Session


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    message: str


class AdmissionStrategy(ABC):
    """Strategy Pattern: encapsulate the outcome reported for one admission status."""

    @abstractmethod
    def decide(self, *, distance: float, session: Session, now: datetime) -> StatusDecision:
        raise NotImplementedError
