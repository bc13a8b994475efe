from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceAttempt:
    """Raw scan submitted by a student. Never persisted as-is."""

    token: str
    student_id: str
    student_name: str
    latitude: float
    longitude: float
    device_fingerprint: str = ""
    origin_hint: str = ""
    session_id: Optional[str] = None


@dataclass(frozen=True)
class NewAttendance:
    """Row the engine asks the ledger to insert; the ledger assigns id and timestamp."""

    session_id: str
    student_id: str
    student_name: str
    latitude: float
    longitude: float
    distance_meters: float
    status: AttendanceStatus
    device_fingerprint: str = ""
    origin_hint: str = ""


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one admission outcome, immutable once written."""

    attendance_id: int
    session_id: str
    student_id: str
    student_name: str
    latitude: float
    longitude: float
    distance_meters: float
    status: AttendanceStatus
    created_at: datetime
    device_fingerprint: str = ""
    origin_hint: str = ""


@dataclass(frozen=True)
class AdmissionResult:
    status: AttendanceStatus
    distance_meters: float
    message: str
    attendance_id: int
    session_id: str
    # Other students in this session who scanned from the same device.
    shared_device_student_ids: tuple[str, ...] = ()

    @property
    def admitted(self) -> bool:
        return self.status != AttendanceStatus.INVALID


@dataclass(frozen=True)
class AttendanceStats:
    total: int = 0
    present: int = 0
    late: int = 0
    invalid: int = 0


@dataclass(frozen=True)
class StudentAttendance:
    rows: list[AttendanceRecord] = field(default_factory=list)
    stats: AttendanceStats = field(default_factory=AttendanceStats)
