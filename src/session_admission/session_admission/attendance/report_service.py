from __future__ import annotations

from collections import defaultdict

from ..common.datetime_utils import to_iso
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus
from ..sessions.service import SessionRegistry
from .model import AttendanceRecord, AttendanceStats, StudentAttendance
from .repository import AttendanceLedger

REPORT_FIELDS = [
    "attendance_id",
    "session_id",
    "student_id",
    "student_name",
    "status",
    "distance_meters",
    "latitude",
    "longitude",
    "device_fingerprint",
    "origin_hint",
    "created_at",
]


class AttendanceReportService:
    """Read side of the ledger: per-session lists, per-student history and the device audit."""

    def __init__(self, registry: SessionRegistry, ledger: AttendanceLedger):
        self._registry = registry
        self._ledger = ledger

    def for_session(self, session_id: str, *, requester: str) -> list[AttendanceRecord]:
        session = self._registry.require_owner(session_id, requester)
        return list(self._ledger.list_for_session(session.session_id))

    def for_student(self, student_id: str) -> StudentAttendance:
        rows = list(self._ledger.list_for_student(require_non_empty(student_id, "Student ID")))
        return StudentAttendance(rows=rows, stats=summarize(rows))

    def shared_devices(self, session_id: str, *, requester: str) -> dict[str, list[str]]:
        """Fingerprints used by more than one student in the session.

        Audit signal only; nothing is blocked because of it.
        """

        students_by_device: dict[str, set[str]] = defaultdict(set)
        for r in self.for_session(session_id, requester=requester):
            if r.device_fingerprint:
                students_by_device[r.device_fingerprint].add(r.student_id)

        return {
            fingerprint: sorted(students)
            for fingerprint, students in sorted(students_by_device.items())
            if len(students) > 1
        }


def summarize(rows: list[AttendanceRecord]) -> AttendanceStats:
    counts = {status: 0 for status in AttendanceStatus}
    for r in rows:
        counts[r.status] += 1
    return AttendanceStats(
        total=len(rows),
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        invalid=counts[AttendanceStatus.INVALID],
    )


def to_row(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "session_id": r.session_id,
        "student_id": r.student_id,
        "student_name": r.student_name,
        "status": r.status.value,
        "distance_meters": round(r.distance_meters, 2),
        "latitude": r.latitude,
        "longitude": r.longitude,
        "device_fingerprint": r.device_fingerprint,
        "origin_hint": r.origin_hint,
        "created_at": to_iso(r.created_at),
    }
