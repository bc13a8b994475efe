from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, NewAttendance


class AttendanceLedger(Protocol):
    """Durable store for attendance rows.

    Store failures (unavailable, timeout) must surface as TransientStoreError.
    """

    def insert_if_absent(self, record: NewAttendance) -> Optional[AttendanceRecord]:
        """Atomically insert unless a row for (session_id, student_id) exists.

        Returns the stored row, or None when another row already holds the key.
        """

        raise NotImplementedError

    def get_for_session_and_student(self, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def list_by_device(self, session_id: str, device_fingerprint: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
