from __future__ import annotations

import logging
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, NewAttendance
from .repository import AttendanceLedger

logger = logging.getLogger(__name__)

_COLUMNS = """
    attendance_id, session_id, student_id, student_name, latitude, longitude,
    distance_meters, device_fingerprint, status, origin_hint, created_at
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        session_id=str(r["session_id"]),
        student_id=str(r["student_id"]),
        student_name=r["student_name"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        distance_meters=float(r["distance_meters"]),
        device_fingerprint=r.get("device_fingerprint") or "",
        status=AttendanceStatus(r["status"]),
        origin_hint=r.get("origin_hint") or "",
        created_at=r["created_at"],
    )


class MySQLAttendanceLedger(AttendanceLedger):
    """Attendance ledger backed by the ``attendances`` table.

    Uniqueness of (session_id, student_id) is enforced by ``uq_session_student``;
    a losing concurrent insert shows up as a duplicate-key error.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, record: NewAttendance) -> Optional[AttendanceRecord]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendances(
                        session_id, student_id, student_name, latitude, longitude,
                        distance_meters, device_fingerprint, status, origin_hint, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,UTC_TIMESTAMP(3))
                    """,
                    (
                        record.session_id,
                        record.student_id,
                        record.student_name,
                        record.latitude,
                        record.longitude,
                        record.distance_meters,
                        record.device_fingerprint or "",
                        record.status.value,
                        record.origin_hint or "",
                    ),
                )
                attendance_id = int(cur.lastrowid)
                cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE attendance_id=%s", (attendance_id,))
                return _to_record(fetchone(cur))
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                logger.info(
                    "Duplicate attendance for session %s student %s rejected by unique key",
                    record.session_id,
                    record.student_id,
                )
                return None
            raise

    def get_for_session_and_student(self, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE session_id=%s AND student_id=%s",
                (session_id, student_id),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE session_id=%s ORDER BY created_at ASC, attendance_id ASC",
                (session_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE student_id=%s ORDER BY created_at DESC, attendance_id DESC",
                (student_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_by_device(self, session_id: str, device_fingerprint: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendances
                WHERE session_id=%s AND device_fingerprint=%s
                ORDER BY created_at ASC, attendance_id ASC
                """,
                (session_id, device_fingerprint),
            )
            return [_to_record(r) for r in fetchall(cur)]
