from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import pytest

from src.session_admission.session_admission.attendance.model import AttendanceRecord, NewAttendance
from src.session_admission.session_admission.attendance.report_service import AttendanceReportService
from src.session_admission.session_admission.attendance.service import AdmissionEngine
from src.session_admission.session_admission.sessions.model import Session
from src.session_admission.session_admission.sessions.service import SessionRegistry
from src.session_admission.session_admission.tokens.model import ScanToken

# Class start used across tests.
T0 = datetime(2026, 3, 2, 9, 0, 0)


class InMemorySessions:
    def __init__(self):
        self._lock = threading.Lock()
        self.by_id: dict[str, Session] = {}
        self.swap_calls = 0

    def get_by_id(self, session_id: str) -> Optional[Session]:
        return self.by_id.get(session_id)

    def get_by_token(self, token: str) -> Optional[Session]:
        for s in list(self.by_id.values()):
            if s.current_token == token:
                return s
        return None

    def create(self, session: Session) -> None:
        self.by_id[session.session_id] = session

    def swap_token(self, *, session_id: str, expected_token: str, new_token: ScanToken) -> bool:
        with self._lock:
            self.swap_calls += 1
            s = self.by_id.get(session_id)
            if not s or s.current_token != expected_token:
                return False
            self.by_id[session_id] = replace(
                s,
                current_token=new_token.value,
                token_issued_at=new_token.issued_at,
                token_expires_at=new_token.expires_at,
            )
            return True

    def set_active(self, *, session_id: str, is_active: bool) -> bool:
        s = self.by_id.get(session_id)
        if not s:
            return False
        self.by_id[session_id] = replace(s, is_active=is_active)
        return True

    def update_window(self, *, session_id: str, **fields) -> bool:
        s = self.by_id.get(session_id)
        if not s:
            return False
        self.by_id[session_id] = replace(s, **fields)
        return True

    def delete(self, *, session_id: str) -> bool:
        return self.by_id.pop(session_id, None) is not None

    def list_for_owner(self, owner: str):
        items = [s for s in self.by_id.values() if s.created_by == owner]
        items.sort(key=lambda s: s.created_at, reverse=True)
        return items


class InMemoryLedger:
    def __init__(self, *, clock: datetime = T0):
        self._lock = threading.Lock()
        self._next_id = 1
        self._clock = clock
        self.rows: dict[tuple[str, str], AttendanceRecord] = {}

    def insert_if_absent(self, record: NewAttendance) -> Optional[AttendanceRecord]:
        with self._lock:
            key = (record.session_id, record.student_id)
            if key in self.rows:
                return None
            stored = AttendanceRecord(
                attendance_id=self._next_id,
                session_id=record.session_id,
                student_id=record.student_id,
                student_name=record.student_name,
                latitude=record.latitude,
                longitude=record.longitude,
                distance_meters=record.distance_meters,
                status=record.status,
                created_at=self._clock + timedelta(seconds=self._next_id),
                device_fingerprint=record.device_fingerprint,
                origin_hint=record.origin_hint,
            )
            self._next_id += 1
            self.rows[key] = stored
            return stored

    def get_for_session_and_student(self, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        return self.rows.get((session_id, student_id))

    def list_for_session(self, session_id: str):
        items = [r for r in self.rows.values() if r.session_id == session_id]
        return sorted(items, key=lambda r: r.attendance_id)

    def list_for_student(self, student_id: str):
        items = [r for r in self.rows.values() if r.student_id == student_id]
        return sorted(items, key=lambda r: r.created_at, reverse=True)

    def list_by_device(self, session_id: str, device_fingerprint: str):
        return [r for r in self.list_for_session(session_id) if r.device_fingerprint == device_fingerprint]


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def registry(sessions_repo) -> SessionRegistry:
    return SessionRegistry(sessions_repo, token_ttl=timedelta(minutes=2))


@pytest.fixture
def long_ttl_registry(sessions_repo) -> SessionRegistry:
    """Token outlives the whole class, so timing tests are not about expiry."""
    return SessionRegistry(sessions_repo, token_ttl=timedelta(hours=2))


@pytest.fixture
def engine(long_ttl_registry, ledger) -> AdmissionEngine:
    return AdmissionEngine(long_ttl_registry, ledger)


@pytest.fixture
def reports(long_ttl_registry, ledger) -> AttendanceReportService:
    return AttendanceReportService(long_ttl_registry, ledger)


@pytest.fixture
def make_session():
    def _make(registry: SessionRegistry, *, owner: str = "prof-1", now: datetime = T0 - timedelta(minutes=5), **overrides):
        params = dict(
            owner=owner,
            course_name="Distributed Systems",
            center_lat=12.9716,
            center_lng=77.5946,
            start_time=T0,
            end_time=T0 + timedelta(hours=1),
            radius_meters=50,
            late_threshold_minutes=15,
        )
        params.update(overrides)
        return registry.create_session(now=now, **params)

    return _make
