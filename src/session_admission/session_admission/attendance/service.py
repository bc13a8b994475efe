from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_utc
from ..common.geoclock import distance_meters
from ..common.validators import require_latitude, require_longitude, require_max_length, require_non_empty
from ..core.constants import (
    MAX_FINGERPRINT_LENGTH,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ORIGIN_HINT_LENGTH,
)
from ..core.exceptions import (
    AlreadyRecordedError,
    ExpiredOrInvalidTokenError,
    SessionInactiveError,
    TransientStoreError,
    ValidationError,
)
from ..sessions.model import Session
from ..sessions.service import SessionRegistry
from .factory import AdmissionStrategyFactory
from .model import AdmissionResult, AttendanceAttempt, AttendanceRecord, NewAttendance
from .repository import AttendanceLedger

logger = logging.getLogger(__name__)


class AdmissionEngine:
    """Turns one attendance attempt into a recorded PRESENT/LATE/INVALID outcome.

    Stateless per call. The (session, student) uniqueness is enforced by the
    ledger's atomic insert, not by the pre-check here; the pre-check only saves
    work for the common repeat-scan case.

    Token, inactive-session and duplicate rejections write nothing. Out-of-range
    attempts are recorded as INVALID.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        ledger: AttendanceLedger,
        *,
        strategy_factory: AdmissionStrategyFactory | None = None,
    ):
        self._registry = registry
        self._ledger = ledger
        self._factory = strategy_factory or AdmissionStrategyFactory()

    def submit(self, attempt: AttendanceAttempt, *, now: Optional[datetime] = None) -> AdmissionResult:
        now = now or now_utc()
        attempt = self._validated(attempt)

        session = self._check_token(attempt, now=now)
        self._check_duplicate(session, attempt.student_id)

        distance = distance_meters(session.center_lat, session.center_lng, attempt.latitude, attempt.longitude)
        strategy = self._factory.for_attempt(distance=distance, session=session, now=now)
        decision = strategy.decide(distance=distance, session=session, now=now)

        record = self._ledger.insert_if_absent(
            NewAttendance(
                session_id=session.session_id,
                student_id=attempt.student_id,
                student_name=attempt.student_name,
                latitude=attempt.latitude,
                longitude=attempt.longitude,
                distance_meters=distance,
                status=decision.status,
                device_fingerprint=attempt.device_fingerprint,
                origin_hint=attempt.origin_hint,
            )
        )
        if record is None:
            # Lost the race against a concurrent scan by the same student.
            self._raise_already_recorded(session, attempt.student_id)

        logger.info(
            "Attendance %s for student %s in session %s: %s at %.1fm",
            record.attendance_id,
            record.student_id,
            session.session_id,
            record.status.value,
            record.distance_meters,
        )

        return AdmissionResult(
            status=record.status,
            distance_meters=record.distance_meters,
            message=decision.message,
            attendance_id=record.attendance_id,
            session_id=session.session_id,
            shared_device_student_ids=self._shared_device_students(record),
        )

    def _check_token(self, attempt: AttendanceAttempt, *, now: datetime) -> Session:
        try:
            session = self._registry.lookup_by_token(attempt.token, now=now)
        except ExpiredOrInvalidTokenError:
            logger.info("Rejected scan by student %s: invalid or expired token", attempt.student_id)
            raise

        if attempt.session_id and str(attempt.session_id) != session.session_id:
            logger.warning(
                "Rejected scan by student %s: token belongs to another session than %s",
                attempt.student_id,
                attempt.session_id,
            )
            raise ExpiredOrInvalidTokenError("Invalid or expired QR code")

        if not session.is_active:
            logger.info("Rejected scan by student %s: session %s is inactive", attempt.student_id, session.session_id)
            raise SessionInactiveError("This session is not accepting attendance")

        return session

    def _check_duplicate(self, session: Session, student_id: str) -> None:
        existing = self._ledger.get_for_session_and_student(session.session_id, student_id)
        if existing:
            self._raise_already_recorded(session, student_id, existing=existing)

    def _raise_already_recorded(
        self, session: Session, student_id: str, *, existing: Optional[AttendanceRecord] = None
    ) -> None:
        if existing is None:
            existing = self._ledger.get_for_session_and_student(session.session_id, student_id)
        logger.info("Rejected duplicate scan by student %s in session %s", student_id, session.session_id)
        raise AlreadyRecordedError(
            "Attendance already recorded for this session",
            prior_status=existing.status if existing else None,
        )

    def _shared_device_students(self, record: AttendanceRecord) -> tuple[str, ...]:
        if not record.device_fingerprint:
            return ()
        # The row is committed by now; the audit read is best effort.
        try:
            rows = self._ledger.list_by_device(record.session_id, record.device_fingerprint)
        except TransientStoreError:
            logger.warning(
                "Device audit skipped for attendance %s in session %s: store unavailable",
                record.attendance_id,
                record.session_id,
            )
            return ()
        others = sorted({r.student_id for r in rows if r.student_id != record.student_id})
        if others:
            logger.warning(
                "Device shared in session %s: student %s and %s",
                record.session_id,
                record.student_id,
                ", ".join(others),
            )
        return tuple(others)

    @staticmethod
    def _validated(attempt: AttendanceAttempt) -> AttendanceAttempt:
        if not isinstance(attempt, AttendanceAttempt):
            raise ValidationError("Invalid attendance attempt")
        return AttendanceAttempt(
            token=(attempt.token or "").strip(),
            student_id=require_non_empty(attempt.student_id, "Student ID", max_length=MAX_ID_LENGTH),
            student_name=require_non_empty(attempt.student_name, "Student name", max_length=MAX_NAME_LENGTH),
            latitude=require_latitude(attempt.latitude),
            longitude=require_longitude(attempt.longitude),
            device_fingerprint=require_max_length(
                (attempt.device_fingerprint or "").strip(), MAX_FINGERPRINT_LENGTH, "Device fingerprint"
            ),
            origin_hint=(attempt.origin_hint or "").strip()[:MAX_ORIGIN_HINT_LENGTH],
            session_id=(str(attempt.session_id).strip() or None) if attempt.session_id else None,
        )
