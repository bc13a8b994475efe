from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_utc
from ..common.validators import (
    optional_text,
    require_latitude,
    require_longitude,
    require_non_empty,
    require_non_negative_int,
    require_positive,
)
from ..core.constants import (
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_RADIUS_METERS,
    DEFAULT_TOKEN_TTL_SECONDS,
    MAX_DESCRIPTION_LENGTH,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    ROTATION_MAX_ATTEMPTS,
)
from ..core.exceptions import (
    AuthorizationError,
    ExpiredOrInvalidTokenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from ..tokens.model import ScanToken, issue_token
from .model import Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)

_NOT_AUTHORIZED = "Not authorized for this session"


class SessionRegistry:
    """Owns sessions and their scan tokens.

    Token fields only ever change through ``SessionRepository.swap_token`` so
    concurrent rotations cannot leave two live tokens behind.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        *,
        token_ttl: timedelta = timedelta(seconds=DEFAULT_TOKEN_TTL_SECONDS),
        default_radius_meters: float = DEFAULT_RADIUS_METERS,
        default_late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    ):
        if token_ttl <= timedelta(0):
            raise ValidationError("Token TTL must be positive")
        self._sessions = sessions
        self._token_ttl = token_ttl
        self._default_radius = float(default_radius_meters)
        self._default_late_threshold = int(default_late_threshold_minutes)

    @property
    def token_ttl(self) -> timedelta:
        return self._token_ttl

    def create_session(
        self,
        *,
        owner: str,
        course_name: str,
        center_lat: float,
        center_lng: float,
        start_time: datetime,
        end_time: datetime,
        radius_meters: Optional[float] = None,
        late_threshold_minutes: Optional[int] = None,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Session:
        now = now or now_utc()
        owner = require_non_empty(owner, "Owner", max_length=MAX_ID_LENGTH)
        course_name = require_non_empty(course_name, "Course name", max_length=MAX_NAME_LENGTH)
        description = optional_text(description, "Description", max_length=MAX_DESCRIPTION_LENGTH)
        radius = require_positive(self._default_radius if radius_meters is None else radius_meters, "Radius")
        threshold = require_non_negative_int(
            self._default_late_threshold if late_threshold_minutes is None else late_threshold_minutes,
            "Late threshold",
        )
        self._require_window(start_time, end_time)

        token = issue_token(now=now, ttl=self._token_ttl)
        session = Session(
            session_id=uuid.uuid4().hex,
            course_name=course_name,
            description=description,
            center_lat=require_latitude(center_lat, "Center latitude"),
            center_lng=require_longitude(center_lng, "Center longitude"),
            radius_meters=radius,
            start_time=start_time,
            end_time=end_time,
            late_threshold_minutes=threshold,
            current_token=token.value,
            token_issued_at=token.issued_at,
            token_expires_at=token.expires_at,
            is_active=True,
            created_by=owner,
            created_at=now,
        )
        self._sessions.create(session)
        logger.info("Session %s created by %s for %s", session.session_id, owner, course_name)
        return session

    def lookup(self, session_id: str) -> Session:
        session = self._sessions.get_by_id(str(session_id))
        if not session:
            raise NotFoundError("Session not found")
        return session

    def lookup_by_token(self, token: str, *, now: Optional[datetime] = None) -> Session:
        """Resolve the session whose live token is ``token``.

        A stale match is rotated away here (lazy rotation) and still rejected.
        """

        now = now or now_utc()
        if not token or not token.strip():
            raise ExpiredOrInvalidTokenError("Invalid or expired QR code")

        session = self._sessions.get_by_token(token.strip())
        if not session:
            raise ExpiredOrInvalidTokenError("Invalid or expired QR code")

        if not session.token.is_live(now):
            try:
                self._rotate_stale(session, now=now)
            except (NotFoundError, TransientStoreError) as e:
                logger.warning("Lazy rotation for session %s failed: %s", session.session_id, e)
            raise ExpiredOrInvalidTokenError("Invalid or expired QR code")

        return session

    def rotate_token(self, session_id: str, *, requester: str, now: Optional[datetime] = None) -> ScanToken:
        now = now or now_utc()
        session = self._require_owned(session_id, requester)
        token = self._rotate(session, now=now)
        logger.info("Token for session %s rotated by %s", session.session_id, requester)
        return token

    def get_live_token(self, session_id: str, *, requester: str, now: Optional[datetime] = None) -> ScanToken:
        now = now or now_utc()
        session = self._require_owned(session_id, requester)
        if session.token.is_live(now):
            return session.token
        return self._rotate_stale(session, now=now)

    def set_active(self, session_id: str, *, requester: str, active: bool) -> Session:
        session = self._require_owned(session_id, requester)
        if not self._sessions.set_active(session_id=session.session_id, is_active=bool(active)):
            raise NotFoundError("Session not found")
        logger.info("Session %s set active=%s by %s", session.session_id, bool(active), requester)
        return replace(session, is_active=bool(active))

    def update_window(
        self,
        session_id: str,
        *,
        requester: str,
        center_lat: Optional[float] = None,
        center_lng: Optional[float] = None,
        radius_meters: Optional[float] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        late_threshold_minutes: Optional[int] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Session:
        """Owner-only change of geofence/time parameters in one write. The live token is left alone."""

        session = self._require_owned(session_id, requester)
        updated = replace(
            session,
            center_lat=session.center_lat if center_lat is None else require_latitude(center_lat, "Center latitude"),
            center_lng=session.center_lng if center_lng is None else require_longitude(center_lng, "Center longitude"),
            radius_meters=session.radius_meters if radius_meters is None else require_positive(radius_meters, "Radius"),
            start_time=start_time or session.start_time,
            end_time=end_time or session.end_time,
            late_threshold_minutes=(
                session.late_threshold_minutes
                if late_threshold_minutes is None
                else require_non_negative_int(late_threshold_minutes, "Late threshold")
            ),
            description=(
                session.description
                if description is None
                else optional_text(description, "Description", max_length=MAX_DESCRIPTION_LENGTH)
            ),
            is_active=session.is_active if is_active is None else bool(is_active),
        )
        self._require_window(updated.start_time, updated.end_time)

        ok = self._sessions.update_window(
            session_id=updated.session_id,
            center_lat=updated.center_lat,
            center_lng=updated.center_lng,
            radius_meters=updated.radius_meters,
            start_time=updated.start_time,
            end_time=updated.end_time,
            late_threshold_minutes=updated.late_threshold_minutes,
            description=updated.description,
            is_active=updated.is_active,
        )
        if not ok:
            raise NotFoundError("Session not found")
        return updated

    def delete_session(self, session_id: str, *, requester: str) -> None:
        """Remove the session. Its attendance rows stay in the ledger."""

        session = self._require_owned(session_id, requester)
        if not self._sessions.delete(session_id=session.session_id):
            raise NotFoundError("Session not found")
        logger.info("Session %s deleted by %s", session.session_id, requester)

    def list_for_owner(self, owner: str) -> list[Session]:
        return list(self._sessions.list_for_owner(require_non_empty(owner, "Owner")))

    def require_owner(self, session_id: str, requester: str) -> Session:
        return self._require_owned(session_id, requester)

    def _require_owned(self, session_id: str, requester: str) -> Session:
        session = self._sessions.get_by_id(str(session_id))
        # Same answer for "missing" and "not yours".
        if not session or not requester or not session.is_owned_by(requester):
            raise AuthorizationError(_NOT_AUTHORIZED)
        return session

    def _rotate_stale(self, session: Session, *, now: datetime) -> ScanToken:
        token = self._rotate(session, now=now)
        logger.info("Stale token for session %s rotated on read", session.session_id)
        return token

    def _rotate(self, session: Session, *, now: datetime) -> ScanToken:
        current = session
        for _ in range(ROTATION_MAX_ATTEMPTS):
            candidate = issue_token(now=now, ttl=self._token_ttl)
            if self._sessions.swap_token(
                session_id=current.session_id,
                expected_token=current.current_token,
                new_token=candidate,
            ):
                return candidate

            # Lost the race: whoever won already produced a fresh token.
            fresh = self._sessions.get_by_id(current.session_id)
            if not fresh:
                raise NotFoundError("Session not found")
            if fresh.current_token != current.current_token and fresh.token.is_live(now):
                return fresh.token
            current = fresh

        logger.error("Token rotation for session %s kept losing the race", session.session_id)
        raise TransientStoreError("Could not rotate token, please retry")

    @staticmethod
    def _require_window(start_time: datetime, end_time: datetime) -> None:
        if not isinstance(start_time, datetime) or not isinstance(end_time, datetime):
            raise ValidationError("Start and end time are required")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")
