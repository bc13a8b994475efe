from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..tokens.model import ScanToken
from .model import Session
from .repository import SessionRepository

_COLUMNS = """
    session_id, course_name, description, center_lat, center_lng, radius_meters,
    start_time, end_time, late_threshold_minutes,
    current_token, token_issued_at, token_expires_at,
    is_active, created_by, created_at
"""


def _to_session(r: dict) -> Session:
    return Session(
        session_id=str(r["session_id"]),
        course_name=r["course_name"],
        description=r.get("description"),
        center_lat=float(r["center_lat"]),
        center_lng=float(r["center_lng"]),
        radius_meters=float(r["radius_meters"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
        late_threshold_minutes=int(r["late_threshold_minutes"]),
        current_token=r["current_token"],
        token_issued_at=r["token_issued_at"],
        token_expires_at=r["token_expires_at"],
        is_active=bool(r["is_active"]),
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM scan_sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_token(self, token: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM scan_sessions WHERE current_token=%s", (token,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create(self, session: Session) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scan_sessions(
                    session_id, course_name, description, center_lat, center_lng, radius_meters,
                    start_time, end_time, late_threshold_minutes,
                    current_token, token_issued_at, token_expires_at,
                    is_active, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    session.session_id,
                    session.course_name,
                    session.description,
                    session.center_lat,
                    session.center_lng,
                    session.radius_meters,
                    session.start_time,
                    session.end_time,
                    session.late_threshold_minutes,
                    session.current_token,
                    session.token_issued_at,
                    session.token_expires_at,
                    int(session.is_active),
                    session.created_by,
                    session.created_at,
                ),
            )

    def swap_token(self, *, session_id: str, expected_token: str, new_token: ScanToken) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE scan_sessions
                SET current_token=%s, token_issued_at=%s, token_expires_at=%s
                WHERE session_id=%s AND current_token=%s
                """,
                (new_token.value, new_token.issued_at, new_token.expires_at, session_id, expected_token),
            )
            return cur.rowcount > 0

    def set_active(self, *, session_id: str, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE scan_sessions SET is_active=%s WHERE session_id=%s",
                (int(is_active), session_id),
            )
            return cur.rowcount > 0

    def update_window(
        self,
        *,
        session_id: str,
        center_lat: float,
        center_lng: float,
        radius_meters: float,
        start_time: datetime,
        end_time: datetime,
        late_threshold_minutes: int,
        description: Optional[str],
        is_active: bool,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE scan_sessions
                SET center_lat=%s, center_lng=%s, radius_meters=%s,
                    start_time=%s, end_time=%s, late_threshold_minutes=%s, description=%s,
                    is_active=%s
                WHERE session_id=%s
                """,
                (
                    center_lat,
                    center_lng,
                    radius_meters,
                    start_time,
                    end_time,
                    int(late_threshold_minutes),
                    description,
                    int(is_active),
                    session_id,
                ),
            )
            return cur.rowcount > 0

    def delete(self, *, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM scan_sessions WHERE session_id=%s", (session_id,))
            return cur.rowcount > 0

    def list_for_owner(self, owner: str) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM scan_sessions WHERE created_by=%s ORDER BY created_at DESC",
                (str(owner),),
            )
            return [_to_session(r) for r in fetchall(cur)]
