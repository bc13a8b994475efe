from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..tokens.model import ScanToken
from .model import Session


class SessionRepository(Protocol):
    """Storage contract for sessions.

    Note: ``swap_token`` is the only way to change token fields and must be a
    single conditional update, never a read followed by a write.
    """

    def get_by_id(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[Session]:
        """Return the session whose *current* token equals ``token`` (expired or not)."""

        raise NotImplementedError

    def create(self, session: Session) -> None:
        raise NotImplementedError

    def swap_token(self, *, session_id: str, expected_token: str, new_token: ScanToken) -> bool:
        """Compare-and-swap the token fields.

        Returns False when ``current_token`` no longer equals ``expected_token``
        (someone else rotated first) or the session is gone.
        """

        raise NotImplementedError

    def set_active(self, *, session_id: str, is_active: bool) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, *, session_id: str) -> bool:
        raise NotImplementedError

    def list_for_owner(self, owner: str) -> Sequence[Session]:
        raise NotImplementedError
