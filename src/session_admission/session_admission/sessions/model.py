from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..tokens.model import ScanToken


@dataclass(frozen=True)
class Session:
    """Domain entity: one scheduled class meeting with its geofence and live token.

    Plain data object; repositories own persistence.
    """

    session_id: str
    course_name: str
    center_lat: float
    center_lng: float
    radius_meters: float
    start_time: datetime
    end_time: datetime
    late_threshold_minutes: int
    current_token: str
    token_issued_at: datetime
    token_expires_at: datetime
    created_by: str
    created_at: datetime
    is_active: bool = True
    description: Optional[str] = None

    @property
    def token(self) -> ScanToken:
        return ScanToken(
            value=self.current_token,
            issued_at=self.token_issued_at,
            expires_at=self.token_expires_at,
        )

    def is_owned_by(self, principal: str) -> bool:
        return str(self.created_by) == str(principal)
