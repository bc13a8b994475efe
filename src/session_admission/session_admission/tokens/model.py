from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import TOKEN_ENTROPY_BYTES
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ScanToken:
    """Rotating capability string shown to students as a QR code."""

    value: str
    issued_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


def new_token_value() -> str:
    return secrets.token_urlsafe(TOKEN_ENTROPY_BYTES)


def issue_token(*, now: datetime, ttl: timedelta) -> ScanToken:
    if ttl <= timedelta(0):
        raise ValidationError("Token TTL must be positive")
    return ScanToken(value=new_token_value(), issued_at=now, expires_at=now + ttl)
