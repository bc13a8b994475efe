"""Geofence distance and time-window classification.

Pure functions only: no I/O, no clock reads. Callers pass ``now`` explicitly.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta

from ..core.constants import EARTH_RADIUS_METERS
from ..core.enums import AttendanceStatus


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in meters between two WGS84 points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a a hair outside [0, 1] for antipodal points.
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def late_cutoff(session_start: datetime, late_threshold_minutes: int) -> datetime:
    return session_start + timedelta(minutes=late_threshold_minutes)


def classify(
    distance: float,
    radius: float,
    session_start: datetime,
    late_threshold_minutes: int,
    now: datetime,
) -> AttendanceStatus:
    """Decide PRESENT / LATE / INVALID.

    Location is checked before time, so an out-of-range late scan is INVALID.
    Both boundaries are inclusive for the student: ``distance == radius`` is
    admitted and ``now == cutoff`` is still PRESENT.
    """
    if distance > radius:
        return AttendanceStatus.INVALID
    if now > late_cutoff(session_start, late_threshold_minutes):
        return AttendanceStatus.LATE
    return AttendanceStatus.PRESENT
