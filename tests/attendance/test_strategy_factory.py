from datetime import datetime, timedelta

from src.session_admission.session_admission.attendance.factory import AdmissionStrategyFactory
from src.session_admission.session_admission.attendance.strategies.late_strategy import LateStrategy
from src.session_admission.session_admission.attendance.strategies.out_of_range_strategy import OutOfRangeStrategy
from src.session_admission.session_admission.attendance.strategies.present_strategy import PresentStrategy
from src.session_admission.session_admission.core.enums import AttendanceStatus
from src.session_admission.session_admission.sessions.model import Session

START = datetime(2025, 1, 1, 8, 0, 0)


def _session(**overrides) -> Session:
    fields = dict(
        session_id="s1",
        course_name="Networks",
        center_lat=12.9716,
        center_lng=77.5946,
        radius_meters=50,
        start_time=START,
        end_time=START + timedelta(hours=1),
        late_threshold_minutes=15,
        current_token="tok",
        token_issued_at=START,
        token_expires_at=START + timedelta(minutes=2),
        created_by="prof-1",
        created_at=START,
    )
    fields.update(overrides)
    return Session(**fields)


def test_factory_present_within_threshold():
    now = START + timedelta(minutes=14, seconds=59)
    strategy = AdmissionStrategyFactory().for_attempt(distance=12, session=_session(), now=now)

    assert isinstance(strategy, PresentStrategy)


def test_factory_late_after_threshold():
    now = START + timedelta(minutes=20)
    strategy = AdmissionStrategyFactory().for_attempt(distance=12, session=_session(), now=now)
    decision = strategy.decide(distance=12, session=_session(), now=now)

    assert isinstance(strategy, LateStrategy)
    assert decision.status == AttendanceStatus.LATE
    assert "5 min" in decision.message


def test_factory_out_of_range_dominates_lateness():
    now = START + timedelta(minutes=40)
    strategy = AdmissionStrategyFactory().for_attempt(distance=120.4, session=_session(), now=now)
    decision = strategy.decide(distance=120.4, session=_session(), now=now)

    assert isinstance(strategy, OutOfRangeStrategy)
    assert decision.status == AttendanceStatus.INVALID
    assert decision.message == "You are 120m away from the class location (allowed radius 50m)"


def test_factory_uses_session_radius():
    strategy = AdmissionStrategyFactory().for_attempt(distance=120, session=_session(radius_meters=150), now=START)

    assert isinstance(strategy, PresentStrategy)
