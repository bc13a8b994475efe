"""Example: drive the engine through the service layer (no Flask).

Creates a session owned by "prof-1", then submits one scan 30 m north of the
centre using the live token.
"""

import importlib
from datetime import timedelta

from config import get_settings_module

from src.session_admission.session_admission.attendance.model import AttendanceAttempt
from src.session_admission.session_admission.common.datetime_utils import now_utc
from src.session_admission.session_admission.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, token_ttl_seconds=settings.SCAN_TOKEN_TTL_SECONDS)

    now = now_utc()
    session = container.session_registry.create_session(
        owner="prof-1",
        course_name="Distributed Systems",
        center_lat=12.9716,
        center_lng=77.5946,
        start_time=now,
        end_time=now + timedelta(hours=1),
    )
    token = container.session_registry.get_live_token(session.session_id, requester="prof-1")

    result = container.admission_engine.submit(
        AttendanceAttempt(
            token=token.value,
            student_id="CS-042",
            student_name="Asha",
            latitude=12.9716 + 30 / 111_195,
            longitude=77.5946,
        )
    )
    print(result.status.value, round(result.distance_meters, 1), result.message)
    print(container.report_service.for_student("CS-042").stats)


if __name__ == "__main__":
    main()
