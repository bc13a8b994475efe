from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .attendance.factory import AdmissionStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceLedger
from .attendance.report_service import AttendanceReportService
from .attendance.repository import AttendanceLedger
from .attendance.service import AdmissionEngine
from .core.constants import (
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_RADIUS_METERS,
    DEFAULT_TOKEN_TTL_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionRegistry


@dataclass(frozen=True)
class Container:
    sessions_repo: SessionRepository
    attendance_ledger: AttendanceLedger

    session_registry: SessionRegistry
    admission_engine: AdmissionEngine
    report_service: AttendanceReportService

    conn: Optional[DatabaseConnection] = None


def build_services(
    sessions_repo: SessionRepository,
    attendance_ledger: AttendanceLedger,
    *,
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    default_radius_meters: float = DEFAULT_RADIUS_METERS,
    default_late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    session_registry = SessionRegistry(
        sessions_repo,
        token_ttl=timedelta(seconds=int(token_ttl_seconds)),
        default_radius_meters=default_radius_meters,
        default_late_threshold_minutes=default_late_threshold_minutes,
    )
    admission_engine = AdmissionEngine(
        session_registry,
        attendance_ledger,
        strategy_factory=AdmissionStrategyFactory(),
    )
    report_service = AttendanceReportService(session_registry, attendance_ledger)

    return Container(
        sessions_repo=sessions_repo,
        attendance_ledger=attendance_ledger,
        session_registry=session_registry,
        admission_engine=admission_engine,
        report_service=report_service,
        conn=conn,
    )


def build_container(*, db_config: dict, **settings) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connection_timeout=int(db_config.get("connection_timeout", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        MySQLSessionRepository(conn),
        MySQLAttendanceLedger(conn),
        conn=conn,
        **settings,
    )
