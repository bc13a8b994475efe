from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.http import error_response, login_required, server_error
from ..container import Container
from ..core.exceptions import DomainError, ValidationError
from .model import AttendanceAttempt
from .report_service import to_row

logger = logging.getLogger(__name__)


def _origin_hint() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or ""


def register(app: Flask, container: Container) -> None:
    engine = container.admission_engine
    reports = container.report_service

    @app.route("/api/attendance", methods=["POST"], endpoint="submit_attendance")
    def submit_attendance():
        """Student scan. Public: the scan token is the credential."""

        try:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise ValidationError("Request body must be a JSON object")

            result = engine.submit(
                AttendanceAttempt(
                    token=str(data.get("token") or ""),
                    session_id=data.get("sessionId"),
                    student_id=str(data.get("studentId") or ""),
                    student_name=str(data.get("studentName") or ""),
                    latitude=data.get("latitude"),
                    longitude=data.get("longitude"),
                    device_fingerprint=str(data.get("deviceFingerprint") or ""),
                    origin_hint=_origin_hint(),
                )
            )
            return jsonify(
                {
                    "success": result.admitted,
                    "data": {
                        "attendanceId": result.attendance_id,
                        "sessionId": result.session_id,
                        "status": result.status.value,
                        "distance": round(result.distance_meters, 2),
                        "message": result.message,
                        "sharedDevice": bool(result.shared_device_student_ids),
                    },
                }
            ), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Attendance submission failed")
            return server_error()

    @app.route("/api/students/<student_id>/attendance", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(student_id: str):
        try:
            history = reports.for_student(student_id)
            return jsonify(
                {
                    "success": True,
                    "stats": {
                        "total": history.stats.total,
                        "present": history.stats.present,
                        "late": history.stats.late,
                        "invalid": history.stats.invalid,
                    },
                    "data": [to_row(r) for r in history.rows],
                }
            )
        except DomainError as e:
            return error_response(e)
