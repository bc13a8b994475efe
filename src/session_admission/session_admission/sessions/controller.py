from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from ..attendance.report_service import REPORT_FIELDS, to_row
from ..common.datetime_utils import parse_iso_datetime, to_iso
from ..common.http import current_principal, error_response, login_required, server_error
from ..container import Container
from ..core.exceptions import DomainError, ValidationError
from ..tokens.model import ScanToken
from ..tokens.qr import build_qr_payload, render_qr_data_url
from .model import Session

logger = logging.getLogger(__name__)


def session_to_dict(s: Session) -> dict:
    return {
        "id": s.session_id,
        "courseName": s.course_name,
        "description": s.description,
        "centerLat": s.center_lat,
        "centerLng": s.center_lng,
        "radius": s.radius_meters,
        "startTime": to_iso(s.start_time),
        "endTime": to_iso(s.end_time),
        "lateThreshold": s.late_threshold_minutes,
        "isActive": s.is_active,
        "createdBy": s.created_by,
        "createdAt": to_iso(s.created_at),
    }


def token_to_dict(session_id: str, token: ScanToken) -> dict:
    return {
        "sessionId": session_id,
        "token": token.value,
        "expiresAt": to_iso(token.expires_at),
    }


def _optional_datetime(data: dict, key: str) -> Optional[datetime]:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _required_datetime(data: dict, key: str) -> datetime:
    value = _optional_datetime(data, key)
    if value is None:
        raise ValidationError(f"{key} is required")
    return value


def _optional_bool(data: dict, key: str) -> Optional[bool]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def register(app: Flask, container: Container) -> None:
    registry = container.session_registry
    reports = container.report_service

    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    @app.route("/api/sessions", methods=["POST"], endpoint="create_session")
    @login_required
    def create_session():
        try:
            data = _json_body()
            s = registry.create_session(
                owner=current_principal(),
                course_name=data.get("courseName", ""),
                description=data.get("description"),
                center_lat=data.get("centerLat"),
                center_lng=data.get("centerLng"),
                radius_meters=data.get("radius"),
                start_time=_required_datetime(data, "startTime"),
                end_time=_required_datetime(data, "endTime"),
                late_threshold_minutes=data.get("lateThreshold"),
            )
            body = session_to_dict(s)
            body["liveToken"] = token_to_dict(s.session_id, s.token)
            return jsonify({"success": True, "data": body}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create session failed")
            return server_error()

    @app.route("/api/sessions", methods=["GET"], endpoint="list_sessions")
    @login_required
    def list_sessions():
        try:
            rows = [session_to_dict(s) for s in registry.list_for_owner(current_principal())]
            return jsonify({"success": True, "count": len(rows), "data": rows})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>", methods=["GET"], endpoint="get_session")
    @login_required
    def get_session(session_id: str):
        try:
            s = registry.require_owner(session_id, current_principal())
            return jsonify({"success": True, "data": session_to_dict(s)})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>/token", methods=["GET"], endpoint="get_live_token")
    @login_required
    def get_live_token(session_id: str):
        try:
            token = registry.get_live_token(session_id, requester=current_principal())
            return jsonify({"success": True, "data": token_to_dict(session_id, token)})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>/qr", methods=["GET"], endpoint="get_live_qr")
    @login_required
    def get_live_qr(session_id: str):
        """Projector view: QR for the live token, rotated on read when stale."""

        try:
            token = registry.get_live_token(session_id, requester=current_principal())
            payload = build_qr_payload(app.config["FRONTEND_URL"], session_id, token.value)
            body = token_to_dict(session_id, token)
            body["qrCode"] = render_qr_data_url(payload)
            body["qrData"] = payload
            return jsonify({"success": True, "data": body})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>/refresh-token", methods=["POST"], endpoint="refresh_token")
    @login_required
    def refresh_token(session_id: str):
        try:
            token = registry.rotate_token(session_id, requester=current_principal())
            return jsonify({"success": True, "data": token_to_dict(session_id, token)})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>", methods=["PUT"], endpoint="update_session")
    @login_required
    def update_session(session_id: str):
        try:
            data = _json_body()
            s = registry.update_window(
                session_id,
                requester=current_principal(),
                center_lat=data.get("centerLat"),
                center_lng=data.get("centerLng"),
                radius_meters=data.get("radius"),
                start_time=_optional_datetime(data, "startTime"),
                end_time=_optional_datetime(data, "endTime"),
                late_threshold_minutes=data.get("lateThreshold"),
                description=data.get("description"),
                is_active=_optional_bool(data, "isActive"),
            )
            return jsonify({"success": True, "data": session_to_dict(s)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Update session failed")
            return server_error()

    @app.route("/api/sessions/<session_id>", methods=["DELETE"], endpoint="delete_session")
    @login_required
    def delete_session(session_id: str):
        try:
            registry.delete_session(session_id, requester=current_principal())
            return jsonify({"success": True, "data": {}})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>/attendance", methods=["GET"], endpoint="session_attendance")
    @login_required
    def session_attendance(session_id: str):
        try:
            rows = [to_row(r) for r in reports.for_session(session_id, requester=current_principal())]
            return jsonify({"success": True, "count": len(rows), "data": rows})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/sessions/<session_id>/attendance.csv", methods=["GET"], endpoint="session_attendance_csv")
    @login_required
    def session_attendance_csv(session_id: str):
        try:
            rows = reports.for_session(session_id, requester=current_principal())
        except DomainError as e:
            return error_response(e)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for r in rows:
            writer.writerow(to_row(r))

        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=attendance_{session_id}.csv"},
        )

    @app.route("/api/sessions/<session_id>/shared-devices", methods=["GET"], endpoint="shared_devices")
    @login_required
    def shared_devices(session_id: str):
        try:
            data = reports.shared_devices(session_id, requester=current_principal())
            return jsonify({"success": True, "count": len(data), "data": data})
        except DomainError as e:
            return error_response(e)
