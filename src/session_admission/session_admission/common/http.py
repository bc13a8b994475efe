from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.exceptions import (
    AlreadyRecordedError,
    AuthorizationError,
    DomainError,
    ExpiredOrInvalidTokenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: SessionInactiveError is caught as ExpiredOrInvalidTokenError.
_STATUS_CODES = (
    (ValidationError, 400, "validation_error"),
    (AuthorizationError, 403, "unauthorized"),
    (NotFoundError, 404, "not_found"),
    (ExpiredOrInvalidTokenError, 410, "expired_or_invalid_token"),
    (AlreadyRecordedError, 409, "already_recorded"),
    (TransientStoreError, 503, "transient_store_error"),
)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "unauthenticated", "message": "Please log in"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_principal() -> str:
    return str(session["user_id"])


def error_response(exc: DomainError):
    for exc_type, status_code, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            body = {"success": False, "error": code, "message": str(exc), "retryable": exc.retryable}
            if isinstance(exc, AlreadyRecordedError) and exc.prior_status is not None:
                body["prior_status"] = exc.prior_status.value
            return jsonify(body), status_code

    logger.exception("Unmapped domain error")
    return server_error()


def server_error():
    return jsonify({"success": False, "error": "server_error", "message": "Internal server error"}), 500
