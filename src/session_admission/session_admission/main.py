from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_RADIUS_METERS, DEFAULT_TOKEN_TTL_SECONDS
from .database.bootstrap import apply_schema, list_tables
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the JSON API.

    Pass ``container`` to run against other repositories (tests use in-memory ones);
    otherwise the MySQL container is built from the active settings module.
    """

    load_dotenv(override=False)
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["FRONTEND_URL"] = getattr(settings, "FRONTEND_URL", "http://localhost:5173")

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            token_ttl_seconds=int(getattr(settings, "SCAN_TOKEN_TTL_SECONDS", DEFAULT_TOKEN_TTL_SECONDS)),
            default_radius_meters=float(getattr(settings, "DEFAULT_RADIUS_METERS", DEFAULT_RADIUS_METERS)),
            default_late_threshold_minutes=int(
                getattr(settings, "DEFAULT_LATE_THRESHOLD_MINUTES", DEFAULT_LATE_THRESHOLD_MINUTES)
            ),
        )

    register_sessions(app, container)
    register_attendance(app, container)

    return app
