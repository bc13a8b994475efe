import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "session_admission"),
    "connection_timeout": int(os.getenv("DB_TIMEOUT", "5")),
}

# Base URL students open after scanning the QR code.
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Lifetime of a scan token before it is rotated on the next read.
SCAN_TOKEN_TTL_SECONDS = int(os.getenv("SCAN_TOKEN_TTL_SECONDS", "120"))
DEFAULT_RADIUS_METERS = float(os.getenv("DEFAULT_RADIUS_METERS", "50"))
DEFAULT_LATE_THRESHOLD_MINUTES = int(os.getenv("DEFAULT_LATE_THRESHOLD_MINUTES", "15"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
