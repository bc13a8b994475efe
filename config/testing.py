import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "session_admission_test"),
}

FRONTEND_URL = "http://testserver"

SCAN_TOKEN_TTL_SECONDS = 60
DEFAULT_RADIUS_METERS = 50.0
DEFAULT_LATE_THRESHOLD_MINUTES = 15

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
