"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000.0

DEFAULT_RADIUS_METERS = 50.0
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_TOKEN_TTL_SECONDS = 120

# Bytes of randomness fed to secrets.token_urlsafe (256 bits).
TOKEN_ENTROPY_BYTES = 32

ROTATION_MAX_ATTEMPTS = 3

# Column widths in database/schema.sql.
MAX_ID_LENGTH = 64
MAX_NAME_LENGTH = 255
MAX_FINGERPRINT_LENGTH = 255
MAX_ORIGIN_HINT_LENGTH = 64
# TEXT holds 65535 bytes, at most 4 bytes per utf8mb4 character.
MAX_DESCRIPTION_LENGTH = 16_383
