# file: NEARBY/core/config.py
import os
import logging

logger = logging.getLogger("core.config")

# ==============================
# Proximity & Confirmation
# ==============================
# Radius (meters) inside which a venue counts as "nearby".
PROXIMITY_RADIUS_M = float(os.getenv("PROXIMITY_RADIUS_M", "100"))

# Minimum movement (meters) before the location watcher emits a new update.
LOCATION_DISTANCE_INTERVAL_M = float(os.getenv("LOCATION_DISTANCE_INTERVAL_M", "10"))

# Minimum time between two confirmation prompts once a venue is active.
CONFIRM_COOLDOWN_SECONDS = int(os.getenv("CONFIRM_COOLDOWN_SECONDS", "1800"))
CONFIRM_COOLDOWN_MS = CONFIRM_COOLDOWN_SECONDS * 1000

# ==============================
# Presence
# ==============================
# Presence rows older than this are stale and get pruned.
PRESENCE_FRESHNESS_SECONDS = int(os.getenv("PRESENCE_FRESHNESS_SECONDS", "1800"))
PRESENCE_FRESHNESS_MS = PRESENCE_FRESHNESS_SECONDS * 1000

# How often the scheduler sweeps every venue for stale presence rows.
PRESENCE_CLEANUP_INTERVAL_MINUTES = int(os.getenv("PRESENCE_CLEANUP_INTERVAL_MINUTES", "5"))

# Window used by the "recent visitors" listing.
RECENT_VISITORS_DAYS = int(os.getenv("RECENT_VISITORS_DAYS", "30"))

# ==============================
# Local device state
# ==============================
# Directory holding the per-device activePlaceId / lastPlaceConfirm pair.
STATE_DIR = os.getenv("NEARBY_STATE_DIR", os.path.join(os.getcwd(), ".nearby_state"))

# ==============================
# Firebase
# ==============================
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_DATABASE_URL = os.getenv("FIREBASE_DATABASE_URL")
CREDENTIAL_SOURCE = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

# ==============================
# Security Settings
# ==============================
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# ==============================
# Rate limits (slowapi syntax)
# ==============================
DEFAULT_RATE_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "1000/hour")
LOCATION_RATE_LIMIT = os.getenv("LOCATION_RATE_LIMIT", "120/minute")
REVIEW_RATE_LIMIT = os.getenv("REVIEW_RATE_LIMIT", "10/minute")

# ==============================
# Logging
# ==============================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CLOUD_LOGGING = os.getenv("NEARBY_CLOUD_LOGGING", "0") == "1"
