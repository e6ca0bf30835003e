"""
RegVerify — Configuration & Constants
Environment variables, feature flags, storage paths and validation thresholds.
Everything here is resolved once, at process start.
"""
import os
from pathlib import Path

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.environ.get("DATA_DIR", BASE_DIR / "data"))
DB_PATH = DATA_DIR / "db.json"
BLOB_DIR = Path(os.environ.get("BLOB_DIR", DATA_DIR / "blobs"))

# ============================================================
# FEATURE FLAGS
# ============================================================
# Only the exact value "true" enables auto-approval.
AUTO_APPROVE = os.environ.get("AUTO_APPROVE") == "true"
PERSIST_DATA = os.environ.get("PERSIST_DATA", "true").lower() == "true"

# ============================================================
# DATABASE (PostgreSQL optional, file-based default)
# ============================================================
DATABASE_URL = os.environ.get("DATABASE_URL")

# ============================================================
# AUTH
# ============================================================
JWT_SECRET = os.environ.get("JWT_SECRET", os.urandom(32).hex())
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.environ.get("JWT_EXPIRY_HOURS", "1"))
ADMIN_CLAIM = "admin"

# ============================================================
# VERIFICATION RULES
# ============================================================
DOCUMENT_SCHEME_PREFIX = "gs://"
MIN_OWNER_NAME_LENGTH = 2   # trimmed name must be strictly longer
MIN_PHONE_DIGITS = 7

# ============================================================
# COLLECTIONS
# ============================================================
BUSINESSES = "businesses"
VERIFICATION_REQUESTS = "verification_requests"
VERIFICATION_AUDIT = "verification_audit"

STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
TERMINAL_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ============================================================
# VERSION
# ============================================================
VERSION = "1.0.0"
