"""
Basic configuration

- CORS origins for development and production
- Storage location and spreadsheet backend settings
- Supports environment variables for deployment overrides
"""
import os

# Dashboard dev servers
LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]


def parse_origins(value: str) -> list:
    """
    Comma-separated origins, blanks ignored
    """
    return [origin.strip() for origin in value.split(",") if origin.strip()]


# Deployed frontends are appended via CORS_ORIGINS
CORS_ORIGINS = LOCAL_ORIGINS + parse_origins(os.getenv("CORS_ORIGINS", ""))

# Directory holding one JSON file per storage key
DATA_DIR = os.getenv("DATA_DIR", "data")

# Spreadsheet backend serving read-only "active patients" snapshots.
# Sync falls back to stored data when this is unset.
SPREADSHEET_BACKEND_URL = os.getenv("SPREADSHEET_BACKEND_URL", "").rstrip("/") or None
SPREADSHEET_ID = os.getenv("SPREADSHEET_ID", "local")
SPREADSHEET_TIMEOUT_SECONDS = float(os.getenv("SPREADSHEET_TIMEOUT_SECONDS", "5.0"))

# Display delay before a 100% complete patient is moved to the archive
AUTO_ARCHIVE_DELAY_SECONDS = float(os.getenv("AUTO_ARCHIVE_DELAY_SECONDS", "1.0"))
