"""
Site Content API - Configuration
All settings loaded from environment variables with sensible defaults.

The database connection string, listening port and allowed CORS origins are
always supplied externally (``.env`` or the process environment); nothing
deployment-specific is hard-coded.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", os.getenv("PORT", "5000")))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent


def _db_path_from_url(url: str) -> Path:
    """Turn a ``sqlite:///path`` connection string into a filesystem path."""
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        raise RuntimeError(
            f"Unsupported DATABASE_URL: {url!r}. Expected a '{prefix}<path>' string."
        )
    return Path(url[len(prefix) :])


# DATABASE_URL wins over DB_PATH when both are set.
DATABASE_URL = os.getenv("DATABASE_URL", "")
DB_PATH = (
    _db_path_from_url(DATABASE_URL)
    if DATABASE_URL
    else Path(os.getenv("DB_PATH", str(PROJECT_ROOT / "data" / "content.db")))
)

# Uploaded images live in a single flat directory served under /uploads.
UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", str(PROJECT_ROOT / "uploads")))
UPLOADS_URL_PREFIX = "/uploads"

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# ---------------------------------------------------------------------------
# Logging — stdout only
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Upload limits
# ---------------------------------------------------------------------------
UPLOAD_FIELD_NAME = "images"
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "10"))
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_MB * 1024 * 1024

# Media type -> accepted file extensions (first entry is canonical)
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
}

# ---------------------------------------------------------------------------
# Content field limits
# ---------------------------------------------------------------------------
MAX_TITLE_LENGTH = 100
MAX_SLIDE_DESCRIPTION_LENGTH = 200
MAX_FEATURE_DESCRIPTION_LENGTH = 300


def ensure_directories(uploads_dir: Path = UPLOADS_DIR, db_path: Path = DB_PATH) -> None:
    """Create the uploads directory and the database parent directory."""
    uploads_dir.mkdir(parents=True, exist_ok=True)
    db_path.parent.mkdir(parents=True, exist_ok=True)
