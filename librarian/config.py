"""Default application settings. Environment variables override the file defaults."""
import os
from pathlib import Path

from .models.store import DEFAULT_DATA_PATH
from .utils.dates import DEFAULT_TIMEZONE


class Config:
    SECRET_KEY = os.getenv("LIBRARIAN_SECRET_KEY", "dev-secret-change-me")
    DATA_PATH = os.getenv("LIBRARIAN_DATA_PATH", str(DEFAULT_DATA_PATH))
    REPORTS_DIR = os.getenv("LIBRARIAN_REPORTS_DIR", str(Path("library_data") / "reports"))
    LIBRARY_TIMEZONE = os.getenv("LIBRARIAN_TIMEZONE", DEFAULT_TIMEZONE)
    LOG_LEVEL = os.getenv("LIBRARIAN_LOG_LEVEL", "INFO")
