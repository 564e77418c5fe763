# phastauth_cli/core/config.py
from pathlib import Path
import os

# Base URL of the PhastAuth API
BASE_URL = os.environ.get("PHASTAUTH_URL", "http://localhost:8000").rstrip("/")

# Request timeout in seconds
TIMEOUT = 10

# Local data directory (session token)
APP_DIR = Path.home() / ".phastauth"

SESSION_FILE = APP_DIR / "session.json"
