"""Global configuration values."""

import os
from pathlib import Path

# Which generation backend answers match requests ("openai" or "gemini")
LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "openai").lower()

# Default OpenAI model for church matching
MATCH_MODEL = os.environ.get("OPENAI_MATCH_MODEL", "gpt-4o-mini")

# Default Gemini model (can be overridden via env)
DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")

# Sampling temperature for match requests
MATCH_TEMPERATURE = float(os.environ.get("MATCH_TEMPERATURE", "0.4"))

LLM_TIMEOUT_SECONDS = float(os.environ.get("LLM_TIMEOUT_SECONDS", "60"))

# Bounded retry for transient backend failures (not for malformed output)
UPSTREAM_RETRIES = int(os.environ.get("UPSTREAM_RETRIES", "2"))
UPSTREAM_BACKOFF_SECONDS = float(os.environ.get("UPSTREAM_BACKOFF_SECONDS", "0.5"))

# Local data directory (JSON church directory lives here by default)
DATA_DIR = Path(os.environ.get("DATA_DIR", Path(__file__).resolve().parent / "data"))
DIRECTORY_PATH = Path(os.environ.get("DIRECTORY_PATH", DATA_DIR / "churches.json"))

# Managed datastore (PostgREST-style). When set, it replaces the JSON file.
DIRECTORY_URL = os.environ.get("DIRECTORY_URL", "").rstrip("/")
DIRECTORY_KEY = os.environ.get("DIRECTORY_KEY", "")

# Where the client reaches the matching service and admin jobs
FUNCTIONS_BASE_URL = os.environ.get("FUNCTIONS_BASE_URL", "http://localhost:5000").rstrip("/")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "90"))

# Admin identity
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@example.org")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")
ADMIN_IMPORT_KEY = os.environ.get("ADMIN_IMPORT_KEY", "")
SECRET_KEY = os.environ.get("SECRET_KEY", "faith-finder-dev-secret")
TOKEN_MAX_AGE_SECONDS = int(os.environ.get("TOKEN_MAX_AGE_SECONDS", str(12 * 60 * 60)))

# Locally persisted visitor settings
SETTINGS_PATH = Path(
    os.environ.get("SETTINGS_PATH", Path.home() / ".faith_finder" / "settings.json")
)

# Directory import
OVERPASS_ENDPOINT = os.environ.get("OVERPASS_ENDPOINT", "https://overpass-api.de/api/interpreter")
COUNTY_NAME = os.environ.get("COUNTY_NAME", "Centre County")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
