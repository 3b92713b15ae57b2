"""Runtime configuration loaded from environment variables (and .env)."""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Remote analysis (Gemini generateContent)
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_API_BASE: str = os.getenv(
    "GEMINI_API_BASE",
    "https://generativelanguage.googleapis.com/v1beta",
)
GEMINI_TIMEOUT_SECONDS: float = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "20"))

# Set to false to force offline mode (heuristic engine only)
REMOTE_ANALYSIS_ENABLED: bool = _env_flag("REMOTE_ANALYSIS_ENABLED", True)

# Incident log
INCIDENT_HISTORY_LIMIT: int = int(os.getenv("INCIDENT_HISTORY_LIMIT", "50"))
SESSION_EXPIRY_SECONDS: int = int(os.getenv("SESSION_EXPIRY_SECONDS", "3600"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
