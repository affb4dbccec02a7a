# kisaan_pukaar/config.py
from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Kisaan Pukaar AMR Assistant"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Generation endpoint (Gemini generateContent)
#
# The API key itself is read by GeminiClient from GEMINI_API_KEY.
# ---------------------------------------------------------------------------

GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent",
).strip()
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "60"))

# ---------------------------------------------------------------------------
# Airtable (remote tabular storage)
#
# Credentials come from AIRTABLE_API_KEY / AIRTABLE_BASE_ID.
# ---------------------------------------------------------------------------

AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0").strip()
AIRTABLE_REPORTS_TABLE = "amr_reports"
AIRTABLE_MESSAGES_TABLE = "whatsapp_messages"

# ---------------------------------------------------------------------------
# Local store
#
# In-memory SQLite by default: state lives only as long as the process.
# ---------------------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
SQL_ECHO = os.getenv("SQL_ECHO", "0") == "1"

# ---------------------------------------------------------------------------
# Conversation defaults
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGE = "ur"
DEFAULT_CATEGORY = "general"
DEFAULT_LOCATION = "Pakistan"
ANONYMOUS_USER = "anonymous"
DEFAULT_PROFILE_ID = "current-user"
BOT_RECIPIENT = "bot"

# Live chat sessions kept by the API; the least recently used idle one is dropped past this.
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "500"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
