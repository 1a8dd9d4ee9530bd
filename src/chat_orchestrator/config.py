"""Orchestrator configuration: paths, environment-derived settings and defaults."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from main_config import (
    PERSONA_MODEL_PROMPT_PATH as _PERSONA_MODEL_PROMPT_PATH,
    PERSONA_USER_PROMPT_PATH as _PERSONA_USER_PROMPT_PATH,
    PUBLIC_DIR as _PUBLIC_DIR,
)

load_dotenv()


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be an integer: {raw!r}") from e


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be a number: {raw!r}") from e


# Path objects for use in this package (main_config uses os.path strings)
PUBLIC_DIR = Path(_PUBLIC_DIR)
PERSONA_USER_PROMPT_PATH = Path(_PERSONA_USER_PROMPT_PATH)
PERSONA_MODEL_PROMPT_PATH = Path(_PERSONA_MODEL_PROMPT_PATH)

# Gemini
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY", "")
DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 300

# Tools
OPENWEATHER_API_KEY = os.environ.get("OPENWEATHER_API_KEY", "")
OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
WEATHER_LANGUAGE = os.environ.get("WEATHER_LANGUAGE", "en")
TOOL_TIMEZONE = os.environ.get("TOOL_TIMEZONE", "America/Sao_Paulo")
HTTP_TIMEOUT = _env_float("HTTP_TIMEOUT", 10.0)

# Orchestrator
DEFAULT_MAX_TOOL_TURNS = _env_int("MAX_TOOL_TURNS", 3)
SESSION_TTL_SECONDS = _env_int("SESSION_TTL_SECONDS", 3600)
MAX_SESSIONS = _env_int("MAX_SESSIONS", 1000)

# Persistence
MONGODB_URI = os.environ.get(
    "MONGODB_URI",
    "mongodb://localhost:27017/?directConnection=true",
)
MONGODB_DATABASE = os.environ.get("MONGODB_DATABASE", "samurai_chatbot")
HISTORY_LIST_LIMIT = 20
MAX_CUSTOM_INSTRUCTION_LENGTH = 2000

# Server
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT = _env_int("PORT", 3000)

# Fallback replies, in the persona's voice
BLOCKED_REPLY = (
    "My answer was blocked for safety reasons ({reason}). "
    "Please rephrase your question."
)
TOOLS_EXHAUSTED_REPLY = (
    "I attempted to use my tools, but no textual answer could be formed. "
    "Could you try asking another way?"
)
NO_RESPONSE_REPLY = "I beg your pardon, but I could not generate a response at this moment."
