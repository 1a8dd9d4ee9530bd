"""Utilities for loading the persona preamble from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import PERSONA_MODEL_PROMPT_PATH, PERSONA_USER_PROMPT_PATH
from .models import Turn

logger = logging.getLogger(__name__)

DEFAULT_ACKNOWLEDGEMENT = "Understood."

_cached_preamble: Optional[tuple[Turn, ...]] = None


def _read_file(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    return text.strip()


def load_preamble(user_path: Path, model_path: Path) -> tuple[Turn, ...]:
    """Build the synthetic user/model exchange that opens every session.

    Raises FileNotFoundError when the user-side prompt is missing or empty;
    a missing model-side acknowledgement is replaced with a short default.
    """
    instructions = _read_file(user_path)
    if not instructions:
        logger.error("Persona prompt missing or empty: %s", user_path)
        raise FileNotFoundError(f"Persona prompt missing or empty: {user_path}")
    acknowledgement = _read_file(model_path)
    if not acknowledgement:
        logger.warning("Persona acknowledgement missing, using default: %s", model_path)
        acknowledgement = DEFAULT_ACKNOWLEDGEMENT
    return (Turn.user_text(instructions), Turn.model_text(acknowledgement))


def get_default_preamble() -> tuple[Turn, ...]:
    """Return the default persona preamble, cached after the first successful read."""
    global _cached_preamble
    if _cached_preamble is None:
        _cached_preamble = load_preamble(PERSONA_USER_PROMPT_PATH, PERSONA_MODEL_PROMPT_PATH)
    return _cached_preamble
