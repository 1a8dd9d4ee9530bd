"""Turn the last model response into the reply text sent to the client."""

from __future__ import annotations

from .config import BLOCKED_REPLY, NO_RESPONSE_REPLY, TOOLS_EXHAUSTED_REPLY
from .models import ModelResponse


def finalize_reply(response: ModelResponse, *, tools_exhausted: bool = False) -> str:
    """Concatenate the response text, or pick a fallback.

    Fallback priority: safety block, then tool-turn exhaustion, then the
    generic apology.
    """
    text = response.text
    if text:
        return text
    if response.block_reason:
        return BLOCKED_REPLY.format(reason=response.block_reason)
    if tools_exhausted:
        return TOOLS_EXHAUSTED_REPLY
    return NO_RESPONSE_REPLY
