"""Main model-tool loop orchestrator."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import DEFAULT_MAX_TOOL_TURNS
from .errors import InvalidInput
from .finalizer import finalize_reply
from .models import FinalReply, ModelResponse, Part, SessionData, Turn
from .providers import LLMProvider
from .session_store import SessionStore
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class LoopOptions:
    """Options for the model-tool loop."""

    max_tool_turns: int = DEFAULT_MAX_TOOL_TURNS
    # Used only when a new session is created.
    system_instruction: str | None = None


async def _resolve_session(
    store: SessionStore,
    session_id: str | None,
    system_instruction: str | None,
) -> tuple[str, SessionData]:
    if session_id:
        data = await store.get(session_id)
        if data is not None:
            logger.info("[Session: %s] Continuing session", session_id)
            return session_id, data
        logger.info("[Session: %s] Unknown session, starting a new one", session_id)
    return await store.create(system_instruction=system_instruction)


async def _run_tools(
    registry: ToolRegistry,
    response: ModelResponse,
    session_id: str,
) -> Turn:
    """Run every requested tool in model order; batch the results into one turn."""
    parts: list[Part] = []
    for call in response.function_calls:
        logger.info("[Session: %s]   Running %s with args %s", session_id, call.name, call.args)
        result = await registry.invoke(call.name, call.args)
        if result.is_error:
            logger.warning("[Session: %s]   %s failed: %s", session_id, call.name, result.error)
        parts.append(Part.from_function_response(call.name, result.to_payload()))
    return Turn(role="user", parts=tuple(parts))


async def run_loop(
    user_message: str,
    session_id: str | None = None,
    *,
    store: SessionStore,
    registry: ToolRegistry,
    provider: LLMProvider,
    options: LoopOptions | None = None,
) -> FinalReply:
    """
    Run one model-tool loop for a user message: append it to the session, then
    model → tools → model until the model answers without tool calls or the
    tool-turn bound is reached. The new session snapshot is committed only when
    the loop finishes; provider errors propagate and leave the session as it was.

    Returns:
        FinalReply with the reply text and the (new or continued) session id.
    """
    if not user_message or not user_message.strip():
        raise InvalidInput("empty user message")
    opts = options or LoopOptions()
    declarations = registry.declarations()

    session_id, session = await _resolve_session(store, session_id, opts.system_instruction)

    async with store.lock(session_id):
        # Re-read under the lock: a concurrent request may have committed.
        session = await store.get(session_id) or session
        turns: list[Turn] = list(session.turns)
        turns.append(Turn.user_text(user_message))

        response = await provider.generate(
            turns,
            tools=declarations,
            system_instruction=session.system_instruction,
        )
        tool_turns = 0
        while response.function_calls and tool_turns < opts.max_tool_turns:
            tool_turns += 1
            logger.info(
                "[Session: %s] Tool turn #%d: model requested %d call(s)",
                session_id,
                tool_turns,
                len(response.function_calls),
            )
            turns.append(response.to_turn())
            turns.append(await _run_tools(registry, response, session_id))
            response = await provider.generate(
                turns,
                tools=declarations,
                system_instruction=session.system_instruction,
            )

        # A reply that needed no tools is never reported as exhausted.
        exhausted = bool(response.function_calls) or (0 < opts.max_tool_turns <= tool_turns)
        if not response.text:
            if response.block_reason:
                logger.warning("[Session: %s] Response blocked: %s", session_id, response.block_reason)
            elif exhausted:
                logger.warning("[Session: %s] Tool-turn limit reached without a text answer", session_id)
            else:
                logger.warning("[Session: %s] No text received from the model", session_id)
        reply = finalize_reply(response, tools_exhausted=exhausted)

        # Only the text is kept: unanswered function calls would poison later requests.
        final_parts = tuple(p for p in response.parts if p.text) or (Part.from_text(reply),)
        turns.append(Turn(role="model", parts=final_parts))
        await store.put(session_id, session.append(*turns[len(session.turns):]))

    logger.info("[Session: %s] Final reply: %s", session_id, reply)
    return FinalReply(reply=reply, session_id=session_id, tool_turns=tool_turns)
