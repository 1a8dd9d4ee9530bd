"""Run the FastAPI app for the samurai chatbot."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from pythonjsonlogger import jsonlogger

from src.chat_orchestrator.config import DEFAULT_MODEL, LOG_LEVEL, PORT, PUBLIC_DIR
from src.chat_orchestrator.db import close_db, init_db
from src.chat_orchestrator.errors import HistoryDBError
from src.chat_orchestrator.persona import get_default_preamble
from src.routers import (
    chat_router,
    history_router,
    legacy_history_router,
    preferences_router,
    register_exception_handlers,
)

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    """Configure root logger: JSON format to stderr, level from LOG_LEVEL."""
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(LOG_LEVEL)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(lineno)s  %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)


_setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to serve sessions without the persona.
    get_default_preamble()
    try:
        await init_db()
    except HistoryDBError as e:
        # Chat keeps working without history; the history routes answer 500.
        logger.error("Starting without chat history storage: %s", e)
    logger.info("Using model: %s", DEFAULT_MODEL)
    yield
    await close_db()


app = FastAPI(title="Samurai Chatbot", version="0.1.0", lifespan=lifespan)
register_exception_handlers(app)
app.include_router(chat_router)
app.include_router(history_router)
app.include_router(legacy_history_router)
app.include_router(preferences_router)


@app.get("/health")
async def health():
    """Health check for Docker/orchestration."""
    return {"status": "ok"}


if PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=PORT,
        reload=True,
    )
