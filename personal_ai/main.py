"""FastAPI entry-point exposing the orchestrator and the tool bridge."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from personal_ai.api.chat import router as chat_router
from personal_ai.api.conversations import router as conversations_router
from personal_ai.api.mcp import router as mcp_router
from personal_ai.api.routes import router as agents_router
from personal_ai.config import config
from personal_ai.core.logging import logger, setup_logging
from personal_ai.runtime import get_orchestrator, get_registry, get_session_hub


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application."""
    setup_logging()
    # Startup: discover agents
    get_registry().initialize()
    logger.info(f"Backend ready at {config.base_url} ({config.environment})")
    yield
    # Shutdown: end open streams and let background turns finish
    get_session_hub().close_all()
    await get_orchestrator().drain()


app = FastAPI(title="Personal AI Orchestrator", lifespan=lifespan)
app.include_router(agents_router)
app.include_router(chat_router)
app.include_router(conversations_router)
app.include_router(mcp_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=config.host, port=config.port)
