"""Tool bridge endpoints: single-shot tasks and session streaming."""
from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from personal_ai.config import config
from personal_ai.core.errors import SessionNotFoundError
from personal_ai.core.models import McpTask
from personal_ai.core.session_hub import McpSessionHub
from personal_ai.runtime import get_session_hub, get_tool_bridge
from personal_ai.services.mcp import ToolBridge

router = APIRouter(prefix="/mcp", tags=["mcp"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class McpTaskRequest(BaseModel):
    task_id: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class McpSessionMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    message: Any = None


class McpToolResponse(BaseModel):
    name: str
    description: str


def format_sse(event: Optional[Dict[str, Any]]) -> str:
    """Encode one event as an SSE frame; ``None`` becomes a keep-alive comment."""
    if event is None:
        return ": keep-alive\n\n"
    return f"data: {json.dumps(event)}\n\n"


@router.post("")
async def run_task(request: McpTaskRequest, bridge: ToolBridge = Depends(get_tool_bridge)) -> dict:
    if not request.task_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing task_id in request")
    result = await bridge.process_task(McpTask(task_id=request.task_id, params=request.params or {}))
    return result.to_dict()


@router.get("/tools", response_model=List[McpToolResponse])
async def list_tools(bridge: ToolBridge = Depends(get_tool_bridge)) -> List[McpToolResponse]:
    return [McpToolResponse(name=t.name, description=t.description) for t in bridge.list_tools()]


@router.get("/sse")
async def open_session(request: Request, hub: McpSessionHub = Depends(get_session_hub)) -> StreamingResponse:
    """Open a streaming session; the first event carries the session id."""

    async def events() -> AsyncIterator[str]:
        async for event in hub.stream(
            keepalive=config.sse_keepalive_seconds,
            is_disconnected=request.is_disconnected,
        ):
            yield format_sse(event)

    return StreamingResponse(events(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/messages")
async def post_message(request: McpSessionMessage, hub: McpSessionHub = Depends(get_session_hub)) -> dict:
    try:
        return await hub.post(request.session_id, request.message)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
