"""Tests for the tool bridge and the MCP session hub."""
from __future__ import annotations

import asyncio
import string

import pytest

from personal_ai.core.errors import SessionNotFoundError
from personal_ai.core.models import McpError, McpErrorCode, McpSuccess, McpTask
from personal_ai.core.session_hub import McpSessionHub
from personal_ai.services.mcp import MCPTool, ToolBridge


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def bridge() -> ToolBridge:
    return ToolBridge.with_builtin_tools()


async def run(bridge: ToolBridge, task_id: str, **params):
    return await bridge.process_task(McpTask(task_id, params))


@pytest.mark.anyio
async def test_get_fixed_data(bridge: ToolBridge) -> None:
    result = await run(bridge, "get_fixed_data")

    assert result.to_dict() == {
        "status": "success",
        "data": {"message": "This is the fixed data from the MCP."},
    }


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["a", "hello world", string.ascii_letters, "racecar", " padded "])
async def test_reverse_text_round_trip(bridge: ToolBridge, text: str) -> None:
    first = await run(bridge, "reverse_text", text=text)
    assert isinstance(first, McpSuccess)
    assert first.data == {"original": text, "reversed": text[::-1]}

    second = await run(bridge, "reverse_text", text=first.data["reversed"])
    assert second.data["reversed"] == text


@pytest.mark.anyio
@pytest.mark.parametrize("params", [{}, {"text": ""}, {"text": 5}, {"text": None}])
async def test_reverse_text_invalid_parameters(bridge: ToolBridge, params: dict) -> None:
    result = await run(bridge, "reverse_text", **params)

    assert isinstance(result, McpError)
    assert result.code is McpErrorCode.INVALID_PARAMETERS


@pytest.mark.anyio
@pytest.mark.parametrize(
    "operation, a, b, expected",
    [
        ("add", 2, 3, 5),
        ("subtract", 2, 3, -1),
        ("multiply", -4, 2.5, -10.0),
        ("divide", 9, 3, 3.0),
        ("add", 0.1, 0.2, 0.1 + 0.2),
    ],
)
async def test_calculator(bridge: ToolBridge, operation: str, a: float, b: float, expected: float) -> None:
    result = await run(bridge, "calculator", operation=operation, a=a, b=b)

    assert result == McpSuccess({"result": expected})


@pytest.mark.anyio
@pytest.mark.parametrize("a", [0, 5, -3.5, 1e300])
async def test_divide_by_zero_regardless_of_numerator(bridge: ToolBridge, a: float) -> None:
    result = await run(bridge, "calculator", operation="divide", a=a, b=0)

    assert result.to_dict()["error"]["code"] == "DIVISION_BY_ZERO"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "params, code",
    [
        ({"operation": "modulo", "a": 1, "b": 2}, McpErrorCode.INVALID_OPERATION),
        ({"a": 1, "b": 2}, McpErrorCode.INVALID_PARAMETERS),
        ({"operation": "add", "a": "1", "b": 2}, McpErrorCode.INVALID_PARAMETERS),
        ({"operation": "add", "a": 1, "b": True}, McpErrorCode.INVALID_PARAMETERS),
        ({"operation": 7, "a": 1, "b": 2}, McpErrorCode.INVALID_PARAMETERS),
    ],
)
async def test_calculator_errors(bridge: ToolBridge, params: dict, code: McpErrorCode) -> None:
    result = await run(bridge, "calculator", **params)

    assert isinstance(result, McpError)
    assert result.code is code


@pytest.mark.anyio
async def test_unknown_task(bridge: ToolBridge) -> None:
    result = await run(bridge, "unknown_task")

    assert result.to_dict()["error"]["code"] == "TASK_NOT_FOUND"


@pytest.mark.anyio
async def test_unexpected_exception_is_contained(bridge: ToolBridge) -> None:
    def explode(params: dict) -> dict:
        raise RuntimeError("secret detail")

    bridge.register(MCPTool("explode", "Always fails", explode))
    result = await run(bridge, "explode")

    assert isinstance(result, McpError)
    assert result.code is McpErrorCode.INTERNAL_MCP_ERROR
    assert "secret" not in result.message


@pytest.mark.anyio
async def test_async_tool_handlers_are_awaited(bridge: ToolBridge) -> None:
    async def slow(params: dict) -> dict:
        await asyncio.sleep(0)
        return {"ok": True}

    bridge.register(MCPTool("slow", "Awaits once", slow))

    assert await run(bridge, "slow") == McpSuccess({"ok": True})
    assert "slow" in {tool.name for tool in bridge.list_tools()}


@pytest.mark.anyio
async def test_session_stream_lifecycle() -> None:
    hub = McpSessionHub()
    stream = hub.stream(keepalive=0.05)

    first = await stream.__anext__()
    session_id = first["sessionId"]
    assert hub.is_open(session_id)

    assert await hub.post(session_id, {"jsonrpc": "2.0"}) == {"success": True}
    assert await stream.__anext__() == {"type": "ack", "sessionId": session_id}

    assert await stream.__anext__() is None  # keep-alive tick

    assert hub.close(session_id)
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert not hub.is_open(session_id)


@pytest.mark.anyio
async def test_client_disconnect_removes_session() -> None:
    hub = McpSessionHub()
    stream = hub.stream(keepalive=1.0)
    first = await stream.__anext__()

    await stream.aclose()

    assert not hub.is_open(first["sessionId"])
    assert len(hub) == 0


@pytest.mark.anyio
async def test_concurrent_sessions_are_independent() -> None:
    hub = McpSessionHub()
    streams = [hub.stream(keepalive=1.0) for _ in range(5)]
    ids = [(await s.__anext__())["sessionId"] for s in streams]

    assert len(set(ids)) == 5
    assert len(hub) == 5

    hub.close_all()
    for stream in streams:
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
    assert len(hub) == 0


@pytest.mark.anyio
async def test_post_to_unknown_session() -> None:
    hub = McpSessionHub()

    with pytest.raises(SessionNotFoundError):
        await hub.post("session_missing", {})


def test_close_all_reports_closed_sessions() -> None:
    hub = McpSessionHub()
    first, first_queue = hub.open()
    hub.open()

    assert hub.close_all() == 2
    assert first_queue.get_nowait() is None
    assert not hub.is_open(first)
    assert hub.close_all() == 0
