"""Integration tests for the HTTP surface."""
from __future__ import annotations

from typing import AsyncIterator

import httpx
import pytest

from personal_ai.api.mcp import format_sse
from personal_ai.main import app
from personal_ai.runtime import get_orchestrator, get_registry, get_session_hub, reset_runtime

USER = {"x-user-id": "user-1"}


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    reset_runtime()
    get_registry().initialize()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    reset_runtime()


async def create_conversation(client: httpx.AsyncClient, title: str = "Chat") -> str:
    resp = await client.post("/conversations", json={"title": title}, headers=USER)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


@pytest.mark.anyio
async def test_health(client: httpx.AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_list_agents_hides_execute(client: httpx.AsyncClient) -> None:
    resp = await client.get("/agents")

    assert resp.status_code == 200
    agents = {a["id"]: a for a in resp.json()}
    assert set(agents) >= {"reverseString", "echo"}
    assert "execute" not in agents["reverseString"]
    assert agents["reverseString"]["parameters"][0] == {
        "name": "text",
        "type": "string",
        "required": True,
        "description": "The text that will be reversed",
        "default": None,
    }


@pytest.mark.anyio
async def test_get_agent(client: httpx.AsyncClient) -> None:
    assert (await client.get("/agents/echo")).json()["name"] == "Echo Agent"
    missing = await client.get("/agents/missing")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Agent 'missing' not found"
    assert (await client.post("/agents/missing", json={})).status_code == 404


@pytest.mark.anyio
async def test_execute_agent(client: httpx.AsyncClient) -> None:
    resp = await client.post("/agents/reverseString", json={"parameters": {"text": "hello"}})

    assert resp.status_code == 200
    assert resp.json() == {"result": "olleh"}


@pytest.mark.anyio
async def test_execute_agent_missing_parameter(client: httpx.AsyncClient) -> None:
    resp = await client.post("/agents/reverseString", json={"parameters": {}})

    assert resp.status_code == 400
    assert resp.json()["detail"] == ["Parameter 'text' is required."]


@pytest.mark.anyio
async def test_execute_agent_type_mismatch(client: httpx.AsyncClient) -> None:
    resp = await client.post("/agents/echo", json={"parameters": {"text": "hi", "uppercase": "yes"}})

    assert resp.status_code == 400
    assert resp.json()["detail"] == ["Parameter 'uppercase' must be of type boolean."]


@pytest.mark.anyio
async def test_execute_agent_invalid_input_maps_to_400(client: httpx.AsyncClient) -> None:
    resp = await client.post("/agents/echo", json={"parameters": {"text": "hi", "repeat": 0}})

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid input:")


@pytest.mark.anyio
async def test_orchestrate_reverse(client: httpx.AsyncClient) -> None:
    resp = await client.post("/orchestrate", json={"query": "reverse hello world"}, headers=USER)

    body = resp.json()
    assert body["type"] == "success"
    assert body["message"] == "Reversed text: dlrow olleh"

    messages = (await client.get(f"/conversations/{body['conversationId']}/messages", headers=USER)).json()
    assert [(m["role"], m["content"]) for m in messages] == [
        ("user", "reverse hello world"),
        ("assistant", "Reversed text: dlrow olleh"),
    ]


@pytest.mark.anyio
async def test_orchestrate_needs_parameters(client: httpx.AsyncClient) -> None:
    resp = await client.post("/orchestrate", json={"query": "reverse"})

    body = resp.json()
    assert body["type"] == "needs_parameters"
    assert body["agentId"] == "reverseString"
    assert [p["name"] for p in body["parameters"]] == ["text"]


@pytest.mark.anyio
async def test_orchestrate_direct_agent(client: httpx.AsyncClient) -> None:
    resp = await client.post(
        "/orchestrate",
        json={"agentId": "echo", "parameters": {"text": "hi", "repeat": 2}},
        headers=USER,
    )

    assert resp.json()["message"] == 'Result from Echo Agent: "hi hi"'


@pytest.mark.anyio
async def test_orchestrate_invalid_input(client: httpx.AsyncClient) -> None:
    resp = await client.post("/orchestrate", json={})

    assert resp.json()["type"] == "error"
    assert resp.json()["message"] == "Invalid input: Missing query or agentId/parameters."


@pytest.mark.anyio
async def test_conversation_crud(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client, "Groceries")
    await create_conversation(client, "Travel plans")

    listed = (await client.get("/conversations", params={"query": "travel"}, headers=USER)).json()
    assert [c["title"] for c in listed] == ["Travel plans"]

    resp = await client.patch(f"/conversations/{conversation_id}", json={"title": "Shopping"}, headers=USER)
    assert resp.json()["title"] == "Shopping"

    detail = (await client.get(f"/conversations/{conversation_id}", headers=USER)).json()
    assert detail["conversation"]["title"] == "Shopping"
    assert detail["messages"] == []

    other_user = await client.get(f"/conversations/{conversation_id}", headers={"x-user-id": "user-2"})
    assert other_user.status_code == 404

    assert (await client.delete(f"/conversations/{conversation_id}", headers=USER)).json() == {"success": True}
    assert (await client.get(f"/conversations/{conversation_id}", headers=USER)).status_code == 404


@pytest.mark.anyio
async def test_fire_and_forget_message(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client)

    resp = await client.post(f"/conversations/{conversation_id}/messages", json={"content": "reverse abc"}, headers=USER)

    assert resp.status_code == 200
    assert resp.json()["role"] == "user"
    await get_orchestrator().drain()
    messages = (await client.get(f"/conversations/{conversation_id}/messages", headers=USER)).json()
    assert [m["content"] for m in messages] == ["reverse abc", "Reversed text: cba"]


@pytest.mark.anyio
async def test_empty_message_is_rejected(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client)

    resp = await client.post(f"/conversations/{conversation_id}/messages", json={"content": "  "}, headers=USER)

    assert resp.status_code == 400


@pytest.mark.anyio
async def test_sync_message(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client)

    resp = await client.post(
        f"/conversations/{conversation_id}/messages/sync", json={"content": "reverse abc"}, headers=USER
    )

    body = resp.json()
    assert body["userMessage"]["content"] == "reverse abc"
    assert body["assistantMessage"]["content"] == "Reversed text: cba"
    assert body["response"]["type"] == "success"


@pytest.mark.anyio
async def test_sync_message_needs_parameters_has_no_assistant_turn(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client)

    body = (
        await client.post(f"/conversations/{conversation_id}/messages/sync", json={"content": "reverse"}, headers=USER)
    ).json()

    assert body["assistantMessage"] is None
    assert body["response"]["type"] == "needs_parameters"

    resp = await client.post(
        f"/conversations/{conversation_id}/agent-parameters",
        json={"agentId": "reverseString", "parameters": {"text": "abc"}},
        headers=USER,
    )
    assert resp.json()["message"] == 'Result from Reverse String Agent: "cba"'
    messages = (await client.get(f"/conversations/{conversation_id}/messages", headers=USER)).json()
    assert [m["role"] for m in messages] == ["user", "assistant"]


@pytest.mark.anyio
async def test_mcp_task_endpoint(client: httpx.AsyncClient) -> None:
    resp = await client.post("/mcp", json={"task_id": "calculator", "params": {"operation": "divide", "a": 5, "b": 0}})
    assert resp.json() == {
        "status": "error",
        "error": {"code": "DIVISION_BY_ZERO", "message": "Division by zero is not allowed"},
    }

    resp = await client.post("/mcp", json={"task_id": "unknown_task"})
    assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"

    assert (await client.post("/mcp", json={"params": {}})).status_code == 400


@pytest.mark.anyio
async def test_mcp_tools_listing(client: httpx.AsyncClient) -> None:
    names = [t["name"] for t in (await client.get("/mcp/tools")).json()]

    assert names == ["get_fixed_data", "reverse_text", "calculator"]


@pytest.mark.anyio
async def test_mcp_messages_require_live_session(client: httpx.AsyncClient) -> None:
    resp = await client.post("/mcp/messages", json={"sessionId": "session_unknown", "message": {}})
    assert resp.status_code == 404

    hub = get_session_hub()
    async with hub.connect() as (session_id, queue):
        resp = await client.post("/mcp/messages", json={"sessionId": session_id, "message": {"ping": 1}})
        assert resp.json() == {"success": True}
        assert queue.get_nowait() == {"type": "ack", "sessionId": session_id}

    resp = await client.post("/mcp/messages", json={"sessionId": session_id, "message": {}})
    assert resp.status_code == 404


def test_sse_frames() -> None:
    assert format_sse({"sessionId": "session_1"}) == 'data: {"sessionId": "session_1"}\n\n'
    assert format_sse(None) == ": keep-alive\n\n"


@pytest.mark.anyio
async def test_orchestrate_rejects_another_users_conversation(client: httpx.AsyncClient) -> None:
    conversation_id = await create_conversation(client)

    resp = await client.post(
        "/orchestrate",
        json={"query": "reverse pwned", "conversationId": conversation_id},
        headers={"x-user-id": "user-2"},
    )

    assert resp.json() == {
        "type": "error",
        "message": f"Conversation '{conversation_id}' not found",
        "conversationId": conversation_id,
    }
    messages = (await client.get(f"/conversations/{conversation_id}/messages", headers=USER)).json()
    assert messages == []
