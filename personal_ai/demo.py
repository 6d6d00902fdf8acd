"""CLI demonstration of a few orchestrated turns."""
from __future__ import annotations

import asyncio
from dataclasses import replace

from personal_ai.agents.registry import AgentRegistry
from personal_ai.api.chat import to_payload
from personal_ai.config import config
from personal_ai.core.logging import setup_logging
from personal_ai.core.models import McpTask, OrchestrationRequest
from personal_ai.orchestration.orchestrator import Orchestrator
from personal_ai.services.conversations import ConversationStore
from personal_ai.services.mcp import ToolBridge

DEMO_TURNS = (
    OrchestrationRequest(query="reverse hello world"),
    OrchestrationRequest(query="reverse"),
    OrchestrationRequest(agent_id="echo", parameters={"text": "hi", "repeat": 2}),
    OrchestrationRequest(query="get mcp data"),
)


async def main() -> None:
    registry = AgentRegistry(package=config.agents_package)
    registry.initialize()
    conversations = ConversationStore()
    bridge = ToolBridge.with_builtin_tools()
    orchestrator = Orchestrator(registry=registry, conversations=conversations, tool_bridge=bridge)

    conversation = conversations.create_conversation("demo-user", "Demo")
    for turn in DEMO_TURNS:
        response = await orchestrator.handle_request(replace(turn, conversation_id=conversation.id))
        print(f"> {turn.query or turn.agent_id}: {to_payload(response).model_dump_json(by_alias=True)}")

    result = await bridge.process_task(McpTask("calculator", {"operation": "divide", "a": 5, "b": 0}))
    print(f"> calculator 5/0: {result.to_dict()}")

    for message in conversations.get_messages(conversation.id):
        print(f"[{message.role.value}] {message.content}")


def run() -> None:
    setup_logging("WARNING")
    asyncio.run(main())


if __name__ == "__main__":
    run()
