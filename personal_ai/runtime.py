"""Application runtime composition helpers."""
from __future__ import annotations

from functools import lru_cache

from personal_ai.agents.registry import AgentRegistry
from personal_ai.config import config
from personal_ai.core.session_hub import McpSessionHub
from personal_ai.orchestration.orchestrator import Orchestrator
from personal_ai.services.conversations import ConversationStore
from personal_ai.services.mcp import ToolBridge
from personal_ai.services.users import UserService


@lru_cache
def get_registry() -> AgentRegistry:
    return AgentRegistry(package=config.agents_package)


@lru_cache
def get_conversation_store() -> ConversationStore:
    return ConversationStore()


@lru_cache
def get_user_service() -> UserService:
    return UserService()


@lru_cache
def get_tool_bridge() -> ToolBridge:
    return ToolBridge.with_builtin_tools()


@lru_cache
def get_session_hub() -> McpSessionHub:
    return McpSessionHub()


@lru_cache
def get_orchestrator() -> Orchestrator:
    return Orchestrator(
        registry=get_registry(),
        conversations=get_conversation_store(),
        tool_bridge=get_tool_bridge(),
    )


def reset_runtime() -> None:
    """Drop every cached component so the next lookup builds fresh state."""
    for getter in (
        get_registry,
        get_conversation_store,
        get_user_service,
        get_tool_bridge,
        get_session_hub,
        get_orchestrator,
    ):
        getter.cache_clear()
