"""Exceptions raised by the core and translated at the HTTP boundary."""
from __future__ import annotations

from typing import Iterable, List

from personal_ai.core.models import McpErrorCode


class AgentNotFoundError(KeyError):
    """Raised when no agent is registered under the requested id."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent '{agent_id}' not found")
        self.agent_id = agent_id


class ConversationNotFoundError(KeyError):
    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation with ID {conversation_id} not found")
        self.conversation_id = conversation_id


class SessionNotFoundError(KeyError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class ParameterValidationError(ValueError):
    """Supplied parameters do not satisfy an agent's declared schema."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations: List[str] = list(violations)
        super().__init__(" ".join(self.violations))


class ToolError(Exception):
    """Failure of a built-in tool carrying a stable MCP error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = McpErrorCode(code)
        self.message = message
