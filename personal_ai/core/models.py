"""Core data models shared across orchestrator components."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParameterType(str, Enum):
    """Value types an agent parameter may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    def accepts(self, value: Any) -> bool:
        """Return True when ``value`` has the runtime type this parameter declares."""
        if self is ParameterType.BOOLEAN:
            return isinstance(value, bool)
        if self is ParameterType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)


@dataclass(frozen=True, slots=True)
class ParameterDefinition:
    """One input an agent needs."""

    name: str
    type: ParameterType = ParameterType.STRING
    required: bool = False
    description: Optional[str] = None
    default: Any = None


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(slots=True)
class Conversation:
    id: str
    user_id: str
    title: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class Message:
    """A single turn appended to a conversation."""

    id: str
    conversation_id: str
    content: str
    role: MessageRole
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class UserIdentity:
    id: str
    created_at: datetime = field(default_factory=utcnow)
    preferences: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class OrchestrationRequest:
    """One inbound turn handed to the orchestrator."""

    query: Optional[str] = None
    agent_id: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SuccessResponse:
    message: str
    conversation_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    message: str
    conversation_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class NeedsParametersResponse:
    """Pending sub-dialog: the caller must resubmit with ``agent_id`` and parameters."""

    agent_id: str
    parameters: List[ParameterDefinition]
    conversation_id: Optional[str] = None


OrchestrationResponse = Union[SuccessResponse, ErrorResponse, NeedsParametersResponse]


@dataclass(frozen=True, slots=True)
class TurnResult:
    """Outcome of a synchronous turn: both persisted messages and the response."""

    response: OrchestrationResponse
    user_message: Optional[Message] = None
    assistant_message: Optional[Message] = None


class McpErrorCode(str, Enum):
    """Stable error vocabulary of the tool bridge wire contract."""

    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
    INVALID_OPERATION = "INVALID_OPERATION"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    INTERNAL_MCP_ERROR = "INTERNAL_MCP_ERROR"


@dataclass(slots=True)
class McpTask:
    task_id: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class McpSuccess:
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "success", "data": self.data}


@dataclass(frozen=True, slots=True)
class McpError:
    code: McpErrorCode
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "error": {"code": self.code.value, "message": self.message}}


McpResult = Union[McpSuccess, McpError]
