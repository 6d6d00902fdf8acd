"""Orchestrator turning inbound turns into success, error or needs-parameters outcomes."""
from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Dict, Optional, Set

from personal_ai.agents.base import agent_parameters, invoke, is_invalid_input
from personal_ai.agents.registry import AgentRegistry
from personal_ai.core.errors import ParameterValidationError
from personal_ai.core.logging import logger
from personal_ai.core.models import (
    ErrorResponse,
    McpSuccess,
    McpTask,
    Message,
    MessageRole,
    NeedsParametersResponse,
    OrchestrationRequest,
    OrchestrationResponse,
    SuccessResponse,
    TurnResult,
)
from personal_ai.core.parameters import missing_required, type_violations
from personal_ai.services.conversations import ConversationStore
from personal_ai.services.mcp import ToolBridge

REVERSE_AGENT_ID = "reverseString"
REVERSE_PATTERN = re.compile(r"\breverse\b\s*(.*)", re.IGNORECASE | re.DOTALL)
MCP_DATA_PHRASE = "mcp data"

INVALID_INPUT_MESSAGE = "Invalid input: Missing query or agentId/parameters."
APOLOGY_MESSAGE = "I apologize, but I was unable to process your message. Please try again later."
UNPERSISTED_APOLOGY_MESSAGE = (
    "I apologize, but I was unable to process your message. "
    "There was an error with the conversation system."
)


class Orchestrator:
    """Classify requests, dispatch them to agents or tools and record the turns.

    Every request yields exactly one response. The user turn is stored before
    dispatch and the assistant turn after it; ``NeedsParametersResponse`` is
    never stored.
    """

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        conversations: ConversationStore,
        tool_bridge: Optional[ToolBridge] = None,
    ) -> None:
        self._registry = registry
        self._conversations = conversations
        self._tool_bridge = tool_bridge
        self._pending: Set[asyncio.Task[TurnResult]] = set()

    async def handle_request(self, request: OrchestrationRequest) -> OrchestrationResponse:
        result = await self.handle_turn(request)
        return result.response

    async def handle_turn(self, request: OrchestrationRequest) -> TurnResult:
        """Run the full pipeline: resolve conversation, store user turn, dispatch, store reply."""
        logger.info(
            f"Handling request: query={request.query!r} agent_id={request.agent_id!r} "
            f"conversation_id={request.conversation_id!r}"
        )
        conversation_id = request.conversation_id
        try:
            if conversation_id is not None:
                conversation = self._conversations.get_conversation(conversation_id)
                # Another user's conversation is reported exactly like a missing one.
                if conversation is None or (request.user_id and conversation.user_id != request.user_id):
                    return TurnResult(
                        ErrorResponse(f"Conversation '{conversation_id}' not found", conversation_id)
                    )
            elif request.user_id:
                conversation_id = self._resolve_for_user(request.user_id)

            user_message = None
            if conversation_id is not None and request.query:
                user_message = self._conversations.add_message(
                    conversation_id, request.query, MessageRole.USER
                )
        except Exception:  # noqa: BLE001
            logger.exception("Error storing inbound turn")
            return self._fallback(conversation_id)

        result = await self._complete(request, conversation_id)
        return TurnResult(result.response, user_message, result.assistant_message)

    async def submit_message(self, conversation_id: str, content: str) -> Message:
        """Store the user turn and finish the turn in a detached task.

        The caller only gets the stored user message; the assistant turn shows
        up in the conversation once the task completes.
        """
        user_message = self._conversations.add_message(conversation_id, content, MessageRole.USER)
        request = OrchestrationRequest(query=content, conversation_id=conversation_id)
        task = asyncio.get_running_loop().create_task(self._complete(request, conversation_id))
        self._pending.add(task)
        task.add_done_callback(self._on_detached_done)
        return user_message

    async def submit_message_sync(self, conversation_id: str, content: str) -> TurnResult:
        """Store the user turn and wait for the assistant turn."""
        user_message = self._conversations.add_message(conversation_id, content, MessageRole.USER)
        request = OrchestrationRequest(query=content, conversation_id=conversation_id)
        result = await self._complete(request, conversation_id)
        return TurnResult(result.response, user_message, result.assistant_message)

    async def drain(self) -> None:
        """Wait for every detached turn started by ``submit_message``."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def dispatch(self, request: OrchestrationRequest) -> OrchestrationResponse:
        """Classify a request and produce its response without touching storage."""
        if request.query:
            return await self._dispatch_query(request.query)
        if request.agent_id and request.parameters is not None:
            return await self._dispatch_agent(request.agent_id, request.parameters)
        return ErrorResponse(INVALID_INPUT_MESSAGE)

    async def _complete(self, request: OrchestrationRequest, conversation_id: Optional[str]) -> TurnResult:
        try:
            response = await self.dispatch(request)
            response = _with_conversation(response, conversation_id)
            assistant_message = None
            if conversation_id is not None and not isinstance(response, NeedsParametersResponse):
                assistant_message = self._conversations.add_message(
                    conversation_id, response.message, MessageRole.ASSISTANT
                )
            return TurnResult(response, assistant_message=assistant_message)
        except Exception:  # noqa: BLE001
            logger.exception("Error in orchestrator")
            return self._fallback(conversation_id)

    def _fallback(self, conversation_id: Optional[str]) -> TurnResult:
        if conversation_id is None:
            return TurnResult(ErrorResponse(APOLOGY_MESSAGE))
        try:
            message = self._conversations.add_message(
                conversation_id, APOLOGY_MESSAGE, MessageRole.ASSISTANT
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to add fallback message")
            return TurnResult(ErrorResponse(UNPERSISTED_APOLOGY_MESSAGE, conversation_id))
        return TurnResult(ErrorResponse(APOLOGY_MESSAGE, conversation_id), assistant_message=message)

    def _resolve_for_user(self, user_id: str) -> str:
        conversations = self._conversations.list_conversations_for_user(user_id)
        if conversations:
            return conversations[0].id
        return self._conversations.create_conversation(user_id).id

    async def _dispatch_query(self, query: str) -> OrchestrationResponse:
        normalized = query.strip().lower()

        if "reverse" in normalized:
            match = REVERSE_PATTERN.search(query.strip())
            remainder = match.group(1).strip() if match else ""
            return await self._handle_reverse(remainder)

        if MCP_DATA_PHRASE in normalized:
            return await self._handle_mcp_data()

        return SuccessResponse(
            f'I\'m not sure how to handle: "{query}". '
            'Try saying "reverse [some text]" or "get mcp data".'
        )

    async def _handle_reverse(self, text: str) -> OrchestrationResponse:
        logger.info("Handling reverse command")
        agent = self._registry.get_agent(REVERSE_AGENT_ID)
        if agent is None:
            return ErrorResponse("The reverse string agent is not available.")
        if not text:
            return NeedsParametersResponse(agent.id, list(agent_parameters(agent)))

        result = await self._run_agent(agent, {"text": text})
        if isinstance(result, ErrorResponse):
            return result
        return SuccessResponse(f"Reversed text: {result}")

    async def _handle_mcp_data(self) -> OrchestrationResponse:
        logger.info("Handling MCP data command")
        if self._tool_bridge is None:
            return ErrorResponse("The MCP tool bridge is not available.")

        result = await self._tool_bridge.process_task(McpTask("get_fixed_data"))
        if isinstance(result, McpSuccess):
            return SuccessResponse(f"Success! {result.data['message']}")
        logger.warning(f"MCP call failed: {result.code.value} {result.message}")
        return ErrorResponse(f"Failed to get MCP data: {result.message}")

    async def _dispatch_agent(self, agent_id: str, parameters: Dict[str, Any]) -> OrchestrationResponse:
        logger.info(f"Executing agent {agent_id} with parameters")
        agent = self._registry.get_agent(agent_id)
        if agent is None:
            return ErrorResponse(f"Agent '{agent_id}' not found")

        definitions = agent_parameters(agent)
        if missing_required(definitions, parameters):
            return NeedsParametersResponse(agent.id, list(definitions))

        violations = type_violations(definitions, parameters)
        if violations:
            return ErrorResponse("Invalid parameters: " + " ".join(violations))

        result = await self._run_agent(agent, parameters)
        if isinstance(result, ErrorResponse):
            return result
        name = getattr(agent, "name", None) or agent.id
        return SuccessResponse(f"Result from {name}: {json.dumps(result, default=str)}")

    async def _run_agent(self, agent: Any, parameters: Dict[str, Any]) -> Any:
        """Execute an agent; caller mistakes become an ``ErrorResponse``, anything else propagates."""
        try:
            return await invoke(agent, parameters)
        except ParameterValidationError as exc:
            return ErrorResponse("Invalid parameters: " + " ".join(exc.violations))
        except Exception as exc:  # noqa: BLE001
            if is_invalid_input(exc):
                logger.warning(f"Agent {agent.id} rejected its input: {exc}")
                return ErrorResponse(str(exc))
            raise

    def _on_detached_done(self, task: asyncio.Task[TurnResult]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Detached orchestration task was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Detached orchestration task failed: {exc!r}")


def _with_conversation(
    response: OrchestrationResponse, conversation_id: Optional[str]
) -> OrchestrationResponse:
    if isinstance(response, NeedsParametersResponse):
        return NeedsParametersResponse(response.agent_id, response.parameters, conversation_id)
    return type(response)(response.message, conversation_id)
