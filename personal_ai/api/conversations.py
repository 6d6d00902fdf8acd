"""Conversation-scoped API routes."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field

from personal_ai.api.chat import CamelModel, OrchestratePayload, to_payload
from personal_ai.api.dependencies import get_user_id
from personal_ai.core.models import Conversation, Message, MessageRole, OrchestrationRequest
from personal_ai.orchestration.orchestrator import Orchestrator
from personal_ai.runtime import get_conversation_store, get_orchestrator
from personal_ai.services.conversations import ConversationStore

router = APIRouter(prefix="/conversations", tags=["conversations"])


class ConversationResponse(CamelModel):
    id: str
    user_id: str = Field(alias="userId")
    title: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationResponse":
        return cls(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class MessageResponse(CamelModel):
    id: str
    conversation_id: str = Field(alias="conversationId")
    content: str
    role: MessageRole
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            content=message.content,
            role=message.role,
            created_at=message.created_at,
        )


class ConversationDetailResponse(CamelModel):
    conversation: ConversationResponse
    messages: List[MessageResponse]


class ConversationCreateRequest(CamelModel):
    title: Optional[str] = None


class ConversationUpdateRequest(CamelModel):
    title: str


class MessageCreateRequest(CamelModel):
    content: str = ""
    role: MessageRole = MessageRole.USER


class SyncMessageResponse(CamelModel):
    user_message: MessageResponse = Field(alias="userMessage")
    assistant_message: Optional[MessageResponse] = Field(default=None, alias="assistantMessage")
    response: OrchestratePayload


class AgentParametersRequest(CamelModel):
    agent_id: str = Field(alias="agentId")
    parameters: Dict[str, Any] = Field(default_factory=dict)


def get_owned_conversation(
    conversation_id: str,
    user_id: str = Depends(get_user_id),
    store: ConversationStore = Depends(get_conversation_store),
) -> Conversation:
    """The requested conversation, or 404 when missing or owned by someone else."""
    conversation = store.get_conversation(conversation_id)
    if conversation is None or conversation.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation with ID {conversation_id} not found",
        )
    return conversation


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    query: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    store: ConversationStore = Depends(get_conversation_store),
) -> List[ConversationResponse]:
    return [ConversationResponse.from_conversation(c) for c in store.search_conversations(user_id, query)]


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: ConversationCreateRequest,
    user_id: str = Depends(get_user_id),
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationResponse:
    return ConversationResponse.from_conversation(store.create_conversation(user_id, request.title))


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation: Conversation = Depends(get_owned_conversation),
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationDetailResponse:
    return ConversationDetailResponse(
        conversation=ConversationResponse.from_conversation(conversation),
        messages=[MessageResponse.from_message(m) for m in store.get_messages(conversation.id)],
    )


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    request: ConversationUpdateRequest,
    conversation: Conversation = Depends(get_owned_conversation),
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationResponse:
    updated = store.update_conversation_title(conversation.id, request.title)
    return ConversationResponse.from_conversation(updated)


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation: Conversation = Depends(get_owned_conversation),
    store: ConversationStore = Depends(get_conversation_store),
) -> dict:
    if not store.delete_conversation(conversation.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to delete conversation with ID {conversation.id}",
        )
    return {"success": True}


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation: Conversation = Depends(get_owned_conversation),
    store: ConversationStore = Depends(get_conversation_store),
) -> List[MessageResponse]:
    return [MessageResponse.from_message(m) for m in store.get_messages(conversation.id)]


@router.post("/{conversation_id}/messages", response_model=MessageResponse)
async def add_message(
    request: MessageCreateRequest,
    conversation: Conversation = Depends(get_owned_conversation),
    store: ConversationStore = Depends(get_conversation_store),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> MessageResponse:
    """Store a message; user messages are answered in the background."""
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")

    if request.role is MessageRole.USER:
        message = await orchestrator.submit_message(conversation.id, content)
    else:
        message = store.add_message(conversation.id, content, request.role)
    return MessageResponse.from_message(message)


@router.post("/{conversation_id}/messages/sync", response_model=SyncMessageResponse)
async def add_message_sync(
    request: MessageCreateRequest,
    conversation: Conversation = Depends(get_owned_conversation),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> SyncMessageResponse:
    """Store a user message and wait for the assistant's reply."""
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")

    result = await orchestrator.submit_message_sync(conversation.id, content)
    return SyncMessageResponse(
        user_message=MessageResponse.from_message(result.user_message),
        assistant_message=(
            MessageResponse.from_message(result.assistant_message) if result.assistant_message else None
        ),
        response=to_payload(result.response),
    )


@router.post("/{conversation_id}/agent-parameters", response_model=OrchestratePayload)
async def submit_agent_parameters(
    request: AgentParametersRequest,
    conversation: Conversation = Depends(get_owned_conversation),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> OrchestratePayload:
    """Resubmit a needs-parameters form for an agent within this conversation."""
    response = await orchestrator.handle_request(
        OrchestrationRequest(
            agent_id=request.agent_id,
            parameters=request.parameters,
            user_id=conversation.user_id,
            conversation_id=conversation.id,
        )
    )
    return to_payload(response)
