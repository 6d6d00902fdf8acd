"""Orchestrate endpoint for natural language and structured turns."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from personal_ai.api.dependencies import get_user_id
from personal_ai.api.routes import ParameterSchema
from personal_ai.core.models import (
    ErrorResponse,
    NeedsParametersResponse,
    OrchestrationRequest,
    OrchestrationResponse,
    SuccessResponse,
)
from personal_ai.orchestration.orchestrator import Orchestrator
from personal_ai.runtime import get_orchestrator

router = APIRouter(prefix="/orchestrate", tags=["orchestrate"])


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrchestrateRequest(CamelModel):
    query: Optional[str] = Field(default=None, description="Free-text user turn")
    agent_id: Optional[str] = Field(default=None, alias="agentId")
    parameters: Optional[Dict[str, Any]] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class SuccessPayload(CamelModel):
    type: Literal["success"] = "success"
    message: str
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ErrorPayload(CamelModel):
    type: Literal["error"] = "error"
    message: str
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class NeedsParametersPayload(CamelModel):
    type: Literal["needs_parameters"] = "needs_parameters"
    agent_id: str = Field(alias="agentId")
    parameters: List[ParameterSchema]
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


OrchestratePayload = Union[SuccessPayload, ErrorPayload, NeedsParametersPayload]


def to_payload(response: OrchestrationResponse) -> OrchestratePayload:
    """Serialize an orchestration outcome with its ``type`` discriminator."""
    if isinstance(response, SuccessResponse):
        return SuccessPayload(message=response.message, conversation_id=response.conversation_id)
    if isinstance(response, ErrorResponse):
        return ErrorPayload(message=response.message, conversation_id=response.conversation_id)
    if isinstance(response, NeedsParametersResponse):
        return NeedsParametersPayload(
            agent_id=response.agent_id,
            parameters=[ParameterSchema.from_definition(p) for p in response.parameters],
            conversation_id=response.conversation_id,
        )
    raise TypeError(f"Unsupported orchestration response: {response!r}")


@router.post("", response_model=OrchestratePayload)
async def orchestrate(
    request: OrchestrateRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> OrchestratePayload:
    """Route one turn through the orchestrator."""
    response = await orchestrator.handle_request(
        OrchestrationRequest(
            query=request.query,
            agent_id=request.agent_id,
            parameters=request.parameters,
            user_id=user_id,
            conversation_id=request.conversation_id,
        )
    )
    return to_payload(response)
