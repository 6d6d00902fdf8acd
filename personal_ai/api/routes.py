"""HTTP API exposing the agent registry."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from personal_ai.agents.base import agent_parameters, invoke, is_invalid_input
from personal_ai.agents.registry import AgentRegistry
from personal_ai.core.errors import AgentNotFoundError, ParameterValidationError
from personal_ai.core.logging import logger
from personal_ai.core.models import ParameterDefinition
from personal_ai.runtime import get_registry

router = APIRouter(prefix="/agents", tags=["agents"])


class ParameterSchema(BaseModel):
    name: str
    type: str
    required: bool = False
    description: Optional[str] = None
    default: Any = None

    @classmethod
    def from_definition(cls, definition: ParameterDefinition) -> "ParameterSchema":
        return cls(
            name=definition.name,
            type=definition.type.value,
            required=definition.required,
            description=definition.description,
            default=definition.default,
        )


class AgentResponse(BaseModel):
    """Agent metadata; the execute callable is never serialized."""

    id: str
    name: str
    description: str
    parameters: List[ParameterSchema]

    @classmethod
    def from_agent(cls, agent: Any) -> "AgentResponse":
        return cls(
            id=agent.id,
            name=getattr(agent, "name", "") or agent.id,
            description=getattr(agent, "description", "") or "",
            parameters=[ParameterSchema.from_definition(p) for p in agent_parameters(agent)],
        )


class AgentExecutionRequest(BaseModel):
    parameters: Dict[str, Any] = Field(default_factory=dict)


class AgentExecutionResponse(BaseModel):
    result: Any = None


@router.get("", response_model=List[AgentResponse])
async def list_agents(registry: AgentRegistry = Depends(get_registry)) -> List[AgentResponse]:
    return [AgentResponse.from_agent(agent) for agent in registry.list_agents()]


def get_registered_agent(agent_id: str, registry: AgentRegistry = Depends(get_registry)) -> Any:
    try:
        return registry.require(agent_id)
    except AgentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(agent: Any = Depends(get_registered_agent)) -> AgentResponse:
    return AgentResponse.from_agent(agent)


@router.post("/{agent_id}", response_model=AgentExecutionResponse)
async def execute_agent(
    agent_id: str,
    request: AgentExecutionRequest,
    agent: Any = Depends(get_registered_agent),
) -> AgentExecutionResponse:
    logger.info(f"Executing agent {agent_id} directly")
    try:
        result = await invoke(agent, request.parameters)
    except ParameterValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.violations) from exc
    except Exception as exc:  # noqa: BLE001
        if is_invalid_input(exc):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        logger.exception(f"Error executing agent {agent_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to execute agent",
        ) from exc
    return AgentExecutionResponse(result=result)
