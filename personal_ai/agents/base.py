"""Base agent definition consumed by the registry and the orchestrator."""
from __future__ import annotations

import abc
import inspect
from typing import Any, Dict, Mapping, Sequence, Tuple

from personal_ai.core.errors import ParameterValidationError
from personal_ai.core.models import ParameterDefinition
from personal_ai.core.parameters import apply_defaults, type_violations, validate_parameters

INVALID_INPUT_PREFIX = "Invalid input:"


class Agent(abc.ABC):
    """Named unit of work with a declared parameter schema.

    Subclasses set the class attributes and implement ``execute``. Agent
    modules expose a module-level ``agent`` instance which the registry
    discovers at startup.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    parameters: Tuple[ParameterDefinition, ...] = ()

    @abc.abstractmethod
    async def execute(self, params: Dict[str, Any]) -> Any:
        """Run the agent with already validated parameters and return its result."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


def agent_parameters(agent: Any) -> Sequence[ParameterDefinition]:
    return tuple(getattr(agent, "parameters", ()) or ())


def is_invalid_input(exc: BaseException) -> bool:
    """Agents signal caller mistakes with messages prefixed ``Invalid input:``."""
    return str(exc).startswith(INVALID_INPUT_PREFIX)


async def invoke(agent: Any, params: Mapping[str, Any]) -> Any:
    """Validate ``params`` against the agent's schema, fill defaults and execute it.

    Raises ParameterValidationError before ``execute`` is reached when any
    required parameter is missing or a value, supplied or defaulted, has the
    wrong type.
    """
    definitions = agent_parameters(agent)
    violations = validate_parameters(definitions, params)
    if violations:
        raise ParameterValidationError(violations)

    resolved = apply_defaults(definitions, params)
    violations = type_violations(definitions, resolved)
    if violations:
        raise ParameterValidationError(violations)

    result = agent.execute(resolved)
    if inspect.isawaitable(result):
        result = await result
    return result
