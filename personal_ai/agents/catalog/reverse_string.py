"""Agent that reverses a piece of text."""
from __future__ import annotations

from typing import Any, Dict

from personal_ai.agents.base import Agent
from personal_ai.core.models import ParameterDefinition, ParameterType


class ReverseStringAgent(Agent):
    id = "reverseString"
    name = "Reverse String Agent"
    description = "Reverses the provided string input"
    parameters = (
        ParameterDefinition(
            name="text",
            type=ParameterType.STRING,
            required=True,
            description="The text that will be reversed",
        ),
    )

    async def execute(self, params: Dict[str, Any]) -> str:
        text = params.get("text")
        if not text:
            raise ValueError("Invalid input: Text parameter is required")
        return text[::-1]


agent = ReverseStringAgent()
