"""Simple agent that repeats its input back."""
from __future__ import annotations

from typing import Any, Dict

from personal_ai.agents.base import Agent
from personal_ai.core.models import ParameterDefinition, ParameterType

MAX_REPEAT = 10


class EchoAgent(Agent):
    """Echoes text, optionally repeated and upper-cased."""

    id = "echo"
    name = "Echo Agent"
    description = "Repeats the provided text back to the caller"
    parameters = (
        ParameterDefinition(
            name="text",
            type=ParameterType.STRING,
            required=True,
            description="Text to echo",
        ),
        ParameterDefinition(
            name="repeat",
            type=ParameterType.NUMBER,
            description="How many times to repeat the text",
            default=1,
        ),
        ParameterDefinition(
            name="uppercase",
            type=ParameterType.BOOLEAN,
            description="Upper-case the echoed text",
            default=False,
        ),
    )

    async def execute(self, params: Dict[str, Any]) -> str:
        repeat = params.get("repeat", 1)
        if not 1 <= repeat <= MAX_REPEAT or repeat != int(repeat):
            raise ValueError(f"Invalid input: repeat must be a whole number between 1 and {MAX_REPEAT}")

        text = params["text"]
        if params.get("uppercase"):
            text = text.upper()
        return " ".join([text] * int(repeat))


agent = EchoAgent()
