"""Tool bridge exposing the built-in MCP tools through a single task call."""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Union

from personal_ai.core.errors import ToolError
from personal_ai.core.logging import logger
from personal_ai.core.models import McpError, McpErrorCode, McpResult, McpSuccess, McpTask

ToolHandler = Callable[[Dict[str, Any]], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]

FIXED_DATA_MESSAGE = "This is the fixed data from the MCP."


@dataclass(slots=True)
class MCPTool:
    """A named tool and the handler producing its result payload."""

    name: str
    description: str
    handler: ToolHandler

    async def execute(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = self.handler(params)
        if inspect.isawaitable(result):
            result = await result
        return result


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_fixed_data(params: Dict[str, Any]) -> Dict[str, Any]:
    return {"message": FIXED_DATA_MESSAGE}


def reverse_text(params: Dict[str, Any]) -> Dict[str, Any]:
    text = params.get("text")
    if not text or not isinstance(text, str):
        raise ToolError(
            McpErrorCode.INVALID_PARAMETERS,
            "Text parameter is required and must be a string",
        )
    return {"original": text, "reversed": text[::-1]}


def calculator(params: Dict[str, Any]) -> Dict[str, Any]:
    operation = params.get("operation")
    a = params.get("a")
    b = params.get("b")
    if not operation or not isinstance(operation, str) or not _is_number(a) or not _is_number(b):
        raise ToolError(
            McpErrorCode.INVALID_PARAMETERS,
            "Invalid parameters for calculator operation",
        )

    if operation == "add":
        result = a + b
    elif operation == "subtract":
        result = a - b
    elif operation == "multiply":
        result = a * b
    elif operation == "divide":
        if b == 0:
            raise ToolError(McpErrorCode.DIVISION_BY_ZERO, "Division by zero is not allowed")
        result = a / b
    else:
        raise ToolError(McpErrorCode.INVALID_OPERATION, f"Unknown operation: {operation}")
    return {"result": result}


BUILTIN_TOOLS = (
    MCPTool("get_fixed_data", "Returns a fixed predefined string.", get_fixed_data),
    MCPTool("reverse_text", "Reverses the provided text.", reverse_text),
    MCPTool(
        "calculator",
        "Performs add, subtract, multiply or divide on two numbers.",
        calculator,
    ),
)


class ToolBridge:
    """Catalogue of MCP tools with a dispatch boundary that never raises."""

    def __init__(self) -> None:
        self._tools: Dict[str, MCPTool] = {}

    @classmethod
    def with_builtin_tools(cls) -> ToolBridge:
        bridge = cls()
        for tool in BUILTIN_TOOLS:
            bridge.register(tool)
        return bridge

    def register(self, tool: MCPTool) -> None:
        self._tools[tool.name] = tool
        logger.info(f"Registered MCP tool: {tool.name}")

    def get(self, name: str) -> MCPTool:
        if name not in self._tools:
            raise KeyError(f"Task '{name}' not recognized")
        return self._tools[name]

    def list_tools(self) -> List[MCPTool]:
        return list(self._tools.values())

    async def process_task(self, task: McpTask) -> McpResult:
        """Run one task and convert every outcome into an ``McpResult``."""
        logger.info(f"Processing MCP task: {task.task_id}")
        try:
            tool = self.get(task.task_id)
        except KeyError:
            return McpError(McpErrorCode.TASK_NOT_FOUND, f"Task '{task.task_id}' not recognized")

        try:
            data = await tool.execute(task.params or {})
        except ToolError as exc:
            logger.warning(f"MCP task {task.task_id} failed: {exc.code.value} {exc.message}")
            return McpError(exc.code, exc.message)
        except Exception:  # noqa: BLE001
            logger.exception(f"Error processing MCP task: {task.task_id}")
            return McpError(
                McpErrorCode.INTERNAL_MCP_ERROR,
                "An internal error occurred while processing the task",
            )
        return McpSuccess(data)
