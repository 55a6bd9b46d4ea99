"""Dispatches tool calls requested by the model and wraps errors."""

import inspect
import json
import logging
from typing import (
    Any,
    Dict,
    Sequence,
)

from pydantic_core import to_json

from agentkit.core.schema import (
    ToolCallRequest,
    ToolMessage,
)
from agentkit.errors import (
    ToolArgumentError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agentkit.tools import Tool

logger = logging.getLogger(__name__)


def find_tool(tools: Sequence[Tool], name: str) -> Tool:
    """Return the first tool called *name*, or raise :class:`ToolNotFoundError`."""
    for candidate in tools:
        if candidate.name == name:
            return candidate
    raise ToolNotFoundError(name)


def parse_tool_arguments(tool: Tool, raw_arguments: str) -> Dict[str, Any]:
    """
    Decode the JSON argument string of a tool call and validate it.

    Raises
    ------
    ToolArgumentError
        If *raw_arguments* is not a JSON object or fails the tool's typed parameters.
    """
    try:
        decoded = json.loads(raw_arguments)
    except json.JSONDecodeError as exc:
        raise ToolArgumentError(tool.name, raw_arguments, f"malformed JSON ({exc})") from exc
    if not isinstance(decoded, dict):
        raise ToolArgumentError(tool.name, raw_arguments, "arguments must be a JSON object")

    try:
        return tool.parse_arguments(decoded)
    except ValueError as exc:
        raise ToolArgumentError(tool.name, raw_arguments, str(exc)) from exc


def _check_signature(tool: Tool, args: Dict[str, Any]) -> None:
    try:
        signature = inspect.signature(tool.execute)
    except (TypeError, ValueError):
        return  # builtins without an introspectable signature
    try:
        signature.bind(**args)
    except TypeError as exc:
        raise ToolArgumentError(tool.name, json.dumps(args, default=str), str(exc)) from exc


async def execute_tool(tool: Tool, args: Dict[str, Any] | None = None) -> Any:
    """
    Invoke *tool* with *args* as keyword arguments and await the result if needed.

    Parameters
    ----------
    tool:
        The tool to run.
    args:
        Keyword arguments to pass verbatim to the tool function.  If *None*, an empty dict is
        assumed.

    Returns
    -------
    Any
        Whatever the tool function returns (or its awaitable resolves to).

    Raises
    ------
    ToolArgumentError
        If the arguments do not fit the function signature.
    ToolExecutionError
        If the tool itself raises; the original exception is chained as ``__cause__``.
    """
    if args is None:
        args = {}

    _check_signature(tool, args)

    try:
        logger.debug("Executing tool '%s' with args=%s", tool.name, args)
        result = tool.execute(**args)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error in tool '%s'", tool.name)
        raise ToolExecutionError(tool.name, str(exc)) from exc


def serialize_result(result: Any) -> str:
    """JSON-encode a tool result; pydantic models, dataclasses and datetimes are supported."""
    return to_json(result, fallback=str).decode("utf-8")


async def run_tool_call(tools: Sequence[Tool], call: ToolCallRequest) -> ToolMessage:
    """Resolve, execute and serialize one function tool call into a tool-role message."""
    tool = find_tool(tools, call.function.name)
    args = parse_tool_arguments(tool, call.function.arguments)
    result = await execute_tool(tool, args)
    logger.info("Tool '%s' returned: %s", tool.name, result)
    return ToolMessage(content=serialize_result(result), tool_call_id=call.id)
