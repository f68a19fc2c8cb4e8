"""
Agent tools: deterministic, code-owned operations the planner can request.

Tools: getOrderStatus (stubbed order data source). The LLM never calls tools directly;
the agent graph invokes them through ToolRegistry with a validated argument.
"""

import logging
from typing import Any, Callable, Mapping

from agentdesk.agent.plan import ORDER_ID_PATTERN, ORDER_STATUS_TOOL
from agentdesk.core.errors import ToolExecutionError, UnknownToolError

logger = logging.getLogger(__name__)

# OpenAI function-calling format: list of tool definitions (discovery / MCP listing)
TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": ORDER_STATUS_TOOL,
            "description": "Get the current status of an order by orderId. Use when the user asks about an order status, tracking, or delivery.",
            "parameters": {
                "type": "object",
                "properties": {
                    "orderId": {
                        "type": "string",
                        "description": "Numeric order id (e.g. 12345)",
                    }
                },
                "required": ["orderId"],
            },
        },
    },
]


def get_order_status(order_id: str) -> dict[str, Any]:
    """Order status lookup. Stubbed data for now (later a DB / REST source)."""
    order_id = (order_id or "").strip()
    if not ORDER_ID_PATTERN.fullmatch(order_id):
        raise ToolExecutionError(f"invalid orderId {order_id!r}")
    return {
        "orderId": order_id,
        "status": "IN_TRANSIT",
        "estimatedDelivery": "2026-01-07",
    }


class ToolRegistry:
    """Name -> callable(argument) -> mapping."""

    def __init__(self, tools: Mapping[str, Callable[[str], Mapping[str, Any]]] | None = None) -> None:
        self._tools = dict(tools) if tools is not None else {ORDER_STATUS_TOOL: get_order_status}

    def names(self) -> list[str]:
        return sorted(self._tools)

    def invoke(self, name: str, argument: str) -> Mapping[str, Any]:
        """Run a tool. Raises UnknownToolError / ToolExecutionError on failure."""
        logger.info("[tools] invoke name=%r argument=%r", name, argument)
        fn = self._tools.get(name)
        if fn is None:
            raise UnknownToolError(f"Unknown tool: {name}")
        result = fn(argument)
        logger.info("[tools] invoke name=%r OUT keys=%s", name, sorted(result))
        return result


def format_tool_result(result: Mapping[str, Any]) -> str:
    """TOOL_RESULT block with one `key: value` line per field."""
    lines = [f"{key}: {value}" for key, value in result.items()]
    return "TOOL_RESULT:\n" + "\n".join(lines)
