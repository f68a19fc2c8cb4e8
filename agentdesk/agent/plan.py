"""
Plan schema and planner-output parser.

The planner LLM returns JSON shaped like:
    {"needsRetrieval": bool, "needsTool": bool, "toolName": "getOrderStatus"|null, "toolArgument": str|null}
parse_plan() either returns a valid Plan or raises PlanParseError; it never returns a partial plan.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from agentdesk.core.errors import PlanParseError

ORDER_STATUS_TOOL = "getOrderStatus"
SUPPORTED_TOOLS: frozenset[str] = frozenset({ORDER_STATUS_TOOL})

ALLOWED_FIELDS: frozenset[str] = frozenset({"needsRetrieval", "needsTool", "toolName", "toolArgument"})

ORDER_ID_PATTERN = re.compile(r"[0-9]+")

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class Plan:
    """Per-turn planning decision. Created fresh for each request."""

    needs_retrieval: bool
    needs_tool: bool
    tool_name: str | None = None
    tool_argument: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "needsRetrieval": self.needs_retrieval,
            "needsTool": self.needs_tool,
            "toolName": self.tool_name,
            "toolArgument": self.tool_argument,
        }


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def is_valid_tool_argument(value: str | None) -> bool:
    """True when value has the numeric order-id shape."""
    return value is not None and ORDER_ID_PATTERN.fullmatch(value) is not None


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(1) if match else text


def parse_plan(text: str) -> Plan:
    """Parse and validate raw planner output. Raises PlanParseError on any violation."""
    raw = text or ""
    try:
        node = json.loads(_strip_code_fence(raw.strip()))
    except json.JSONDecodeError as e:
        raise PlanParseError(f"not JSON ({e.msg})", raw) from e
    except RecursionError as e:
        raise PlanParseError("JSON nested too deeply", raw) from e
    if not isinstance(node, dict):
        raise PlanParseError("planner JSON must be an object", raw)

    unknown = sorted(set(node) - ALLOWED_FIELDS)
    if unknown:
        raise PlanParseError(f"unknown field {unknown[0]}", raw)

    # bool check must exclude ints: json 0/1 are not booleans here
    needs_retrieval = node.get("needsRetrieval")
    needs_tool = node.get("needsTool")
    if not isinstance(needs_retrieval, bool):
        raise PlanParseError("needsRetrieval must be a boolean", raw)
    if not isinstance(needs_tool, bool):
        raise PlanParseError("needsTool must be a boolean", raw)

    tool_name = node.get("toolName")
    tool_argument = node.get("toolArgument")
    if tool_name is not None and not isinstance(tool_name, str):
        raise PlanParseError("toolName must be a string or null", raw)
    if tool_argument is not None and not isinstance(tool_argument, str):
        raise PlanParseError("toolArgument must be a string or null", raw)

    if needs_tool:
        if tool_name is None and len(SUPPORTED_TOOLS) == 1:
            # schema admits a single tool name; an omitted name means that tool
            (tool_name,) = SUPPORTED_TOOLS
        if is_blank(tool_name):
            raise PlanParseError("toolName required", raw)
        if tool_name not in SUPPORTED_TOOLS:
            raise PlanParseError(f"unsupported toolName {tool_name}", raw)
        if is_blank(tool_argument):
            raise PlanParseError("toolArgument required", raw)
    elif tool_name is not None or tool_argument is not None:
        raise PlanParseError("tool fields must be null when needsTool is false", raw)

    return Plan(
        needs_retrieval=needs_retrieval,
        needs_tool=needs_tool,
        tool_name=tool_name,
        tool_argument=tool_argument,
    )
