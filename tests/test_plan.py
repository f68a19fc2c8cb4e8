"""
Unit tests for the planner-output parser.
"""

import pytest

from agentdesk.agent.plan import Plan, is_valid_tool_argument, parse_plan
from agentdesk.core.errors import PlanParseError


class TestParsePlanAccepts:
    """Valid planner outputs."""

    def test_policy_only_intent(self) -> None:
        plan = parse_plan('{"needsRetrieval": true, "needsTool": false, "toolArgument": null}')
        assert plan.needs_retrieval is True
        assert plan.needs_tool is False
        assert plan.tool_argument is None
        assert plan.tool_name is None

    def test_tool_only_intent_without_tool_name(self) -> None:
        plan = parse_plan('{"needsRetrieval": false, "needsTool": true, "toolArgument": "12345"}')
        assert plan.needs_retrieval is False
        assert plan.needs_tool is True
        assert plan.tool_argument == "12345"
        assert plan.tool_name == "getOrderStatus"

    def test_mixed_intent(self) -> None:
        plan = parse_plan(
            '{"needsRetrieval": true, "needsTool": true, "toolName": "getOrderStatus", "toolArgument": "98765"}'
        )
        assert plan == Plan(True, True, "getOrderStatus", "98765")

    def test_code_fenced_json(self) -> None:
        text = '```json\n{"needsRetrieval": false, "needsTool": false, "toolName": null, "toolArgument": null}\n```'
        assert parse_plan(text) == Plan(False, False, None, None)

    def test_plan_is_immutable(self) -> None:
        plan = parse_plan('{"needsRetrieval": true, "needsTool": false}')
        with pytest.raises(AttributeError):
            plan.needs_tool = True  # type: ignore[misc]

    def test_to_dict_uses_wire_names(self) -> None:
        assert Plan(True, False).to_dict() == {
            "needsRetrieval": True,
            "needsTool": False,
            "toolName": None,
            "toolArgument": None,
        }


class TestParsePlanRejects:
    """Every rule violation raises PlanParseError; nothing partial is returned."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            "[true, false]",
            '{"needsRetrieval": true, "needsTool": false, "extra": 1}',
            '{"needsTool": false}',
            '{"needsRetrieval": "yes", "needsTool": false}',
            '{"needsRetrieval": 1, "needsTool": false}',
            '{"needsRetrieval": true, "needsTool": false, "toolName": 5}',
            '{"needsRetrieval": true, "needsTool": true, "toolName": "getPolicy", "toolArgument": "1"}',
            '{"needsRetrieval": true, "needsTool": true, "toolName": "  ", "toolArgument": "1"}',
            '{"needsRetrieval": false, "needsTool": true, "toolName": "getOrderStatus", "toolArgument": null}',
            '{"needsRetrieval": false, "needsTool": true, "toolArgument": "   "}',
            '{"needsRetrieval": false, "needsTool": false, "toolName": "getOrderStatus", "toolArgument": null}',
            '{"needsRetrieval": false, "needsTool": false, "toolName": null, "toolArgument": "123"}',
        ],
    )
    def test_invalid_plans_raise(self, text: str) -> None:
        with pytest.raises(PlanParseError):
            parse_plan(text)

    def test_error_keeps_raw_text(self) -> None:
        with pytest.raises(PlanParseError) as exc_info:
            parse_plan('{"needsRetrieval": true, "needsTool": false, "foo": 1}')
        assert exc_info.value.raw == '{"needsRetrieval": true, "needsTool": false, "foo": 1}'
        assert "unknown field foo" in str(exc_info.value)
        assert "Invalid planner JSON" in str(exc_info.value)


class TestToolArgumentShape:
    def test_digits_are_valid(self) -> None:
        assert is_valid_tool_argument("12345")

    @pytest.mark.parametrize("value", [None, "", "12a", "#123", " 123", "12 34"])
    def test_non_digits_are_invalid(self, value) -> None:
        assert not is_valid_tool_argument(value)

    @pytest.mark.parametrize("value", ["１２３", "١٢٣٤٥", "12３"])
    def test_non_ascii_digits_are_invalid(self, value) -> None:
        assert not is_valid_tool_argument(value)


def test_deeply_nested_json_is_a_parse_error() -> None:
    with pytest.raises(PlanParseError):
        parse_plan("[" * 100000 + "]" * 100000)
