"""
Deterministic plan overrides.

The planner model under-detects operational intent, so fixed string rules re-derive
tool/retrieval needs from the raw question. Rules only ever add requirements: a flag
the model set to true is never cleared.

Known false positive: a question that matches an order keyword and contains an
unrelated number (e.g. "order 2 more shirts") is still treated as an order lookup.
"""

import logging
import re
from dataclasses import replace
from typing import Iterable, Protocol

from agentdesk.agent.plan import ORDER_STATUS_TOOL, Plan, is_blank

logger = logging.getLogger(__name__)

ORDER_INTENT_KEYWORDS: tuple[str, ...] = (
    "order status",
    "where is my order",
    "tracking",
    "track",
    "delivery",
    "shipment",
    "shipping",
    "order ",
)

POLICY_INTENT_KEYWORDS: tuple[str, ...] = (
    "return",
    "refund",
    "damaged",
    "warranty",
    "exchange",
    "cancel",
    "policy",
)

_DIGIT_RUN = re.compile(r"[0-9]+")


def extract_order_id(question: str) -> str | None:
    """First maximal run of ASCII digits in the question, or None."""
    match = _DIGIT_RUN.search(question or "")
    return match.group(0) if match else None


class OverrideRule(Protocol):
    def apply(self, plan: Plan, question: str) -> Plan: ...


class OrderIntentRule:
    """Force the order-status tool when the question names an order keyword and an id."""

    def __init__(self, keywords: Iterable[str] = ORDER_INTENT_KEYWORDS, tool_name: str = ORDER_STATUS_TOOL) -> None:
        self.keywords = tuple(keywords)
        self.tool_name = tool_name

    def apply(self, plan: Plan, question: str) -> Plan:
        order_id = extract_order_id(question)
        if order_id is None:
            return plan
        lowered = (question or "").lower()
        if not any(k in lowered for k in self.keywords):
            return plan
        return replace(
            plan,
            needs_tool=True,
            tool_name=self.tool_name if is_blank(plan.tool_name) else plan.tool_name,
            tool_argument=order_id if is_blank(plan.tool_argument) else plan.tool_argument,
        )


class PolicyIntentRule:
    """Require retrieval when the question mentions returns, refunds, damage and similar policy topics."""

    def __init__(self, keywords: Iterable[str] = POLICY_INTENT_KEYWORDS) -> None:
        self.keywords = tuple(keywords)

    def apply(self, plan: Plan, question: str) -> Plan:
        if plan.needs_retrieval:
            return plan
        lowered = (question or "").lower()
        if any(k in lowered for k in self.keywords):
            return replace(plan, needs_retrieval=True)
        return plan


class OverrideEngine:
    """Applies rules in order. Each rule sees the output of the previous one."""

    def __init__(self, rules: Iterable[OverrideRule] | None = None) -> None:
        self.rules = list(rules) if rules is not None else [OrderIntentRule(), PolicyIntentRule()]

    def apply(self, plan: Plan, question: str) -> Plan:
        result = plan
        for rule in self.rules:
            result = rule.apply(result, question)
        if result != plan:
            logger.info("[overrides:apply] plan changed %s -> %s", plan.to_dict(), result.to_dict())
        return result
