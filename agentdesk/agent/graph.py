"""
LangGraph agent: make_plan → apply_overrides → validate_plan → (retrieve_context) → (run_tool)
→ generate_answer → sanitize_answer.

Exactly two LLM calls per answered turn (planner, answer), at most one retrieval and one
tool call, all sequential. Expected dead ends (missing/invalid order id, empty retrieval,
tool failure) end the graph early with a fixed low-confidence answer and a TurnOutcome.
PlanParseError and ModelCallError propagate to the caller.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Protocol, TypedDict

from langgraph.graph import END, StateGraph

from agentdesk.agent.llm import ChatModel
from agentdesk.agent.overrides import OverrideEngine
from agentdesk.agent.plan import Plan, is_blank, is_valid_tool_argument, parse_plan
from agentdesk.agent.prompts import (
    ANSWER_SYSTEM_PROMPT,
    PLANNER_SYSTEM_PROMPT,
    build_answer_prompt,
    build_planner_prompt,
)
from agentdesk.agent.sanitizer import sanitize
from agentdesk.agent.tools import ToolRegistry, format_tool_result
from agentdesk.core.memory_store import LAST_ORDER_ID, LAST_ORDER_STATUS, ConversationMemory, MemoryStore
from agentdesk.services.retrieval_service import RetrievalResult

logger = logging.getLogger(__name__)

MISSING_ORDER_ID_ANSWER = "Missing required orderId for tool execution."
INVALID_ORDER_ID_ANSWER = "Invalid orderId format. Please provide a numeric order id."
NO_DOCUMENTS_ANSWER = "I couldn't find any relevant policy documents to answer that."
TOOL_FAILED_ANSWER = "Order status lookup failed for order {argument}."


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"  # reserved; never emitted


class TurnOutcome(str, Enum):
    ANSWERED = "answered"
    MISSING_TOOL_ARGUMENT = "missing_tool_argument"
    INVALID_TOOL_ARGUMENT = "invalid_tool_argument"
    EMPTY_RETRIEVAL = "empty_retrieval"
    TOOL_FAILED = "tool_failed"


@dataclass(frozen=True)
class AgentAnswer:
    answer: str
    citations: tuple[str, ...] = ()
    confidence: Confidence = Confidence.LOW

    def to_dict(self) -> dict[str, Any]:
        return {"answer": self.answer, "citations": list(self.citations), "confidence": self.confidence.value}


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one turn. Callers match on outcome instead of catching exceptions."""

    outcome: TurnOutcome
    answer: AgentAnswer
    plan: Plan | None = None
    timings: dict[str, float] = field(default_factory=dict)


def _fallback(outcome: TurnOutcome, text: str, plan: Plan, timings: dict[str, float]) -> TurnResult:
    return TurnResult(outcome, AgentAnswer(text, (), Confidence.LOW), plan, dict(timings))


class Retriever(Protocol):
    def retrieve(self, question: str) -> RetrievalResult: ...


class LLMPlanner:
    """Planner stage: memory-enriched prompt → planner LLM → parse_plan."""

    def __init__(self, model: ChatModel) -> None:
        self.model = model

    def plan(self, question: str, snapshot: Mapping[str, Any]) -> Plan:
        prompt = build_planner_prompt(question, snapshot)
        raw = self.model.complete(PLANNER_SYSTEM_PROMPT, prompt)
        logger.info("[graph:plan] llm_raw=%r", raw)
        return parse_plan(raw)


class AnswerSynthesizer:
    """Answer stage: assemble the final prompt and call the answer LLM once."""

    def __init__(self, model: ChatModel) -> None:
        self.model = model

    def synthesize(self, question: str, snapshot: Mapping[str, Any], context_block: str, tool_block: str) -> str:
        prompt = build_answer_prompt(question, snapshot, context_block, tool_block)
        logger.info("[graph:answer] prompt_len=%d", len(prompt))
        return self.model.complete(ANSWER_SYSTEM_PROMPT, prompt)


class TurnState(TypedDict):
    question: str
    memory: ConversationMemory
    snapshot: Mapping[str, Any]
    plan: Plan | None
    context_block: str
    citations: tuple[str, ...]
    tool_block: str
    raw_answer: str
    result: TurnResult | None
    timings: dict[str, float]


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


class AgentOrchestrator:
    """
    One configurable pipeline. Every stage is injectable: planner, override engine,
    retriever, tool registry, synthesizer and sanitizer.
    """

    def __init__(
        self,
        planner: LLMPlanner,
        synthesizer: AnswerSynthesizer,
        retriever: Retriever,
        tools: ToolRegistry,
        memory_store: MemoryStore,
        override_engine: OverrideEngine | None = None,
        sanitizer: Callable[[str, bool, bool], str] = sanitize,
    ) -> None:
        self.planner = planner
        self.synthesizer = synthesizer
        self.retriever = retriever
        self.tools = tools
        self.memory_store = memory_store
        self.override_engine = override_engine or OverrideEngine()
        self.sanitizer = sanitizer
        self.graph = self.build_graph()

    # --- nodes ---

    def _plan_node(self, state: TurnState) -> dict:
        logger.info("[graph:plan] IN  question=%r memory_keys=%s", state["question"], sorted(state["snapshot"]))
        started = time.perf_counter()
        plan = self.planner.plan(state["question"], state["snapshot"])
        logger.info("[graph:plan] OUT plan=%s", plan.to_dict())
        return {"plan": plan, "timings": {**state["timings"], "planner_ms": _elapsed_ms(started)}}

    def _override_node(self, state: TurnState) -> dict:
        # overrides read the raw question, never the memory-enriched prompt
        plan = self.override_engine.apply(state["plan"], state["question"])
        logger.info("[graph:override] OUT plan=%s", plan.to_dict())
        return {"plan": plan}

    def _validate_node(self, state: TurnState) -> dict:
        plan = state["plan"]
        if not plan.needs_tool:
            return {}
        if is_blank(plan.tool_argument):
            logger.info("[graph:validate] needsTool with no orderId -> %s", TurnOutcome.MISSING_TOOL_ARGUMENT.value)
            return {"result": _fallback(TurnOutcome.MISSING_TOOL_ARGUMENT, MISSING_ORDER_ID_ANSWER, plan, state["timings"])}
        if not is_valid_tool_argument(plan.tool_argument):
            logger.info("[graph:validate] orderId=%r not numeric -> %s", plan.tool_argument, TurnOutcome.INVALID_TOOL_ARGUMENT.value)
            return {"result": _fallback(TurnOutcome.INVALID_TOOL_ARGUMENT, INVALID_ORDER_ID_ANSWER, plan, state["timings"])}
        return {}

    def _retrieve_node(self, state: TurnState) -> dict:
        logger.info("[graph:retrieve] IN  question=%r", state["question"])
        started = time.perf_counter()
        retrieved = self.retriever.retrieve(state["question"])
        timings = {**state["timings"], "retrieval_ms": _elapsed_ms(started)}
        logger.info("[graph:retrieve] OUT citations=%d context_len=%d elapsed_ms=%.1f",
                    len(retrieved.citations), len(retrieved.context or ""), timings["retrieval_ms"])
        if not (retrieved.context or "").strip():
            return {
                "timings": timings,
                "result": _fallback(TurnOutcome.EMPTY_RETRIEVAL, NO_DOCUMENTS_ANSWER, state["plan"], timings),
            }
        return {
            "context_block": "CONTEXT:\n" + retrieved.context.strip(),
            "citations": tuple(retrieved.citations),
            "timings": timings,
        }

    def _tool_node(self, state: TurnState) -> dict:
        plan = state["plan"]
        logger.info("[graph:run_tool] IN  tool=%s argument=%r", plan.tool_name, plan.tool_argument)
        started = time.perf_counter()
        try:
            result = self.tools.invoke(plan.tool_name, plan.tool_argument)
        except Exception:
            # any collaborator failure ends the turn with a fixed answer, never an HTTP error
            logger.exception("[graph:run_tool] tool %s failed for %r", plan.tool_name, plan.tool_argument)
            timings = {**state["timings"], "tool_ms": _elapsed_ms(started)}
            text = TOOL_FAILED_ANSWER.format(argument=plan.tool_argument)
            return {"timings": timings, "result": _fallback(TurnOutcome.TOOL_FAILED, text, plan, timings)}
        timings = {**state["timings"], "tool_ms": _elapsed_ms(started)}
        memory = state["memory"]
        memory.put(LAST_ORDER_ID, plan.tool_argument)
        memory.put(LAST_ORDER_STATUS, result.get("status"))
        logger.info("[graph:run_tool] OUT status=%r elapsed_ms=%.1f", result.get("status"), timings["tool_ms"])
        return {"tool_block": format_tool_result(result), "timings": timings}

    def _answer_node(self, state: TurnState) -> dict:
        started = time.perf_counter()
        raw = self.synthesizer.synthesize(state["question"], state["snapshot"], state["context_block"], state["tool_block"])
        logger.info("[graph:answer] OUT answer_len=%d", len(raw))
        logger.debug("[graph:answer] OUT answer_full=%r", raw)
        return {"raw_answer": raw, "timings": {**state["timings"], "answer_ms": _elapsed_ms(started)}}

    def _sanitize_node(self, state: TurnState) -> dict:
        plan = state["plan"]
        has_context = bool(state["context_block"].strip())
        has_tool_result = bool(state["tool_block"].strip())
        text = self.sanitizer(state["raw_answer"], has_context, has_tool_result)
        citations = state["citations"] if plan.needs_retrieval else ()
        logger.info("[graph:sanitize] has_context=%s has_tool_result=%s citations=%d answer_len=%d",
                    has_context, has_tool_result, len(citations), len(text))
        answer = AgentAnswer(text, tuple(citations), Confidence.MEDIUM)
        return {"result": TurnResult(TurnOutcome.ANSWERED, answer, plan, dict(state["timings"]))}

    # --- routing ---

    @staticmethod
    def _route_after_validate(state: TurnState) -> str:
        if state.get("result") is not None:
            return "end"
        plan = state["plan"]
        if plan.needs_retrieval:
            return "retrieve"
        return "run_tool" if plan.needs_tool else "answer"

    @staticmethod
    def _route_after_retrieve(state: TurnState) -> str:
        if state.get("result") is not None:
            return "end"
        return "run_tool" if state["plan"].needs_tool else "answer"

    @staticmethod
    def _route_after_tool(state: TurnState) -> str:
        return "end" if state.get("result") is not None else "answer"

    def build_graph(self):
        """
        Build and compile the turn graph.
        make_plan → apply_overrides → validate_plan → [retrieve_context] → [run_tool]
        → generate_answer → sanitize_answer → END, with early exits to END after
        validate_plan, retrieve_context and run_tool.
        """
        graph = StateGraph(TurnState)

        graph.add_node("make_plan", self._plan_node)
        graph.add_node("apply_overrides", self._override_node)
        graph.add_node("validate_plan", self._validate_node)
        graph.add_node("retrieve_context", self._retrieve_node)
        graph.add_node("run_tool", self._tool_node)
        graph.add_node("generate_answer", self._answer_node)
        graph.add_node("sanitize_answer", self._sanitize_node)

        graph.set_entry_point("make_plan")
        graph.add_edge("make_plan", "apply_overrides")
        graph.add_edge("apply_overrides", "validate_plan")
        graph.add_conditional_edges(
            "validate_plan",
            self._route_after_validate,
            {"retrieve": "retrieve_context", "run_tool": "run_tool", "answer": "generate_answer", "end": END},
        )
        graph.add_conditional_edges(
            "retrieve_context",
            self._route_after_retrieve,
            {"run_tool": "run_tool", "answer": "generate_answer", "end": END},
        )
        graph.add_conditional_edges("run_tool", self._route_after_tool, {"answer": "generate_answer", "end": END})
        graph.add_edge("generate_answer", "sanitize_answer")
        graph.add_edge("sanitize_answer", END)

        return graph.compile()

    # --- entry points ---

    def _initial_state(self, question: str, memory: ConversationMemory) -> TurnState:
        return {
            "question": question,
            "memory": memory,
            "snapshot": memory.snapshot(),
            "plan": None,
            "context_block": "",
            "citations": (),
            "tool_block": "",
            "raw_answer": "",
            "result": None,
            "timings": {},
        }

    def run(self, question: str, conversation_id: str) -> TurnResult:
        """Run one turn synchronously and persist the conversation memory afterwards."""
        if not question or not str(question).strip():
            raise ValueError("question is required")
        q = str(question).strip()
        memory = self.memory_store.get_or_create(conversation_id)
        logger.info("[run_agent] START question=%r conversation_id=%s", q, conversation_id[:16])
        try:
            final = self.graph.invoke(self._initial_state(q, memory))
        finally:
            self.memory_store.put(conversation_id, memory)
        result: TurnResult = final["result"]
        logger.info("[run_agent] END outcome=%s confidence=%s timings=%s",
                    result.outcome.value, result.answer.confidence.value, result.timings)
        return result

    def run_stream(self, question: str, conversation_id: str) -> Iterator[dict]:
        """
        Same pipeline as run(); yields {"event": "plan", "plan": dict} once the plan is final,
        then the sanitized answer as a single {"event": "answer", "content": str},
        then {"event": "done", ...AgentAnswer fields, "outcome": str}; or {"event": "error", "message": str}.
        """
        if not question or not str(question).strip():
            yield {"event": "error", "message": "question is required"}
            return
        q = str(question).strip()
        memory = self.memory_store.get_or_create(conversation_id)
        logger.info("[run_agent_stream] START question=%r conversation_id=%s", q, conversation_id[:16])
        result: TurnResult | None = None
        try:
            for event in self.graph.stream(self._initial_state(q, memory)):
                # event: dict mapping node name to state update, e.g. {"apply_overrides": {"plan": Plan(...)}}
                for node_name, update in event.items():
                    update = update or {}
                    if node_name == "apply_overrides":
                        yield {"event": "plan", "plan": update["plan"].to_dict()}
                    if update.get("result") is not None:
                        result = update["result"]
            if result is None:
                raise RuntimeError("agent graph finished without a result")
            yield {"event": "answer", "content": result.answer.answer}
            yield {"event": "done", **result.answer.to_dict(), "outcome": result.outcome.value}
        except Exception as e:
            logger.exception("[run_agent_stream] Agent stream failed")
            yield {"event": "error", "message": str(e)}
        finally:
            self.memory_store.put(conversation_id, memory)
        logger.info("[run_agent_stream] END")
