"""
Shared fixtures: scripted LLMs and a canned retriever so agent tests need no OpenAI, HF or Milvus.
"""

import json
from typing import Any

import pytest

from agentdesk.agent.graph import AgentOrchestrator, AnswerSynthesizer, LLMPlanner
from agentdesk.agent.tools import ToolRegistry
from agentdesk.core.memory_store import InMemoryMemoryStore
from agentdesk.services.retrieval_service import RetrievalResult


class ScriptedChatModel:
    """ChatModel stand-in: returns queued responses in order and records every call."""

    def __init__(self, *responses: Any) -> None:
        self._queued = [r if isinstance(r, str) else json.dumps(r) for r in responses]
        self.calls: list[dict[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        if not self._queued:
            raise AssertionError("ScriptedChatModel received a call with no queued responses.")
        self.calls.append({"system": system_prompt, "user": user_prompt})
        return self._queued.pop(0)


class CannedRetriever:
    def __init__(self, result: RetrievalResult | None = None) -> None:
        self.result = result or RetrievalResult()
        self.questions: list[str] = []

    def retrieve(self, question: str) -> RetrievalResult:
        self.questions.append(question)
        return self.result


def plan_json(needs_retrieval: bool, needs_tool: bool, tool_name: str | None = None, tool_argument: str | None = None) -> dict:
    return {
        "needsRetrieval": needs_retrieval,
        "needsTool": needs_tool,
        "toolName": tool_name,
        "toolArgument": tool_argument,
    }


POLICY_RESULT = RetrievalResult(
    context="[DOC] returns.md (chunk_id=0)\nDamaged items can be returned within 30 days.",
    citations=("returns.md#chunk=0",),
)


@pytest.fixture
def memory_store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def make_orchestrator(memory_store: InMemoryMemoryStore):
    """Factory: make_orchestrator(planner_model, answer_model, retriever=..., tools=...)."""

    def _make(planner_model, answer_model=None, retriever=None, tools=None, **kwargs) -> AgentOrchestrator:
        return AgentOrchestrator(
            planner=LLMPlanner(planner_model),
            synthesizer=AnswerSynthesizer(answer_model or ScriptedChatModel()),
            retriever=retriever or CannedRetriever(POLICY_RESULT),
            tools=tools or ToolRegistry(),
            memory_store=memory_store,
            **kwargs,
        )

    return _make
