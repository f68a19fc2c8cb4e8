"""
Agent: wire the planner, retriever, tools, memory store and answer model into one orchestrator.

Responsibility: Build the process-wide AgentOrchestrator and memory store from config.
Called by the API; no HTTP here.
"""

import logging
from functools import lru_cache

from agentdesk.agent.graph import AgentOrchestrator, AnswerSynthesizer, LLMPlanner
from agentdesk.agent.llm import get_chat_model
from agentdesk.agent.tools import ToolRegistry
from agentdesk.core.config import ANSWER_MAX_TOKENS, PLANNER_MAX_TOKENS, RETRIEVAL_TOP_K
from agentdesk.core.memory_store import MemoryStore, create_memory_store
from agentdesk.services.retrieval_service import MilvusRetriever

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_memory_store() -> MemoryStore:
    return create_memory_store()


@lru_cache(maxsize=1)
def get_orchestrator() -> AgentOrchestrator:
    """Process-wide orchestrator. Stateless across turns apart from the memory store."""
    logger.info("[agent_service] building orchestrator")
    return AgentOrchestrator(
        planner=LLMPlanner(get_chat_model(PLANNER_MAX_TOKENS)),
        synthesizer=AnswerSynthesizer(get_chat_model(ANSWER_MAX_TOKENS)),
        retriever=MilvusRetriever(top_k=RETRIEVAL_TOP_K),
        tools=ToolRegistry(),
        memory_store=get_memory_store(),
    )
