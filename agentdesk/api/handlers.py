"""
API handlers: read request data, call the agent, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so the agent stays free of FastAPI/HTTP types.
"""

import json
import logging
from typing import Iterator

from fastapi import HTTPException

from agentdesk.core.config import DEFAULT_CONVERSATION_ID
from agentdesk.core.errors import PlanParseError, ServiceUnavailableError
from agentdesk.schemas.chat import ChatRequest, ChatResponse
from agentdesk.services.agent_service import get_orchestrator

logger = logging.getLogger(__name__)


def resolve_conversation_id(conversation_id: str | None) -> str:
    """Blank or missing conversation ids share the default conversation."""
    if conversation_id is None or not conversation_id.strip():
        return DEFAULT_CONVERSATION_ID
    return conversation_id.strip()


def handle_chat(body: ChatRequest) -> ChatResponse:
    """
    Run one agent turn. Fixed fallback answers (missing order id, no documents, tool failure)
    are normal 200 responses; a bad plan maps to 502 and an unavailable model/store to 503.
    """
    conversation_id = resolve_conversation_id(body.conversation_id)
    try:
        result = get_orchestrator().run(body.question, conversation_id)
    except PlanParseError as e:
        logger.warning("[api:chat] planner output rejected: %s", e)
        raise HTTPException(status_code=502, detail=f"Planner returned an invalid plan: {e.message}") from e
    except ServiceUnavailableError as e:
        logger.warning("[api:chat] dependency unavailable: %s", e.message)
        raise HTTPException(status_code=503, detail=e.message) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("[api:chat] OUT outcome=%s citations=%d", result.outcome.value, len(result.answer.citations))
    return ChatResponse(**result.answer.to_dict())


def sse_events(body: ChatRequest) -> Iterator[str]:
    """Yield Server-Sent Events for one turn. The answer arrives as a single `answer` event."""
    conversation_id = resolve_conversation_id(body.conversation_id)
    for evt in get_orchestrator().run_stream(body.question, conversation_id):
        event_type = evt.pop("event", "")
        yield f"event: {event_type}\ndata: {json.dumps(evt)}\n\n"
