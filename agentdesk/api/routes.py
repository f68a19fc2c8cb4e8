"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from agentdesk.api.handlers import handle_chat, resolve_conversation_id, sse_events
from agentdesk.schemas.chat import ChatRequest, ChatResponse, MemoryResponse
from agentdesk.services.agent_service import get_memory_store

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Support agent backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat (HTTP) ---

@router.post(
    "/chat",
    response_model=ChatResponse,
    tags=["chat"],
    summary="Ask the support agent (sync)",
    description="Send a question and optional conversationId; receive answer, citations, confidence. 502 on invalid planner output, 503 when a model or store is unavailable.",
)
def post_chat(body: ChatRequest) -> ChatResponse:
    logger.info("[api:post_chat] IN  question=%r conversation_id=%s", body.question, body.conversation_id)
    return handle_chat(body)


@router.post(
    "/chat/stream",
    tags=["chat"],
    summary="Ask the support agent (SSE)",
    description="Same pipeline as POST /chat. Events: plan, answer (the full sanitized answer as one chunk), done, error.",
)
def post_chat_stream(body: ChatRequest) -> StreamingResponse:
    logger.info("[api:post_chat_stream] IN  question=%r conversation_id=%s", body.question, body.conversation_id)
    return StreamingResponse(
        sse_events(body),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# --- Memory ---

@router.get("/chat/{conversation_id}/memory", response_model=MemoryResponse, tags=["memory"], summary="Show conversation memory")
def get_memory(conversation_id: str) -> MemoryResponse:
    cid = resolve_conversation_id(conversation_id)
    memory = get_memory_store().get(cid)
    return MemoryResponse(conversation_id=cid, memory=dict(memory.snapshot()) if memory else {})


@router.delete("/chat/{conversation_id}/memory", tags=["memory"], summary="Forget conversation memory")
def delete_memory(conversation_id: str) -> dict:
    cid = resolve_conversation_id(conversation_id)
    get_memory_store().remove(cid)
    return {"cleared": True, "conversationId": cid}
