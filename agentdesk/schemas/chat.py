"""Schemas for the chat endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Request body for POST /chat and POST /chat/stream. Memory is stored server-side by conversationId."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., min_length=1, description="User question for the agent.")
    conversation_id: str | None = Field(
        None,
        alias="conversationId",
        description="Conversation ID; memory (last order id/status) is kept on the server per conversation. Defaults to 'default'.",
    )


class ChatResponse(BaseModel):
    """Response for POST /chat."""

    answer: str = Field(..., description="Final sanitized answer.")
    citations: list[str] = Field(default_factory=list, description="Sources of retrieved policy context (empty unless retrieval was used).")
    confidence: Literal["low", "medium", "high"] = Field(..., description="low for fixed fallback answers, medium for model answers.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "answer": "Policy:\nDamaged items can be returned within 30 days.\nSystem:\nOrder 98765 is IN_TRANSIT.",
                    "citations": ["returns_policy.md#chunk=2"],
                    "confidence": "medium",
                }
            ]
        }
    }


class MemoryResponse(BaseModel):
    """Snapshot of one conversation's memory."""

    conversation_id: str = Field(..., serialization_alias="conversationId")
    memory: dict = Field(default_factory=dict)
