"""
Minimal MCP-style tool server: exposes the order-status tool and policy retrieval
as a standardized tool interface so external agents can call them directly.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from agentdesk.agent.plan import ORDER_STATUS_TOOL
from agentdesk.agent.tools import TOOL_DEFINITIONS, ToolRegistry
from agentdesk.core.errors import ServiceUnavailableError, ToolExecutionError
from agentdesk.services.retrieval_service import MilvusRetriever

logger = logging.getLogger(__name__)

# MCP tool schema for discovery / documentation
tools = [
    {
        "name": d["function"]["name"],
        "description": d["function"]["description"],
        "input_schema": {"orderId": "string (digits)"},
    }
    for d in TOOL_DEFINITIONS
] + [
    {
        "name": "search_documents",
        "description": "Search policy/FAQ documents using semantic retrieval",
        "input_schema": {"query": "string"},
    },
]

mcp_router = APIRouter(tags=["mcp"])
registry = ToolRegistry()
retriever = MilvusRetriever()


@mcp_router.get("/tools", summary="MCP tool discovery")
def mcp_list_tools() -> dict[str, list[dict[str, Any]]]:
    return {"tools": tools}


# --- getOrderStatus ---

class OrderStatusRequest(BaseModel):
    """Request body for MCP tool getOrderStatus."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")


@mcp_router.post(
    f"/tools/{ORDER_STATUS_TOOL}",
    summary=f"MCP tool: {ORDER_STATUS_TOOL}",
    description="Look up the live status of an order. Failures return {error} rather than an HTTP error.",
)
def mcp_get_order_status(body: OrderStatusRequest) -> dict[str, Any]:
    logger.info("MCP tool called: %s", ORDER_STATUS_TOOL)
    try:
        result = registry.invoke(ORDER_STATUS_TOOL, body.order_id)
    except ToolExecutionError as e:
        return {"error": str(e)}
    return {"result": dict(result)}


# --- search_documents ---

class SearchDocumentsRequest(BaseModel):
    """Request body for MCP tool search_documents."""
    query: str = ""


@mcp_router.post(
    "/tools/search_documents",
    summary="MCP tool: search_documents",
    description="Semantic search over the policy knowledge base. Returns the context text and its citations; 503 when the vector store is unavailable.",
)
def mcp_search_documents(body: SearchDocumentsRequest) -> dict[str, Any]:
    logger.info("MCP tool called: search_documents")
    query = (body.query or "").strip()
    if not query:
        return {"context": "", "citations": []}
    try:
        result = retriever.retrieve(query)
    except ServiceUnavailableError as e:
        logger.warning("MCP search_documents unavailable: %s", e.message)
        raise HTTPException(status_code=503, detail=e.message) from e
    return {"context": result.context, "citations": list(result.citations)}
