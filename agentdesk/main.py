# Run from project root: uvicorn agentdesk.main:app --reload

import logging
import uuid

from fastapi import FastAPI, Request

from agentdesk.api.routes import router
from agentdesk.core.config import LOG_LEVEL
from agentdesk.core.request_context import REQUEST_ID_HEADER, RequestIdFilter, request_id_var
from agentdesk.mcp.server import mcp_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(RequestIdFilter())


app = FastAPI(title="Support Agent Backend")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every log line of a request with X-Request-Id (taken from the client or generated)."""
    request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
