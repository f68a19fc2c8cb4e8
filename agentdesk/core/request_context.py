"""
Request correlation id: set per HTTP request by middleware, injected into every log record.
"""

import contextvars
import logging

REQUEST_ID_HEADER = "X-Request-Id"

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Adds record.request_id so the log format can reference %(request_id)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True
