"""
Structured HTTP request logging.

Each request produces one completion (or error) record whose ``extra``
fields are shipped to Datadog as attributes by ``DatadogLogger``.
"""
import time
import logging
from uuid import uuid4
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("catalog_app")

QUIET_PATHS = {"/health", "/api/health"}


class DatadogLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        fields = {
            "http.method": request.method,
            "http.url": path,
            "http.url_details.query_string": str(request.query_params) if request.query_params else "",
            "http.client_ip": request.client.host if request.client else "unknown",
            "http.request_id": request_id,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} 500 - {e}",
                extra={
                    **fields,
                    "http.status_code": 500,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "tenant_id": getattr(request.state, "tenant_id", None),
                    "error.type": type(e).__name__,
                    "event_type": "http_request_error",
                },
                exc_info=True
            )
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {path} {response.status_code}",
            extra={
                **fields,
                "http.status_code": response.status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "tenant_id": getattr(request.state, "tenant_id", None),
                "event_type": "http_request_complete",
            }
        )
        response.headers["X-Request-ID"] = request_id
        return response
