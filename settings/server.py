from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from datetime import datetime, timezone
import logging
from api.catalog_apis import catalog_router
from api.scoring_apis import scoring_router
from api.responses import failure_response
from common.exceptions import CatalogException
from middleware.datadog_logging_middleware import DatadogLoggingMiddleware
from settings.config import get_settings
from settings.datadog_logger import DatadogLogger

description = """
#### Talent Catalog APIs
   Role, sub-role and skill catalog with soft-skill scoring and role-fit analysis.
"""

catalog_app = FastAPI(
    title="Talent Catalog",
    description=description,
    version="1.0.0",
    openapi_version="3.1.0",
    root_path="/api",
    docs_url="/docs/catalog",
)


@catalog_app.exception_handler(CatalogException)
async def catalog_exception_handler(request: Request, exc: CatalogException):
    return failure_response([exc.to_dict()], exc.status_code)


@catalog_app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return failure_response([exc.detail], exc.status_code)


@catalog_app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"code": "validation_error", "message": err.get("msg"), "field": ".".join(str(p) for p in err.get("loc", ()))}
        for err in exc.errors()
    ]
    return failure_response(errors, 400)


catalog_app.add_middleware(GZipMiddleware, minimum_size=1000)
catalog_app.add_middleware(DatadogLoggingMiddleware)

catalog_app.include_router(catalog_router)
catalog_app.include_router(scoring_router)


@catalog_app.get('/health')
def health_check():
    """
    Lightweight health check endpoint for Kubernetes probes.
    """
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


service_name = "TalentCatalog"

# Setup Datadog logger (attach to ROOT logger and uvicorn.access)
dd_handler = DatadogLogger(service=service_name)
dd_handler.setLevel(logging.INFO)

root_logger = logging.getLogger()
root_logger.setLevel(get_settings().log_level)
root_logger.addHandler(dd_handler)

# Ensure uvicorn.access logs propagate to root logger (no direct handler)
uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.setLevel(logging.INFO)
uvicorn_access_logger.propagate = True
