"""
HR Command Assistant
Chat → slot extraction → confirmation → command execution → audit trail.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hr_assistant.application.phrasing import APOLOGY_TEXT
from hr_assistant.config import get_settings
from hr_assistant.domain.errors import HRAssistantError, InternalFault
from hr_assistant.routers import all_routers
from hr_assistant.services import ServiceContainer, build_services

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("startup")


def _error_body(request: Request, message: str, detail=None) -> dict:
    body = {"error": message, "requestId": getattr(request.state, "request_id", None)}
    if detail:
        body["detail"] = detail
    return body


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the application; tests pass their own container."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(get_settings())
        logger.info("🚀 HR Command Assistant started")
        yield
        logger.info("👋 Lifespan shutdown")

    app = FastAPI(
        title="HR Command Assistant",
        description="Natural-language HR commands with explicit confirmation and an audit trail",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
        logger.info(f"Rejected malformed request on {request.url.path}: {fields}")
        return JSONResponse(status_code=400, content=_error_body(
            request, "Invalid request format", {"fields": fields},
        ))

    @app.exception_handler(InternalFault)
    async def internal_fault_handler(request: Request, exc: InternalFault):
        logger.error(f"Internal fault on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, APOLOGY_TEXT))

    @app.exception_handler(HRAssistantError)
    async def domain_exception_handler(request: Request, exc: HRAssistantError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message, exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error")
        return JSONResponse(status_code=500, content=_error_body(request, APOLOGY_TEXT))

    for router in all_routers:
        app.include_router(router)

    return app


app = create_app()

if __name__ == "__main__":  # pragma: no cover
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
