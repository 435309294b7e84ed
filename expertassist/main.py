"""
ExpertAssist AI - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from expertassist.config import settings
from expertassist.database import SessionLocal
from expertassist.api import auth, experts, calls, telephony, config
from expertassist.calls.generation import TemplateTranscriptSource, build_summarizer
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.calls.store import SQLAlchemyCallStore
from expertassist.schemas.common import ErrorResponse
from expertassist.telephony.gateway import TelephonyGateway
from expertassist.webhooks import twilio

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def build_orchestrator() -> CallOrchestrator:
    """Wire the call orchestrator from settings"""
    return CallOrchestrator(
        store=SQLAlchemyCallStore(SessionLocal),
        gateway=TelephonyGateway(settings),
        transcripts=TemplateTranscriptSource(),
        summarizer=build_summarizer(settings),
        callback_base_url=settings.api_base_url,
        connect_delay=settings.call_connect_delay_seconds,
        call_duration=settings.call_duration_seconds,
        external_timeout=settings.external_call_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting ExpertAssist API", version="1.0.0")
    app.state.orchestrator = build_orchestrator()
    logger.info(
        "Call orchestrator ready",
        simulation_mode=app.state.orchestrator.gateway.simulation_mode,
        summarizer=settings.summarizer_backend,
    )
    yield
    await app.state.orchestrator.shutdown()
    logger.info("Shutting down ExpertAssist API")


# Create FastAPI application
app = FastAPI(
    title="ExpertAssist AI",
    description="Automated outbound calls to real estate professionals",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error envelope
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=ErrorResponse(message=message).model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="An unexpected error occurred").model_dump(),
    )


# Health check endpoint
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


# Include API routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(experts.router, prefix="/api/experts", tags=["Experts"])
app.include_router(calls.router, prefix="/api/calls", tags=["Calls"])
app.include_router(telephony.router, prefix="/api/telephony", tags=["Telephony"])
app.include_router(config.router, prefix="/api/config", tags=["Config"])

# Include webhook routers
app.include_router(twilio.router, prefix="/webhooks/twilio", tags=["Webhooks"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "expertassist.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
