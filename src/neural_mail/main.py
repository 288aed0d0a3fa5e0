"""
FastAPI application entry point for Neural Mail.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from neural_mail import __version__
from neural_mail.api.dependencies import close_resources, get_gateway, get_store
from neural_mail.api.error_handlers import EXCEPTION_HANDLERS
from neural_mail.api.middleware import RequestTracingMiddleware
from neural_mail.api.routes_assistant import router as assistant_router
from neural_mail.api.routes_mail import router as mail_router
from neural_mail.api.routes_system import router as system_router
from neural_mail.config import settings
from neural_mail.logging_config import configure_logging

# Configure structured logging before anything logs
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store, probe Ollama, and release everything on shutdown."""
    logger.info(
        "Application startup",
        version=__version__,
        environment=settings.ENVIRONMENT,
        database=settings.DATABASE_PATH,
        model=settings.OLLAMA_MODEL,
    )
    get_store()

    if await get_gateway().health_check():
        logger.info("Ollama connection successful")
    else:
        logger.warning("Ollama not reachable; assistant features will fail until it is running")

    yield

    logger.info("Application shutdown")
    close_resources()


app = FastAPI(
    title=settings.APP_NAME,
    description="Local-first mail client backend with an on-device AI assistant",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Request tracing middleware (outermost, so request_id is bound for all logs)
app.add_middleware(RequestTracingMiddleware)

# The desktop shell talks to the API from a local webview origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(mail_router, tags=["mail"])
app.include_router(assistant_router, tags=["assistant"])
app.include_router(system_router, tags=["system"])

if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "neural_mail.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
