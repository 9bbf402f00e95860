"""FastAPI application entry point for MovieMonk.

Movie, show and person brief REST API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moviemonk import __version__
from moviemonk.api import register_exception_handlers
from moviemonk.api.middleware import RequestLoggingMiddleware
from moviemonk.api.query import router as query_router
from moviemonk.cache import close_cache
from moviemonk.config import get_settings
from moviemonk.logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting MovieMonk API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
            "provider_order": settings.provider_order_list,
        },
    )

    yield

    logger.info("Shutting down MovieMonk API")
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is not None:
        await pipeline.close()
    await close_cache()


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title="MovieMonk API",
    description="Movie, show and person briefs from a resilient multi-provider LLM pipeline",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(query_router, prefix="/api/v1", tags=["Briefs"])


# =========================
# Root Endpoint
# =========================


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "name": "MovieMonk API",
        "version": __version__,
        "docs": "/docs" if settings.is_development else None,
    }


# =========================
# Health Check Endpoints
# =========================


@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "moviemonk-api", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
