"""
FastAPI Application Entry Point

This module creates and configures the development identity server that
implements the wire contract used by the capture client.

The application provides:
- REST endpoints for identity registration and verification
- REST endpoints for identity management
- Health check endpoint

Usage:
    # From project root:
    uvicorn api.app:app --host 0.0.0.0 --port 3000 --reload

    # Or run directly:
    python -m api.app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import embedding_matcher, template_store
from api.routes import identity_router, management_router
from api.schemas import HealthResponse
from core.matching import EuclideanEmbeddingMatcher
from core.template_manager import TemplateManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Opens the template store on startup and closes it on shutdown.
    """
    logger.info("=" * 60)
    logger.info("Starting identity server")
    logger.info("=" * 60)

    store = template_store()
    stats = store.get_stats()
    logger.info(f"Template store ready: {stats['total_users']} users enrolled")

    yield

    logger.info("Shutting down identity server...")
    store.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Face Identity Server",
    description="""
Development identity service for the face enrollment / verification client.

## Features
- **Register**: store an averaged 128-d face descriptor under a name
- **Verify**: 1:N nearest-identity match of a single descriptor
- **Management**: list and delete enrolled identities
    """,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(identity_router)
app.include_router(management_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Answer invalid request bodies in the `{success, message}` shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    logger.warning(f"{request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=422, content={"success": False, "message": message})


# ============================================================
# Health Check Endpoint
# ============================================================

@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check(
    store: TemplateManager = Depends(template_store),
    matcher: EuclideanEmbeddingMatcher = Depends(embedding_matcher),
):
    """Report the number of enrolled identities and the match threshold."""
    stats = store.get_stats()
    return HealthResponse(
        status="healthy",
        enrolled_users=stats["total_users"],
        distance_threshold=matcher.distance_threshold,
    )


@app.get("/", tags=["system"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Face Identity Server",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    from core.config import configure_logging, get_server_config

    configure_logging()
    server = get_server_config()

    logger.info(f"Starting server on {server['host']}:{server['port']}")
    uvicorn.run(
        "api.app:app",
        host=server["host"],
        port=server["port"],
        reload=True,
        log_level="info",
    )
