"""
Service Marketplace - Main Application Entry Point

Booking lifecycle, milestone progress and dashboard summaries.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import ensure_valid_settings, get_settings
from app.core.exceptions import MarketplaceError
from app.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = ensure_valid_settings(get_settings())
    logger.info(f"Starting Service Marketplace in {settings.ENVIRONMENT} mode...")

    # Initialize database if needed
    if settings.is_local:
        from app.infrastructure.local.database import init_db

        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Service Marketplace...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Service Marketplace",
        description="Bookings, milestones and progress for client-provider engagements",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        from app.api.errors import exception_http_error

        http_error = exception_http_error(exc)
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from app.api import bookings, milestones, tasks

    app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
    app.include_router(milestones.router, prefix="/api", tags=["milestones"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
