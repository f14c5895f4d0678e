"""FastAPI application configuration (chat gateway)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from ..domain.constants import PAYMENT_HEADER, RECEIPT_HEADER
from ..infrastructure.database import get_database_client
from .dependencies import (
    get_chain_oracle,
    get_completion_provider,
    get_gateway_settings,
)
from .routers import chat

settings = get_gateway_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Only close clients that were actually created.
    if get_chain_oracle.cache_info().currsize:
        await get_chain_oracle().aclose()
    if get_completion_provider.cache_info().currsize:
        await get_completion_provider().aclose()
    db_client = get_database_client(settings)
    if db_client is not None:
        await db_client.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Pay-per-query AI chat gated by x402 on-chain micropayments",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", PAYMENT_HEADER],
        expose_headers=[RECEIPT_HEADER],
    )

    # Include routers
    app.include_router(chat.router, prefix="/api")

    app.mount("/metrics", make_asgi_app())

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    return app


app = create_app()
