"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import auth, images, imports, recipes
from src.config import get_settings
from src.errors import register_error_handlers
from src.services.container import build_services

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared clients on startup and close them on shutdown."""
    http_client = httpx.AsyncClient(timeout=settings.http_timeout)
    app.state.services = build_services(settings, http_client)
    try:
        yield
    finally:
        await http_client.aclose()


app = FastAPI(
    title="Recipe Import API",
    description="AI-assisted recipe import from web pages and photos, with image management",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(auth.router)
app.include_router(imports.router)
app.include_router(images.router)
app.include_router(recipes.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
