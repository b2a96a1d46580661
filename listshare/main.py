"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listshare.api import auth, invites, items, lists, webhooks, websocket
from listshare.config import get_settings
from listshare.exceptions import ListShareError

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    yield


app = FastAPI(
    title="Shared Lists API",
    description="Collaborative lists with invite links, voting and ratings",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:8081", "http://localhost:19006"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(ListShareError)
async def handle_domain_error(request: Request, exc: ListShareError) -> JSONResponse:
    """Render core service errors with their status and a stable code."""
    logger.info(f"{request.method} {request.url.path} failed: {exc.code}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


# Register routers
app.include_router(auth.router)
app.include_router(lists.router)
app.include_router(items.router)
app.include_router(invites.router)
app.include_router(webhooks.router)
app.include_router(websocket.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
