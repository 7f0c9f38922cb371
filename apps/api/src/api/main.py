"""FastAPI application for the Wix -> ElevenLabs lead handoff.

Provides:
- Lead ingest from Wix form webhooks
- Lead lookup for ElevenLabs conversation init
- Health and endpoint discovery

Flow:
1. POST /api/webhooks/wix - Normalize the form lead, store it under its
   phone key and submission key (TTL-bound)
2. POST /api/elevenlabs/init - Find the lead by caller phone or submission
   id and return the agent's dynamic variables (always 200)
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from lead_store import InMemoryBackend, LeadStore, LeadStoreConfig
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.elevenlabs.init import router as elevenlabs_router
from api.webhooks.wix import router as wix_router

_project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
)
load_dotenv(os.path.join(_project_root, ".env.local"))
load_dotenv()  # Also try default .env

logger = logging.getLogger("lead-handoff-api")

SERVICE_NAME = "WIX to ElevenLabs Ingest System"
SERVICE_VERSION = "1.0.0"

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "POST /api/webhooks/wix",
    "POST /api/elevenlabs/init",
    "GET /test/sample-wix",
]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    uptime_seconds: float
    backend: str
    ttl_seconds: int


# =============================================================================
# App Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the in-memory sweep if applicable, close the backend on shutdown."""
    backend = app.state.lead_store.backend
    if isinstance(backend, InMemoryBackend):
        await backend.start_cleanup_task(interval_seconds=60)
    yield
    await backend.aclose()


def create_app(
    store: LeadStore | None = None,
    config: LeadStoreConfig | None = None,
) -> FastAPI:
    """Build the app around an explicitly constructed lead store."""
    config = config or LeadStoreConfig.from_env()
    store = store or LeadStore.from_config(config)

    app = FastAPI(
        title="Lead Handoff API",
        description="Bridges Wix form leads to ElevenLabs voice agent calls",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.lead_store = store
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "ok": False,
                    "error": "Not found",
                    "path": request.url.path,
                    "available_endpoints": AVAILABLE_ENDPOINTS,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc!r}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": "Internal server error",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    app.include_router(wix_router)
    app.include_router(elevenlabs_router)

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.get("/")
    async def service_info():
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "ingest": "/api/webhooks/wix",
                "fetch": "/api/elevenlabs/init",
                "health": "/health",
            },
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        backend = app.state.lead_store.backend
        if isinstance(backend, InMemoryBackend):
            await backend.cleanup_expired()

        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            uptime_seconds=time.monotonic() - app.state.started_at,
            backend=backend.name,
            ttl_seconds=app.state.lead_store.ttl_seconds,
        )

    @app.get("/test/sample-wix")
    async def sample_wix_payload():
        """Sample Wix payload for manual testing."""
        return {
            "message": "Sample WIX payload for testing",
            "payload": SAMPLE_WIX_PAYLOAD,
            "testUrl": "/api/webhooks/wix",
            "instructions": "POST this payload to the WIX webhook endpoint to test",
        }

    return app


SAMPLE_WIX_PAYLOAD = {
    "instanceId": "test-instance",
    "submissionId": "test-submission-123",
    "namespace": "test",
    "formName": "Contact Form",
    "contactId": "test-contact-456",
    "contact": {
        "id": "test-contact-456",
        "firstName": "John",
        "lastName": "Doe",
        "phones": ["+12814562323"],
        "emails": ["john.doe@example.com"],
        "address": {
            "streetAddress": {"number": "123", "name": "Main Street"},
            "city": "Austin",
            "subdivision": "TX",
            "postalCode": "78701",
        },
    },
    "submissions": [
        {
            "id": "sub-1",
            "formName": "Roofing Quote",
            "value": {
                "field:project_type": "Tile Roofing",
                "field:notes": "Need estimate for roof replacement",
                "field:phone": "+12814562323",
            },
        }
    ],
}


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
