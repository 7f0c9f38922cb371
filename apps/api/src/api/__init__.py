"""API package for the Wix -> ElevenLabs lead handoff.

This FastAPI application orchestrates:
- Lead ingest (POST /api/webhooks/wix)
- Lead lookup for voice agent init (POST /api/elevenlabs/init)
"""

from api.main import app, create_app

__all__ = ["app", "create_app"]
