"""FastAPI dependencies and request helpers.

The lead store is built once in create_app() and kept on app.state, so
tests can hand in a store backed by a fake or in-memory backend.
"""

from typing import Any

from fastapi import Request
from lead_store import LeadStore, LeadStoreConfig

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_lead_store(request: Request) -> LeadStore:
    return request.app.state.lead_store


def get_config(request: Request) -> LeadStoreConfig:
    return request.app.state.config


async def read_request_body(request: Request) -> Any:
    """Decode a JSON or form-encoded body.

    Returns None for an empty body. Raises ValueError for invalid JSON.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return dict(form)

    body = await request.body()
    if not body:
        return None
    return await request.json()
