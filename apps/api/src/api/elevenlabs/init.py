"""ElevenLabs conversation init webhook (lookup).

Called when the voice agent starts a call. Finds the stored lead by phone
or submission id and returns its dynamic variables. This endpoint NEVER
returns an error status: a non-200 here aborts the live call, so every
failure degrades to the default variables instead.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from lead_store import (
    DynamicVariables,
    LeadStore,
    LeadStoreConfig,
    phone_key,
    submission_key,
    to_e164,
)

from api.deps import get_config, get_lead_store, read_request_body

logger = logging.getLogger("lead-handoff-init")

router = APIRouter(prefix="/api/elevenlabs", tags=["Voice Agent"])

# Field names the caller may use for the phone number, in priority order
PHONE_FIELDS: tuple[str, ...] = (
    "from",
    "to",
    "caller",
    "callee",
    "caller_id",
    "called_number",
)

SUBMISSION_ID_FIELDS: tuple[str, ...] = ("sid", "submission_id", "wix_submission_id")


def find_phone(request_data: dict[str, Any]) -> str | None:
    """First candidate field that normalizes to E.164."""
    for field in PHONE_FIELDS:
        value = request_data.get(field)
        if value in (None, ""):
            continue
        normalized = to_e164(str(value))
        if normalized:
            return normalized
    return None


def find_submission_id(request_data: dict[str, Any]) -> str | None:
    for field in SUBMISSION_ID_FIELDS:
        value = request_data.get(field)
        if value not in (None, "") and str(value).strip():
            return str(value).strip()
    return None


async def _read_request_data(request: Request) -> dict[str, Any]:
    """Merge JSON or form body and query parameters. Query values win."""
    data: dict[str, Any] = {}
    try:
        parsed = await read_request_body(request)
    except ValueError:
        logger.warning("Init request body is not valid JSON, ignoring it")
    else:
        if isinstance(parsed, dict):
            data.update(parsed)
    data.update(request.query_params)
    return data


async def lookup_dynamic_variables(
    request_data: dict[str, Any], store: LeadStore, agent_name: str
) -> DynamicVariables:
    """Resolve lookup keys from loosely-typed request fields and fetch the lead."""
    phone = find_phone(request_data)
    sid = find_submission_id(request_data)
    ph_key = phone_key(phone)
    sub_key = submission_key(sid)

    logger.info(f"Init lookup keys: phone={ph_key or '-'} submission={sub_key or '-'}")

    lead = await store.get_lead_data(ph_key, sub_key)
    if lead is None:
        logger.info(f"No lead data found for phone={phone or '-'} sid={sid or '-'}")
        return DynamicVariables.defaults(agent_name=agent_name, lead_phone=phone or "")

    logger.info(
        f"Lead data found: submission={lead.wix_submission_id} "
        f"phone={lead.lead_phone} name={lead.lead_full_name}"
    )
    return DynamicVariables.from_lead(lead, agent_name=agent_name)


@router.post("/init", response_model=DynamicVariables)
async def handle_elevenlabs_init(
    request: Request,
    store: LeadStore = Depends(get_lead_store),
    config: LeadStoreConfig = Depends(get_config),
):
    """Return dynamic variables for the lead on this call. Always 200."""
    try:
        request_data = await _read_request_data(request)
        return await lookup_dynamic_variables(request_data, store, config.agent_name)
    except Exception:
        logger.exception("ElevenLabs init failed, returning safe defaults")
        return DynamicVariables.defaults(
            agent_name=config.agent_name, source_site="error_fallback"
        )


@router.get("/init")
async def describe_elevenlabs_init():
    return {
        "message": "ElevenLabs init endpoint - POST only",
        "expected_content_type": "application/json",
        "description": "Returns lead data for ElevenLabs agent initialization",
    }
