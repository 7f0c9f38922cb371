"""Wix form webhook (ingest).

Received -> Normalized -> Stored. The producer only ever sees success once
storage was attempted, so a cache outage never triggers a retry storm.
Only structurally broken payloads get a 400.
"""

import logging
import re
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from lead_store import LeadData, LeadStore, MalformedPayload, to_e164
from lead_store.schemas import NEW_LEAD_STATUS
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from api.deps import get_lead_store, read_request_body

logger = logging.getLogger("lead-handoff-ingest")

router = APIRouter(prefix="/api/webhooks", tags=["Ingest"])


# =============================================================================
# Payload Models
# =============================================================================


class _WixModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WixStreetAddress(_WixModel):
    number: str | None = None
    name: str | None = None

    @field_validator("number", "name", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class WixAddress(_WixModel):
    street_address: WixStreetAddress | None = Field(None, alias="streetAddress")
    address_line: str | None = Field(None, alias="addressLine")
    address_line1: str | None = Field(None, alias="addressLine1")
    city: str | None = None
    subdivision: str | None = None
    postal_code: str | None = Field(None, alias="postalCode")
    country: str | None = None

    @property
    def line1(self) -> str | None:
        if self.street_address:
            parts = [self.street_address.number, self.street_address.name]
            line = " ".join(p.strip() for p in parts if p and p.strip())
            if line:
                return line
        return self.address_line1 or self.address_line

    @property
    def state(self) -> str | None:
        # Wix subdivisions may be ISO-style ("US-TX")
        if self.subdivision and "-" in self.subdivision:
            return self.subdivision.split("-", 1)[1]
        return self.subdivision


class WixName(_WixModel):
    first: str | None = None
    last: str | None = None


class WixContact(_WixModel):
    id: str | None = None
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    name: WixName | None = None
    phones: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    address: WixAddress | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _split_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            first, _, last = v.strip().partition(" ")
            return {"first": first or None, "last": last or None}
        return v

    @field_validator("phones", "emails", mode="before")
    @classmethod
    def _flatten(cls, v: Any) -> Any:
        # Accept ["+1..."] as well as [{"phone": "+1..."}] / [{"email": "..."}]
        if v is None:
            return []
        if not isinstance(v, list):
            v = [v]
        flat = []
        for item in v:
            if isinstance(item, dict):
                item = (
                    item.get("e164Phone")
                    or item.get("phone")
                    or item.get("email")
                    or item.get("value")
                )
            if item is not None and item != "":
                flat.append(str(item))
        return flat


class WixSubmission(_WixModel):
    id: str | None = None
    form_name: str | None = Field(None, alias="formName")
    value: dict[str, Any] = Field(default_factory=dict)


class WixWebhookPayload(_WixModel):
    submission_id: str | None = Field(None, alias="submissionId")
    contact_id: str | None = Field(None, alias="contactId")
    form_name: str | None = Field(None, alias="formName")
    contact: WixContact | None = None
    submissions: list[WixSubmission] = Field(default_factory=list)


class IngestResponse(BaseModel):
    """Acknowledgement returned to the form producer."""

    ok: bool = True
    submission_id: str | None = None
    phone: str | None = None
    indexed_by: list[str] = Field(default_factory=list)


# =============================================================================
# Normalization
# =============================================================================

# Submission field name (normalized) -> LeadData attribute
SUBMISSION_FIELD_MAP: dict[str, str] = {
    "project_type": "request_type",
    "request_type": "request_type",
    "service": "request_type",
    "service_type": "request_type",
    "notes": "notes",
    "message": "notes",
    "comments": "notes",
    "phone": "phone",
    "phone_number": "phone",
    "preferred_callback_time": "preferred_callback_time",
    "callback_time": "preferred_callback_time",
    "best_time_to_call": "preferred_callback_time",
    "call_now": "consent_to_call_now",
    "consent_to_call_now": "consent_to_call_now",
    "source_site": "source_site",
}

_FIELD_NAME_SEPARATORS = re.compile(r"[\s\-]+")

_TRUTHY = {"true", "yes", "y", "1", "on", "checked"}


def normalize_field_name(name: str) -> str:
    """'field:Project Type' -> 'project_type'."""
    name = name.strip()
    if name.lower().startswith("field:"):
        name = name[len("field:") :]
    return _FIELD_NAME_SEPARATORS.sub("_", name.strip()).lower()


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, list):
        return any(_as_bool(v) for v in value)
    return str(value).strip().lower() in _TRUTHY


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value if v not in (None, ""))
    text = str(value).strip()
    return text or None


def extract_submission_fields(submissions: list[WixSubmission]) -> dict[str, Any]:
    """Map free-form submission entries onto lead attributes. First non-empty wins."""
    fields: dict[str, Any] = {}
    for submission in submissions:
        for raw_name, raw_value in submission.value.items():
            target = SUBMISSION_FIELD_MAP.get(normalize_field_name(raw_name))
            if target is None or target in fields:
                continue
            if target == "consent_to_call_now":
                if raw_value in (None, ""):
                    continue
                fields[target] = _as_bool(raw_value)
                continue
            text = _as_text(raw_value)
            if text is not None:
                fields[target] = text
    return fields


def parse_payload(body: Any) -> WixWebhookPayload:
    """Validate the raw webhook body. Raises MalformedPayload."""
    if not isinstance(body, dict):
        raise MalformedPayload("Payload must be a JSON object")

    # Wix automations wrap the submission in {"data": {...}}
    inner = body.get("data")
    if isinstance(inner, dict) and "contact" not in body and "submissionId" not in body:
        body = inner

    try:
        payload = WixWebhookPayload.model_validate(body)
    except ValidationError as e:
        raise MalformedPayload(f"Invalid payload: {e.error_count()} validation error(s)") from e

    if payload.contact is None and not payload.submissions and not payload.submission_id:
        raise MalformedPayload("Payload has no contact, submissions or submissionId")

    return payload


def build_lead_data(payload: WixWebhookPayload) -> LeadData:
    """Normalize a Wix payload into a LeadData record."""
    contact = payload.contact or WixContact()
    fields = extract_submission_fields(payload.submissions)

    first_name = contact.first_name or (contact.name.first if contact.name else None)
    last_name = contact.last_name or (contact.name.last if contact.name else None)
    full_name = " ".join(p.strip() for p in (first_name, last_name) if p and p.strip())

    # A usable phone typed into the form overrides the contact record
    raw_phones = [fields.pop("phone", None), contact.phones[0] if contact.phones else None]
    raw_phones = [p for p in raw_phones if p]
    phone = next((p for p in map(to_e164, raw_phones) if p), None)
    if raw_phones and phone is None:
        logger.warning(f"Could not normalize phone(s) {raw_phones!r}, storing lead without one")

    address = contact.address or WixAddress()
    city = address.city
    state = address.state
    location = ", ".join(p for p in (city, state) if p) or None

    submission_id = payload.submission_id or next(
        (s.id for s in payload.submissions if s.id), None
    )

    return LeadData(
        lead_full_name=full_name or None,
        first_name=first_name,
        last_name=last_name,
        lead_phone=phone or "",
        email=contact.emails[0] if contact.emails else None,
        address_line1=address.line1,
        city=city,
        state=state,
        zip=address.postal_code,
        location=location,
        notes=fields.get("notes"),
        request_type=fields.get("request_type"),
        source_site=fields.get("source_site"),
        preferred_callback_time=fields.get("preferred_callback_time"),
        consent_to_call_now=fields.get("consent_to_call_now"),
        status=NEW_LEAD_STATUS,
        wix_submission_id=submission_id,
        wix_contact_id=payload.contact_id or contact.id,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/wix", response_model=IngestResponse)
async def handle_wix_webhook(
    request: Request,
    store: LeadStore = Depends(get_lead_store),
):
    """Normalize a Wix form submission and store it for the voice agent."""
    try:
        body = await read_request_body(request)
    except ValueError:
        body = None

    try:
        payload = parse_payload(body)
    except MalformedPayload as e:
        logger.warning(f"Rejected Wix webhook: {e}")
        return JSONResponse(status_code=400, content={"ok": False, "error": str(e)})

    lead = build_lead_data(payload)
    logger.info(
        f"Wix lead received: submission={lead.wix_submission_id} "
        f"phone={lead.lead_phone or '-'} name={lead.lead_full_name or '-'}"
    )

    try:
        indexed_by = await store.save(lead)
    except Exception:
        logger.exception("Unexpected error storing Wix lead, acknowledging anyway")
        indexed_by = []

    return IngestResponse(
        ok=True,
        submission_id=lead.wix_submission_id,
        phone=lead.lead_phone or None,
        indexed_by=indexed_by,
    )


@router.get("/wix")
async def describe_wix_webhook():
    return {
        "message": "WIX webhook endpoint - POST only",
        "expected_content_type": "application/json",
        "description": "Receives WIX form submissions and stores normalized lead data",
    }
