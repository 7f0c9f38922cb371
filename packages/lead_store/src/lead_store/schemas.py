"""Pydantic schemas for the lead handoff store.

LeadData is the record written on form ingest and read back when the voice
agent initializes a call. DynamicVariables is the flat shape the voice agent
consumes, identical whether a lead was found or not.
"""

from pydantic import BaseModel, ConfigDict

# =============================================================================
# Constants
# =============================================================================

# How long a stored lead stays retrievable
LEAD_TTL_SECONDS: int = 86_400  # 24 hours

# Country code assumed for bare domestic numbers
DEFAULT_COUNTRY_CODE: str = "+1"

DEFAULT_AGENT_NAME: str = "Penny"

NEW_LEAD_STATUS: str = "new_lead"


# =============================================================================
# Lead Data (Stored Record)
# =============================================================================


class LeadData(BaseModel):
    """Normalized snapshot of one captured lead.

    Every field is optional; partial leads are still worth storing.
    Written twice (phone key and submission key) with the same TTL.
    """

    model_config = ConfigDict(extra="ignore")

    # Name
    lead_full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    last_name_suffix: str | None = None

    # Contact
    lead_phone: str | None = None  # E.164, blank if normalization failed
    email: str | None = None

    # Mailing address
    address_line1: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    location: str | None = None  # "City, ST"

    # Request details
    notes: str | None = None
    request_type: str | None = None
    source_site: str | None = None

    # Callback preference
    preferred_callback_time: str | None = None
    consent_to_call_now: bool | None = None

    # Lifecycle
    status: str | None = None

    # Correlation identifiers from the originating form
    wix_submission_id: str | None = None
    wix_contact_id: str | None = None

    def to_json(self) -> str:
        """Serialize for storage, dropping unset fields."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "LeadData":
        """Deserialize a stored value."""
        return cls.model_validate_json(raw)


# =============================================================================
# Dynamic Variables (Voice Agent Init Response)
# =============================================================================


class DynamicVariables(BaseModel):
    """Flat variables handed to the voice agent at conversation start.

    The field set never changes. Missing lead data is filled with defaults
    so the agent's first-message template always renders.
    """

    honorific: str = ""
    request_type: str = "General Inquiry"
    source_site: str = "unknown"
    agent_name: str = DEFAULT_AGENT_NAME
    last_name: str = ""
    last_name_suffix: str = ""

    lead_full_name: str = ""
    first_name: str = ""
    lead_phone: str = ""
    customer_address: str = ""
    address_line1: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    notes: str = ""
    location: str = ""

    wix_submission_id: str = ""
    wix_contact_id: str = ""

    status: str = NEW_LEAD_STATUS
    preferred_callback_time: str = "now"
    consent_to_call_now: bool = True

    @classmethod
    def defaults(
        cls,
        *,
        agent_name: str = DEFAULT_AGENT_NAME,
        lead_phone: str = "",
        source_site: str = "unknown",
    ) -> "DynamicVariables":
        """Safe defaults returned when no lead matched or lookup failed."""
        return cls(agent_name=agent_name, lead_phone=lead_phone, source_site=source_site)

    @classmethod
    def from_lead(
        cls, lead: LeadData, *, agent_name: str = DEFAULT_AGENT_NAME
    ) -> "DynamicVariables":
        """Build the agent variables from a stored lead."""
        first_name = (lead.first_name or "").strip()
        last_name = (lead.last_name or "").strip()
        address_line1 = lead.address_line1 or ""

        return cls(
            # Only address the lead formally when we know their name
            honorific="Mr." if first_name else "",
            request_type=(lead.request_type or "roofing inquiry").strip(),
            source_site=(lead.source_site or "our website").strip(),
            agent_name=agent_name,
            last_name=last_name,
            last_name_suffix=(lead.last_name_suffix or "").strip(),
            lead_full_name=(lead.lead_full_name or f"{first_name} {last_name}").strip(),
            first_name=first_name,
            lead_phone=lead.lead_phone or "",
            customer_address=address_line1.strip(),
            address_line1=address_line1,
            city=lead.city or "",
            state=lead.state or "",
            zip=lead.zip or "",
            notes=lead.notes or "",
            location=lead.location or "",
            wix_submission_id=lead.wix_submission_id or "",
            wix_contact_id=lead.wix_contact_id or "",
            status=lead.status or NEW_LEAD_STATUS,
            preferred_callback_time=lead.preferred_callback_time or "now",
            consent_to_call_now=(
                True if lead.consent_to_call_now is None else lead.consent_to_call_now
            ),
        )
