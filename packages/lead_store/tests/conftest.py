"""Shared fixtures for lead store tests."""

import pytest
from lead_store import InMemoryBackend, LeadData, LeadStore


@pytest.fixture
def memory_backend(clock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


@pytest.fixture
def store(memory_backend: InMemoryBackend) -> LeadStore:
    return LeadStore(memory_backend, ttl_seconds=86_400)


@pytest.fixture
def sample_lead() -> LeadData:
    """A fully populated lead as produced by the Wix ingest."""
    return LeadData(
        lead_full_name="John Doe",
        first_name="John",
        last_name="Doe",
        lead_phone="+12814562323",
        email="john.doe@example.com",
        address_line1="123 Main Street",
        city="Austin",
        state="TX",
        zip="78701",
        location="Austin, TX",
        notes="Need estimate for roof replacement",
        request_type="Tile Roofing",
        status="new_lead",
        wix_submission_id="sub-1",
        wix_contact_id="contact-456",
    )
