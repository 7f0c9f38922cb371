"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient
from lead_store import InMemoryBackend, LeadStore, LeadStoreConfig

from api.main import create_app


@pytest.fixture
def config() -> LeadStoreConfig:
    return LeadStoreConfig()


@pytest.fixture
def backend(clock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


@pytest.fixture
def store(backend: InMemoryBackend, config: LeadStoreConfig) -> LeadStore:
    return LeadStore(backend, ttl_seconds=config.ttl_seconds)


@pytest.fixture
def app(store: LeadStore, config: LeadStoreConfig):
    return create_app(store=store, config=config)


@pytest.fixture
def client(app) -> TestClient:
    """Create a test client."""
    return TestClient(app)


def make_wix_payload(**overrides) -> dict:
    """Create a Wix form webhook payload."""
    payload = {
        "instanceId": "test-instance",
        "submissionId": "sub-1",
        "formName": "Contact Form",
        "contactId": "contact-456",
        "contact": {
            "id": "contact-456",
            "firstName": "John",
            "lastName": "Doe",
            "phones": ["2814562323"],
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
                "id": "submission-entry-1",
                "formName": "Roofing Quote",
                "value": {
                    "field:project_type": "Tile Roofing",
                    "field:notes": "Need estimate for roof replacement",
                },
            }
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def wix_payload() -> dict:
    return make_wix_payload()
