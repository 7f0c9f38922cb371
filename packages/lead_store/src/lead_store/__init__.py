"""Dual-keyed, TTL-bound lead storage shared by the ingest and init handlers."""

from lead_store.backends import (
    InMemoryBackend,
    RedisBackend,
    StorageBackend,
    UpstashRestBackend,
    create_backend,
)
from lead_store.config import LeadStoreConfig
from lead_store.errors import BackendUnavailable, LeadStoreError, MalformedPayload
from lead_store.keys import phone_key, submission_key
from lead_store.phone import to_e164, validate_phone_e164
from lead_store.schemas import (
    DEFAULT_COUNTRY_CODE,
    LEAD_TTL_SECONDS,
    DynamicVariables,
    LeadData,
)
from lead_store.store import LeadStore

__all__ = [
    "DEFAULT_COUNTRY_CODE",
    "LEAD_TTL_SECONDS",
    "BackendUnavailable",
    "DynamicVariables",
    "InMemoryBackend",
    "LeadData",
    "LeadStore",
    "LeadStoreConfig",
    "LeadStoreError",
    "MalformedPayload",
    "RedisBackend",
    "StorageBackend",
    "UpstashRestBackend",
    "create_backend",
    "phone_key",
    "submission_key",
    "to_e164",
    "validate_phone_e164",
]
