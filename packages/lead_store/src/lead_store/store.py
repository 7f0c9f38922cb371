"""Dual-keyed lead store.

Each lead is written twice, under its phone key and its submission key,
with the same TTL. There is no pointer between the two entries; a repeat
ingest simply overwrites both.
"""

import logging

from pydantic import ValidationError

from lead_store.backends import StorageBackend, create_backend
from lead_store.config import LeadStoreConfig
from lead_store.errors import BackendUnavailable
from lead_store.keys import phone_key, submission_key
from lead_store.phone import to_e164
from lead_store.schemas import LEAD_TTL_SECONDS, LeadData

logger = logging.getLogger("lead-handoff-store")


class LeadStore:
    """Writes leads under phone and submission keys and reads them back."""

    def __init__(self, backend: StorageBackend, ttl_seconds: int = LEAD_TTL_SECONDS):
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_config(cls, config: LeadStoreConfig) -> "LeadStore":
        return cls(create_backend(config), ttl_seconds=config.ttl_seconds)

    @staticmethod
    def keys_for(lead: LeadData) -> list[str]:
        """Keys a lead is indexed by, phone first. Empty if none derivable."""
        keys = [
            phone_key(to_e164(lead.lead_phone)),
            submission_key(lead.wix_submission_id),
        ]
        return [k for k in keys if k]

    async def save(self, lead: LeadData) -> list[str]:
        """Store the lead under every derivable key.

        Write failures are logged and swallowed. Returns the keys that
        were actually written.
        """
        keys = self.keys_for(lead)
        if not keys:
            logger.warning("Lead has neither a usable phone nor a submission id, not stored")
            return []

        value = lead.to_json()
        written: list[str] = []
        for key in keys:
            try:
                await self.backend.set(key, value, self.ttl_seconds)
            except BackendUnavailable as e:
                logger.error(f"Failed to store lead under {key}: {e}")
                continue
            written.append(key)

        if written:
            logger.info(f"Stored lead under {written} (ttl={self.ttl_seconds}s)")
        return written

    async def get_lead_data(
        self, phone_key: str | None, submission_key: str | None
    ) -> LeadData | None:
        """Look up a lead, phone key first, then submission key.

        Backend errors and undecodable values count as a miss for that key.
        """
        for key in (phone_key, submission_key):
            if not key:
                continue

            try:
                raw = await self.backend.get(key)
            except BackendUnavailable as e:
                logger.error(f"Lead lookup failed for {key}: {e}")
                continue

            if raw is None:
                continue

            try:
                lead = LeadData.from_json(raw)
            except ValidationError as e:
                logger.error(f"Discarding undecodable lead stored under {key}: {e}")
                continue

            logger.info(f"Lead found under {key}")
            return lead

        return None
