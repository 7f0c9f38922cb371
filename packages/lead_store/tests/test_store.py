"""Tests for LeadStore orchestration."""

import fakeredis
import pytest
from lead_store import LeadData, LeadStore
from lead_store.backends import InMemoryBackend, RedisBackend, StorageBackend
from lead_store.errors import BackendUnavailable


class FailingBackend(StorageBackend):
    """Backend whose every call fails like an unreachable remote."""

    name = "failing"

    def __init__(self):
        self.set_calls = 0

    async def set(self, key, value, ttl_seconds):
        self.set_calls += 1
        raise BackendUnavailable("connection refused")

    async def get(self, key):
        raise BackendUnavailable("connection refused")


class RecordingBackend(InMemoryBackend):
    """In-memory backend that remembers the TTL of each write."""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.ttls: dict[str, int] = {}
        self.reads: list[str] = []

    async def set(self, key, value, ttl_seconds):
        self.ttls[key] = ttl_seconds
        await super().set(key, value, ttl_seconds)

    async def get(self, key):
        self.reads.append(key)
        return await super().get(key)


# =============================================================================
# save()
# =============================================================================


class TestSave:
    """Tests for LeadStore.save."""

    async def test_writes_both_keys_with_same_ttl(self, clock, sample_lead):
        backend = RecordingBackend(clock)
        store = LeadStore(backend, ttl_seconds=3_600)

        written = await store.save(sample_lead)

        assert written == ["ph:+12814562323", "sub:sub-1"]
        assert backend.ttls == {"ph:+12814562323": 3_600, "sub:sub-1": 3_600}

    async def test_both_entries_hold_identical_copies(self, memory_backend, store, sample_lead):
        await store.save(sample_lead)

        by_phone = await memory_backend.get("ph:+12814562323")
        by_submission = await memory_backend.get("sub:sub-1")
        assert by_phone == by_submission

    async def test_phone_only(self, store, sample_lead):
        lead = sample_lead.model_copy(update={"wix_submission_id": None})
        assert await store.save(lead) == ["ph:+12814562323"]

    async def test_submission_only(self, store, sample_lead):
        lead = sample_lead.model_copy(update={"lead_phone": ""})
        assert await store.save(lead) == ["sub:sub-1"]

    async def test_unnormalized_phone_is_normalized_for_key(self, store):
        lead = LeadData(lead_phone="(281) 456-2323")
        assert await store.save(lead) == ["ph:+12814562323"]

    async def test_malformed_phone_never_enters_keyspace(self, memory_backend, store):
        lead = LeadData(lead_phone="555", wix_submission_id="sub-2")

        assert await store.save(lead) == ["sub:sub-2"]
        assert await memory_backend.count() == 1

    async def test_no_keys_is_noop(self, memory_backend, store):
        lead = LeadData(first_name="Nobody")

        assert await store.save(lead) == []
        assert await memory_backend.count() == 0

    async def test_backend_failure_is_swallowed(self, sample_lead):
        """Both writes are attempted and neither failure escapes."""
        backend = FailingBackend()
        store = LeadStore(backend)

        assert await store.save(sample_lead) == []
        assert backend.set_calls == 2

    async def test_repeat_ingest_overwrites(self, store, sample_lead):
        await store.save(sample_lead)
        updated = sample_lead.model_copy(update={"notes": "Changed my mind, need gutters"})
        await store.save(updated)

        found = await store.get_lead_data("ph:+12814562323", None)
        assert found.notes == "Changed my mind, need gutters"


# =============================================================================
# get_lead_data()
# =============================================================================


class TestGetLeadData:
    """Tests for LeadStore.get_lead_data."""

    @pytest.mark.parametrize(
        ("phone_key", "submission_key"),
        [
            ("ph:+12814562323", "sub:sub-1"),
            ("ph:+12814562323", None),
            (None, "sub:sub-1"),
            ("", "sub:sub-1"),
        ],
    )
    async def test_roundtrip_any_key_combination(
        self, store, sample_lead, phone_key, submission_key
    ):
        await store.save(sample_lead)
        assert await store.get_lead_data(phone_key, submission_key) == sample_lead

    async def test_no_keys_returns_none(self, store, sample_lead):
        await store.save(sample_lead)
        assert await store.get_lead_data(None, None) is None
        assert await store.get_lead_data("", "") is None

    async def test_phone_lookup_misses_lead_saved_without_phone(self, store, sample_lead):
        """A lead indexed only by submission id cannot be found by phone."""
        lead = sample_lead.model_copy(update={"lead_phone": None})
        await store.save(lead)

        assert await store.get_lead_data("ph:+12814562323", None) is None
        assert await store.get_lead_data(None, "sub:sub-1") == lead

    async def test_phone_key_takes_precedence(self, store):
        """When both keys hit different leads, the phone match wins."""
        by_phone = LeadData(lead_phone="+12814562323", first_name="Phone", wix_submission_id="a")
        by_submission = LeadData(lead_phone="+17135550000", first_name="Sub", wix_submission_id="b")
        await store.save(by_phone)
        await store.save(by_submission)

        found = await store.get_lead_data("ph:+12814562323", "sub:b")
        assert found.first_name == "Phone"

    async def test_falls_back_to_submission_key(self, clock, sample_lead):
        backend = RecordingBackend(clock)
        store = LeadStore(backend)
        await store.save(sample_lead.model_copy(update={"lead_phone": None}))

        found = await store.get_lead_data("ph:+12814562323", "sub:sub-1")

        assert found is not None
        assert backend.reads == ["ph:+12814562323", "sub:sub-1"]

    async def test_expired_after_ttl(self, clock, memory_backend, sample_lead):
        store = LeadStore(memory_backend, ttl_seconds=86_400)
        await store.save(sample_lead)

        clock.advance(86_399)
        assert await store.get_lead_data("ph:+12814562323", None) is not None

        clock.advance(1)
        assert await store.get_lead_data("ph:+12814562323", None) is None
        assert await store.get_lead_data(None, "sub:sub-1") is None

    async def test_backend_failure_is_a_miss(self):
        store = LeadStore(FailingBackend())
        assert await store.get_lead_data("ph:+12814562323", "sub:sub-1") is None

    async def test_undecodable_value_is_a_miss(self, memory_backend, store, sample_lead):
        await memory_backend.set("ph:+12814562323", "not json", 60)
        await store.save(sample_lead.model_copy(update={"lead_phone": None}))

        found = await store.get_lead_data("ph:+12814562323", "sub:sub-1")
        assert found is not None
        assert found.wix_submission_id == "sub-1"

    async def test_roundtrip_through_redis(self, sample_lead):
        store = LeadStore(RedisBackend(client=fakeredis.FakeAsyncRedis(decode_responses=True)))
        await store.save(sample_lead)

        assert await store.get_lead_data("ph:+12814562323", None) == sample_lead
        assert await store.get_lead_data(None, "sub:sub-1") == sample_lead
