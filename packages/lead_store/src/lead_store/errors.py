"""Exceptions raised by the lead store and its request handlers."""


class LeadStoreError(Exception):
    """Base class for lead store errors."""

    pass


class BackendUnavailable(LeadStoreError):
    """Raised when a remote storage backend cannot be reached or errors."""

    pass


class MalformedPayload(LeadStoreError):
    """Raised when an inbound payload is missing required structure."""

    pass
