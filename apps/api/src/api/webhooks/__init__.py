"""Inbound webhooks from lead-capture forms."""
