from __future__ import annotations


class ProviderUnavailable(Exception):
    """A provider could not produce a usable reading (network, status, payload)."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class NoDataAvailable(Exception):
    """No provider returned a reading for the requested coordinate."""


class InvalidRequest(ValueError):
    """Missing or malformed request parameters."""
