"""
Error taxonomy for GDPR permission checks.

Every error raised out of a public permissions operation carries a
``fallback`` value: the most conservative result for that operation.
Callers that catch the error and keep going should use it.
"""

from typing import Any


class PermissionsError(Exception):
    """Base exception for GDPR permission errors."""

    fallback: Any = None


class MalformedConsentError(PermissionsError):
    """Raised when a consent string cannot be decoded."""

    def __init__(self, consent: str | None, cause: Exception | str):
        # The string stays on the error only; logged fields are truncated
        self.consent = consent
        self.cause = cause
        super().__init__(f"malformed consent string: {cause}")


class VendorListFetchError(PermissionsError):
    """Raised when the vendor list for a version cannot be retrieved."""

    def __init__(self, version: int, cause: Exception | str):
        self.version = version
        self.cause = cause
        super().__init__(f"unable to fetch vendor list version {version}: {cause}")


class RequestCancelledError(VendorListFetchError):
    """Raised when the request context is cancelled or past its deadline."""


class InvalidMetadataContractError(PermissionsError):
    """Raised when decoded consent claims TCF v2 but lacks the v2 query surface."""
