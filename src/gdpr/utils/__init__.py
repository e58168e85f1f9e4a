"""GDPR Utilities."""

from .constants import (
    BID_REQUEST_PURPOSE,
    BIDDER_VENDOR_IDS,
    GEO_SPECIAL_FEATURE,
    STORAGE_PURPOSE,
    SUPPORTED_TCF_VERSION,
    USER_ID_PURPOSES,
)

__all__ = [
    'BID_REQUEST_PURPOSE',
    'BIDDER_VENDOR_IDS',
    'GEO_SPECIAL_FEATURE',
    'STORAGE_PURPOSE',
    'SUPPORTED_TCF_VERSION',
    'USER_ID_PURPOSES',
]
