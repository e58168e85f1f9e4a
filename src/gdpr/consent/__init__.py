"""
Consent signal parsing.

GDPR applicability signals and TCF consent string decoding.
"""

from src.gdpr.consent.signal import Signal, normalize_signal, parse_signal
from src.gdpr.consent.tcf2 import (
    ConsentMetadata,
    LegacyConsent,
    RestrictionType,
    TCF2Consent,
    VendorRanges,
    decode_consent,
)

__all__ = [
    'Signal',
    'parse_signal',
    'normalize_signal',
    'ConsentMetadata',
    'LegacyConsent',
    'RestrictionType',
    'TCF2Consent',
    'VendorRanges',
    'decode_consent',
]
