"""
GDPR permissions for The Nexus Engine.

Enforces IAB TCF v2 consent before the auction contacts demand
partners: host and bidder cookie syncs, bid requests, and passing
geolocation and user identifiers.
"""

from .config import GDPRHostConfig, TCF2Config, load_host_config, load_tcf2_config
from .consent import Signal, TCF2Consent, decode_consent, normalize_signal, parse_signal
from .context import RequestContext
from .errors import (
    InvalidMetadataContractError,
    MalformedConsentError,
    PermissionsError,
    RequestCancelledError,
    VendorListFetchError,
)
from .permissions import (
    ALLOW_ALL,
    ALLOW_BID_REQUEST_ONLY,
    DENY_ALL,
    AllowHostCookies,
    AlwaysAllow,
    AuctionPermissions,
    PermissionsEngine,
    new_permissions,
)
from .vendorlist import VendorList, VendorListFetcher

__version__ = '1.0.0'

__all__ = [
    'GDPRHostConfig',
    'TCF2Config',
    'load_host_config',
    'load_tcf2_config',
    'Signal',
    'TCF2Consent',
    'decode_consent',
    'normalize_signal',
    'parse_signal',
    'RequestContext',
    'InvalidMetadataContractError',
    'MalformedConsentError',
    'PermissionsError',
    'RequestCancelledError',
    'VendorListFetchError',
    'ALLOW_ALL',
    'ALLOW_BID_REQUEST_ONLY',
    'DENY_ALL',
    'AllowHostCookies',
    'AlwaysAllow',
    'AuctionPermissions',
    'PermissionsEngine',
    'new_permissions',
    'VendorList',
    'VendorListFetcher',
]
