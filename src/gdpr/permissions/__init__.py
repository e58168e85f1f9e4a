"""
GDPR Permissions Module - TCF v2 enforcement for auctions and cookie syncs.

Decides whether hosts and bidders may sync cookies, and whether bidders
may receive bid requests, geolocation and user identifiers.
"""

from src.gdpr.permissions.engine import (
    AllowHostCookies,
    AlwaysAllow,
    Permissions,
    PermissionsEngine,
    new_permissions,
)
from src.gdpr.permissions.evaluator import ConsentEvaluator
from src.gdpr.permissions.models import (
    ALLOW_ALL,
    ALLOW_BID_REQUEST_ONLY,
    DENY_ALL,
    AuctionPermissions,
)
from src.gdpr.permissions.resolver import VendorIDResolver

__all__ = [
    'AllowHostCookies',
    'AlwaysAllow',
    'Permissions',
    'PermissionsEngine',
    'new_permissions',
    'ConsentEvaluator',
    'ALLOW_ALL',
    'ALLOW_BID_REQUEST_ONLY',
    'DENY_ALL',
    'AuctionPermissions',
    'VendorIDResolver',
]
