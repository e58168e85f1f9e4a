"""
Global Vendor List access.

Vendor capability models and the cached GVL fetcher.
"""

from src.gdpr.vendorlist.models import (
    AlwaysCapableVendor,
    GVLVendor,
    VendorCapability,
    VendorList,
)
from src.gdpr.vendorlist.fetcher import (
    RedisVendorListCache,
    VendorListFetcher,
)

__all__ = [
    'AlwaysCapableVendor',
    'GVLVendor',
    'VendorCapability',
    'VendorList',
    'RedisVendorListCache',
    'VendorListFetcher',
]
