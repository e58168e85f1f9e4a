"""Bidder to GVL vendor id resolution."""

from types import MappingProxyType
from typing import Mapping


class VendorIDResolver:
    """
    Maps bidders to GVL vendor ids.

    Alias entries are keyed by the alias name a bidder is configured
    under and take precedence over the core bidder table.
    """

    def __init__(
        self,
        vendor_ids: Mapping[str, int],
        alias_vendor_ids: Mapping[str, int] | None = None,
    ):
        self._vendor_ids = MappingProxyType(dict(vendor_ids))
        self._alias_vendor_ids = MappingProxyType(dict(alias_vendor_ids or {}))

    def vendor_id(self, bidder: str) -> int | None:
        """Look up a bidder in the core table only."""
        return self._vendor_ids.get(bidder)

    def resolve(self, bidder_core_name: str, bidder_alias: str) -> int | None:
        """
        Resolve the vendor id for a bidder.

        Args:
            bidder_core_name: The adapter's core bidder name
            bidder_alias: The name the bidder appears under in the request

        Returns:
            The vendor id, or None if neither table has an entry
        """
        vendor_id = self._alias_vendor_ids.get(bidder_alias)
        if vendor_id is not None:
            return vendor_id
        return self._vendor_ids.get(bidder_core_name)
