"""
Global Vendor List (GVL) models.

A VendorList is an immutable snapshot of one GVL version. Each vendor
entry exposes the purposes, legitimate interests and special features
it declared. ``AlwaysCapableVendor`` stands in for an unregistered
vendor under basic enforcement and claims every capability.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class VendorCapability(Protocol):
    """What a vendor declared in the GVL."""

    def purpose(self, purpose: int) -> bool: ...

    def legitimate_interest(self, purpose: int) -> bool: ...

    def special_feature(self, feature_id: int) -> bool: ...


@dataclass(frozen=True)
class GVLVendor:
    """
    A vendor entry from the GVL.

    Flexible purposes count for both consent and legitimate interest.
    """
    vendor_id: int
    name: str = ""
    purposes: frozenset[int] = field(default_factory=frozenset)
    leg_int_purposes: frozenset[int] = field(default_factory=frozenset)
    flexible_purposes: frozenset[int] = field(default_factory=frozenset)
    special_features: frozenset[int] = field(default_factory=frozenset)

    def purpose(self, purpose: int) -> bool:
        return purpose in self.purposes or purpose in self.flexible_purposes

    def legitimate_interest(self, purpose: int) -> bool:
        return purpose in self.leg_int_purposes or purpose in self.flexible_purposes

    def special_feature(self, feature_id: int) -> bool:
        return feature_id in self.special_features

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GVLVendor":
        """Create from a GVL v2 vendor JSON object."""
        return cls(
            vendor_id=int(data["id"]),
            name=data.get("name", ""),
            purposes=frozenset(data.get("purposes", [])),
            leg_int_purposes=frozenset(data.get("legIntPurposes", [])),
            flexible_purposes=frozenset(data.get("flexiblePurposes", [])),
            special_features=frozenset(data.get("specialFeatures", [])),
        )


class AlwaysCapableVendor:
    """Claims every capability."""

    def purpose(self, purpose: int) -> bool:
        return True

    def legitimate_interest(self, purpose: int) -> bool:
        return True

    def special_feature(self, feature_id: int) -> bool:
        return True


@dataclass(frozen=True)
class VendorList:
    """Immutable snapshot of one GVL version."""
    version: int
    vendors: Mapping[int, GVLVendor] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "vendors", MappingProxyType(dict(self.vendors)))

    def vendor(self, vendor_id: int) -> VendorCapability | None:
        """Look up a vendor, or None if it is not on this list."""
        return self.vendors.get(vendor_id)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "VendorList":
        """
        Create from a GVL v2 JSON document.

        Raises:
            ValueError: if required fields are missing or malformed
        """
        try:
            version = int(data["vendorListVersion"])
            vendors = {}
            for vendor_data in data.get("vendors", {}).values():
                vendor = GVLVendor.from_dict(vendor_data)
                vendors[vendor.vendor_id] = vendor
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"invalid vendor list document: {e}") from e
        return cls(version=version, vendors=vendors)
