"""
Host-level GDPR settings.

Controls whether GDPR checks run at all, which vendor id the host
itself is registered as, how ambiguous signals resolve, publishers that
are exempt, and how vendor lists are fetched.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.gdpr.vendorlist.fetcher import DEFAULT_FETCH_TIMEOUT, DEFAULT_VENDOR_LIST_URL


@dataclass(frozen=True)
class GDPRHostConfig:
    """GDPR settings for the whole host."""

    enabled: bool = True

    # GVL id of the host; 0 means the host has no GVL registration and
    # host cookie checks always pass
    host_vendor_id: int = 0

    # How an ambiguous regs.gdpr signal resolves ("0" or "1")
    default_value: str = "1"

    # Publishers whose traffic is exempt from enforcement
    non_standard_publishers: frozenset[str] = field(default_factory=frozenset)

    # Vendor list fetching
    vendor_list_url: str = DEFAULT_VENDOR_LIST_URL
    vendor_list_timeout_ms: int = int(DEFAULT_FETCH_TIMEOUT * 1000)
    vendor_list_preload: tuple[int, ...] = ()

    def __post_init__(self):
        """Validate the default value and vendor id range."""
        if self.default_value not in ("0", "1"):
            raise ValueError(
                f"default_value must be '0' or '1', got {self.default_value!r}"
            )
        if not 0 <= self.host_vendor_id <= 0xFFFF:
            raise ValueError(
                f"host_vendor_id must be between 0 and 65535, got {self.host_vendor_id}"
            )

    @property
    def vendor_list_timeout(self) -> float:
        """Fetch timeout in seconds."""
        return self.vendor_list_timeout_ms / 1000.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GDPRHostConfig":
        """Create from dictionary, applying environment overrides."""
        enabled = data.get("enabled", True)
        host_vendor_id = data.get("host_vendor_id", 0)
        default_value = str(data.get("default_value", "1"))

        if "GDPR_ENABLED" in os.environ:
            enabled = os.environ["GDPR_ENABLED"].lower() in ("1", "true", "yes")
        if "GDPR_HOST_VENDOR_ID" in os.environ:
            host_vendor_id = os.environ["GDPR_HOST_VENDOR_ID"]
        if "GDPR_DEFAULT_VALUE" in os.environ:
            default_value = os.environ["GDPR_DEFAULT_VALUE"]

        return cls(
            enabled=bool(enabled),
            host_vendor_id=int(host_vendor_id),
            default_value=default_value,
            non_standard_publishers=frozenset(
                str(p) for p in data.get("non_standard_publishers", [])
            ),
            vendor_list_url=data.get("vendor_list_url", DEFAULT_VENDOR_LIST_URL),
            vendor_list_timeout_ms=int(
                data.get("vendor_list_timeout_ms", int(DEFAULT_FETCH_TIMEOUT * 1000))
            ),
            vendor_list_preload=tuple(int(v) for v in data.get("vendor_list_preload", [])),
        )


def load_host_config(path: str | Path) -> GDPRHostConfig:
    """
    Load host GDPR settings from a YAML file.

    The document may hold the settings at the top level or under a
    ``gdpr`` key.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return GDPRHostConfig.from_dict(data.get("gdpr", data))
