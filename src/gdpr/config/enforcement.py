"""
TCF v2 Enforcement Configuration

Per-purpose and per-feature enforcement toggles, vendor exceptions,
purpose one treatment handling and basic enforcement vendors.

The host config is loaded from YAML; accounts can override any field
with a partial dict where missing or None values inherit from the host:

    enabled: true
    purpose1:
      enforce_purpose: true
      enforce_vendors: true
      vendor_exceptions: [appnexus]
    special_feature1:
      enforce: true
      vendor_exceptions: []
    purpose_one_treatment:
      enabled: true
      access_allowed: true
    basic_enforcement_vendors: [somebidder]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

PURPOSE_IDS: tuple[int, ...] = tuple(range(1, 11))


def _get(data: dict[str, Any], key: str, inherited: Any) -> Any:
    """Read a key, inheriting when it is missing or None."""
    value = data.get(key)
    return inherited if value is None else value


def _names(values: Iterable[str]) -> frozenset[str]:
    return frozenset(str(v) for v in values)


@dataclass(frozen=True)
class PurposeConfig:
    """Enforcement settings for one TCF purpose."""
    enforce_purpose: bool = True
    enforce_vendors: bool = True
    vendor_exceptions: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enforce_purpose": self.enforce_purpose,
            "enforce_vendors": self.enforce_vendors,
            "vendor_exceptions": sorted(self.vendor_exceptions),
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], base: "PurposeConfig | None" = None
    ) -> "PurposeConfig":
        """Create from dictionary, inheriting unset fields from base."""
        base = base or cls()
        return cls(
            enforce_purpose=bool(_get(data, "enforce_purpose", base.enforce_purpose)),
            enforce_vendors=bool(_get(data, "enforce_vendors", base.enforce_vendors)),
            vendor_exceptions=_names(_get(data, "vendor_exceptions", base.vendor_exceptions)),
        )


@dataclass(frozen=True)
class SpecialFeatureConfig:
    """Enforcement settings for a special feature."""
    enforce: bool = True
    vendor_exceptions: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enforce": self.enforce,
            "vendor_exceptions": sorted(self.vendor_exceptions),
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], base: "SpecialFeatureConfig | None" = None
    ) -> "SpecialFeatureConfig":
        """Create from dictionary, inheriting unset fields from base."""
        base = base or cls()
        return cls(
            enforce=bool(_get(data, "enforce", base.enforce)),
            vendor_exceptions=_names(_get(data, "vendor_exceptions", base.vendor_exceptions)),
        )


@dataclass(frozen=True)
class PurposeOneTreatmentConfig:
    """
    Handling for consent strings that signal purpose one treatment.

    When enabled and the string signals it, purpose 1 checks return
    access_allowed without looking at purpose 1 consent.
    """
    enabled: bool = False
    access_allowed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "access_allowed": self.access_allowed}

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], base: "PurposeOneTreatmentConfig | None" = None
    ) -> "PurposeOneTreatmentConfig":
        """Create from dictionary, inheriting unset fields from base."""
        base = base or cls()
        return cls(
            enabled=bool(_get(data, "enabled", base.enabled)),
            access_allowed=bool(_get(data, "access_allowed", base.access_allowed)),
        )


_DEFAULT_PURPOSE = PurposeConfig()


def _default_purposes() -> Mapping[int, PurposeConfig]:
    return MappingProxyType({p: PurposeConfig() for p in PURPOSE_IDS})


@dataclass(frozen=True)
class TCF2Config:
    """
    Complete TCF v2 enforcement configuration.

    Immutable once built; share one instance across requests.
    Purposes without an entry are fully enforced with no exceptions.
    """
    enabled: bool = True
    purposes: Mapping[int, PurposeConfig] = field(default_factory=_default_purposes)
    special_feature_one: SpecialFeatureConfig = field(default_factory=SpecialFeatureConfig)
    purpose_one_treatment: PurposeOneTreatmentConfig = field(
        default_factory=PurposeOneTreatmentConfig
    )
    basic_enforcement_vendors: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "purposes", MappingProxyType(dict(self.purposes)))

    def _purpose(self, purpose: int) -> PurposeConfig:
        return self.purposes.get(purpose, _DEFAULT_PURPOSE)

    def is_enabled(self) -> bool:
        return self.enabled

    def purpose_enforced(self, purpose: int) -> bool:
        return self._purpose(purpose).enforce_purpose

    def purpose_enforcing_vendors(self, purpose: int) -> bool:
        return self._purpose(purpose).enforce_vendors

    def purpose_vendor_exception(self, purpose: int, bidder: str) -> bool:
        return bidder in self._purpose(purpose).vendor_exceptions

    def feature_one_enforced(self) -> bool:
        return self.special_feature_one.enforce

    def feature_one_vendor_exception(self, bidder: str) -> bool:
        return bidder in self.special_feature_one.vendor_exceptions

    def purpose_one_treatment_enabled(self) -> bool:
        return self.purpose_one_treatment.enabled

    def purpose_one_treatment_access_allowed(self) -> bool:
        return self.purpose_one_treatment.access_allowed

    def basic_enforcement_vendor(self, bidder: str) -> bool:
        return bidder in self.basic_enforcement_vendors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary in the YAML layout."""
        result: dict[str, Any] = {"enabled": self.enabled}
        for purpose in sorted(self.purposes):
            result[f"purpose{purpose}"] = self.purposes[purpose].to_dict()
        result["special_feature1"] = self.special_feature_one.to_dict()
        result["purpose_one_treatment"] = self.purpose_one_treatment.to_dict()
        result["basic_enforcement_vendors"] = sorted(self.basic_enforcement_vendors)
        return result

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], base: "TCF2Config | None" = None
    ) -> "TCF2Config":
        """Create from dictionary, inheriting unset fields from base."""
        base = base or cls()
        purposes = {
            purpose: PurposeConfig.from_dict(
                data.get(f"purpose{purpose}") or {}, base._purpose(purpose)
            )
            for purpose in PURPOSE_IDS
        }
        return cls(
            enabled=bool(_get(data, "enabled", base.enabled)),
            purposes=purposes,
            special_feature_one=SpecialFeatureConfig.from_dict(
                data.get("special_feature1") or {}, base.special_feature_one
            ),
            purpose_one_treatment=PurposeOneTreatmentConfig.from_dict(
                data.get("purpose_one_treatment") or {}, base.purpose_one_treatment
            ),
            basic_enforcement_vendors=_names(
                _get(data, "basic_enforcement_vendors", base.basic_enforcement_vendors)
            ),
        )

    def with_account_overrides(self, account: dict[str, Any] | None) -> "TCF2Config":
        """Layer an account's partial TCF2 settings over this config."""
        if not account:
            return self
        return TCF2Config.from_dict(account, base=self)


def load_tcf2_config(path: str | Path | None = None) -> TCF2Config:
    """
    Load the host TCF2 config from a YAML file.

    Args:
        path: YAML file. Defaults to $GDPR_TCF2_CONFIG; when neither is
              set the fully enforced default config is returned.

    The document may hold the settings at the top level or under a
    ``tcf2`` key.
    """
    path = path or os.environ.get("GDPR_TCF2_CONFIG")
    if not path:
        return TCF2Config()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return TCF2Config.from_dict(data.get("tcf2", data))
