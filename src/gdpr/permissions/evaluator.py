"""
TCF v2 purpose evaluation.

Combines decoded consent, a vendor's GVL capabilities and enforcement
configuration into per-purpose decisions.

Precedence for a single purpose:
    1. Publisher restriction NOT_ALLOWED denies, always.
    2. A configured vendor exception allows.
    3. Publisher restriction REQUIRE_CONSENT / REQUIRE_LEGITIMATE_INTEREST
       limits the decision to that legal basis.
    4. Otherwise consent or legitimate interest allows.
"""

from src.gdpr.config.enforcement import TCF2Config
from src.gdpr.consent.tcf2 import ConsentMetadata, RestrictionType
from src.gdpr.errors import InvalidMetadataContractError
from src.gdpr.utils.constants import (
    BID_REQUEST_PURPOSE,
    GEO_SPECIAL_FEATURE,
    STORAGE_PURPOSE,
    USER_ID_PURPOSES,
)
from src.gdpr.vendorlist.models import VendorCapability

from .models import ALLOW_BID_REQUEST_ONLY, AuctionPermissions


def _require_metadata(consent: object) -> ConsentMetadata:
    if not isinstance(consent, ConsentMetadata):
        raise InvalidMetadataContractError(
            f"decoded consent {type(consent).__name__} does not expose TCF v2 fields"
        )
    return consent


class ConsentEvaluator:
    """
    Evaluates purposes for one vendor.

    Holds only the enforcement config; safe to share between threads.
    """

    def __init__(self, config: TCF2Config):
        self.config = config

    def default_permissions(self) -> AuctionPermissions:
        """
        Permissions when consent is absent or cannot be evaluated.

        IDs never pass; bid requests and geo pass only when their
        purpose / feature is not enforced.
        """
        return AuctionPermissions(
            allow_bid_request=not self.config.purpose_enforced(BID_REQUEST_PURPOSE),
            pass_geo=not self.config.feature_one_enforced(),
            pass_id=False,
        )

    def check_purpose(
        self,
        consent: ConsentMetadata,
        vendor: VendorCapability,
        vendor_id: int,
        purpose: int,
        enforce_vendors: bool,
        vendor_exception: bool,
        weak_vendor_enforcement: bool,
    ) -> bool:
        """Decide a single purpose for a vendor."""
        restriction = consent.publisher_restriction(purpose, vendor_id)
        if restriction is RestrictionType.NOT_ALLOWED:
            return False

        if vendor_exception:
            return True

        if restriction is RestrictionType.REQUIRE_CONSENT:
            return self.consent_established(
                consent, vendor, vendor_id, purpose, enforce_vendors, weak_vendor_enforcement
            )
        if restriction is RestrictionType.REQUIRE_LEGITIMATE_INTEREST:
            return self.legitimate_interest_established(
                consent, vendor, vendor_id, purpose, enforce_vendors, weak_vendor_enforcement
            )

        return self.consent_established(
            consent, vendor, vendor_id, purpose, enforce_vendors, weak_vendor_enforcement
        ) or self.legitimate_interest_established(
            consent, vendor, vendor_id, purpose, enforce_vendors, weak_vendor_enforcement
        )

    def consent_established(
        self,
        consent: ConsentMetadata,
        vendor: VendorCapability,
        vendor_id: int,
        purpose: int,
        enforce_vendors: bool,
        weak_vendor_enforcement: bool,
    ) -> bool:
        if not consent.purpose_allowed(purpose):
            return False
        if weak_vendor_enforcement or not enforce_vendors:
            return True
        return vendor.purpose(purpose) and consent.vendor_consent(vendor_id)

    def legitimate_interest_established(
        self,
        consent: ConsentMetadata,
        vendor: VendorCapability,
        vendor_id: int,
        purpose: int,
        enforce_vendors: bool,
        weak_vendor_enforcement: bool,
    ) -> bool:
        if not consent.purpose_li_transparency(purpose):
            return False
        if weak_vendor_enforcement or not enforce_vendors:
            return True
        return vendor.legitimate_interest(purpose) and consent.vendor_legitimate_interest(vendor_id)

    def allow_sync(
        self,
        consent: object,
        vendor: VendorCapability,
        vendor_id: int,
        vendor_exception: bool,
    ) -> bool:
        """
        Decide storage access (purpose 1) for cookie syncs.

        Raises:
            InvalidMetadataContractError: consent lacks the v2 query surface
        """
        if not self.config.purpose_enforced(STORAGE_PURPOSE):
            return True

        metadata = _require_metadata(consent)

        if self.config.purpose_one_treatment_enabled() and metadata.purpose_one_treatment():
            return self.config.purpose_one_treatment_access_allowed()

        return self.check_purpose(
            metadata,
            vendor,
            vendor_id,
            STORAGE_PURPOSE,
            self.config.purpose_enforcing_vendors(STORAGE_PURPOSE),
            vendor_exception,
            False,
        )

    def allow_activities(
        self,
        consent: object,
        vendor: VendorCapability,
        vendor_id: int,
        bidder: str,
        weak_vendor_enforcement: bool,
    ) -> AuctionPermissions:
        """
        Decide bid request, geo and ID passing for an auction.

        Raises:
            InvalidMetadataContractError: consent lacks the v2 query surface
        """
        if not self.config.is_enabled():
            return ALLOW_BID_REQUEST_ONLY

        metadata = _require_metadata(consent)

        if self.config.feature_one_enforced():
            pass_geo = self.config.feature_one_vendor_exception(bidder) or (
                metadata.special_feature_opt_in(GEO_SPECIAL_FEATURE)
                and (vendor.special_feature(GEO_SPECIAL_FEATURE) or weak_vendor_enforcement)
            )
        else:
            pass_geo = True

        if self.config.purpose_enforced(BID_REQUEST_PURPOSE):
            allow_bid_request = self._check_configured_purpose(
                metadata, vendor, vendor_id, BID_REQUEST_PURPOSE, bidder, weak_vendor_enforcement
            )
        else:
            allow_bid_request = True

        pass_id = any(
            self._check_configured_purpose(
                metadata, vendor, vendor_id, purpose, bidder, weak_vendor_enforcement
            )
            for purpose in USER_ID_PURPOSES
        )

        return AuctionPermissions(
            allow_bid_request=allow_bid_request,
            pass_geo=pass_geo,
            pass_id=pass_id,
        )

    def _check_configured_purpose(
        self,
        consent: ConsentMetadata,
        vendor: VendorCapability,
        vendor_id: int,
        purpose: int,
        bidder: str,
        weak_vendor_enforcement: bool,
    ) -> bool:
        return self.check_purpose(
            consent,
            vendor,
            vendor_id,
            purpose,
            self.config.purpose_enforcing_vendors(purpose),
            self.config.purpose_vendor_exception(purpose, bidder),
            weak_vendor_enforcement,
        )
