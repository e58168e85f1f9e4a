"""
GDPR permissions engine.

Answers the three questions an auction service asks before contacting
bidders:
- may the host read/write its own cookie?
- may a bidder cookie sync?
- may a bidder get a bid request, and with geo and user IDs?

Engines are immutable after construction and safe to share between
threads. Per-request inputs arrive in a RequestContext.

Errors raised from a public operation carry the conservative result in
``err.fallback`` so callers that catch and continue fail closed.
"""

from typing import Any, Callable, Iterable, Mapping, Protocol

from src.gdpr.config.enforcement import TCF2Config
from src.gdpr.config.host_config import GDPRHostConfig
from src.gdpr.consent.signal import Signal
from src.gdpr.consent.tcf2 import decode_consent
from src.gdpr.context import RequestContext
from src.gdpr.errors import (
    InvalidMetadataContractError,
    MalformedConsentError,
    PermissionsError,
)
from src.gdpr.logging import permissions_logger
from src.gdpr.utils.constants import (
    BIDDER_VENDOR_IDS,
    STORAGE_PURPOSE,
    SUPPORTED_TCF_VERSION,
)
from src.gdpr.vendorlist.models import AlwaysCapableVendor, VendorCapability, VendorList

from .evaluator import ConsentEvaluator
from .models import ALLOW_ALL, AuctionPermissions, DENY_ALL
from .resolver import VendorIDResolver

logger = permissions_logger()

VendorListFetchFunc = Callable[[RequestContext, int], VendorList]
ConsentDecoder = Callable[[str], Any]

_ALWAYS_CAPABLE = AlwaysCapableVendor()


class Permissions(Protocol):
    """Public permission checks used by the request layer."""

    def host_cookies_allowed(self, ctx: RequestContext) -> bool: ...

    def bidder_sync_allowed(self, ctx: RequestContext, bidder: str) -> bool: ...

    def auction_activities_allowed(
        self, ctx: RequestContext, bidder_core_name: str, bidder_alias: str
    ) -> AuctionPermissions: ...


def _fail_closed(err: PermissionsError, fallback: Any, **fields: Any) -> None:
    err.fallback = fallback
    logger.warning(
        "GDPR permission check failed",
        error=str(err),
        error_type=type(err).__name__,
        **fields,
    )


class PermissionsEngine:
    """
    TCF v2 permission checks for one host configuration.

    Args:
        config: TCF2 enforcement config (host config with any account
            overrides already applied)
        fetch_vendor_list: Callable ``(ctx, version) -> VendorList``;
            raises VendorListFetchError on failure
        host_vendor_id: GVL id of the host itself
        vendor_ids: Bidder core name -> GVL id
        alias_vendor_ids: Bidder alias -> GVL id, checked first
        non_standard_publishers: Publisher ids exempt from enforcement
        decode: Consent string decoder
    """

    def __init__(
        self,
        config: TCF2Config,
        fetch_vendor_list: VendorListFetchFunc,
        host_vendor_id: int = 0,
        vendor_ids: Mapping[str, int] | None = None,
        alias_vendor_ids: Mapping[str, int] | None = None,
        non_standard_publishers: Iterable[str] = (),
        decode: ConsentDecoder = decode_consent,
    ):
        self.config = config
        self.evaluator = ConsentEvaluator(config)
        self.resolver = VendorIDResolver(
            BIDDER_VENDOR_IDS if vendor_ids is None else vendor_ids,
            alias_vendor_ids,
        )
        self.host_vendor_id = host_vendor_id
        self.non_standard_publishers = frozenset(non_standard_publishers)
        self._fetch_vendor_list = fetch_vendor_list
        self._decode = decode

    def host_cookies_allowed(self, ctx: RequestContext) -> bool:
        """Check whether the host may access its own cookie."""
        if ctx.gdpr_signal is not Signal.YES:
            return True

        try:
            return self._allow_sync(ctx, self.host_vendor_id, False)
        except PermissionsError as e:
            _fail_closed(e, False, vendor_id=self.host_vendor_id)
            raise

    def bidder_sync_allowed(self, ctx: RequestContext, bidder: str) -> bool:
        """Check whether a bidder may cookie sync."""
        if ctx.gdpr_signal is not Signal.YES:
            return True

        vendor_id = self.resolver.vendor_id(bidder)
        if vendor_id is None:
            return False

        vendor_exception = self.config.purpose_vendor_exception(STORAGE_PURPOSE, bidder)
        try:
            return self._allow_sync(ctx, vendor_id, vendor_exception)
        except PermissionsError as e:
            _fail_closed(e, False, bidder=bidder, vendor_id=vendor_id)
            raise

    def auction_activities_allowed(
        self,
        ctx: RequestContext,
        bidder_core_name: str,
        bidder_alias: str,
    ) -> AuctionPermissions:
        """
        Decide what a bidder may receive for this auction.

        Args:
            ctx: Request context
            bidder_core_name: The adapter's core bidder name
            bidder_alias: The name the bidder appears under in the request
        """
        if ctx.publisher_id in self.non_standard_publishers:
            return ALLOW_ALL

        if ctx.gdpr_signal is not Signal.YES:
            return ALLOW_ALL

        if not ctx.consent:
            return self.evaluator.default_permissions()

        weak_vendor_enforcement = self.config.basic_enforcement_vendor(bidder_alias)

        vendor_id = self.resolver.resolve(bidder_core_name, bidder_alias)
        if vendor_id is None:
            if not weak_vendor_enforcement:
                logger.debug(
                    "No vendor id for bidder",
                    bidder=bidder_core_name,
                    alias=bidder_alias,
                )
                return DENY_ALL
            vendor_id = 0

        try:
            permissions = self._allow_activities(
                ctx, vendor_id, bidder_core_name, weak_vendor_enforcement
            )
        except PermissionsError as e:
            _fail_closed(
                e,
                self.evaluator.default_permissions(),
                bidder=bidder_core_name,
                vendor_id=vendor_id,
            )
            raise

        logger.debug(
            "Auction permissions",
            bidder=bidder_core_name,
            vendor_id=vendor_id,
            weak_vendor_enforcement=weak_vendor_enforcement,
            **permissions.to_dict(),
        )
        return permissions

    def parse_and_resolve_vendor(
        self,
        ctx: RequestContext,
        vendor_id: int,
        consent: str,
    ) -> tuple[Any, VendorCapability | None]:
        """
        Decode a consent string and look up the vendor in its vendor list.

        Returns:
            (decoded consent, vendor capability). The capability is None
            for non-v2 strings or when the vendor is not on the list.

        Raises:
            MalformedConsentError: the string cannot be decoded
            VendorListFetchError: the vendor list cannot be retrieved
        """
        try:
            parsed = self._decode(consent)
        except ValueError as e:
            raise MalformedConsentError(consent, e) from e

        if getattr(parsed, "version", None) != SUPPORTED_TCF_VERSION:
            return parsed, None

        list_version = getattr(parsed, "vendor_list_version", None)
        if list_version is None:
            raise InvalidMetadataContractError(
                f"decoded consent {type(parsed).__name__} has no vendor list version"
            )

        vendor_list = self._fetch_vendor_list(ctx, list_version)
        return parsed, vendor_list.vendor(vendor_id)

    def _allow_sync(
        self,
        ctx: RequestContext,
        vendor_id: int,
        vendor_exception: bool,
    ) -> bool:
        if not ctx.consent:
            return False

        parsed, vendor = self.parse_and_resolve_vendor(ctx, vendor_id, ctx.consent)
        if vendor is None:
            return False

        return self.evaluator.allow_sync(parsed, vendor, vendor_id, vendor_exception)

    def _allow_activities(
        self,
        ctx: RequestContext,
        vendor_id: int,
        bidder: str,
        weak_vendor_enforcement: bool,
    ) -> AuctionPermissions:
        parsed, vendor = self.parse_and_resolve_vendor(ctx, vendor_id, ctx.consent)

        if vendor is None:
            version = getattr(parsed, "version", None)
            if weak_vendor_enforcement and version == SUPPORTED_TCF_VERSION:
                vendor = _ALWAYS_CAPABLE
            else:
                return self.evaluator.default_permissions()

        return self.evaluator.allow_activities(
            parsed, vendor, vendor_id, bidder, weak_vendor_enforcement
        )


class AllowHostCookies:
    """Wraps an engine so host cookie checks always pass."""

    def __init__(self, engine: PermissionsEngine):
        self.engine = engine

    def host_cookies_allowed(self, ctx: RequestContext) -> bool:
        return True

    def bidder_sync_allowed(self, ctx: RequestContext, bidder: str) -> bool:
        return self.engine.bidder_sync_allowed(ctx, bidder)

    def auction_activities_allowed(
        self,
        ctx: RequestContext,
        bidder_core_name: str,
        bidder_alias: str,
    ) -> AuctionPermissions:
        return self.engine.auction_activities_allowed(ctx, bidder_core_name, bidder_alias)


class AlwaysAllow:
    """Permits everything. Used when GDPR is disabled for the host."""

    def host_cookies_allowed(self, ctx: RequestContext) -> bool:
        return True

    def bidder_sync_allowed(self, ctx: RequestContext, bidder: str) -> bool:
        return True

    def auction_activities_allowed(
        self,
        ctx: RequestContext,
        bidder_core_name: str,
        bidder_alias: str,
    ) -> AuctionPermissions:
        return ALLOW_ALL


def new_permissions(
    host_config: GDPRHostConfig,
    tcf2_config: TCF2Config,
    fetch_vendor_list: VendorListFetchFunc,
    vendor_ids: Mapping[str, int] | None = None,
    alias_vendor_ids: Mapping[str, int] | None = None,
) -> Permissions:
    """
    Build the permissions policy for a host.

    Returns AlwaysAllow when GDPR is disabled, and wraps the engine in
    AllowHostCookies when the host has no GVL vendor id.
    """
    if not host_config.enabled:
        return AlwaysAllow()

    engine = PermissionsEngine(
        config=tcf2_config,
        fetch_vendor_list=fetch_vendor_list,
        host_vendor_id=host_config.host_vendor_id,
        vendor_ids=vendor_ids,
        alias_vendor_ids=alias_vendor_ids,
        non_standard_publishers=host_config.non_standard_publishers,
    )

    if host_config.host_vendor_id == 0:
        return AllowHostCookies(engine)
    return engine
