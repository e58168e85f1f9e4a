"""Permission result models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuctionPermissions:
    """What a bidder may receive for one auction. Denies by default."""

    allow_bid_request: bool = False
    pass_geo: bool = False
    pass_id: bool = False

    def to_dict(self) -> dict[str, bool]:
        """Convert to dictionary for logging."""
        return {
            "allow_bid_request": self.allow_bid_request,
            "pass_geo": self.pass_geo,
            "pass_id": self.pass_id,
        }


ALLOW_ALL = AuctionPermissions(allow_bid_request=True, pass_geo=True, pass_id=True)
DENY_ALL = AuctionPermissions()

# Enforcement disabled but a valid vendor/consent pair exists
ALLOW_BID_REQUEST_ONLY = AuctionPermissions(allow_bid_request=True)
