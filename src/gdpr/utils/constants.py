"""GDPR Constants and Configuration Values."""

# IAB Global Vendor List IDs by bidder core name
# See: https://iabeurope.eu/vendor-list/
BIDDER_VENDOR_IDS: dict[str, int] = {
    # Premium SSPs
    "appnexus": 32,  # Xandr (AppNexus)
    "rubicon": 52,  # Magnite (Rubicon)
    "pubmatic": 76,
    "openx": 69,
    "ix": 10,  # Index Exchange
    # Mid-tier
    "triplelift": 28,
    "sovrn": 13,
    "sharethrough": 80,
    "gumgum": 61,
    "33across": 58,
    "conversant": 24,  # Epsilon
    "medianet": 142,
    # Video specialists
    "spotx": 165,
    "beachfront": 335,
    "unruly": 36,
    # Native specialists
    "teads": 132,
    "outbrain": 164,
    "taboola": 42,
    "criteo": 91,
    # Regional - EMEA
    "adform": 50,
    "smartadserver": 45,
    "improvedigital": 253,
}

# Purpose 1 governs storage / cookie access
STORAGE_PURPOSE: int = 1

# Purpose 2 gates sending a bid request at all
BID_REQUEST_PURPOSE: int = 2

# Purposes any one of which allows passing user identifiers
USER_ID_PURPOSES: tuple[int, ...] = tuple(range(2, 11))

# Special feature 1 (precise geolocation) gates passing geo
GEO_SPECIAL_FEATURE: int = 1

# Only TCF v2 strings carry enough information to evaluate
SUPPORTED_TCF_VERSION: int = 2
