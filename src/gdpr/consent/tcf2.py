"""
TCF consent string decoding.

Decodes the core segment of an IAB TCF v2 consent string into a
queryable ``TCF2Consent``. TCF v1 strings decode to ``LegacyConsent``,
which only exposes the version fields; permission checks treat them as
not evaluable.

Core segment layout (bit widths):
    Version(6) Created(36) LastUpdated(36) CmpId(12) CmpVersion(12)
    ConsentScreen(6) ConsentLanguage(12) VendorListVersion(12)
    TcfPolicyVersion(6) IsServiceSpecific(1) UseNonStandardTexts(1)
    SpecialFeatureOptIns(12) PurposesConsent(24) PurposesLITransparency(24)
    PurposeOneTreatment(1) PublisherCC(12)
    VendorConsents(section) VendorLegitimateInterests(section)
    PublisherRestrictions(section)
"""

import base64
import binascii
import bisect
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Protocol, runtime_checkable

from src.gdpr.errors import MalformedConsentError

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")

# Bit offset of VendorListVersion in a TCF v1 string
_V1_VENDOR_LIST_OFFSET = 120


class RestrictionType(Enum):
    """Publisher restriction types. Values match the wire encoding."""
    NONE = -1
    NOT_ALLOWED = 0
    REQUIRE_CONSENT = 1
    REQUIRE_LEGITIMATE_INTEREST = 2


# Checked in this order when a vendor has several restrictions for one purpose
_RESTRICTION_PRECEDENCE = (
    RestrictionType.NOT_ALLOWED,
    RestrictionType.REQUIRE_CONSENT,
    RestrictionType.REQUIRE_LEGITIMATE_INTEREST,
)


@runtime_checkable
class ConsentMetadata(Protocol):
    """Query surface the permission checks need from a decoded v2 string."""

    version: int
    vendor_list_version: int

    def purpose_allowed(self, purpose: int) -> bool: ...

    def purpose_li_transparency(self, purpose: int) -> bool: ...

    def vendor_consent(self, vendor_id: int) -> bool: ...

    def vendor_legitimate_interest(self, vendor_id: int) -> bool: ...

    def special_feature_opt_in(self, feature_id: int) -> bool: ...

    def purpose_one_treatment(self) -> bool: ...

    def publisher_restriction(self, purpose: int, vendor_id: int) -> RestrictionType: ...


class VendorRanges:
    """
    Inclusive vendor id spans from a range-encoded section.

    Spans are sorted and merged on construction; membership is a binary
    search over span starts, so a range never expands into its ids.
    """

    __slots__ = ("_starts", "_ends")

    def __init__(self, spans: Iterable[tuple[int, int]] = ()):
        merged: list[list[int]] = []
        for start, end in sorted(spans):
            if merged and start <= merged[-1][1] + 1:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end])
        self._starts = tuple(start for start, _ in merged)
        self._ends = tuple(end for _, end in merged)

    @property
    def spans(self) -> tuple[tuple[int, int], ...]:
        return tuple(zip(self._starts, self._ends))

    def __contains__(self, vendor_id: object) -> bool:
        if not isinstance(vendor_id, int):
            return False
        i = bisect.bisect_right(self._starts, vendor_id) - 1
        return i >= 0 and vendor_id <= self._ends[i]

    def __bool__(self) -> bool:
        return bool(self._starts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VendorRanges):
            return NotImplemented
        return self._starts == other._starts and self._ends == other._ends

    def __hash__(self) -> int:
        return hash((self._starts, self._ends))

    def __repr__(self) -> str:
        return f"VendorRanges({list(self.spans)!r})"


# Either a decoded bitfield or range-encoded spans; both answer ``in``
VendorIds = frozenset[int] | VendorRanges


class _BitReader:
    """Reads big-endian bit fields from decoded consent bytes."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0
        self._length = len(data) * 8

    def read_int(self, bits: int) -> int:
        if self._pos + bits > self._length:
            raise ValueError(
                f"truncated: need {bits} bits at offset {self._pos}, have {self._length}"
            )
        value = 0
        for _ in range(bits):
            byte = self._data[self._pos >> 3]
            value = (value << 1) | ((byte >> (7 - (self._pos & 7))) & 1)
            self._pos += 1
        return value

    def read_bool(self) -> bool:
        return self.read_int(1) == 1

    def read_bitfield(self, bits: int) -> frozenset[int]:
        """Read a bitfield where bit N (1-indexed) marks id N."""
        ids = set()
        for i in range(1, bits + 1):
            if self.read_bool():
                ids.add(i)
        return frozenset(ids)

    def read_letters(self, count: int) -> str:
        return "".join(chr(ord("A") + self.read_int(6)) for _ in range(count))

    def read_spans(self) -> list[tuple[int, int]]:
        """Read a NumEntries(12) list of single ids or inclusive id ranges."""
        spans = []
        for _ in range(self.read_int(12)):
            is_range = self.read_bool()
            start = self.read_int(16)
            end = self.read_int(16) if is_range else start
            if end < start:
                raise ValueError(f"invalid vendor range {start}-{end}")
            spans.append((start, end))
        return spans

    def read_vendor_section(self) -> VendorIds:
        max_vendor_id = self.read_int(16)
        if self.read_bool():
            return VendorRanges(self.read_spans())
        return self.read_bitfield(max_vendor_id)

    def seek(self, pos: int) -> None:
        self._pos = pos


def _decode_bytes(segment: str) -> bytes:
    if not _BASE64URL.match(segment):
        raise ValueError("not base64url encoded")

    padding = 4 - (len(segment) % 4)
    if padding != 4:
        segment = segment + ("=" * padding)
    return base64.urlsafe_b64decode(segment)


def _timestamp(deciseconds: int) -> datetime:
    return datetime.fromtimestamp(deciseconds / 10, tz=timezone.utc)


@dataclass(frozen=True)
class LegacyConsent:
    """A TCF v1 consent string. Only version fields are decoded."""
    raw_string: str
    version: int = 1
    vendor_list_version: int = 0


@dataclass(frozen=True)
class TCF2Consent:
    """
    Decoded TCF v2 core segment.

    Immutable; one instance is owned by a single permission evaluation.
    """
    raw_string: str
    version: int = 2

    # Metadata
    created: datetime | None = None
    last_updated: datetime | None = None
    cmp_id: int = 0
    cmp_version: int = 0
    consent_screen: int = 0
    consent_language: str = "EN"
    vendor_list_version: int = 0
    policy_version: int = 0
    is_service_specific: bool = False
    use_non_standard_texts: bool = False
    publisher_country_code: str = "AA"

    # User choices
    special_feature_optins: frozenset[int] = field(default_factory=frozenset)
    purpose_consents: frozenset[int] = field(default_factory=frozenset)
    purpose_li: frozenset[int] = field(default_factory=frozenset)
    is_purpose_one_treatment: bool = False
    vendor_consents: VendorIds = field(default_factory=frozenset)
    vendor_li: VendorIds = field(default_factory=frozenset)

    # purpose -> restriction type -> vendor ids
    publisher_restrictions: dict[int, dict[RestrictionType, VendorIds]] = field(
        default_factory=dict
    )

    def purpose_allowed(self, purpose: int) -> bool:
        """Check if the user consented to a purpose."""
        return purpose in self.purpose_consents

    def purpose_li_transparency(self, purpose: int) -> bool:
        """Check if legitimate interest transparency was established for a purpose."""
        return purpose in self.purpose_li

    def vendor_consent(self, vendor_id: int) -> bool:
        return vendor_id in self.vendor_consents

    def vendor_legitimate_interest(self, vendor_id: int) -> bool:
        return vendor_id in self.vendor_li

    def special_feature_opt_in(self, feature_id: int) -> bool:
        return feature_id in self.special_feature_optins

    def purpose_one_treatment(self) -> bool:
        """True when the publisher signalled that purpose 1 was not disclosed."""
        return self.is_purpose_one_treatment

    def publisher_restriction(self, purpose: int, vendor_id: int) -> RestrictionType:
        """Get the publisher restriction for a (purpose, vendor) pair."""
        by_type = self.publisher_restrictions.get(purpose)
        if not by_type:
            return RestrictionType.NONE
        for restriction in _RESTRICTION_PRECEDENCE:
            if vendor_id in by_type.get(restriction, ()):
                return restriction
        return RestrictionType.NONE


def _parse_v2(consent_string: str, reader: _BitReader) -> TCF2Consent:
    reader.seek(0)
    version = reader.read_int(6)
    created = reader.read_int(36)
    last_updated = reader.read_int(36)
    cmp_id = reader.read_int(12)
    cmp_version = reader.read_int(12)
    consent_screen = reader.read_int(6)
    consent_language = reader.read_letters(2)
    vendor_list_version = reader.read_int(12)
    policy_version = reader.read_int(6)
    is_service_specific = reader.read_bool()
    use_non_standard_texts = reader.read_bool()
    special_feature_optins = reader.read_bitfield(12)
    purpose_consents = reader.read_bitfield(24)
    purpose_li = reader.read_bitfield(24)
    purpose_one_treatment = reader.read_bool()
    publisher_country_code = reader.read_letters(2)

    vendor_consents = reader.read_vendor_section()
    vendor_li = reader.read_vendor_section()

    restriction_spans: dict[int, dict[RestrictionType, list[tuple[int, int]]]] = {}
    for _ in range(reader.read_int(12)):
        purpose = reader.read_int(6)
        type_code = reader.read_int(2)
        spans = reader.read_spans()
        if type_code == 3:
            # Undefined restriction type, skipped
            continue
        by_type = restriction_spans.setdefault(purpose, {})
        by_type.setdefault(RestrictionType(type_code), []).extend(spans)

    restrictions: dict[int, dict[RestrictionType, VendorIds]] = {
        purpose: {restriction: VendorRanges(spans) for restriction, spans in by_type.items()}
        for purpose, by_type in restriction_spans.items()
    }

    return TCF2Consent(
        raw_string=consent_string,
        version=version,
        created=_timestamp(created),
        last_updated=_timestamp(last_updated),
        cmp_id=cmp_id,
        cmp_version=cmp_version,
        consent_screen=consent_screen,
        consent_language=consent_language,
        vendor_list_version=vendor_list_version,
        policy_version=policy_version,
        is_service_specific=is_service_specific,
        use_non_standard_texts=use_non_standard_texts,
        publisher_country_code=publisher_country_code,
        special_feature_optins=special_feature_optins,
        purpose_consents=purpose_consents,
        purpose_li=purpose_li,
        is_purpose_one_treatment=purpose_one_treatment,
        vendor_consents=vendor_consents,
        vendor_li=vendor_li,
        publisher_restrictions=restrictions,
    )


def decode_consent(consent_string: str) -> TCF2Consent | LegacyConsent:
    """
    Decode a TCF consent string.

    Only the core segment (before the first '.') is read.

    Args:
        consent_string: The raw consent string from user.ext.consent

    Returns:
        TCF2Consent for v2 strings, LegacyConsent for v1 strings

    Raises:
        MalformedConsentError: empty, non-base64url, truncated or
            unsupported-version input
    """
    if not consent_string:
        raise MalformedConsentError(consent_string, "empty consent string")

    core_segment = consent_string.split(".", 1)[0]
    try:
        reader = _BitReader(_decode_bytes(core_segment))
        version = reader.read_int(6)

        if version == 1:
            reader.seek(_V1_VENDOR_LIST_OFFSET)
            return LegacyConsent(
                raw_string=consent_string,
                version=1,
                vendor_list_version=reader.read_int(12),
            )
        if version != 2:
            raise ValueError(f"unsupported TCF version {version}")

        return _parse_v2(consent_string, reader)

    except (binascii.Error, ValueError) as e:
        raise MalformedConsentError(consent_string, e) from e
