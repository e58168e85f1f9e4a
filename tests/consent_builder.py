"""Builds TCF consent strings for tests."""

import base64
from typing import Iterable

# 2020-09-13T12:26:40Z in deciseconds
DEFAULT_CREATED = 16_000_000_000

VendorEntry = int | tuple[int, int]


class BitWriter:
    """Accumulates big-endian bit fields."""

    def __init__(self):
        self.bits: list[int] = []

    def uint(self, value: int, width: int) -> None:
        for shift in reversed(range(width)):
            self.bits.append((value >> shift) & 1)

    def flag(self, value: bool) -> None:
        self.uint(1 if value else 0, 1)

    def bitfield(self, ids: Iterable[int], width: int) -> None:
        ids = set(ids)
        for i in range(1, width + 1):
            self.flag(i in ids)

    def letters(self, text: str) -> None:
        for c in text:
            self.uint(ord(c) - ord("A"), 6)

    def ranges(self, entries: Iterable[VendorEntry]) -> None:
        entries = list(entries)
        self.uint(len(entries), 12)
        for entry in entries:
            if isinstance(entry, tuple):
                self.flag(True)
                self.uint(entry[0], 16)
                self.uint(entry[1], 16)
            else:
                self.flag(False)
                self.uint(entry, 16)

    def encode(self) -> str:
        bits = self.bits + [0] * (-len(self.bits) % 8)
        data = bytes(
            int("".join(str(b) for b in bits[i:i + 8]), 2)
            for i in range(0, len(bits), 8)
        )
        return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _vendor_section(writer: BitWriter, entries: Iterable[VendorEntry], range_encoding: bool):
    entries = list(entries)
    max_id = max(
        (entry[1] if isinstance(entry, tuple) else entry for entry in entries), default=0
    )

    writer.uint(max_id, 16)
    writer.flag(range_encoding)
    if range_encoding:
        writer.ranges(entries)
        return

    ids = set()
    for entry in entries:
        if isinstance(entry, tuple):
            ids.update(range(entry[0], entry[1] + 1))
        else:
            ids.add(entry)
    writer.bitfield(ids, max_id)


def build_tcf2(
    purpose_consents: Iterable[int] = (),
    purpose_li: Iterable[int] = (),
    vendor_consents: Iterable[VendorEntry] = (),
    vendor_li: Iterable[VendorEntry] = (),
    special_features: Iterable[int] = (),
    purpose_one_treatment: bool = False,
    vendor_list_version: int = 2,
    restrictions: Iterable[tuple[int, int, Iterable[VendorEntry]]] = (),
    range_encoding: bool = False,
    cmp_id: int = 7,
    created: int = DEFAULT_CREATED,
) -> str:
    """
    Encode a TCF v2 core segment.

    restrictions: (purpose, restriction type wire value, vendor entries)
    """
    w = BitWriter()
    w.uint(2, 6)
    w.uint(created, 36)
    w.uint(created, 36)
    w.uint(cmp_id, 12)
    w.uint(3, 12)          # cmp version
    w.uint(1, 6)           # consent screen
    w.letters("EN")
    w.uint(vendor_list_version, 12)
    w.uint(2, 6)           # policy version
    w.flag(False)         # service specific
    w.flag(False)         # non-standard texts
    w.bitfield(special_features, 12)
    w.bitfield(purpose_consents, 24)
    w.bitfield(purpose_li, 24)
    w.flag(purpose_one_treatment)
    w.letters("DE")

    _vendor_section(w, vendor_consents, range_encoding)
    _vendor_section(w, vendor_li, range_encoding)

    restrictions = list(restrictions)
    w.uint(len(restrictions), 12)
    for purpose, restriction_type, entries in restrictions:
        w.uint(purpose, 6)
        w.uint(restriction_type, 2)
        w.ranges(entries)

    return w.encode()


def build_tcf1(vendor_list_version: int = 5) -> str:
    """Encode enough of a TCF v1 string to carry its version fields."""
    w = BitWriter()
    w.uint(1, 6)
    w.uint(0, 114)
    w.uint(vendor_list_version, 12)
    w.uint(0, 64)
    return w.encode()


def build_version(version: int) -> str:
    """A long-enough string whose version field is ``version``."""
    w = BitWriter()
    w.uint(version, 6)
    w.uint(0, 400)
    return w.encode()
