"""GDPR applicability signal (``regs.ext.gdpr``)."""

from enum import Enum


class Signal(Enum):
    """Whether GDPR applies to a request."""
    AMBIGUOUS = -1
    NO = 0
    YES = 1


def parse_signal(value: str | int | None) -> Signal:
    """
    Parse a raw GDPR signal.

    Missing or empty values are ambiguous. Anything other than 0/1
    raises ValueError.
    """
    if value is None or value == "":
        return Signal.AMBIGUOUS

    raw = str(value).strip()
    if raw == "0":
        return Signal.NO
    if raw == "1":
        return Signal.YES
    raise ValueError(f"invalid GDPR signal {value!r}, expected 0 or 1")


def normalize_signal(signal: Signal, default_value: str) -> Signal:
    """Resolve an ambiguous signal using the host default value."""
    if signal is not Signal.AMBIGUOUS:
        return signal
    if default_value == "1":
        return Signal.YES
    return Signal.NO
