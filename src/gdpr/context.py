"""
Request-scoped context for permission checks.

Carries the per-request privacy inputs (GDPR signal, consent string,
publisher) plus cancellation state. The vendor list fetch is the only
blocking step of a permission check and consults the context before and
during network I/O.
"""

import threading
import time
from dataclasses import dataclass, field

from src.gdpr.consent.signal import Signal, normalize_signal, parse_signal
from src.gdpr.errors import RequestCancelledError


@dataclass(frozen=True)
class RequestContext:
    """Privacy inputs and cancellation for one auction request."""
    gdpr_signal: Signal = Signal.AMBIGUOUS
    consent: str = ""
    publisher_id: str = ""

    # time.monotonic() value after which the request is abandoned
    deadline: float | None = None
    cancel_event: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False
    )

    @classmethod
    def with_timeout(cls, timeout: float, **kwargs) -> "RequestContext":
        """Create a context that expires ``timeout`` seconds from now."""
        return cls(deadline=time.monotonic() + timeout, **kwargs)

    @classmethod
    def from_openrtb(
        cls,
        request: dict,
        default_value: str = "1",
        timeout: float | None = None,
    ) -> "RequestContext":
        """
        Extract privacy inputs from an OpenRTB bid request.

        Reads regs.gdpr (falling back to regs.ext.gdpr), user.consent
        (falling back to user.ext.consent) and the site or app
        publisher id. An ambiguous signal is resolved with the host
        default value.

        Raises:
            ValueError: if the GDPR signal is present but not 0 or 1
        """
        # OpenRTB objects may be present but null
        regs = request.get('regs') or {}
        user = request.get('user') or {}
        publisher = (
            (request.get('site') or {}).get('publisher')
            or (request.get('app') or {}).get('publisher')
            or {}
        )

        raw_signal = regs.get('gdpr')
        if raw_signal is None:
            raw_signal = (regs.get('ext') or {}).get('gdpr')
        signal = normalize_signal(parse_signal(raw_signal), default_value)
        consent = user.get('consent') or (user.get('ext') or {}).get('consent') or ''

        deadline = time.monotonic() + timeout if timeout is not None else None
        return cls(
            gdpr_signal=signal,
            consent=consent,
            publisher_id=str(publisher.get('id') or ''),
            deadline=deadline,
        )

    def cancel(self) -> None:
        """Abandon the request; pending vendor list fetches fail."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self, version: int = 0) -> None:
        """
        Raise if the request was cancelled or ran out of time.

        Raises:
            RequestCancelledError: cancelled or past the deadline
        """
        if self.cancelled:
            raise RequestCancelledError(version, "request cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise RequestCancelledError(version, "request deadline exceeded")
