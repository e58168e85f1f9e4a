"""
Vendor list fetching with caching.

GVL archive versions never change once published, so parsed lists are
kept in-process for the life of the fetcher. An optional Redis cache
shares the raw JSON documents between processes so a fleet downloads
each version once.

Redis Key Structure:
    gdpr:vendorlist:{version} (string) - GVL JSON document
"""

import json
import threading
from typing import Any, Iterable

import redis
import requests

from src.gdpr.context import RequestContext
from src.gdpr.errors import VendorListFetchError
from src.gdpr.logging import vendorlist_logger
from src.gdpr.vendorlist.models import VendorList

logger = vendorlist_logger()

DEFAULT_VENDOR_LIST_URL = (
    "https://vendor-list.consensu.org/v2/archives/vendor-list-v{version}.json"
)
DEFAULT_FETCH_TIMEOUT = 2.0  # seconds

REDIS_VENDOR_LIST_PREFIX = "gdpr:vendorlist:"
DEFAULT_REDIS_TTL = 7 * 24 * 3600


class RedisVendorListCache:
    """Shares raw GVL documents between processes through Redis."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        ttl: int = DEFAULT_REDIS_TTL,
        client: redis.Redis | None = None,
    ):
        """
        Initialize the cache.

        Args:
            redis_url: Redis connection URL (ignored when client is given)
            ttl: Seconds to keep each document
            client: Existing Redis client
        """
        self._redis = client or redis.from_url(redis_url, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _key(version: int) -> str:
        return f"{REDIS_VENDOR_LIST_PREFIX}{version}"

    def load(self, version: int) -> dict[str, Any] | None:
        """Get a cached document, or None on a miss or Redis failure."""
        try:
            raw = self._redis.get(self._key(version))
        except redis.RedisError as e:
            logger.warning("Vendor list cache read failed", version=version, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt cached vendor list", version=version)
            return None

    def store(self, version: int, document: dict[str, Any]) -> bool:
        """Cache a document. Returns False if Redis rejected the write."""
        try:
            self._redis.set(self._key(version), json.dumps(document), ex=self.ttl)
            return True
        except redis.RedisError as e:
            logger.warning("Vendor list cache write failed", version=version, error=str(e))
            return False


class VendorListFetcher:
    """
    Retrieves vendor lists by version.

    Instances are callable as ``fetcher(ctx, version)`` and are safe to
    share between threads; the in-process cache is lock-protected.
    Failures are not retried here.
    """

    def __init__(
        self,
        url_template: str = DEFAULT_VENDOR_LIST_URL,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: requests.Session | None = None,
        cache: RedisVendorListCache | None = None,
    ):
        """
        Initialize the fetcher.

        Args:
            url_template: GVL archive URL with a ``{version}`` placeholder
            timeout: Upper bound in seconds for one HTTP fetch
            session: HTTP session (a new one is created if not provided)
            cache: Optional shared cache consulted before downloading
        """
        self.url_template = url_template
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache = cache
        self._lists: dict[int, VendorList] = {}
        self._lock = threading.Lock()

    def __call__(self, ctx: RequestContext, version: int) -> VendorList:
        return self.fetch(ctx, version)

    def fetch(self, ctx: RequestContext, version: int) -> VendorList:
        """
        Get the vendor list for a version.

        Args:
            ctx: Request context; a cancelled or expired context fails
                before any I/O
            version: GVL version declared by the consent string

        Raises:
            VendorListFetchError: download, parse or cancellation failure
        """
        with self._lock:
            cached = self._lists.get(version)
        if cached is not None:
            return cached

        ctx.check(version)

        vendor_list = self._load_shared(version)
        if vendor_list is None:
            vendor_list = self._download(ctx, version)

        with self._lock:
            return self._lists.setdefault(version, vendor_list)

    def preload(self, versions: Iterable[int]) -> list[int]:
        """
        Warm the cache. Failures are logged and skipped.

        Returns:
            Versions that are now cached
        """
        loaded = []
        for version in versions:
            ctx = RequestContext.with_timeout(self.timeout)
            try:
                self.fetch(ctx, version)
                loaded.append(version)
            except VendorListFetchError as e:
                logger.warning("Vendor list preload failed", version=version, error=str(e))
        return loaded

    def cached_versions(self) -> list[int]:
        with self._lock:
            return sorted(self._lists)

    def _load_shared(self, version: int) -> VendorList | None:
        if self.cache is None:
            return None
        document = self.cache.load(version)
        if document is None:
            return None
        try:
            return VendorList.from_json(document)
        except ValueError:
            logger.warning("Discarding invalid cached vendor list", version=version)
            return None

    def _download(self, ctx: RequestContext, version: int) -> VendorList:
        timeout = self.timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        url = self.url_template.format(version=version)
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as e:
            raise VendorListFetchError(version, e) from e

        # Cancelled while the request was in flight
        ctx.check(version)

        if response.status_code != 200:
            raise VendorListFetchError(version, f"HTTP {response.status_code} from {url}")

        try:
            document = response.json()
            vendor_list = VendorList.from_json(document)
        except ValueError as e:
            raise VendorListFetchError(version, e) from e

        if vendor_list.version != version:
            raise VendorListFetchError(
                version, f"document declares version {vendor_list.version}"
            )

        logger.info(
            "Vendor list fetched",
            version=version,
            vendors=len(vendor_list.vendors),
        )
        if self.cache is not None:
            self.cache.store(version, document)
        return vendor_list
