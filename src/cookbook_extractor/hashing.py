"""URL normalization and content hashing.

Two URLs that point at the same recipe page should share one cache entry, so
the cache key is the SHA-256 of a normalized form of the URL: scheme and host
lowercased, fragment dropped, tracking query parameters removed.

Example:
    >>> normalize_url("HTTPS://Example.com/pie?utm_source=x&id=3#top")
    'https://example.com/pie?id=3'
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Iterable
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from .config import DEFAULT_TRACKING_PARAMETERS
from .exceptions import InvalidArgumentError, MalformedUrlError

logger = logging.getLogger(__name__)


def _is_tracking(key: str, tracking_parameters: Iterable[str]) -> bool:
    name = unquote_plus(key).lower()
    for pattern in tracking_parameters:
        if pattern.endswith("*"):
            if name.startswith(pattern[:-1]):
                return True
        elif name == pattern:
            return True
    return False


def normalize_url(
    url: str, tracking_parameters: Iterable[str] = DEFAULT_TRACKING_PARAMETERS
) -> str:
    """Normalize a URL for cache keying.

    Args:
        url: Absolute URL of the source page
        tracking_parameters: Query keys to drop (case-insensitive, "utm_*" style
            entries match by prefix)

    Returns:
        URL with lowercase scheme and host, no fragment and no tracking
        parameters. Remaining parameters keep their order and raw encoding.

    Raises:
        MalformedUrlError: If the URL cannot be parsed
    """
    candidate = url.strip()
    if any(ch.isspace() for ch in candidate):
        raise MalformedUrlError("URL contains whitespace", url=url)

    try:
        parts = urlsplit(candidate)
        # Accessing port validates it
        _ = parts.port
    except ValueError as e:
        raise MalformedUrlError("URL cannot be parsed", url=url, error=str(e)) from e

    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise MalformedUrlError("URL must have a scheme and host", url=url)

    patterns = tuple(p.lower() for p in tracking_parameters)
    kept = [
        pair
        for pair in parts.query.split("&")
        if pair and not _is_tracking(pair.split("=", 1)[0], patterns)
    ]

    # User info is case-sensitive; only host and port are lowercased
    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"

    return urlunsplit((parts.scheme.lower(), netloc, parts.path, "&".join(kept), ""))


class ContentHasher:
    """Maps source URLs to stable SHA-256 cache keys.

    Hashes are memoized per raw URL string. The memo is safe to share between
    threads.

    Example:
        >>> hasher = ContentHasher()
        >>> len(hasher.hash("https://example.com/recipe"))
        64
    """

    def __init__(self, tracking_parameters: Iterable[str] = DEFAULT_TRACKING_PARAMETERS) -> None:
        self.tracking_parameters = tuple(tracking_parameters)
        self._memo: dict[str, str] = {}
        self._lock = threading.Lock()

    def hash(self, url: str | None) -> str:
        """Return the hex SHA-256 of the normalized URL.

        Raises:
            InvalidArgumentError: If the URL is None or blank
            MalformedUrlError: If the URL cannot be parsed
        """
        if url is None or not url.strip():
            raise InvalidArgumentError("URL must not be blank")

        with self._lock:
            cached = self._memo.get(url)
        if cached is not None:
            return cached

        normalized = normalize_url(url, self.tracking_parameters)
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        logger.debug(f"Hashed {url} -> {normalized} ({digest[:12]})")

        with self._lock:
            self._memo[url] = digest
        return digest

    def clear_cache(self) -> None:
        """Forget all memoized hashes."""
        with self._lock:
            self._memo.clear()

    @property
    def cache_size(self) -> int:
        """Number of memoized URLs."""
        with self._lock:
            return len(self._memo)
