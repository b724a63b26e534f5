"""Content-hash keyed recipe cache.

One entry per canonical URL. An entry either holds the post-processed recipes
of a successful run (``valid=True``) or is an explicit "confirmed non-recipe"
marker (``valid=False``, no payload) so a page is never sent to the model
twice. Entries are overwritten on each store and their version incremented;
nothing is ever deleted here.

Example:
    >>> cache = FileRecipeCache(Path("~/.cache/cookbook-extractor"))
    >>> entry = cache.store(content_hash, url, recipes)
    >>> cache.lookup(content_hash).version
    1
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .exceptions import CacheUnavailableError, SerializationError
from .models import Recipe
from .serialization import decode_payload, encode_payload

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CacheEntry:
    """A stored extraction result.

    Attributes:
        content_hash: SHA-256 of the normalized source URL
        source_url: URL as first requested
        recipe_count: Number of recipes in the payload
        payload: YAML document, JSON array of YAML documents, or "" when invalid
        valid: False marks a confirmed non-recipe page
        created_at: First store time
        last_updated_at: Latest store time
        version: Incremented on every overwrite, starting at 1
    """

    content_hash: str
    source_url: str
    recipe_count: int
    payload: str
    valid: bool
    created_at: datetime
    last_updated_at: datetime
    version: int = 1

    def recipes(self) -> list[Recipe]:
        """Decode the payload back into recipes.

        Raises:
            SerializationError: If the payload is corrupted
        """
        if not self.valid:
            return []
        return decode_payload(self.payload)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["last_updated_at"] = self.last_updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            content_hash=data["content_hash"],
            source_url=data["source_url"],
            recipe_count=int(data["recipe_count"]),
            payload=data.get("payload") or "",
            valid=bool(data["valid"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_updated_at=datetime.fromisoformat(data["last_updated_at"]),
            version=int(data.get("version", 1)),
        )


def build_entry(
    previous: CacheEntry | None,
    content_hash: str,
    source_url: str,
    recipes: Sequence[Recipe] | None,
    now: datetime,
) -> CacheEntry:
    """Create the next entry for a hash, keeping creation time and bumping version."""
    recipes = list(recipes or [])
    entry = CacheEntry(
        content_hash=content_hash,
        source_url=source_url,
        recipe_count=len(recipes),
        payload=encode_payload(recipes),
        valid=bool(recipes),
        created_at=now,
        last_updated_at=now,
    )
    if previous is None:
        return entry
    return replace(entry, created_at=previous.created_at, version=previous.version + 1)


class InMemoryRecipeCache:
    """Thread-safe dictionary-backed cache."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def lookup(self, content_hash: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(content_hash)

    def store(
        self, content_hash: str, source_url: str, recipes: Sequence[Recipe] | None
    ) -> CacheEntry:
        with self._lock:
            entry = build_entry(
                self._entries.get(content_hash), content_hash, source_url, recipes, self._clock()
            )
            self._entries[content_hash] = entry
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileRecipeCache:
    """Cache that keeps one JSON document per content hash in a directory.

    Attributes:
        directory: Directory holding ``<hash>.json`` files (created on demand)
    """

    def __init__(self, directory: Path, clock: Callable[[], datetime] = _utcnow) -> None:
        self.directory = Path(directory).expanduser()
        self._lock = threading.Lock()
        self._clock = clock

    def _path(self, content_hash: str) -> Path:
        return self.directory / f"{content_hash}.json"

    def _read(self, content_hash: str) -> CacheEntry | None:
        path = self._path(content_hash)
        if not path.exists():
            return None
        try:
            with path.open(encoding="utf-8") as f:
                return CacheEntry.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheUnavailableError(
                "Failed to read cache entry", path=str(path), error=str(e)
            ) from e

    def lookup(self, content_hash: str) -> CacheEntry | None:
        """Return the stored entry or None.

        Raises:
            CacheUnavailableError: If the entry exists but cannot be read
        """
        with self._lock:
            return self._read(content_hash)

    def store(
        self, content_hash: str, source_url: str, recipes: Sequence[Recipe] | None
    ) -> CacheEntry:
        """Write an entry, replacing any previous one.

        Raises:
            CacheUnavailableError: If the directory or file cannot be written
        """
        with self._lock:
            try:
                previous = self._read(content_hash)
            except CacheUnavailableError:
                logger.warning(f"Overwriting unreadable cache entry {content_hash}")
                previous = None

            try:
                entry = build_entry(previous, content_hash, source_url, recipes, self._clock())
            except SerializationError as e:
                raise CacheUnavailableError(
                    "Failed to encode recipes", content_hash=content_hash, error=str(e)
                ) from e

            path = self._path(content_hash)
            tmp_path = path.with_suffix(".json.tmp")
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                with tmp_path.open("w", encoding="utf-8") as f:
                    json.dump(entry.to_dict(), f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, path)
            except OSError as e:
                raise CacheUnavailableError(
                    "Failed to write cache entry", path=str(path), error=str(e)
                ) from e

        logger.debug(f"Stored cache entry {content_hash} v{entry.version} ({path})")
        return entry
