from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Set

from autoleadgen.urls import normalize_profile_url

logger = logging.getLogger(__name__)


class DeduplicationStore:
    """Persistent set of normalized profile URLs seen across runs.

    Mutations go through one asyncio lock. Writes to disk happen only on
    ``flush()``; lookups always reflect the in-memory set.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._seen: Set[str] = set()
        self._lock = asyncio.Lock()
        self._dirty = False
        self._load()

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as e:
            logger.warning("dedup: could not read %s (%s); starting empty", self.path, e)
            return
        if isinstance(data, dict):
            data = data.get("urls") or []
        self._seen = {normalize_profile_url(u) for u in data if isinstance(u, str) and u.strip()}
        logger.info("dedup: loaded %d seen URLs from %s", len(self._seen), self.path)

    async def is_duplicate(self, url: str) -> bool:
        key = normalize_profile_url(url)
        async with self._lock:
            return key in self._seen

    async def mark_seen(self, url: str) -> None:
        key = normalize_profile_url(url)
        if not key:
            return
        async with self._lock:
            if key not in self._seen:
                self._seen.add(key)
                self._dirty = True

    async def admit(self, url: str) -> bool:
        """Check and mark in one step. True when the URL was new."""
        key = normalize_profile_url(url)
        if not key:
            return False
        async with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            self._dirty = True
            return True

    async def import_existing(self, urls: Iterable[str]) -> int:
        added = 0
        async with self._lock:
            for u in urls:
                key = normalize_profile_url(u)
                if key and key not in self._seen:
                    self._seen.add(key)
                    added += 1
            if added:
                self._dirty = True
        logger.info("dedup: imported %d existing URLs", added)
        return added

    async def clear(self) -> None:
        async with self._lock:
            self._seen.clear()
            self._dirty = True

    async def count(self) -> int:
        async with self._lock:
            return len(self._seen)

    async def flush(self) -> None:
        async with self._lock:
            if not self.path or not self._dirty:
                return
            payload = json.dumps(sorted(self._seen), ensure_ascii=False, indent=2)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
            self._dirty = False
        logger.debug("dedup: flushed to %s", self.path)
