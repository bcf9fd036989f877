from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field

from autoleadgen.urls import normalize_profile_url
from schemas.leads import Contact, MessageStatus

logger = logging.getLogger(__name__)


class StatusEntry(BaseModel):
    status: MessageStatus
    lastUpdated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    errorMessage: Optional[str] = None


def status_path_for(batch_file: Path) -> Path:
    """``contacts.csv`` -> ``contacts_status.json`` in the same directory."""
    p = Path(batch_file)
    return p.with_name(f"{p.stem}_status.json")


class StatusStore:
    """Per-batch send statuses keyed by profile URL.

    Saving merges into what is already on disk, so concurrent partial writers
    (or an earlier run of the same batch) never lose entries.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def for_batch(cls, batch_file: Path) -> "StatusStore":
        return cls(status_path_for(batch_file))

    def load(self) -> Dict[str, StatusEntry]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            logger.warning("status file %s unreadable: %s", self.path, e)
            return {}
        out: Dict[str, StatusEntry] = {}
        for url, entry in (raw.get("statuses") or {}).items():
            try:
                out[url] = StatusEntry.model_validate(entry)
            except ValueError as e:
                logger.warning("status file %s: skipping %s (%s)", self.path, url, e)
        return out

    def save(self, contacts: Iterable[Contact]) -> int:
        merged = self.load()
        n = 0
        for c in contacts:
            merged[c.profile_url] = StatusEntry(
                status=c.message_status,
                lastUpdated=c.last_attempt_at or datetime.now(timezone.utc),
                errorMessage=c.error_message,
            )
            n += 1
        payload = {
            "statuses": {
                url: entry.model_dump(mode="json", exclude_none=True)
                for url, entry in merged.items()
            }
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
        return n

    def apply(self, contacts: Iterable[Contact]) -> int:
        """Restore saved statuses onto freshly imported contacts."""
        saved = {normalize_profile_url(url): entry for url, entry in self.load().items()}
        restored = 0
        for c in contacts:
            entry = saved.get(c.normalized_url)
            if entry is None:
                continue
            c.message_status = entry.status
            c.last_attempt_at = entry.lastUpdated
            c.error_message = entry.errorMessage
            restored += 1
        return restored

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
