"""JSON-lines outcome log.

One record per processed item (lead, contact, engager), written to stdout and,
when a log directory is available, to ``<dir>/<service>-YYYY-MM-DD.jsonl``.
Writes are best effort: a failing disk never interrupts a run.
"""
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_DEV_ENVS = {"dev", "development", "local", "localhost"}


def log_dir() -> Optional[Path]:
    configured = os.getenv("TROUBLESHOOT_LOG_DIR") or os.getenv("LOGS_DIR")
    if configured:
        return Path(configured).expanduser()
    env = (os.getenv("ENVIRONMENT") or "dev").lower()
    return Path(".log_runs") if env in _DEV_ENVS else None


def day_file(service: str, when: Optional[datetime] = None) -> Optional[Path]:
    base = log_dir()
    if base is None:
        return None
    when = when or datetime.now(timezone.utc)
    return base / f"{service}-{when:%Y-%m-%d}.jsonl"


def _record(service: str, level: str, message: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    rec: Dict[str, Any] = {
        "timestamp": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "level": level,
        "service": service,
        "message": message,
    }
    if data:
        rec["data"] = data
    return rec


def log_json(service: str, level: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
    line = json.dumps(_record(service, level, message, data), ensure_ascii=False, default=str)
    print(line)
    path = day_file(service)
    if path is None:
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
    except OSError as e:
        logger.debug("could not append to %s: %s", path, e)
