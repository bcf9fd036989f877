import logging
import re
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from autoleadgen import settings

fmt = logging.Formatter("[%(levelname)s] %(asctime)s %(name)s :: %(message)s", "%H:%M:%S")


def configure_logging(level: Optional[str] = None, logs_dir: Optional[str] = None) -> logging.Logger:
    """Console logging plus an optional daily-rotated ``autoleadgen.log``.

    Safe to call more than once; handlers are only attached the first time.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL or "INFO").upper())
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, TimedRotatingFileHandler) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        root.addHandler(stream)

    log_dir = logs_dir or settings.LOGS_DIR
    if log_dir:
        path = Path(log_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        file_path = (path / "autoleadgen.log").resolve()
        if not any(
            isinstance(h, TimedRotatingFileHandler) and getattr(h, "baseFilename", None) == str(file_path)
            for h in root.handlers
        ):
            handler = TimedRotatingFileHandler(
                file_path,
                when="midnight",
                interval=1,
                backupCount=14,
                encoding="utf-8",
                utc=True,
            )
            handler.suffix = "%Y-%m-%d"
            handler.extMatch = re.compile(r"^\d{4}-\d{2}-\d{2}$")  # type: ignore[attr-defined]
            handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s", "%Y-%m-%d %H:%M:%S"))
            root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return root
