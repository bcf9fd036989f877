"""Contact batch CSV files: ``firstName,lastName,profileURL,message,status``.

The header row is always skipped. ``status`` is optional and defaults to
pending. Quoted fields may contain commas and newlines.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List

from autoleadgen.errors import FileNotFound, InvalidFileFormatError, InvalidURLError
from autoleadgen.urls import is_valid_profile_url
from schemas.leads import Contact, MessageStatus

logger = logging.getLogger(__name__)

CONTACT_HEADER = ["firstName", "lastName", "profileURL", "message", "status"]
MIN_COLUMNS = 4


def parse_contacts(text: str, source: str = "CSV Import") -> List[Contact]:
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        raise InvalidFileFormatError("The file is empty")
    contacts: List[Contact] = []
    for index, row in enumerate(rows[1:], start=1):
        cells = [c.strip() for c in row]
        if len(cells) < MIN_COLUMNS or not any(cells):
            continue
        first, last, url, message = cells[:4]
        if not url:
            logger.info("csv: row %d has no profile URL; skipped", index)
            continue
        if not is_valid_profile_url(url):
            raise InvalidURLError(url)
        status = MessageStatus.parse(cells[4] if len(cells) > 4 else None)
        contacts.append(Contact(
            first_name=first,
            last_name=last,
            profile_url=url,
            message_text=message,
            message_status=status,
            position=index,
            source=source,
        ))
    return contacts


def import_contacts(path: Path) -> List[Contact]:
    p = Path(path)
    if not p.exists():
        raise FileNotFound(str(p))
    if p.suffix.lower() != ".csv":
        raise InvalidFileFormatError(f"Unsupported file type: {p.suffix or p.name}")
    try:
        text = p.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise InvalidFileFormatError(f"File is not UTF-8 text: {e}") from e
    contacts = parse_contacts(text)
    logger.info("csv: imported %d contacts from %s", len(contacts), p)
    return contacts


def format_contacts(contacts: Iterable[Contact]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(CONTACT_HEADER)
    for c in contacts:
        w.writerow([c.first_name, c.last_name, c.profile_url, c.effective_message, c.message_status.value])
    return buf.getvalue()


def export_contacts(path: Path, contacts: Iterable[Contact]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(format_contacts(contacts), encoding="utf-8")
