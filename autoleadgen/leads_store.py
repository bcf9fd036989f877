from __future__ import annotations

import csv
import io
import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from autoleadgen.urls import normalize_profile_url
from schemas.leads import Lead, LeadStatus, LeadsStatistics, utcnow

logger = logging.getLogger(__name__)

LEADS_CSV_HEADER = [
    "FirstName", "LastName", "LinkedIn URL", "Email", "Phone",
    "Company", "Title", "Location", "Status", "Tags", "Notes",
]


class LeadStore:
    """The persistent Lead collection, one JSON file.

    Leads are unique by normalized profile URL. Every mutation is written
    through to disk.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._leads: List[Lead] = []
        self._load()

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as e:
            logger.warning("leads: could not read %s (%s); starting empty", self.path, e)
            return
        for item in raw if isinstance(raw, list) else []:
            try:
                self._leads.append(Lead.model_validate(item))
            except ValueError as e:
                logger.warning("leads: skipping invalid record: %s", e)
        logger.info("leads: loaded %d from %s", len(self._leads), self.path)

    def save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [lead.model_dump(mode="json") for lead in self._leads]
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    # -- queries ---------------------------------------------------------------

    def all(self) -> List[Lead]:
        return list(self._leads)

    def get(self, lead_id: str) -> Optional[Lead]:
        return next((lead for lead in self._leads if lead.id == lead_id), None)

    def contains_url(self, url: str) -> bool:
        key = normalize_profile_url(url)
        return any(lead.normalized_url == key for lead in self._leads)

    def by_status(self, status: LeadStatus) -> List[Lead]:
        return [lead for lead in self._leads if lead.status == status]

    def by_tag(self, tag: str) -> List[Lead]:
        return [lead for lead in self._leads if tag in lead.tags]

    def search(self, query: str) -> List[Lead]:
        q = (query or "").lower()
        return [
            lead for lead in self._leads
            if any(q in (v or "").lower() for v in (lead.first_name, lead.last_name, lead.company, lead.title, lead.email))
        ]

    def tags(self) -> List[str]:
        return sorted({t for lead in self._leads for t in lead.tags})

    def statistics(self) -> LeadsStatistics:
        stats = LeadsStatistics(total=len(self._leads))
        for lead in self._leads:
            if lead.status == LeadStatus.NEW:
                stats.new += 1
            elif lead.status == LeadStatus.CONTACTED:
                stats.contacted += 1
            elif lead.status == LeadStatus.RESPONDED:
                stats.responded += 1
            elif lead.status == LeadStatus.CONVERTED:
                stats.converted += 1
            elif lead.status == LeadStatus.NOT_INTERESTED:
                stats.not_interested += 1
        return stats

    # -- mutations -------------------------------------------------------------

    def add_leads(self, leads: Iterable[Lead]) -> List[Lead]:
        """Add leads whose normalized URL is not stored yet; returns those added."""
        known = {lead.normalized_url for lead in self._leads}
        added: List[Lead] = []
        for lead in leads:
            key = lead.normalized_url
            if not key or key in known:
                continue
            now = utcnow()
            stored = lead.model_copy(update={"created_at": now, "updated_at": now})
            self._leads.append(stored)
            known.add(key)
            added.append(stored)
        if added:
            self.save()
        logger.info("leads: added %d new lead(s)", len(added))
        return added

    def update(self, lead: Lead) -> bool:
        for i, existing in enumerate(self._leads):
            if existing.id == lead.id:
                self._leads[i] = lead.model_copy(update={"updated_at": utcnow()})
                self.save()
                return True
        return False

    def set_status(self, lead_id: str, status: LeadStatus) -> Optional[Lead]:
        lead = self.get(lead_id)
        if lead is None:
            return None
        update = {"status": status}
        if status == LeadStatus.CONTACTED:
            update["last_contacted_at"] = utcnow()
        updated = lead.model_copy(update=update)
        self.update(updated)
        return updated

    def add_tag(self, lead_id: str, tag: str) -> bool:
        lead = self.get(lead_id)
        if lead is None or not tag or tag in lead.tags:
            return False
        return self.update(lead.model_copy(update={"tags": lead.tags + [tag]}))

    def remove_tag(self, lead_id: str, tag: str) -> bool:
        lead = self.get(lead_id)
        if lead is None or tag not in lead.tags:
            return False
        return self.update(lead.model_copy(update={"tags": [t for t in lead.tags if t != tag]}))

    def delete(self, lead_ids: Iterable[str]) -> int:
        ids = set(lead_ids)
        before = len(self._leads)
        self._leads = [lead for lead in self._leads if lead.id not in ids]
        removed = before - len(self._leads)
        if removed:
            self.save()
        return removed

    # -- csv -------------------------------------------------------------------

    def export_csv(self) -> str:
        buf = io.StringIO()
        w = csv.writer(buf, lineterminator="\n")
        w.writerow(LEADS_CSV_HEADER)
        for lead in self._leads:
            w.writerow([
                lead.first_name, lead.last_name, lead.profile_url,
                lead.email or "", lead.phone or "", lead.company or "",
                lead.title or "", lead.location or "", lead.status.value,
                ";".join(lead.tags), lead.notes or "",
            ])
        return buf.getvalue()

    def import_csv(self, text: str) -> List[Lead]:
        """Import rows in the export layout; header skipped, fewer than 3 columns ignored."""
        parsed: List[Lead] = []
        for row in list(csv.reader(io.StringIO(text)))[1:]:
            cells = [c.strip() for c in row]
            if len(cells) < 3 or not cells[2]:
                continue

            def _cell(i: int) -> Optional[str]:
                return (cells[i] or None) if len(cells) > i else None

            try:
                status = LeadStatus(cells[8]) if len(cells) > 8 and cells[8] else LeadStatus.NEW
            except ValueError:
                status = LeadStatus.NEW
            parsed.append(Lead(
                first_name=cells[0],
                last_name=cells[1],
                profile_url=cells[2],
                email=_cell(3),
                phone=_cell(4),
                company=_cell(5),
                title=_cell(6),
                location=_cell(7),
                status=status,
                tags=[t for t in (_cell(9) or "").split(";") if t.strip()],
                notes=_cell(10),
                source="CSV Import",
            ))
        return self.add_leads(parsed)
