from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from autoleadgen.urls import build_search_url, display_name_from_url, normalize_profile_url


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    RESPONDED = "Responded"
    CONVERTED = "Converted"
    NOT_INTERESTED = "Not Interested"


class MessageStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    SENT = "Sent"
    FAILED = "Failed"
    SKIPPED = "Skipped"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "MessageStatus":
        """Lenient parse of a status cell; unknown or blank values are pending."""
        s = (raw or "").strip().lower().replace("_", " ").replace("-", " ")
        for member in cls:
            if member.value.lower() == s or member.name.lower().replace("_", " ") == s:
                return member
        return cls.PENDING


class Lead(BaseModel):
    id: str = Field(default_factory=new_id)
    first_name: str = ""
    last_name: str = ""
    profile_url: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    headline: Optional[str] = None
    about: Optional[str] = None
    education: Optional[str] = None
    connection_degree: Optional[str] = None
    follower_count: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    source: str = ""
    generated_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_contacted_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return self.full_name or display_name_from_url(self.profile_url)

    @property
    def normalized_url(self) -> str:
        return normalize_profile_url(self.profile_url)

    @property
    def has_contact_info(self) -> bool:
        return bool(self.email) and bool(self.phone)


class Contact(BaseModel):
    """A lead admitted to the outbound queue, with send tracking."""

    id: str = Field(default_factory=new_id)
    lead_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    profile_url: str
    message_text: str = ""
    generated_message: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    message_status: MessageStatus = MessageStatus.PENDING
    last_attempt_at: Optional[datetime] = None
    error_message: Optional[str] = None
    position: int = 0
    source: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return self.full_name or display_name_from_url(self.profile_url)

    @property
    def normalized_url(self) -> str:
        return normalize_profile_url(self.profile_url)

    @property
    def effective_message(self) -> str:
        if self.generated_message and self.generated_message.strip():
            return self.generated_message
        return self.message_text or ""

    @property
    def is_processable(self) -> bool:
        return self.message_status in (MessageStatus.PENDING, MessageStatus.FAILED)

    @classmethod
    def from_lead(cls, lead: Lead, position: int = 0) -> "Contact":
        return cls(
            lead_id=lead.id,
            first_name=lead.first_name,
            last_name=lead.last_name,
            profile_url=lead.profile_url,
            generated_message=lead.generated_message,
            company=lead.company,
            title=lead.title,
            position=position,
            source=lead.source,
        )


class ProfileData(BaseModel):
    headline: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    current_company: Optional[str] = None
    current_role: Optional[str] = None
    education: Optional[str] = None
    connection_degree: Optional[str] = None
    follower_count: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "ProfileData":
        """Build from a page-script record keyed in camelCase; blanks become None."""
        rec = record or {}

        def _s(key: str) -> Optional[str]:
            v = rec.get(key)
            if v is None:
                return None
            v = str(v).strip()
            return v or None

        return cls(
            headline=_s("headline"),
            location=_s("location"),
            about=_s("about"),
            current_company=_s("currentCompany"),
            current_role=_s("currentRole"),
            education=_s("education"),
            connection_degree=_s("connectionDegree"),
            follower_count=_s("followerCount"),
        )

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class EnrichmentResult(BaseModel):
    found: bool = False
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    name: Optional[str] = None


class SearchQuery(BaseModel):
    role: str
    location: str = ""

    @property
    def display_text(self) -> str:
        return f"{self.role} - {self.location}" if self.location else self.role

    def url(self, page: int = 0) -> str:
        return build_search_url(self.role, self.location, page)


class ScrapedLead(BaseModel):
    """A candidate row extracted from a search results page."""

    first_name: str = ""
    last_name: str = ""
    profile_url: str
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional["ScrapedLead"]:
        url = str(record.get("profileURL") or record.get("profileUrl") or "").strip()
        if not url:
            return None
        first = str(record.get("firstName") or "").strip()
        last = str(record.get("lastName") or "").strip()
        if not first and not last and record.get("name"):
            parts = str(record["name"]).strip().split(None, 1)
            first = parts[0] if parts else ""
            last = parts[1] if len(parts) > 1 else ""
        return cls(
            first_name=first,
            last_name=last,
            profile_url=url,
            title=(str(record.get("title") or "").strip() or None),
            company=(str(record.get("company") or "").strip() or None),
            location=(str(record.get("location") or "").strip() or None),
        )

    def to_lead(self, source: str) -> Lead:
        return Lead(
            first_name=self.first_name,
            last_name=self.last_name,
            profile_url=self.profile_url,
            title=self.title,
            company=self.company,
            location=self.location,
            source=source,
        )


class LeadsStatistics(BaseModel):
    total: int = 0
    new: int = 0
    contacted: int = 0
    responded: int = 0
    converted: int = 0
    not_interested: int = 0

    @property
    def conversion_rate(self) -> float:
        return (self.converted / self.total * 100.0) if self.total else 0.0

    @property
    def response_rate(self) -> float:
        return ((self.responded + self.converted) / self.contacted * 100.0) if self.contacted else 0.0
