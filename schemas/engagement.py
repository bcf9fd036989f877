from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemas.leads import Lead, new_id
from autoleadgen.urls import display_name_from_url


class EngagementType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    REPOST = "repost"


class ConnectionStatus(str, Enum):
    NOT_CONNECTED = "Not Connected"
    PENDING = "Pending"
    CONNECTED = "Connected"
    FAILED = "Failed"


class EngagementPost(BaseModel):
    """The post whose engagers are being scraped."""

    source_url: str
    author_name: Optional[str] = None
    content: Optional[str] = None


class ICPFilter(BaseModel):
    include_keywords: List[str] = Field(default_factory=list)
    exclude_keywords: List[str] = Field(default_factory=list)
    # engagers closer than this degree (e.g. 1st when set to 2) are rejected
    min_connection_degree: Optional[int] = None

    @property
    def is_enabled(self) -> bool:
        return bool(
            [k for k in self.include_keywords if k.strip()]
            or [k for k in self.exclude_keywords if k.strip()]
            or self.min_connection_degree
        )


class PostEngager(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    headline: Optional[str] = None
    profile_url: str
    engagement_type: EngagementType
    comment_text: Optional[str] = None
    connection_degree: Optional[str] = None
    matches_icp: Optional[bool] = None
    connection_status: ConnectionStatus = ConnectionStatus.NOT_CONNECTED
    error_message: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any], kind: EngagementType) -> Optional["PostEngager"]:
        url = str(record.get("profileURL") or record.get("profileUrl") or "").strip()
        if not url:
            return None
        return cls(
            name=str(record.get("name") or "").strip(),
            headline=(str(record.get("headline") or "").strip() or None),
            profile_url=url,
            engagement_type=kind,
            comment_text=(str(record.get("commentText") or "").strip() or None),
            connection_degree=(str(record.get("connectionDegree") or "").strip() or None),
        )

    @property
    def first_name(self) -> str:
        parts = self.name.strip().split(None, 1)
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        parts = self.name.strip().split(None, 1)
        return parts[1] if len(parts) > 1 else ""

    @property
    def display_name(self) -> str:
        return self.name.strip() or display_name_from_url(self.profile_url)

    @property
    def degree(self) -> Optional[int]:
        """Numeric connection degree parsed from labels like '1st' or '3rd+'."""
        m = re.search(r"(\d+)", self.connection_degree or "")
        return int(m.group(1)) if m else None

    def to_lead(self, source: str = "Post engagement") -> Lead:
        return Lead(
            first_name=self.first_name,
            last_name=self.last_name,
            profile_url=self.profile_url,
            title=self.headline,
            headline=self.headline,
            source=source,
            tags=[self.engagement_type.value],
        )
