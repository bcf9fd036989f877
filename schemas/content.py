from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from schemas.engagement import EngagementPost
from schemas.leads import new_id, utcnow

_DIGITS = re.compile(r"[^0-9]")


class PostPlatform(str, Enum):
    LINKEDIN = "LinkedIn"
    TWITTER = "Twitter"
    WEBSITE = "Website"
    TOPIC = "Topic"
    OTHER = "Other"

    @classmethod
    def detect(cls, url: Optional[str]) -> "PostPlatform":
        s = (url or "").strip().lower()
        if "linkedin.com" in s:
            return cls.LINKEDIN
        if "twitter.com" in s or "x.com" in s:
            return cls.TWITTER
        if s.startswith("http"):
            return cls.WEBSITE
        return cls.OTHER


class GenerationType(str, Enum):
    REWRITE = "Rewrite"
    ORIGINAL = "Original"


def _count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        digits = _DIGITS.sub("", value)
        return int(digits) if digits else None
    return None


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


class ViralPost(BaseModel):
    """A post (or topic) used as the seed for generated content."""

    id: str = Field(default_factory=new_id)
    source_url: str = ""
    platform: PostPlatform = PostPlatform.OTHER
    original_content: str = ""
    title: Optional[str] = None
    author_name: Optional[str] = None
    author_headline: Optional[str] = None
    author_profile_url: Optional[str] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    repost_count: Optional[int] = None
    scraped_at: datetime = Field(default_factory=utcnow)
    generated_content: Optional[str] = None
    generation_type: Optional[GenerationType] = None
    user_voice_style: Optional[str] = None
    topic: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any], url: str, platform: PostPlatform) -> "ViralPost":
        return cls(
            source_url=url,
            platform=platform,
            original_content=_text(record.get("content")) or "",
            title=_text(record.get("title")),
            author_name=_text(record.get("authorName")),
            author_headline=_text(record.get("authorHeadline")),
            author_profile_url=_text(record.get("authorProfileURL")),
            like_count=_count(record.get("likeCount")),
            comment_count=_count(record.get("commentCount")),
            repost_count=_count(record.get("repostCount")),
        )

    @property
    def is_linkedin_post(self) -> bool:
        return self.platform == PostPlatform.LINKEDIN

    @property
    def is_from_topic(self) -> bool:
        return self.platform == PostPlatform.TOPIC

    @property
    def has_engagement_data(self) -> bool:
        return any(v is not None for v in (self.like_count, self.comment_count, self.repost_count))

    @property
    def engagement_score(self) -> int:
        # comments and reposts weigh more than likes
        return (self.like_count or 0) + (self.comment_count or 0) * 3 + (self.repost_count or 0) * 5

    @property
    def display_title(self) -> str:
        if self.topic:
            return f"Topic: {self.topic}"
        if self.author_name:
            return self.author_name
        if self.source_url:
            return self.source_url[:50]
        return "Generated Post"

    def to_engagement_post(self) -> EngagementPost:
        return EngagementPost(
            source_url=self.source_url,
            author_name=self.author_name,
            content=self.original_content or None,
        )
