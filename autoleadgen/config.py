"""Run configuration objects.

Components take one of these at construction time instead of reading the
environment. ``from_settings()`` builds an instance from ``autoleadgen.settings``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from autoleadgen import settings
from autoleadgen.polling import PollPolicy


@dataclass(frozen=True)
class DiscoveryConfig:
    target_count: int = 50
    max_pages: int = 50
    profile_delay_s: float = 3.0
    page_load: PollPolicy = PollPolicy(timeout_s=30.0, interval_s=0.5, settle_s=2.0)
    ai_enabled: bool = False
    model_id: Optional[str] = None
    sample_message: Optional[str] = None
    message_template: str = ""
    enrich_contacts: bool = False
    apollo_api_key: Optional[str] = None

    @classmethod
    def from_settings(cls, **overrides) -> "DiscoveryConfig":
        values = dict(
            target_count=settings.DISCOVERY_TARGET,
            max_pages=settings.DISCOVERY_MAX_PAGES,
            profile_delay_s=settings.PROFILE_DELAY_S,
            page_load=PollPolicy(timeout_s=settings.PAGE_LOAD_TIMEOUT_S, interval_s=0.5, settle_s=2.0),
            ai_enabled=settings.AI_ENABLED,
            model_id=settings.AI_MODEL,
            sample_message=settings.AI_SAMPLE_MESSAGE,
            message_template=settings.MESSAGE_TEMPLATE,
            enrich_contacts=settings.APOLLO_ENABLED,
            apollo_api_key=settings.APOLLO_API_KEY,
        )
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class AutomationConfig:
    min_delay_s: int = 30
    max_delay_s: int = 90
    message_delay_min_s: int = 5
    message_delay_max_s: int = 15
    # seconds per countdown step; the visible countdown decrements once per tick
    tick_s: float = 1.0
    # how long start() waits for a signed-in session; 0 checks once
    login_wait_s: float = 0.0
    page_load: PollPolicy = PollPolicy(timeout_s=30.0, interval_s=0.5, settle_s=2.0)
    after_click_s: float = 2.0
    dialog_attempts: int = 15
    dialog_interval_s: float = 1.0
    verify_wait_s: float = 3.0
    ai_enabled: bool = False
    model_id: Optional[str] = None
    sample_message: Optional[str] = None
    message_template: str = ""

    def __post_init__(self):
        if self.min_delay_s < 0 or self.max_delay_s < self.min_delay_s:
            raise ValueError(f"invalid delay range [{self.min_delay_s}, {self.max_delay_s}]")
        if self.message_delay_min_s < 0 or self.message_delay_max_s < self.message_delay_min_s:
            raise ValueError(
                f"invalid message delay range [{self.message_delay_min_s}, {self.message_delay_max_s}]"
            )

    @classmethod
    def from_settings(cls, **overrides) -> "AutomationConfig":
        values = dict(
            min_delay_s=settings.AUTOMATION_MIN_DELAY_S,
            max_delay_s=settings.AUTOMATION_MAX_DELAY_S,
            message_delay_min_s=settings.MESSAGE_DELAY_MIN_S,
            message_delay_max_s=settings.MESSAGE_DELAY_MAX_S,
            page_load=PollPolicy(timeout_s=settings.PAGE_LOAD_TIMEOUT_S, interval_s=0.5, settle_s=2.0),
            dialog_attempts=max(1, int(settings.DIALOG_TIMEOUT_S)),
            ai_enabled=settings.AI_ENABLED,
            model_id=settings.AI_MODEL,
            sample_message=settings.AI_SAMPLE_MESSAGE,
            message_template=settings.MESSAGE_TEMPLATE,
        )
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class EngagementConfig:
    max_likers: int = 100
    max_commenters: int = 50
    liker_stall_attempts: int = 20
    commenter_stall_attempts: int = 10
    comment_expand_rounds: int = 5
    scroll_wait_s: float = 1.5
    modal_settle_s: float = 2.0
    page_load: PollPolicy = PollPolicy(timeout_s=30.0, interval_s=0.5, settle_s=2.0)
    min_delay_s: int = 30
    max_delay_s: int = 90
    step_wait_s: float = 1.5
    tick_s: float = 1.0
    note_text: Optional[str] = None

    @classmethod
    def from_settings(cls, **overrides) -> "EngagementConfig":
        values = dict(
            min_delay_s=settings.CONNECTION_MIN_DELAY_S,
            max_delay_s=settings.CONNECTION_MAX_DELAY_S,
            page_load=PollPolicy(timeout_s=settings.PAGE_LOAD_TIMEOUT_S, interval_s=0.5, settle_s=2.0),
        )
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class BrokerConfig:
    base_url: Optional[str] = None
    secret: Optional[str] = None
    device_id: str = "autoleadgen-cli"
    timeout_s: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.secret)

    @classmethod
    def from_settings(cls, **overrides) -> "BrokerConfig":
        values = dict(
            base_url=settings.KEY_BROKER_URL,
            secret=settings.KEY_BROKER_SECRET,
            device_id=settings.DEVICE_ID,
            timeout_s=settings.KEY_BROKER_TIMEOUT_S,
        )
        values.update(overrides)
        return cls(**values)
