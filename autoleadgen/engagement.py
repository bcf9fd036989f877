"""Post engagement: who reacted to or commented on a post, and connection requests to them.

``EngagementScraper`` reads engagers off a loaded post, ``apply_icp`` narrows
them down, and ``ConnectionRunner`` works through a selection with the same
randomized per-item pacing the messaging engine uses.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from autoleadgen import page_scripts
from autoleadgen.config import EngagementConfig
from autoleadgen.content import read_loaded_post
from autoleadgen.errors import (
    AutoleadgenError,
    CouldNotOpenModal,
    DriverDisconnected,
    ElementNotFoundError,
    MessageSendFailed,
)
from autoleadgen.events import ProgressBus
from autoleadgen.icp import apply_icp
from autoleadgen.page_driver import PageDriver, evaluate_records, evaluate_status, navigate
from autoleadgen.personalize import personalize
from autoleadgen.troubleshoot_log import log_json
from schemas.content import PostPlatform
from schemas.engagement import ConnectionStatus, EngagementPost, EngagementType, ICPFilter, PostEngager

logger = logging.getLogger(__name__)


class ConnectionResult(str, Enum):
    SENT = "sent"
    ALREADY_CONNECTED = "already_connected"
    PENDING = "pending"


RESULT_STATUS = {
    ConnectionResult.SENT: ConnectionStatus.PENDING,
    ConnectionResult.ALREADY_CONNECTED: ConnectionStatus.CONNECTED,
    ConnectionResult.PENDING: ConnectionStatus.PENDING,
}


def _reason(e: Exception) -> str:
    return e.message if isinstance(e, AutoleadgenError) else str(e)


@dataclass
class EngagementResult:
    engagers: List[PostEngager] = field(default_factory=list)
    matching: List[PostEngager] = field(default_factory=list)
    # engagement kind -> reason it could not be scraped
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def status_text(self) -> str:
        return f"Found {len(self.engagers)} engagers, {len(self.matching)} match ICP"


class EngagementScraper:
    def __init__(self, driver: PageDriver, config: EngagementConfig = EngagementConfig(),
                 bus: Optional[ProgressBus] = None):
        self.driver = driver
        self.config = config
        self.bus = bus

    def _status(self, message: str) -> None:
        logger.info("engagement: %s", message)
        if self.bus is not None:
            self.bus.emit("engagement.progress", message)

    async def _best_effort(self, script: str) -> str:
        try:
            return await evaluate_status(self.driver, script)
        except DriverDisconnected:
            raise
        except Exception as e:
            logger.debug("engagement: script failed: %s", e)
            return ""

    async def _collect(self, script: str, kind: EngagementType, limit: int, stall_limit: int,
                       scroll_script: str, wait_s: float) -> List[PostEngager]:
        """Scrape, scroll, repeat until ``limit`` records or ``stall_limit`` rounds without growth."""
        records: List[dict] = []
        previous = 0
        stalls = 0
        while len(records) < limit and stalls < stall_limit:
            records = await evaluate_records(self.driver, script)
            if len(records) == previous:
                stalls += 1
            else:
                stalls = 0
            previous = len(records)
            await self._best_effort(scroll_script)
            await asyncio.sleep(wait_s)

        out: List[PostEngager] = []
        for rec in records[:limit]:
            engager = PostEngager.from_record(rec, kind)
            if engager is not None:
                out.append(engager)
        return out

    async def scrape_likers(self, max_count: Optional[int] = None) -> List[PostEngager]:
        """People who reacted to the loaded post, read from the reactions modal."""
        cfg = self.config
        if await evaluate_status(self.driver, page_scripts.OPEN_REACTIONS) != "clicked":
            raise CouldNotOpenModal("Reactions list")
        await asyncio.sleep(cfg.modal_settle_s)
        try:
            return await self._collect(
                page_scripts.REACTORS, EngagementType.LIKE,
                max_count or cfg.max_likers, cfg.liker_stall_attempts,
                page_scripts.SCROLL_MODAL, cfg.scroll_wait_s,
            )
        finally:
            if await self._best_effort(page_scripts.CLOSE_MODAL) != "closed":
                logger.info("engagement: reactions modal did not report closing")

    async def scrape_commenters(self, max_count: Optional[int] = None) -> List[PostEngager]:
        cfg = self.config
        for _ in range(cfg.comment_expand_rounds):
            if await self._best_effort(page_scripts.EXPAND_COMMENTS) != "clicked":
                break
            await asyncio.sleep(cfg.modal_settle_s)
        return await self._collect(
            page_scripts.COMMENTERS, EngagementType.COMMENT,
            max_count or cfg.max_commenters, cfg.commenter_stall_attempts,
            page_scripts.SCROLL_PAGE, cfg.scroll_wait_s,
        )

    async def _describe(self, post: EngagementPost) -> None:
        """Fill in the author and text of the loaded post where they are missing."""
        if post.author_name and post.content:
            return
        try:
            seen = await read_loaded_post(self.driver, post.source_url, PostPlatform.LINKEDIN)
        except DriverDisconnected:
            raise
        except Exception as e:
            logger.info("engagement: post details unavailable: %s", _reason(e))
            return
        post.author_name = post.author_name or seen.author_name
        post.content = post.content or seen.original_content or None

    async def scrape_engagers(self, post: EngagementPost, icp: Optional[ICPFilter] = None) -> EngagementResult:
        """Load the post, scrape likers then commenters and apply the ICP filter.

        A kind that cannot be scraped is recorded in ``errors``; the other kind
        still runs. Loading the post itself is fatal.
        """
        cfg = self.config
        result = EngagementResult()
        self._status("Scraping engagement...")
        await navigate(self.driver, post.source_url, cfg.page_load)
        await self._describe(post)

        for kind, scrape in ((EngagementType.LIKE, self.scrape_likers),
                             (EngagementType.COMMENT, self.scrape_commenters)):
            try:
                found = await scrape()
            except DriverDisconnected:
                raise
            except Exception as e:
                result.errors[kind.value] = _reason(e)
                self._status(f"Error scraping {kind.value}s: {_reason(e)}")
                continue
            result.engagers.extend(found)
            self._status(f"Found {len(found)} {kind.value}s")
            await asyncio.sleep(cfg.step_wait_s)

        result.matching = apply_icp(result.engagers, icp or ICPFilter())
        self._status(result.status_text)
        log_json("engagement", "info", result.status_text, {
            "post": post.source_url, "engagers": len(result.engagers),
            "matching": len(result.matching), "errors": result.errors,
        })
        return result


async def send_connection_request(driver: PageDriver, profile_url: str, note: Optional[str] = None,
                                  config: EngagementConfig = EngagementConfig()) -> ConnectionResult:
    await navigate(driver, profile_url, config.page_load)
    status = await evaluate_status(driver, page_scripts.CLICK_CONNECT)
    if status == "already_connected":
        return ConnectionResult.ALREADY_CONNECTED
    if status == "pending":
        return ConnectionResult.PENDING
    if status != "clicked":
        raise ElementNotFoundError("Connect button")
    await asyncio.sleep(config.step_wait_s)

    if note and note.strip():
        if await evaluate_status(driver, page_scripts.ADD_NOTE) == "add_note_clicked":
            await asyncio.sleep(config.step_wait_s)
            if await evaluate_status(driver, page_scripts.type_note(note)) != "typed":
                logger.info("connection: note field not found, sending without note to %s", profile_url)
        else:
            logger.info("connection: no 'Add a note' option for %s", profile_url)

    if await evaluate_status(driver, page_scripts.SEND_CONNECTION) != "sent":
        raise MessageSendFailed("Failed to send connection request")
    return ConnectionResult.SENT


@dataclass
class ConnectionSummary:
    connected: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def status_text(self) -> str:
        return f"Connected: {self.connected}, Failed: {self.failed}"


class ConnectionRunner:
    """Sends connection requests to selected engagers, one at a time."""

    def __init__(self, driver: PageDriver, config: EngagementConfig = EngagementConfig(),
                 bus: Optional[ProgressBus] = None, rng: Optional[random.Random] = None):
        self.driver = driver
        self.config = config
        self.bus = bus
        self.rng = rng or random.Random()
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def _status(self, message: str, **context) -> None:
        logger.info("connection: %s", message)
        if self.bus is not None:
            self.bus.emit("connection.progress", message, context)

    async def _countdown(self, seconds: int) -> None:
        for remaining in range(int(seconds), 0, -1):
            if self._cancelled:
                return
            self._status(f"Waiting {remaining}s before next...", seconds=remaining)
            await asyncio.sleep(self.config.tick_s)

    async def run(self, engagers: List[PostEngager], note: Optional[str] = None) -> ConnectionSummary:
        """Request connections in order; ``note`` (or the configured note) may use placeholders."""
        self._cancelled = False
        summary = ConnectionSummary()
        template = note if note is not None else self.config.note_text
        total = len(engagers)
        for i, engager in enumerate(engagers):
            if self._cancelled:
                break
            self._status(f"Connecting {i + 1}/{total}: {engager.display_name}", index=i, total=total)
            text = personalize(template, engager.to_lead()) if template else None
            try:
                res = await send_connection_request(self.driver, engager.profile_url, text, self.config)
            except DriverDisconnected:
                raise
            except Exception as e:
                engager.connection_status = ConnectionStatus.FAILED
                engager.error_message = _reason(e)
                summary.failed += 1
                log_json("connection", "warning", "failed", {"url": engager.profile_url, "error": _reason(e)})
            else:
                engager.connection_status = RESULT_STATUS[res]
                engager.error_message = None
                if res == ConnectionResult.SENT:
                    summary.connected += 1
                log_json("connection", "info", res.value, {"url": engager.profile_url})
            if i < total - 1:
                await self._countdown(self.rng.randint(self.config.min_delay_s, self.config.max_delay_s))
        summary.cancelled = self._cancelled
        self._status(summary.status_text, connected=summary.connected, failed=summary.failed)
        return summary
