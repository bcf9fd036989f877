"""Lead discovery: search -> dedupe -> profile scrape -> AI message -> contact enrichment.

One ``LeadDiscoveryPipeline.run()`` walks the phases in order and owns the
page driver for its whole duration. Progress counters live on
``pipeline.progress`` and are only written by the running task; observers read
them or subscribe to the progress bus.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from autoleadgen.ai_router import AIError, AIProviderRouter
from autoleadgen.config import DiscoveryConfig
from autoleadgen.dedup import DeduplicationStore
from autoleadgen.errors import AutoleadgenError, DriverDisconnected
from autoleadgen.events import ProgressBus
from autoleadgen.leads_store import LeadStore
from autoleadgen.page_driver import PageDriver, navigate, wait_for_load
from autoleadgen.personalize import personalize
from autoleadgen.scrapers import click_next_page, has_next_page, scrape_profile, scrape_search_page
from autoleadgen.troubleshoot_log import log_json
from autoleadgen.vendors.apollo import HALTING_ERRORS, ApolloClient, ApolloError, backfill
from schemas.leads import Lead, ProfileData, SearchQuery

logger = logging.getLogger(__name__)

LeadsReady = Callable[[List[Lead]], Union[None, Awaitable[None]]]


class Phase(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    PROFILES = "profiles"
    ENRICHING = "enriching"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class DiscoveryProgress:
    phase: Phase = Phase.IDLE
    found: int = 0
    duplicates: int = 0
    saved: int = 0
    enriched: int = 0
    current_page: int = 0
    current_index: int = 0
    total: int = 0
    status_message: str = ""

    def snapshot(self) -> Dict[str, Any]:
        d = asdict(self)
        d["phase"] = self.phase.value
        return d


@dataclass
class DiscoveryResult:
    leads: List[Lead] = field(default_factory=list)
    saved: List[Lead] = field(default_factory=list)
    new_leads_count: int = 0
    duplicates_skipped: int = 0
    enriched_count: int = 0
    pages_scraped: int = 0
    cancelled: bool = False
    # explanatory status per profile URL for leads that hit a non-fatal failure
    notes: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def saved_count(self) -> int:
        return len(self.saved)


class LeadDiscoveryPipeline:
    def __init__(
        self,
        driver: PageDriver,
        dedup: DeduplicationStore,
        leads: LeadStore,
        config: DiscoveryConfig = DiscoveryConfig(),
        router: Optional[AIProviderRouter] = None,
        enrichment: Optional[ApolloClient] = None,
        bus: Optional[ProgressBus] = None,
        on_leads_ready: Optional[LeadsReady] = None,
    ):
        self.driver = driver
        self.dedup = dedup
        self.leads = leads
        self.config = config
        self.router = router
        self.enrichment = enrichment
        self.bus = bus
        self.on_leads_ready = on_leads_ready
        self.progress = DiscoveryProgress()
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    # -- control ---------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, query: SearchQuery) -> "asyncio.Task[DiscoveryResult]":
        """Run in a background task; the task's result is the ``DiscoveryResult``."""
        if self.is_running:
            raise RuntimeError("discovery already running")
        self._task = asyncio.create_task(self.run(query))
        return self._task

    def cancel(self) -> None:
        """Stop at the next loop check. The in-flight script or request finishes first."""
        self._cancelled = True
        self._status("Cancelling...")

    # -- helpers ---------------------------------------------------------------

    def _status(self, message: str) -> None:
        self.progress.status_message = message
        if self.bus is not None:
            self.bus.emit("discovery.progress", message, self.progress.snapshot())

    def _set_phase(self, phase: Phase, message: str) -> None:
        self.progress.phase = phase
        self.progress.status_message = message
        logger.info("discovery phase=%s %s", phase.value, message)
        if self.bus is not None:
            self.bus.emit("discovery.phase", message, self.progress.snapshot())

    def _note(self, result: DiscoveryResult, lead: Lead, message: str) -> None:
        result.notes.setdefault(lead.profile_url, []).append(message)
        logger.info("discovery lead=%s %s", lead.profile_url, message)
        self._status(f"{lead.display_name}: {message}")

    async def _pause(self, seconds: float) -> None:
        """Sleep in one-second steps so a cancel request is seen promptly."""
        remaining = float(seconds)
        while remaining > 0 and not self._cancelled:
            step = min(1.0, remaining)
            await asyncio.sleep(step)
            remaining -= step

    # -- phases ----------------------------------------------------------------

    async def _search(self, query: SearchQuery, result: DiscoveryResult) -> None:
        cfg = self.config
        source = query.display_text
        self._set_phase(Phase.SEARCHING, f"Searching for {source}")
        # A failed first load is fatal to the run.
        await navigate(self.driver, query.url(0), cfg.page_load)

        page = 0
        while page < cfg.max_pages and len(result.leads) < cfg.target_count:
            if self._cancelled:
                break
            self.progress.current_page = page + 1
            try:
                candidates = await scrape_search_page(self.driver)
            except DriverDisconnected:
                raise
            except Exception as e:
                # page is skipped, pagination continues
                logger.warning("discovery: scrape of page %d failed: %s", page + 1, e)
                self._status(f"Page {page + 1}: scrape failed ({e})")
                candidates = []

            for cand in candidates:
                if len(result.leads) >= cfg.target_count:
                    break
                if await self.dedup.admit(cand.profile_url):
                    result.leads.append(cand.to_lead(source))
                    self.progress.found = len(result.leads)
                else:
                    result.duplicates_skipped += 1
                    self.progress.duplicates = result.duplicates_skipped
            result.pages_scraped += 1
            self._status(
                f"Page {page + 1}: {self.progress.found} new, {self.progress.duplicates} duplicates"
            )

            if len(result.leads) >= cfg.target_count or self._cancelled:
                break
            try:
                if not await has_next_page(self.driver):
                    self._status("No more results available")
                    break
                if not await click_next_page(self.driver):
                    self._status("Could not open the next results page")
                    break
                await wait_for_load(self.driver, cfg.page_load)
            except DriverDisconnected:
                raise
            except Exception as e:
                # results gathered so far are kept
                logger.warning("discovery: pagination stopped after page %d: %s", page + 1, e)
                self._status(f"Pagination stopped: {e}")
                break
            page += 1

        result.new_leads_count = len(result.leads)
        await self.dedup.flush()

    async def _message_for(self, lead: Lead, profile: ProfileData, result: DiscoveryResult) -> Optional[str]:
        cfg = self.config
        fallback = personalize(cfg.message_template, lead, profile) if cfg.message_template else None
        if not (cfg.ai_enabled and cfg.model_id and self.router is not None):
            return fallback
        try:
            return await self.router.generate(cfg.model_id, profile, lead.first_name, cfg.sample_message)
        except AIError as e:
            self._note(result, lead, f"AI generation failed: {e.message}")
            return fallback

    async def _profiles(self, result: DiscoveryResult) -> None:
        cfg = self.config
        total = len(result.leads)
        self.progress.total = total
        self._set_phase(Phase.PROFILES, f"Scraping {total} profiles")
        for i, lead in enumerate(result.leads):
            if self._cancelled:
                break
            self.progress.current_index = i
            profile = ProfileData()
            try:
                await navigate(self.driver, lead.profile_url, cfg.page_load)
                profile = await scrape_profile(self.driver)
            except DriverDisconnected:
                raise
            except Exception as e:
                self._note(result, lead, f"Profile scrape failed: {e}")
            _apply_profile(lead, profile)

            message = await self._message_for(lead, profile, result)
            if message:
                lead.generated_message = message
            self._status(f"Processed {i + 1}/{total}: {lead.display_name}")
            if i < total - 1:
                await self._pause(cfg.profile_delay_s)

    async def _enrich(self, result: DiscoveryResult) -> None:
        cfg = self.config
        if not (cfg.enrich_contacts and (cfg.apollo_api_key or "").strip()):
            return
        client = self.enrichment or ApolloClient(cfg.apollo_api_key)
        self._set_phase(Phase.ENRICHING, "Looking up contact details")
        for i, lead in enumerate(result.leads):
            if self._cancelled:
                break
            self.progress.current_index = i
            if lead.email and lead.phone:
                continue
            try:
                res = await client.enrich_person(lead.profile_url, lead.first_name or None, lead.last_name or None)
            except HALTING_ERRORS as e:
                self._note(result, lead, f"Enrichment halted: {e.message}")
                break
            except ApolloError as e:
                self._note(result, lead, f"Enrichment skipped: {e.message}")
                continue
            if res.found:
                backfill(lead, res)
                result.enriched_count += 1
                self.progress.enriched = result.enriched_count

    # -- entry point -----------------------------------------------------------

    async def run(self, query: SearchQuery) -> DiscoveryResult:
        self._cancelled = False
        self.progress = DiscoveryProgress()
        result = DiscoveryResult()
        try:
            await self._search(query, result)
            await self._profiles(result)
            await self._enrich(result)
        except AutoleadgenError as e:
            self._set_phase(Phase.FAILED, f"Error: {e.message}")
            log_json("discovery", "error", e.message, {"query": query.display_text, "category": e.category})
            raise
        finally:
            # Leads were marked seen during search, so they are stored even on cancel or failure.
            if result.leads:
                result.saved = self.leads.add_leads(result.leads)
                self.progress.saved = result.saved_count

        result.cancelled = self._cancelled
        if result.cancelled:
            self._set_phase(Phase.CANCELLED, f"Cancelled: {result.new_leads_count} leads found, "
                                             f"{result.saved_count} saved")
        else:
            self._set_phase(
                Phase.COMPLETED,
                f"Complete: {result.new_leads_count} leads found, {result.saved_count} saved, "
                f"{result.duplicates_skipped} duplicates skipped",
            )
            if self.on_leads_ready is not None and result.saved:
                ret = self.on_leads_ready(list(result.saved))
                if inspect.isawaitable(ret):
                    await ret
        log_json("discovery", "info", self.progress.status_message, {
            "query": query.display_text,
            "new": result.new_leads_count,
            "duplicates": result.duplicates_skipped,
            "saved": result.saved_count,
            "enriched": result.enriched_count,
            "pages": result.pages_scraped,
            "cancelled": result.cancelled,
        })
        return result


def _apply_profile(lead: Lead, profile: ProfileData) -> None:
    """Fill lead fields from a profile scrape without overwriting known values."""
    lead.headline = lead.headline or profile.headline
    lead.location = lead.location or profile.location
    lead.about = lead.about or profile.about
    lead.education = lead.education or profile.education
    lead.connection_degree = lead.connection_degree or profile.connection_degree
    lead.follower_count = lead.follower_count or profile.follower_count
    lead.company = lead.company or profile.current_company
    if profile.current_role:
        # current role replaces the search-snippet title
        lead.title = profile.current_role
