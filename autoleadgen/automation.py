"""Outbound messaging automation.

``AutomationEngine`` drives one run over an ordered list of contacts: open the
profile, decide the message, send it through the messaging UI and wait a
random delay before the next contact. Only the engine writes its
``AutomationState``; callers drive it with ``start``/``pause``/``resume``/``stop``
and observe it through ``state``, the progress bus or the per-contact callbacks.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, Union

from autoleadgen import page_scripts
from autoleadgen.ai_router import AIError, AIProviderRouter
from autoleadgen.automation_state import AutomationState, StateKind
from autoleadgen.config import AutomationConfig
from autoleadgen.errors import (
    AutoleadgenError,
    AutomationTimeout,
    DriverDisconnected,
    EmptyMessageError,
    MessageSendFailed,
    NotLoggedInError,
)
from autoleadgen.events import ProgressBus
from autoleadgen.page_driver import LOGGED_IN, PageDriver, check_login, click, evaluate_status, navigate
from autoleadgen.personalize import PROFILE_PLACEHOLDERS, personalize
from autoleadgen.polling import PollPolicy, poll_attempts, wait_until
from autoleadgen.scrapers import scrape_profile
from autoleadgen.status_store import StatusStore
from autoleadgen.troubleshoot_log import log_json
from autoleadgen.urls import normalize_profile_url
from schemas.leads import Contact, Lead, MessageStatus, ProfileData

logger = logging.getLogger(__name__)

UNEXPECTED = "unexpected"


@dataclass
class ContactOutcome:
    contact: Contact
    success: bool
    category: Optional[str] = None
    message: Optional[str] = None
    sent_text: Optional[str] = None


@dataclass
class RunSummary:
    total: int = 0
    sent: int = 0
    failed: int = 0
    completed: bool = False
    stopped: bool = False
    outcomes: List[ContactOutcome] = field(default_factory=list)


ContactCallback = Callable[[Any], Union[None, Awaitable[None]]]


async def _notify(cb: Optional[ContactCallback], arg: Any) -> None:
    if cb is None:
        return
    ret = cb(arg)
    if inspect.isawaitable(ret):
        await ret


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ContactQueue:
    """Ordered contacts awaiting outbound messages, unique by normalized URL."""

    def __init__(self, contacts: Optional[Iterable[Contact]] = None):
        self._contacts: List[Contact] = []
        if contacts:
            self.add(contacts)

    def __len__(self) -> int:
        return len(self._contacts)

    @property
    def contacts(self) -> List[Contact]:
        return list(self._contacts)

    def add(self, contacts: Iterable[Contact]) -> List[Contact]:
        known = {c.normalized_url for c in self._contacts}
        added: List[Contact] = []
        for c in contacts:
            key = c.normalized_url
            if not key or key in known:
                continue
            c.position = len(self._contacts) + 1
            self._contacts.append(c)
            known.add(key)
            added.append(c)
        return added

    def admit_leads(self, leads: Iterable[Lead]) -> List[Contact]:
        return self.add(Contact.from_lead(lead) for lead in leads)

    def pending(self) -> List[Contact]:
        return [c for c in self._contacts if c.is_processable]

    def find(self, url: str) -> Optional[Contact]:
        key = normalize_profile_url(url)
        return next((c for c in self._contacts if c.normalized_url == key), None)

    def reset(self, contact_ids: Optional[Iterable[str]] = None) -> int:
        """Put contacts back to pending; all of them when no ids are given."""
        ids = set(contact_ids) if contact_ids is not None else None
        n = 0
        for c in self._contacts:
            if ids is None or c.id in ids:
                c.message_status = MessageStatus.PENDING
                c.error_message = None
                n += 1
        return n

    def remove(self, contact_ids: Iterable[str]) -> int:
        ids = set(contact_ids)
        before = len(self._contacts)
        self._contacts = [c for c in self._contacts if c.id not in ids]
        for i, c in enumerate(self._contacts, start=1):
            c.position = i
        return before - len(self._contacts)


class AutomationEngine:
    def __init__(
        self,
        driver: PageDriver,
        config: AutomationConfig = AutomationConfig(),
        router: Optional[AIProviderRouter] = None,
        status_store: Optional[StatusStore] = None,
        bus: Optional[ProgressBus] = None,
        on_contact_started: Optional[ContactCallback] = None,
        on_contact_completed: Optional[ContactCallback] = None,
        rng: Optional[random.Random] = None,
    ):
        self.driver = driver
        self.config = config
        self.router = router
        self.status_store = status_store
        self.bus = bus
        self.on_contact_started = on_contact_started
        self.on_contact_completed = on_contact_completed
        self.rng = rng or random.Random()
        self.current_index = 0
        self.total = 0
        self._state = AutomationState.idle()
        self._resume = asyncio.Event()
        self._resume.set()
        self._stop_requested = False
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[Contact] = None

    # -- state -------------------------------------------------------------------

    @property
    def state(self) -> AutomationState:
        return self._state

    def _set_state(self, state: AutomationState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug("automation state -> %s", state.display_text)
        if self.bus is not None:
            self.bus.emit("automation.state", state.display_text, {
                **state.to_dict(), "index": self.current_index, "total": self.total,
            })

    # -- control -----------------------------------------------------------------

    async def start(self, contacts: Sequence[Contact]) -> Optional["asyncio.Task[RunSummary]"]:
        """Begin a run over the processable contacts, in order.

        Returns the run task, or None when the engine cannot start (already
        active, or nothing to process). Raises ``NotLoggedInError`` when the
        browser session is not signed in; nothing is sent in that case.
        """
        if not self._state.can_start:
            logger.info("automation: start ignored in state %s", self._state.kind.value)
            return None
        if self._state.kind != StateKind.PAUSED:
            # a stopped run unwinds first so its in-flight contact is pending again
            await self._cancel_task()
        # a paused run keeps its in-flight contact until it is cancelled below
        queue = [c for c in contacts if c.is_processable or c is self._in_flight]
        if not queue:
            logger.info("automation: nothing to process")
            return None

        previous = self._state
        self._stop_requested = False
        self._set_state(AutomationState.waiting_for_login())

        async def _signed_in() -> bool:
            return self._stop_requested or await check_login(self.driver) == LOGGED_IN

        try:
            await wait_until(_signed_in, PollPolicy(timeout_s=self.config.login_wait_s, interval_s=1.0),
                             what="LinkedIn login")
        except AutomationTimeout:
            self._set_state(previous)
            raise NotLoggedInError() from None
        if self._stop_requested:
            return None

        await self._cancel_task()
        self._in_flight = None
        self._resume.set()
        self.total = len(queue)
        self.current_index = 0
        self._task = asyncio.create_task(self._run(queue))
        return self._task

    def pause(self) -> bool:
        if not self._state.can_pause:
            return False
        self._resume.clear()
        self._set_state(AutomationState.paused())
        return True

    def resume(self) -> bool:
        if not self._state.can_resume:
            return False
        self._set_state(AutomationState.running())
        self._resume.set()
        return True

    def stop(self) -> bool:
        """Cancel the run at once and return to idle. Not an error."""
        if not self._state.can_stop:
            return False
        self._stop_requested = True
        self._set_state(AutomationState.idle())
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._resume.set()
        return True

    async def wait(self) -> Optional[RunSummary]:
        if self._task is None:
            return None
        return await self._task

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        self._stop_requested = True
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._stop_requested = False

    # -- run loop ----------------------------------------------------------------

    async def _checkpoint(self, then: Optional[AutomationState] = None) -> None:
        """Block while paused; on resume optionally restore ``then``."""
        if self._resume.is_set():
            return
        await self._resume.wait()
        if then is not None and self._state.kind == StateKind.RUNNING:
            self._set_state(then)

    async def _countdown(self, seconds: int) -> None:
        remaining = int(seconds)
        while remaining > 0:
            await self._checkpoint()
            self._set_state(AutomationState.waiting_for_delay(remaining))
            await asyncio.sleep(self.config.tick_s)
            remaining -= 1

    async def _run(self, queue: List[Contact]) -> RunSummary:
        summary = RunSummary(total=len(queue))
        self._set_state(AutomationState.running())
        try:
            for i, contact in enumerate(queue):
                await self._checkpoint()
                self.current_index = i
                processing = AutomationState.processing_contact(contact.display_name)
                self._set_state(processing)
                outcome = await self._attempt(contact, processing)
                summary.outcomes.append(outcome)
                if outcome.success:
                    summary.sent += 1
                else:
                    summary.failed += 1
                if i < len(queue) - 1:
                    await self._countdown(self.rng.randint(self.config.min_delay_s, self.config.max_delay_s))
            await self._checkpoint()
            self.current_index = len(queue)
            summary.completed = True
            self._set_state(AutomationState.completed())
        except DriverDisconnected as e:
            logger.error("automation: browser session lost: %s", e.message)
            self._set_state(AutomationState.error(e.message))
        except asyncio.CancelledError:
            if not self._stop_requested:
                raise
            summary.stopped = True
            if self._in_flight is not None:
                # stopped mid-send: neither sent nor failed
                self._in_flight.message_status = MessageStatus.PENDING
                self._in_flight = None
        log_json("automation", "info", "run finished", {
            "total": summary.total, "sent": summary.sent, "failed": summary.failed,
            "completed": summary.completed, "stopped": summary.stopped,
        })
        return summary

    async def _attempt(self, contact: Contact, processing: AutomationState) -> ContactOutcome:
        contact.message_status = MessageStatus.IN_PROGRESS
        contact.last_attempt_at = _now()
        self._in_flight = contact
        await _notify(self.on_contact_started, contact)
        try:
            text = await self._process(contact, processing)
            outcome = ContactOutcome(contact=contact, success=True, sent_text=text)
            contact.message_status = MessageStatus.SENT
            contact.error_message = None
        except DriverDisconnected as e:
            contact.message_status = MessageStatus.FAILED
            contact.error_message = e.message
            self._in_flight = None
            outcome = ContactOutcome(contact=contact, success=False, category=e.category, message=e.message)
            self._record(outcome)
            await _notify(self.on_contact_completed, outcome)
            raise
        except AutoleadgenError as e:
            outcome = ContactOutcome(contact=contact, success=False, category=e.category, message=e.message)
            contact.message_status = MessageStatus.FAILED
            contact.error_message = e.message
        except Exception as e:
            logger.exception("automation: unexpected failure for %s", contact.profile_url)
            outcome = ContactOutcome(contact=contact, success=False, category=UNEXPECTED, message=str(e))
            contact.message_status = MessageStatus.FAILED
            contact.error_message = str(e)
        self._in_flight = None
        contact.last_attempt_at = _now()
        self._record(outcome)
        await _notify(self.on_contact_completed, outcome)
        return outcome

    def _record(self, outcome: ContactOutcome) -> None:
        c = outcome.contact
        if self.status_store is not None:
            self.status_store.save([c])
        level = "info" if outcome.success else "warning"
        log_json("automation", level, "sent" if outcome.success else "failed", {
            "url": c.profile_url, "name": c.display_name,
            "category": outcome.category, "error": outcome.message,
        })
        if self.bus is not None:
            self.bus.emit("automation.contact", c.message_status.value, {
                "url": c.profile_url, "name": c.display_name, "success": outcome.success,
                "category": outcome.category, "error": outcome.message,
            })

    # -- per contact ---------------------------------------------------------------

    async def _profile(self) -> ProfileData:
        try:
            return await scrape_profile(self.driver)
        except DriverDisconnected:
            raise
        except Exception as e:
            # the message falls back to whatever placeholders can be filled
            logger.warning("automation: profile scrape failed: %s", e)
            return ProfileData()

    async def _message_for(self, contact: Contact) -> str:
        cfg = self.config
        prefilled = contact.effective_message.strip()
        if prefilled:
            needs_profile = any(p in prefilled for p in PROFILE_PLACEHOLDERS)
            profile = await self._profile() if needs_profile else None
            return personalize(prefilled, contact, profile)

        profile = await self._profile()
        if cfg.ai_enabled and cfg.model_id and self.router is not None:
            try:
                text = await self.router.generate(cfg.model_id, profile, contact.first_name, cfg.sample_message)
                contact.generated_message = text
                return text
            except AIError as e:
                logger.warning("automation: AI generation failed for %s, using template: %s",
                               contact.profile_url, e.message)
        return personalize(cfg.message_template, contact, profile)

    async def _process(self, contact: Contact, processing: AutomationState) -> str:
        cfg = self.config
        await navigate(self.driver, contact.profile_url, cfg.page_load)
        text = await self._message_for(contact)
        if not text.strip():
            raise EmptyMessageError("No message to send")

        await self._checkpoint(processing)
        await click(self.driver, page_scripts.CLICK_MESSAGE_BUTTON, "Message button")
        await asyncio.sleep(cfg.after_click_s)

        async def _dialog_open() -> bool:
            return await evaluate_status(self.driver, page_scripts.MESSAGE_DIALOG_OPEN) == "found"

        await poll_attempts(_dialog_open, cfg.dialog_attempts, cfg.dialog_interval_s, what="Message dialog")
        await click(self.driver, page_scripts.type_message(text), "Message editor", ok="typed")

        await asyncio.sleep(self.rng.uniform(cfg.message_delay_min_s, cfg.message_delay_max_s))
        await self._checkpoint(processing)
        await click(self.driver, page_scripts.CLICK_SEND, "Send button")

        await asyncio.sleep(cfg.verify_wait_s)
        result = await evaluate_status(self.driver, page_scripts.VERIFY_SENT) or "unknown"
        if result.startswith("error:"):
            raise MessageSendFailed(result[len("error:"):].strip() or "Message could not be sent")
        if result != "sent":
            # the composer can close without an explicit signal
            logger.info("automation: send verification inconclusive for %s; counted as sent", contact.profile_url)
        return text
