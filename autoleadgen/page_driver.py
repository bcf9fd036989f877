"""The page driver capability consumed by every pipeline.

A driver wraps one live browsing session. It is not re-entrant: only one task
may navigate or evaluate at a time, which callers guarantee by owning the
driver for the duration of a run.

Drivers raise ``autoleadgen.errors.DriverDisconnected`` when the session is
gone; any other exception from ``evaluate`` is a failed script.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from autoleadgen import page_scripts
from autoleadgen.errors import DriverDisconnected, ElementNotFoundError
from autoleadgen.polling import PollPolicy, wait_until

logger = logging.getLogger(__name__)

LOGGED_IN = "logged_in"
NOT_LOGGED_IN = "not_logged_in"
UNKNOWN = "unknown"


@runtime_checkable
class PageDriver(Protocol):
    async def load(self, url: str) -> None: ...

    async def is_loading(self) -> bool: ...

    async def evaluate(self, script: str) -> Any: ...


async def navigate(driver: PageDriver, url: str, policy: PollPolicy = PollPolicy()) -> None:
    """Load ``url`` and wait until the driver stops loading, then settle.

    Raises ``AutomationTimeout`` when the page is still loading after the
    policy timeout.
    """
    await driver.load(url)
    await wait_for_load(driver, policy)


async def wait_for_load(driver: PageDriver, policy: PollPolicy = PollPolicy()) -> None:
    """Wait for an in-flight navigation (e.g. after a click) to finish."""

    async def _ready() -> bool:
        return not await driver.is_loading()

    await wait_until(_ready, policy, what="page load")


async def evaluate_status(driver: PageDriver, script: str) -> str:
    """Run an action script and return its status string ('' when not a string)."""
    result = await driver.evaluate(script)
    return result.strip() if isinstance(result, str) else ""


async def evaluate_records(driver: PageDriver, script: str) -> List[Dict[str, Any]]:
    """Run an extraction script; non-list results yield an empty list."""
    result = await driver.evaluate(script)
    if not isinstance(result, list):
        return []
    return [r for r in result if isinstance(r, dict)]


async def evaluate_record(driver: PageDriver, script: str) -> Optional[Dict[str, Any]]:
    result = await driver.evaluate(script)
    return result if isinstance(result, dict) else None


async def click(driver: PageDriver, script: str, element: str, ok: str = "clicked") -> None:
    """Run an action script that must report ``ok``; otherwise the element is missing."""
    status = await evaluate_status(driver, script)
    if status != ok:
        raise ElementNotFoundError(element)


async def check_login(driver: PageDriver) -> str:
    """Inspect the current page for a signed-in session.

    Returns one of ``logged_in``, ``not_logged_in`` or ``unknown``. A failing
    script is reported as unknown; a lost session propagates.
    """
    try:
        status = await evaluate_status(driver, page_scripts.LOGIN_STATUS)
    except DriverDisconnected:
        raise
    except Exception as e:
        logger.warning("login check script failed: %s", e)
        return UNKNOWN
    return status if status in (LOGGED_IN, NOT_LOGGED_IN) else UNKNOWN
