from __future__ import annotations

import logging
from typing import List

from autoleadgen import page_scripts
from autoleadgen.page_driver import PageDriver, evaluate_record, evaluate_records, evaluate_status
from schemas.leads import ProfileData, ScrapedLead

logger = logging.getLogger(__name__)


async def scrape_search_page(driver: PageDriver) -> List[ScrapedLead]:
    """Candidate leads on the current results page, in page order."""
    out: List[ScrapedLead] = []
    for rec in await evaluate_records(driver, page_scripts.SEARCH_RESULTS):
        lead = ScrapedLead.from_record(rec)
        if lead is not None:
            out.append(lead)
    return out


async def has_next_page(driver: PageDriver) -> bool:
    return await evaluate_status(driver, page_scripts.HAS_NEXT_PAGE) == "yes"


async def click_next_page(driver: PageDriver) -> bool:
    return await evaluate_status(driver, page_scripts.CLICK_NEXT_PAGE) == "clicked"


async def scrape_profile(driver: PageDriver) -> ProfileData:
    """Profile fields of the currently loaded profile page."""
    return ProfileData.from_record(await evaluate_record(driver, page_scripts.PROFILE))
