#!/usr/bin/env python3
"""
Backfill email/phone/company/location on stored leads via Apollo.

Only leads missing an email or a phone are looked up, and only empty fields
are filled. Rate limiting or exhausted credits stop the run; other per-lead
failures are logged and skipped.

Usage:
  python scripts/enrich_leads.py [--limit 25] [--bulk] [--credits] [--leads-file data/leads.json]

Environment:
  APOLLO_API_KEY=<key>
  AUTOLEADGEN_DATA_DIR=<dir holding leads.json>
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Ensure repository root is on sys.path so `autoleadgen.*` can be imported
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from autoleadgen import settings  # noqa: E402
from autoleadgen.errors import AutoleadgenError  # noqa: E402
from autoleadgen.leads_store import LeadStore  # noqa: E402
from autoleadgen.logging_setup import configure_logging  # noqa: E402
from autoleadgen.troubleshoot_log import log_json  # noqa: E402
from autoleadgen.vendors.apollo import BULK_LIMIT, HALTING_ERRORS, ApolloClient, ApolloError, backfill  # noqa: E402
from schemas.leads import Lead  # noqa: E402

log = logging.getLogger("enrich_leads")


def _needs_lookup(lead: Lead) -> bool:
    return not (lead.email and lead.phone)


def _apply(store: LeadStore, lead: Lead, res, stats: Dict[str, int]) -> None:
    if not res.found:
        stats["not_found"] += 1
        return
    if backfill(lead, res):
        store.update(lead)
        stats["enriched"] += 1


async def backfill_leads(store: LeadStore, client: ApolloClient, limit: Optional[int] = None,
                         bulk: bool = False) -> Dict[str, int]:
    """Enrich stored leads in place; returns counters for the run."""
    todo: List[Lead] = [lead for lead in store.all() if _needs_lookup(lead)]
    if limit:
        todo = todo[:limit]
    stats = {"candidates": len(todo), "enriched": 0, "not_found": 0, "failed": 0, "halted": 0}

    if bulk:
        for i in range(0, len(todo), BULK_LIMIT):
            chunk = todo[i:i + BULK_LIMIT]
            try:
                results = await client.bulk_enrich([
                    {"linkedin_url": lead.profile_url, "first_name": lead.first_name, "last_name": lead.last_name}
                    for lead in chunk
                ])
            except HALTING_ERRORS as e:
                log.warning("stopping: %s", e.message)
                stats["halted"] = 1
                break
            except ApolloError as e:
                log.warning("bulk lookup of %d leads failed: %s", len(chunk), e.message)
                stats["failed"] += len(chunk)
                continue
            by_url = {k.lower().rstrip("/"): v for k, v in results.items()}
            for lead in chunk:
                res = by_url.get(lead.profile_url.lower().rstrip("/"))
                if res is None:
                    stats["not_found"] += 1
                else:
                    _apply(store, lead, res, stats)
    else:
        for lead in todo:
            try:
                res = await client.enrich_person(lead.profile_url, lead.first_name or None, lead.last_name or None)
            except HALTING_ERRORS as e:
                log.warning("stopping: %s", e.message)
                stats["halted"] = 1
                break
            except ApolloError as e:
                log.warning("lookup failed for %s: %s", lead.profile_url, e.message)
                stats["failed"] += 1
                continue
            _apply(store, lead, res, stats)

    log_json("enrich_leads", "info", "backfill finished", stats)
    return stats


async def _main(args: argparse.Namespace) -> int:
    client = ApolloClient(settings.APOLLO_API_KEY, timeout_s=settings.APOLLO_TIMEOUT_S)
    if args.credits:
        usage = await client.credits()
        print(f"Credits used: {usage.used}/{usage.total} (remaining {usage.remaining})")
        return 0
    store = LeadStore(Path(args.leads_file) if args.leads_file else settings.LEADS_FILE)
    stats = await backfill_leads(store, client, limit=args.limit, bulk=args.bulk)
    print(
        f"Checked {stats['candidates']} leads: {stats['enriched']} enriched, "
        f"{stats['not_found']} not found, {stats['failed']} failed"
        + (" (stopped early)" if stats["halted"] else "")
    )
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Backfill contact details on stored leads via Apollo")
    ap.add_argument("--limit", type=int, default=None, help="Max leads to look up")
    ap.add_argument("--bulk", action="store_true", help=f"Use bulk matching ({BULK_LIMIT} per request)")
    ap.add_argument("--credits", action="store_true", help="Only print Apollo credit usage")
    ap.add_argument("--leads-file", default=None, help="Path to leads.json (defaults to the data dir)")
    args = ap.parse_args()
    configure_logging()
    try:
        return asyncio.run(_main(args))
    except AutoleadgenError as e:
        log.error("%s", e.message)
        if e.recovery:
            log.info("%s", e.recovery)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
