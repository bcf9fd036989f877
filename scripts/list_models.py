#!/usr/bin/env python3
"""
List the AI models offered by the key broker, grouped by provider.

Usage:
  python scripts/list_models.py [--health] [--json]

Environment:
  KEY_BROKER_URL=https://keys.example.com
  KEY_BROKER_SECRET=<secret>
  DEVICE_ID=<optional device id>
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure repository root is on sys.path so `autoleadgen.*` can be imported
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from autoleadgen.ai_router import classify_provider  # noqa: E402
from autoleadgen.config import BrokerConfig  # noqa: E402
from autoleadgen.errors import AutoleadgenError  # noqa: E402
from autoleadgen.key_broker import KeyBrokerClient  # noqa: E402
from autoleadgen.logging_setup import configure_logging  # noqa: E402

log = logging.getLogger("list_models")


async def _main(args: argparse.Namespace) -> int:
    client = KeyBrokerClient(BrokerConfig.from_settings())
    if args.health:
        ok = await client.check_health()
        print("healthy" if ok else "unhealthy")
        return 0 if ok else 1

    models = await client.list_models()
    if args.json:
        print(json.dumps([m.model_dump() for m in models], indent=2))
        return 0
    by_provider = {}
    for m in models:
        by_provider.setdefault(m.provider or classify_provider(m.id), []).append(m)
    for provider in sorted(by_provider):
        print(f"{provider}:")
        for m in by_provider[provider]:
            print(f"  {m.id:<32} {m.name}")
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="List AI models available through the key broker")
    ap.add_argument("--health", action="store_true", help="Only check that the broker is reachable")
    ap.add_argument("--json", action="store_true", help="Print the raw model list as JSON")
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
