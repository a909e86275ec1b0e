"""Run a single score decay sweep from the command line.

Usage::

    python -m leadintake.scripts.degrade_inactive_leads [--dry-run]
"""

import argparse
import asyncio
import logging

from redis.asyncio import Redis

from leadintake.core.cache import CacheService
from leadintake.core.config import settings
from leadintake.core.database import AsyncSessionLocal
from leadintake.services.score_decay import run_score_decay_sweep

logger = logging.getLogger(__name__)


async def main(dry_run: bool) -> int:
    redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        result = await run_score_decay_sweep(
            AsyncSessionLocal, CacheService(redis_client), dry_run=dry_run
        )
    finally:
        await redis_client.aclose()
    if result is None:
        print("Another score decay sweep is running; nothing done")
        return 1

    print(
        f"processed={result.processed} degraded={result.degraded} "
        f"stage_changes={result.stage_changes} errors={result.errors}"
        + (" (dry run)" if result.dry_run else "")
    )
    for detail in result.details:
        if detail.status == "unchanged":
            continue
        print(
            f"  {detail.lead_id} {detail.status}: "
            f"{detail.previous_engagement} -> {detail.new_engagement} "
            f"({detail.previous_stage} -> {detail.new_stage})"
        )
    return 0 if result.errors == 0 else 2


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Degrade engagement of inactive leads")
    parser.add_argument(
        "--dry-run", action="store_true", help="report changes without writing them"
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL)
    raise SystemExit(asyncio.run(main(args.dry_run)))
