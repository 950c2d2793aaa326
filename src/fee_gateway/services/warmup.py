"""Scheduled cache warmup."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from fee_gateway.config import WarmupRoute
from fee_gateway.domain.fees import LimitsQuery
from fee_gateway.services.fees import FeesService

WARMUP_JOB_ID = "cache-warmup"
WARMUP_CRON = "*/5 * * * *"

_logger = logging.getLogger(__name__)


@dataclass
class CacheWarmupJob:
    """Pre-computes deposit limits for frequently requested routes."""

    fees_service: FeesService
    routes: list[WarmupRoute] = field(default_factory=list)

    async def run(self) -> int:
        """Warm every configured route and return how many succeeded."""
        _logger.info("Cache warmup executed at %s", datetime.now(tz=UTC).isoformat())
        warmed = 0
        for route in self.routes:
            try:
                await self.fees_service.get_limits(
                    LimitsQuery(
                        token=route.token,
                        destination_chain_id=route.destination_chain_id,
                        origin_chain_id=route.origin_chain_id,
                    )
                )
            except Exception:
                _logger.exception(
                    "Cache warmup failed for %s on chain %s",
                    route.token,
                    route.destination_chain_id,
                )
                continue
            warmed += 1
        if self.routes:
            _logger.info(
                "Cache warmup refreshed %s/%s routes", warmed, len(self.routes)
            )
        return warmed


def build_scheduler(job: CacheWarmupJob) -> AsyncIOScheduler:
    """Create a scheduler running the warmup job every five minutes."""
    scheduler = AsyncIOScheduler(
        job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
        timezone=UTC,
    )
    scheduler.add_job(
        job.run,
        CronTrigger.from_crontab(WARMUP_CRON, timezone=UTC),
        id=WARMUP_JOB_ID,
        name=WARMUP_JOB_ID,
        replace_existing=True,
    )
    return scheduler
