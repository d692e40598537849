import asyncio
import logging

from influencore.core.config import Settings, settings as default_settings
from influencore.core.db import build_engine, init_db
from influencore.services.job_runner import JobRunner
from influencore.services.job_store import JobStore
from influencore.services.notifier import ProgressNotifier, RedisRelay

logger = logging.getLogger(__name__)


class AppContext:
    """process-wide services, built at startup and passed down explicitly"""

    def __init__(self, engine, store: JobStore, notifier: ProgressNotifier, runner: JobRunner):
        self.engine = engine
        self.store = store
        self.notifier = notifier
        self.runner = runner

    @classmethod
    def create(cls, settings: Settings = default_settings, engine=None, sleep=asyncio.sleep) -> "AppContext":
        engine = engine or build_engine(settings.DATABASE_URL)
        init_db(engine)

        relay = None
        if settings.REDIS_URL:
            relay = RedisRelay(settings.REDIS_URL, settings.PROGRESS_CHANNEL_PREFIX)
            logger.info("progress events relayed to redis")

        store = JobStore(engine)
        notifier = ProgressNotifier(relay=relay, send_timeout=settings.NOTIFY_SEND_TIMEOUT_SECONDS)
        runner = JobRunner(store, notifier, phase_delay=settings.JOB_PHASE_DELAY_SECONDS, sleep=sleep)
        return cls(engine, store, notifier, runner)

    async def close(self):
        await self.runner.shutdown()
        await self.notifier.close()
        self.engine.dispose()
