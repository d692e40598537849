import asyncio

import pytest
from influencore.core.db import build_engine, init_db
from influencore.services.job_store import JobStore
from influencore.services.notifier import ProgressNotifier


class FakeChannel:
    """records every event pushed to it, like a connected websocket"""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise ConnectionError("socket closed")
        self.events.append(data)


class HangingChannel:
    """a subscriber that stopped reading, sends never return"""

    def __init__(self):
        self.attempts = 0

    async def send_json(self, data):
        self.attempts += 1
        await asyncio.Event().wait()


async def no_sleep(delay):
    return None


# file-backed test database, store calls run on worker threads
@pytest.fixture(name="engine")
def engine_fixture(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="store")
def store_fixture(engine):
    return JobStore(engine)


@pytest.fixture(name="notifier")
def notifier_fixture():
    return ProgressNotifier()
