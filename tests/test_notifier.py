import asyncio

from influencore.services.notifier import ProgressNotifier, RedisRelay
from conftest import FakeChannel, HangingChannel


class FakeRelay:
    def __init__(self):
        self.published = []

    async def publish(self, owner_id, event):
        self.published.append((owner_id, event))

    async def close(self):
        pass


def test_publish_without_subscribers(notifier):
    """events for owners nobody listens to are dropped silently"""
    delivered = asyncio.run(notifier.publish("nobody", {"type": "job_progress"}))
    assert delivered == 0


def test_publish_only_reaches_owner(notifier):
    mine, theirs = FakeChannel(), FakeChannel()
    notifier.subscribe("alice", mine)
    notifier.subscribe("bob", theirs)

    asyncio.run(notifier.notify("alice", "job-1", 40, "Rendering frames", "processing"))

    assert len(mine.events) == 1
    assert mine.events[0]["progress"] == 40
    assert mine.events[0]["status"] == "processing"
    assert theirs.events == []


def test_broken_channel_does_not_block_others(notifier):
    """a failing channel is dropped, the rest still receive the event"""
    broken, healthy = FakeChannel(fail=True), FakeChannel()
    notifier.subscribe("alice", broken)
    notifier.subscribe("alice", healthy)

    delivered = asyncio.run(notifier.publish("alice", {"progress": 10}))

    assert delivered == 1
    assert healthy.events == [{"progress": 10}]
    assert notifier.subscriber_count("alice") == 1


def test_unsubscribe(notifier):
    channel = FakeChannel()
    notifier.subscribe("alice", channel)
    notifier.unsubscribe("alice", channel)
    notifier.unsubscribe("alice", channel)

    assert notifier.subscriber_count("alice") == 0
    asyncio.run(notifier.publish("alice", {"progress": 10}))
    assert channel.events == []


def test_relay_receives_every_event():
    relay = FakeRelay()
    notifier = ProgressNotifier(relay=relay)

    asyncio.run(notifier.notify("alice", "job-1", 100, "done", "completed", result={"ok": True}))

    owner, event = relay.published[0]
    assert owner == "alice"
    assert event["result"] == {"ok": True}


def test_stalled_channel_times_out_and_is_dropped():
    """a subscriber that never reads cannot hold up publishing"""
    notifier = ProgressNotifier(send_timeout=0.05)
    stalled, healthy = HangingChannel(), FakeChannel()
    notifier.subscribe("alice", stalled)
    notifier.subscribe("alice", healthy)

    async def scenario():
        first = await asyncio.wait_for(notifier.publish("alice", {"progress": 10}), timeout=5)
        second = await asyncio.wait_for(notifier.publish("alice", {"progress": 20}), timeout=5)
        return first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (1, 1)
    assert healthy.events == [{"progress": 10}, {"progress": 20}]
    assert stalled.attempts == 1
    assert notifier.subscriber_count("alice") == 1


class BrokenRedis:
    async def publish(self, channel, message):
        raise ConnectionError("redis unavailable")

    async def aclose(self):
        pass


def test_relay_errors_are_swallowed():
    """a redis outage is logged and local delivery still happens"""
    relay = RedisRelay("redis://localhost:1/0")
    relay.client = BrokenRedis()
    notifier = ProgressNotifier(relay=relay)
    channel = FakeChannel()
    notifier.subscribe("alice", channel)

    delivered = asyncio.run(notifier.notify("alice", "job-1", 10, "Analyzing prompt", "processing"))

    assert delivered == 1
    assert channel.events[0]["progress"] == 10
    asyncio.run(notifier.close())
