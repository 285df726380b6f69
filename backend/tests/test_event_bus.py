"""Tests for the in-process event bus."""

import asyncio

import pytest

from conftest import TENANT_ID
from triggers.event_bus import EventBus


class FakeRouter:
    def __init__(self, fail_on: str = None):
        self.calls = []
        self.fail_on = fail_on

    async def trigger_by_event(self, event_name, tenant_id, payload):
        self.calls.append((event_name, tenant_id, payload))
        if event_name == self.fail_on:
            raise RuntimeError("router exploded")
        return {}


@pytest.mark.unit
class TestEventBus:

    async def test_publish_and_drain(self):
        router = FakeRouter()
        bus = EventBus(router)
        await bus.start()
        try:
            assert bus.publish("lead.created", TENANT_ID, {"id": 1})
            assert bus.publish("task.created", TENANT_ID, {"id": 2})
            await asyncio.wait_for(bus.drain(), timeout=2)
        finally:
            await bus.stop()

        assert router.calls == [
            ("lead.created", TENANT_ID, {"id": 1}),
            ("task.created", TENANT_ID, {"id": 2}),
        ]
        assert bus.pending == 0

    async def test_full_queue_drops(self):
        bus = EventBus(FakeRouter(), max_size=1)

        assert bus.publish("lead.created", TENANT_ID, {}) is True
        assert bus.publish("lead.created", TENANT_ID, {}) is False
        assert bus.pending == 1

    async def test_consumer_survives_router_errors(self):
        router = FakeRouter(fail_on="lead.created")
        bus = EventBus(router)
        await bus.start()
        try:
            bus.publish("lead.created", TENANT_ID, {})
            bus.publish("task.created", TENANT_ID, {})
            await asyncio.wait_for(bus.drain(), timeout=2)
            assert bus.is_running
        finally:
            await bus.stop()

        assert [call[0] for call in router.calls] == ["lead.created", "task.created"]

    async def test_start_stop_idempotent(self):
        bus = EventBus(FakeRouter())
        assert not bus.is_running

        await bus.start()
        await bus.start()
        assert bus.is_running

        await bus.stop()
        await bus.stop()
        assert not bus.is_running
