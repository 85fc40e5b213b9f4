"""Tests for BaseController lifecycle ownership."""

from __future__ import annotations

import asyncio

import pytest

from recordlens.application.services.debouncer import Debouncer
from recordlens.events.bus import Event, EventBus
from recordlens.viewmodels.base import BaseController


class PingEvent(Event):
    pass


class TestDispose:
    @pytest.mark.asyncio
    async def test_dispose_tears_everything_down(self):
        controller = BaseController()
        bus = EventBus()
        fired = []
        controller.subscribe_event(bus, PingEvent, fired.append)
        debouncer = controller.own_debouncer(Debouncer(fired.append, 20))
        debouncer.schedule("late")
        task = controller.spawn(asyncio.sleep(10))

        controller.dispose()
        await asyncio.sleep(0.05)
        bus.publish(PingEvent())

        assert fired == []
        assert debouncer.closed
        assert task.cancelled()
        assert controller.disposed

    def test_dispose_is_idempotent(self):
        controller = BaseController()
        controller.dispose()
        controller.dispose()
        assert controller.disposed

    @pytest.mark.asyncio
    async def test_wait_idle_drains_timers_and_tasks(self):
        controller = BaseController()
        done = []

        async def work(value):
            await asyncio.sleep(0.01)
            done.append(value)

        controller.own_debouncer(Debouncer(work, 20)).schedule("debounced")
        controller.spawn(work("spawned"))

        await controller.wait_idle()

        assert sorted(done) == ["debounced", "spawned"]
        controller.dispose()
