"""Unit tests for the module-level API on the default engine."""

import asyncio
from typing import Generator

import pytest

import recordwatch
from recordwatch.api import get_engine, reset_engine
from recordwatch.core.observe import AsyncioClock


@pytest.fixture(autouse=True)
def default_engine() -> Generator[None, None, None]:
    reset_engine()
    yield
    reset_engine()


class TestDefaultEngine:
    """Tests for the process-wide default engine."""

    def test_engine_is_cached(self) -> None:
        """Test that get_engine returns one engine until reset."""
        engine = get_engine()

        assert get_engine() is engine
        assert isinstance(engine.clock, AsyncioClock)

        reset_engine()
        assert get_engine() is not engine

    @pytest.mark.asyncio
    async def test_observe_delivers_on_event_loop(self, collector) -> None:
        """Test the top-level observe() end to end."""
        record = {"a": 1}

        recordwatch.observe(record, collector)
        record["a"] = 2
        await asyncio.sleep(0.2)

        assert [(c.type, c.name, c.old_value) for c in collector.changes] == [
            ("update", "a", 1)
        ]

    @pytest.mark.asyncio
    async def test_deliver_change_records_drains_synchronously(self, collector) -> None:
        """Test that pending records can be taken before the flush runs."""
        record = {}
        recordwatch.observe(record, collector)

        recordwatch.get_notifier(record).notify({"type": "custom", "name": "x"})
        drained = recordwatch.deliver_change_records(collector)
        await asyncio.sleep(0)

        assert [c.type for c in drained] == ["custom"]
        assert collector.batches == []
        assert recordwatch.deliver_change_records(collector) == []

    @pytest.mark.asyncio
    async def test_unobserve_stops_delivery(self, collector) -> None:
        """Test that the top-level unobserve() stops future deliveries."""
        record = {}
        recordwatch.observe(record, collector)
        recordwatch.unobserve(record, collector)

        record["a"] = 1
        await asyncio.sleep(0.1)

        assert collector.batches == []
        assert not get_engine().running

    def test_invalid_arguments(self) -> None:
        """Test that the top-level functions validate like the engine."""
        with pytest.raises(recordwatch.InvalidArgument):
            recordwatch.observe(42, print)
        with pytest.raises(recordwatch.InvalidArgument):
            recordwatch.observe({}, "not callable")
