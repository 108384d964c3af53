"""Pytest configuration for unit tests."""

from typing import Generator

import pytest
import structlog

from recordwatch.core.config import Settings
from recordwatch.core.observe import ManualClock, ObservationEngine
from recordwatch.domain.entities.change_record import ChangeRecord


class Collector:
    """Handler that records every batch it receives."""

    def __init__(self) -> None:
        self.batches: list[list[ChangeRecord]] = []

    def __call__(self, changes: list[ChangeRecord]) -> None:
        self.batches.append(changes)

    @property
    def changes(self) -> list[ChangeRecord]:
        return [change for batch in self.batches for change in batch]

    def summary(self) -> list[tuple]:
        """(type, name) pairs of every received change, in order."""
        return [(change.type, change.name) for change in self.changes]


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="testing", tick_interval_ms=5)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def engine(clock: ManualClock, settings: Settings) -> Generator[ObservationEngine, None, None]:
    engine = ObservationEngine(clock=clock, settings=settings)
    yield engine
    engine.close()


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def make_collector() -> type[Collector]:
    """Factory for tests needing several independent handlers."""
    return Collector


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Undo logging configuration done by CLI tests."""
    yield
    structlog.reset_defaults()
