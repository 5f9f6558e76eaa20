"""
Pytest fixtures for the invoicing test suite.

Provides:
- Default calculation settings and engine instances
- A recording allocation persister
- Logging isolation between tests
"""

from decimal import Decimal

import pytest

from invoicing_config.schema import CalculationSettings
from invoicing_engines.allocation import AllocationDistributor
from invoicing_engines.allocation_validator import AllocationValidator
from invoicing_engines.totals import TotalsAggregator
from invoicing_kernel.domain.values import Money
from invoicing_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _isolated_logging():
    """Each test starts with unconfigured logging and an empty context."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def settings() -> CalculationSettings:
    return CalculationSettings()


@pytest.fixture
def aggregator(settings) -> TotalsAggregator:
    return TotalsAggregator(settings)


@pytest.fixture
def distributor(settings) -> AllocationDistributor:
    return AllocationDistributor(settings)


@pytest.fixture
def validator(settings) -> AllocationValidator:
    return AllocationValidator(settings)


@pytest.fixture
def usd():
    """Shorthand for building USD amounts: ``usd("10.00")``."""

    def _make(amount) -> Money:
        return Money.of(amount, "USD")

    return _make


class RecordingPersister:
    """Allocation persister that records every replace-all call."""

    def __init__(self, error: BaseException | None = None):
        self.calls: list[tuple[str, list[tuple[str, Decimal]]]] = []
        self.error = error

    def replace_allocations(self, entity_id, pairs):
        self.calls.append((entity_id, list(pairs)))
        if self.error is not None:
            raise self.error


@pytest.fixture
def persister() -> RecordingPersister:
    return RecordingPersister()
