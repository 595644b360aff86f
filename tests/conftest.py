"""Shared pytest fixtures and configuration."""

import pytest

from seatswap.api.events import EventManager
from seatswap.database import Database
from seatswap.ledger import SeatLedger
from seatswap.matching import SwapEngine
from seatswap.order_book import OrderBook

ADMIN = "registrar"


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def db():
    """Create an in-memory Database."""
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def ledger(db: Database) -> SeatLedger:
    """Create a SeatLedger on the in-memory database."""
    return SeatLedger(db)


@pytest.fixture
def book(db: Database, ledger: SeatLedger) -> OrderBook:
    """Create an OrderBook with one admin."""
    return OrderBook(db, ledger, admins=[ADMIN])


@pytest.fixture
def event_manager() -> EventManager:
    """Create an EventManager instance."""
    return EventManager()


@pytest.fixture
def engine(book: OrderBook, ledger: SeatLedger, event_manager: EventManager) -> SwapEngine:
    """Create a SwapEngine wired to in-memory stores."""
    return SwapEngine(order_book=book, ledger=ledger, event_manager=event_manager)
