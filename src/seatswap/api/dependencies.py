"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator, Iterable  # noqa: TC003
from typing import Annotated

from fastapi import Depends, Header

from seatswap.api.events import EventManager
from seatswap.database import Database
from seatswap.ledger import SeatLedger
from seatswap.matching import SwapEngine
from seatswap.order_book import OrderBook

# Global Database instance (initialized on app startup)
_database: Database | None = None

# Global SwapEngine instance (initialized on app startup)
_engine: SwapEngine | None = None

# Global EventManager instance
_event_manager: EventManager | None = None


def init_event_manager() -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager()
    return _event_manager


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]


def init_engine(
    db_path: str = "seatswap.db",
    admins: Iterable[str] = (),
    event_manager: EventManager | None = None,
) -> SwapEngine:
    """Initialize the global SwapEngine with its ledger and order book.

    Args:
        db_path: SQLite file shared by the ledger and the order book.
        admins: Identities holding the administrative role.
        event_manager: EventManager to emit through. Defaults to the global one,
            which is created if needed.
    """
    global _database, _engine  # noqa: PLW0603
    if event_manager is None:
        event_manager = _event_manager if _event_manager is not None else init_event_manager()

    _database = Database(db_path)
    ledger = SeatLedger(_database)
    order_book = OrderBook(_database, ledger, admins=admins)
    _engine = SwapEngine(order_book=order_book, ledger=ledger, event_manager=event_manager)
    return _engine


def close_engine() -> None:
    """Close the global SwapEngine and its database."""
    global _database, _engine  # noqa: PLW0603
    if _database is not None:
        _database.close()
    _database = None
    _engine = None


def get_engine() -> Generator[SwapEngine, None, None]:
    """Dependency that provides the SwapEngine instance."""
    if _engine is None:
        raise RuntimeError("SwapEngine not initialized. Call init_engine() first.")
    yield _engine


# Type alias for dependency injection
EngineDep = Annotated[SwapEngine, Depends(get_engine)]


def get_participant(
    x_participant: Annotated[str, Header(min_length=1, description="Caller identity")],
) -> str:
    """Dependency that provides the caller identity from the X-Participant header."""
    return x_participant


ParticipantDep = Annotated[str, Depends(get_participant)]
