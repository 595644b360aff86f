"""SQLite storage shared by the seat ledger and the order book."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"

# Milliseconds a writer waits on a locked file (CLI and server may share one)
BUSY_TIMEOUT_MS = 5000


class Base(DeclarativeBase):
    """Declarative base for seats, orders and order history."""

    pass


def _set_pragmas(dbapi_connection: object, _connection_record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    cursor.close()


class Database:
    """Lazily-opened SQLite engine plus a session factory.

    File databases run in WAL mode. ``":memory:"`` keeps a single connection
    alive for the lifetime of the engine so every session sees the same data,
    including sessions opened from TestClient worker threads.
    """

    def __init__(self, db_path: str = "seatswap.db") -> None:
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def in_memory(self) -> bool:
        return self.db_path == MEMORY

    def _create_engine(self) -> Engine:
        options: dict[str, object] = {
            "echo": False,
            "connect_args": {"check_same_thread": False},
        }
        if self.in_memory:
            options["poolclass"] = StaticPool
        else:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(f"sqlite:///{self.db_path}", **options)
        event.listen(engine, "connect", _set_pragmas)
        return engine

    @property
    def engine(self) -> Engine:
        """The SQLAlchemy engine, created on first use."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Session factory bound to the engine; objects stay readable after commit."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory

    def create_tables(self) -> None:
        """Create the seats, orders and order_history tables if missing."""
        # Register every mapped table on Base.metadata
        import seatswap.ledger.models  # noqa: F401, PLC0415
        import seatswap.order_book.models  # noqa: F401, PLC0415

        Base.metadata.create_all(self.engine)

    def table_names(self) -> list[str]:
        """Names of the tables present in the database file."""
        return inspect(self.engine).get_table_names()

    def get_session(self) -> Session:
        """Open a new session; callers close it."""
        return self.session_factory()

    def is_wal_mode(self) -> bool:
        """Whether the journal mode is WAL."""
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def close(self) -> None:
        """Dispose of the engine; the next access reopens it."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None
