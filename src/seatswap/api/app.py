"""SeatSwap REST application."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from seatswap.api.dependencies import close_engine, init_engine, init_event_manager
from seatswap.api.models import APIResponse
from seatswap.api.routes import events, history, matching, orders, seats
from seatswap.ledger import LedgerError, SeatNotFoundError, TransferDeniedError
from seatswap.order_book import (
    DuplicateOrderError,
    NotAuthorizedError,
    NotHolderError,
    OrderBookError,
    OrderNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

API_PREFIX = "/api/v1"

_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (NotHolderError, status.HTTP_403_FORBIDDEN, "Caller does not hold this seat"),
    (NotAuthorizedError, status.HTTP_403_FORBIDDEN, "Not authorized"),
    (DuplicateOrderError, status.HTTP_409_CONFLICT, "Seat already has an active order"),
    (OrderNotFoundError, status.HTTP_404_NOT_FOUND, "Order not found"),
    (SeatNotFoundError, status.HTTP_404_NOT_FOUND, "Seat not found"),
    (TransferDeniedError, status.HTTP_409_CONFLICT, "Transfer denied by ledger"),
    (OrderBookError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
    (LedgerError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
]


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP status codes in the APIResponse envelope."""
    for exc_class, status_code, message in _ERROR_STATUS:

        async def handler(
            _request: Request,
            _exc: Exception,
            status_code: int = status_code,
            message: str = message,
        ) -> JSONResponse:
            return JSONResponse(
                status_code=status_code,
                content=APIResponse[None](data=None, error=message).model_dump(),
            )

        app.add_exception_handler(exc_class, handler)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the swap engine on startup and release the database on shutdown."""
    event_manager = init_event_manager()
    init_engine(
        getattr(app.state, "db_path", "seatswap.db"),
        admins=getattr(app.state, "admins", []),
        event_manager=event_manager,
    )
    try:
        yield
    finally:
        close_engine()


def create_app(db_path: str = "seatswap.db", admins: list[str] | None = None) -> FastAPI:
    """Build the SeatSwap app; the engine opens ``db_path`` when the app starts."""
    app = FastAPI(
        title="SeatSwap API",
        description="Course seat exchange: order book plus two- and three-way swap matching",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db_path = db_path
    app.state.admins = list(admins or [])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for module in (seats, orders, matching, history, events):
        app.include_router(module.router, prefix=API_PREFIX)

    return app


app = create_app()
