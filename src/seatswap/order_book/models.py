"""SQLAlchemy models for the Order Book."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from seatswap.database import Base


class OrderState(StrEnum):
    """Order lifecycle state."""

    ACTIVE = "active"
    CONSUMED = "consumed"
    CANCELLED = "cancelled"


class Order(Base):
    """Order model - one active exchange request.

    Rows exist only while the order is active; consumed and cancelled
    orders move to OrderHistory.
    """

    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seat_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    requested_course: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    submitter: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    def __init__(
        self,
        seat_id: int,
        requested_course: str,
        submitter: str,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.seat_id = seat_id
        self.requested_course = requested_course
        self.submitter = submitter

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id!r}, seat_id={self.seat_id!r}, "
            f"requested_course={self.requested_course!r}, submitter={self.submitter!r})>"
        )


class OrderHistory(Base):
    """Order history model - stores orders that left the book."""

    __tablename__ = "order_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    seat_id: Mapped[int] = mapped_column(Integer, nullable=False)
    requested_course: Mapped[str] = mapped_column(String(100), nullable=False)
    submitter: Mapped[str] = mapped_column(String(255), nullable=False)
    final_state: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    closed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    def __init__(
        self,
        order_id: int,
        seat_id: int,
        requested_course: str,
        submitter: str,
        final_state: str,
        created_at: datetime,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.order_id = order_id
        self.seat_id = seat_id
        self.requested_course = requested_course
        self.submitter = submitter
        self.final_state = final_state
        self.created_at = created_at

    @property
    def final_order_state(self) -> OrderState:
        """Get final_state as OrderState enum."""
        return OrderState(self.final_state)

    def __repr__(self) -> str:
        return (
            f"<OrderHistory(order_id={self.order_id!r}, seat_id={self.seat_id!r}, "
            f"final_state={self.final_state!r})>"
        )


@dataclass(frozen=True)
class ActiveOrder:
    """Denormalized snapshot row for one active order.

    Attributes:
        order_id: Order identifier (submission order).
        seat_id: Seat offered by the submitter.
        requested_course: Course label the submitter wants.
        submitter: Identity that placed the order.
        offered_course: Course label of the offered seat.
        time_slot: Time slot of the offered seat.
        section: Section label of the offered seat.
    """

    order_id: int
    seat_id: int
    requested_course: str
    submitter: str
    offered_course: str
    time_slot: str
    section: str = ""
