"""SQLAlchemy models for the Seat Ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from typing import Any

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from seatswap.database import Base


class Seat(Base):
    """Seat model - one non-fungible course seat token."""

    __tablename__ = "seats"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    holder: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    time_slot: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    minted_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        holder: str,
        course_id: str,
        time_slot: str,
        section: str = "",
        url: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.holder = holder
        self.course_id = course_id
        self.time_slot = time_slot
        self.section = section
        self.url = url

    def to_info(self) -> SeatInfo:
        """Detach the seat's metadata into an immutable value."""
        return SeatInfo(
            seat_id=self.id,
            holder=self.holder,
            course_id=self.course_id,
            section=self.section,
            time_slot=self.time_slot,
            url=self.url,
        )

    def __repr__(self) -> str:
        return (
            f"<Seat(id={self.id!r}, course_id={self.course_id!r}, "
            f"time_slot={self.time_slot!r}, holder={self.holder!r})>"
        )


@dataclass(frozen=True)
class SeatInfo:
    """Read-only view of a seat as seen by the matching engine.

    Attributes:
        seat_id: Token identifier.
        holder: Current holder identity.
        course_id: The course this seat grants (the "offered course").
        section: Course section label.
        time_slot: Meeting time label used for conflict detection.
        url: Course information link.
    """

    seat_id: int
    holder: str
    course_id: str
    section: str
    time_slot: str
    url: str
