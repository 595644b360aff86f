"""SeatLedger - registry of course seat tokens and their holders."""

from __future__ import annotations

import logging

from sqlalchemy import select

from seatswap.database import Database
from seatswap.ledger.exceptions import SeatNotFoundError, TransferDeniedError
from seatswap.ledger.models import Seat, SeatInfo

logger = logging.getLogger(__name__)


class SeatLedger:
    """Non-fungible seat registry.

    Owns the seat-to-holder mapping. The matching engine reads it through
    current_holder/get_seat/seats_of and mutates it only through transfer.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the ledger on a shared database.

        Args:
            db: Database holding the seats table. Tables are created if missing.
        """
        self._db = db
        self._db.create_tables()

    # --- Issuance ---

    def mint_seat(
        self,
        holder: str,
        course_id: str,
        time_slot: str,
        section: str = "",
        url: str = "",
    ) -> SeatInfo:
        """Issue a new seat token to a holder.

        Args:
            holder: Identity receiving the seat
            course_id: Course label the seat grants
            time_slot: Meeting time label
            section: Course section label
            url: Course information link

        Returns:
            The minted seat with its assigned token ID
        """
        session = self._db.get_session()
        try:
            seat = Seat(
                holder=holder,
                course_id=course_id,
                time_slot=time_slot,
                section=section,
                url=url,
            )
            session.add(seat)
            session.commit()
            session.refresh(seat)
            logger.info("Minted seat %d (%s @ %s) to %s", seat.id, course_id, time_slot, holder)
            return seat.to_info()
        finally:
            session.close()

    def burn_seat(self, seat_id: int) -> None:
        """Destroy a seat token and its metadata.

        Raises:
            SeatNotFoundError: If seat doesn't exist
        """
        session = self._db.get_session()
        try:
            seat = session.get(Seat, seat_id)
            if seat is None:
                raise SeatNotFoundError(f"Seat with id '{seat_id}' not found")
            session.delete(seat)
            session.commit()
            logger.info("Burned seat %d", seat_id)
        finally:
            session.close()

    # --- Lookups ---

    def get_seat(self, seat_id: int) -> SeatInfo:
        """Get seat metadata and holder.

        Raises:
            SeatNotFoundError: If seat doesn't exist
        """
        session = self._db.get_session()
        try:
            seat = session.get(Seat, seat_id)
            if seat is None:
                raise SeatNotFoundError(f"Seat with id '{seat_id}' not found")
            return seat.to_info()
        finally:
            session.close()

    def current_holder(self, seat_id: int) -> str:
        """Get the identity currently holding a seat.

        Raises:
            SeatNotFoundError: If seat doesn't exist
        """
        return self.get_seat(seat_id).holder

    def seats_of(self, holder: str) -> list[SeatInfo]:
        """List all seats held by an identity, ordered by token ID."""
        session = self._db.get_session()
        try:
            stmt = select(Seat).where(Seat.holder == holder).order_by(Seat.id)
            return [seat.to_info() for seat in session.execute(stmt).scalars()]
        finally:
            session.close()

    def list_seats(self) -> list[SeatInfo]:
        """List every seat, ordered by token ID."""
        session = self._db.get_session()
        try:
            stmt = select(Seat).order_by(Seat.id)
            return [seat.to_info() for seat in session.execute(stmt).scalars()]
        finally:
            session.close()

    # --- Movement ---

    def transfer(self, seat_id: int, from_holder: str, to_holder: str) -> None:
        """Move a seat from its current holder to a new one.

        Args:
            seat_id: Token to move
            from_holder: Expected current holder
            to_holder: New holder

        Raises:
            SeatNotFoundError: If seat doesn't exist
            TransferDeniedError: If from_holder is not the current holder
        """
        session = self._db.get_session()
        try:
            seat = session.get(Seat, seat_id)
            if seat is None:
                raise SeatNotFoundError(f"Seat with id '{seat_id}' not found")
            if seat.holder != from_holder:
                raise TransferDeniedError(seat_id, from_holder, seat.holder)
            seat.holder = to_holder
            session.commit()
            logger.debug("Transferred seat %d: %s -> %s", seat_id, from_holder, to_holder)
        finally:
            session.close()
