"""OrderBook - Main API for active exchange requests."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from seatswap.ledger import SeatNotFoundError
from seatswap.order_book.exceptions import (
    DuplicateOrderError,
    NotAuthorizedError,
    NotHolderError,
    OrderNotFoundError,
)
from seatswap.order_book.models import ActiveOrder, Order, OrderHistory, OrderState

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from seatswap.database import Database
    from seatswap.ledger import SeatLedger


logger = logging.getLogger(__name__)


class OrderBook:
    """Holds the set of currently active exchange requests.

    Provides submission, cancellation (single and bulk), enumeration and
    the atomic removal used when a matched cycle is executed.
    """

    def __init__(
        self,
        db: Database,
        ledger: SeatLedger,
        admins: Iterable[str] = (),
    ) -> None:
        """Initialize the Order Book.

        Args:
            db: Database holding the orders tables. Tables are created if missing.
            ledger: Seat ledger used to verify holders and look up seat metadata.
            admins: Identities holding the administrative role.
        """
        self._db = db
        self._ledger = ledger
        self._admins = frozenset(admins)
        self._db.create_tables()

    def is_admin(self, identity: str) -> bool:
        """Check whether an identity holds the administrative role."""
        return identity in self._admins

    # --- Mutations ---

    def submit(self, seat_id: int, requested_course: str, submitter: str) -> Order:
        """Place an exchange request for a held seat.

        Args:
            seat_id: Seat the submitter offers
            requested_course: Course label the submitter wants in exchange
            submitter: Identity placing the order

        Returns:
            Created Order with its assigned ID

        Raises:
            SeatNotFoundError: If the seat doesn't exist
            NotHolderError: If submitter does not hold the seat
            DuplicateOrderError: If the seat already has an active order
        """
        holder = self._ledger.current_holder(seat_id)
        if holder != submitter:
            raise NotHolderError(f"'{submitter}' does not hold seat {seat_id}")

        session = self._db.get_session()
        try:
            stmt = select(Order).where(Order.seat_id == seat_id)
            if session.execute(stmt).scalar_one_or_none() is not None:
                raise DuplicateOrderError(f"Seat {seat_id} already has an active order")

            order = Order(
                seat_id=seat_id,
                requested_course=requested_course,
                submitter=submitter,
            )
            session.add(order)
            session.commit()
            session.refresh(order)
            return order
        except IntegrityError as e:
            session.rollback()
            if "UNIQUE constraint failed" in str(e) or "orders.seat_id" in str(e):
                raise DuplicateOrderError(f"Seat {seat_id} already has an active order") from e
            raise
        finally:
            session.close()

    def cancel(self, order_id: int, requester: str) -> Order:
        """Cancel an active order.

        Args:
            order_id: The order's ID
            requester: Identity asking for cancellation

        Returns:
            The removed Order

        Raises:
            OrderNotFoundError: If no such active order
            NotAuthorizedError: If requester is neither the submitter nor an admin
        """
        session = self._db.get_session()
        try:
            order = session.get(Order, order_id)
            if order is None:
                raise OrderNotFoundError(f"Order with id '{order_id}' not found")
            if requester != order.submitter and not self.is_admin(requester):
                raise NotAuthorizedError(f"'{requester}' may not cancel order {order_id}")

            self._close(session, order, OrderState.CANCELLED)
            session.commit()
            return order
        finally:
            session.close()

    def cancel_all(self, requester: str) -> list[Order]:
        """Cancel every active order. Admin only.

        Returns:
            The removed orders, in submission order

        Raises:
            NotAuthorizedError: If requester is not an admin
        """
        if not self.is_admin(requester):
            raise NotAuthorizedError(f"'{requester}' may not cancel all orders")

        session = self._db.get_session()
        try:
            orders = list(session.execute(select(Order).order_by(Order.id)).scalars())
            for order in orders:
                self._close(session, order, OrderState.CANCELLED)
            session.commit()
            return orders
        finally:
            session.close()

    def consume(self, order_ids: Iterable[int]) -> list[Order]:
        """Remove the orders of an executed cycle in one transaction.

        Raises:
            OrderNotFoundError: If any order is no longer active; nothing is removed
        """
        session = self._db.get_session()
        try:
            orders = []
            for order_id in order_ids:
                order = session.get(Order, order_id)
                if order is None:
                    session.rollback()
                    raise OrderNotFoundError(f"Order with id '{order_id}' not found")
                orders.append(order)

            for order in orders:
                self._close(session, order, OrderState.CONSUMED)
            session.commit()
            return orders
        finally:
            session.close()

    def _close(self, session: Session, order: Order, final_state: OrderState) -> None:
        """Move an order into history within the caller's transaction."""
        session.add(
            OrderHistory(
                order_id=order.id,
                seat_id=order.seat_id,
                requested_course=order.requested_course,
                submitter=order.submitter,
                final_state=final_state.value,
                created_at=order.created_at,
            )
        )
        session.delete(order)

    # --- Queries ---

    def get_order(self, order_id: int) -> Order:
        """Get an active order by ID.

        Raises:
            OrderNotFoundError: If no such active order
        """
        session = self._db.get_session()
        try:
            order = session.get(Order, order_id)
            if order is None:
                raise OrderNotFoundError(f"Order with id '{order_id}' not found")
            return order
        finally:
            session.close()

    def get_order_for_seat(self, seat_id: int) -> Order | None:
        """Get the active order offering a seat, if any."""
        session = self._db.get_session()
        try:
            stmt = select(Order).where(Order.seat_id == seat_id)
            return session.execute(stmt).scalar_one_or_none()
        finally:
            session.close()

    def snapshot(self) -> tuple[list[ActiveOrder], list[Order]]:
        """Split the active book into matchable orders and orphans.

        An orphan is an active order whose seat no longer exists on the
        ledger (burned outside the engine). Orphans carry no seat metadata,
        so they are returned separately for the caller to report.

        Returns:
            (active orders with seat metadata, orphaned orders), both in
            submission order.
        """
        session = self._db.get_session()
        try:
            orders = list(session.execute(select(Order).order_by(Order.id)).scalars())
        finally:
            session.close()

        active = []
        orphaned = []
        for order in orders:
            try:
                seat = self._ledger.get_seat(order.seat_id)
            except SeatNotFoundError:
                logger.warning(
                    "Order %d offers seat %d, which no longer exists", order.id, order.seat_id
                )
                orphaned.append(order)
                continue
            active.append(
                ActiveOrder(
                    order_id=order.id,
                    seat_id=order.seat_id,
                    requested_course=order.requested_course,
                    submitter=order.submitter,
                    offered_course=seat.course_id,
                    time_slot=seat.time_slot,
                    section=seat.section,
                )
            )
        return active, orphaned

    def list_active(self) -> list[ActiveOrder]:
        """Active orders with their seat metadata, in submission order; orphans are left out."""
        active, _ = self.snapshot()
        return active

    def count_active(self) -> int:
        """Number of active orders."""
        session = self._db.get_session()
        try:
            return session.execute(select(func.count(Order.id))).scalar_one()
        finally:
            session.close()

    def get_history(
        self,
        final_state: OrderState | None = None,
        submitter: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[OrderHistory]:
        """Query orders that left the book.

        Args:
            final_state: Filter by final state (None = all)
            submitter: Filter by submitter (None = all)
            limit: Max results to return
            offset: Offset for pagination

        Returns:
            History entries, most recently closed first
        """
        session = self._db.get_session()
        try:
            stmt = select(OrderHistory)

            if final_state is not None:
                stmt = stmt.where(OrderHistory.final_state == final_state.value)
            if submitter is not None:
                stmt = stmt.where(OrderHistory.submitter == submitter)

            stmt = stmt.order_by(OrderHistory.id.desc())
            stmt = stmt.limit(limit).offset(offset)

            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()
