"""SwapEngine - Order intake and multi-party cycle execution."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from seatswap.ledger import SeatNotFoundError, TransferDeniedError
from seatswap.logging import format_transfers
from seatswap.matching.conflict import conflicting_slots
from seatswap.matching.models import (
    CycleFailure,
    MatchAlgorithm,
    MatchedCycle,
    PassKind,
    PassResult,
    cycle_transfers,
)
from seatswap.matching.search import (
    three_way_candidates_adjacent,
    three_way_candidates_brute,
    two_way_candidates,
)
from seatswap.order_book import NotAuthorizedError

if TYPE_CHECKING:
    from seatswap.api.events import EventManager
    from seatswap.ledger import SeatInfo, SeatLedger
    from seatswap.matching.search import CandidateSearch, Cycle
    from seatswap.order_book import ActiveOrder, Order, OrderBook

logger = logging.getLogger(__name__)

_THREE_WAY_SEARCHES: dict[MatchAlgorithm, tuple[PassKind, CandidateSearch]] = {
    MatchAlgorithm.BRUTE: (PassKind.THREE_WAY_BRUTE, three_way_candidates_brute),
    MatchAlgorithm.ADJACENT: (PassKind.THREE_WAY_ADJACENT, three_way_candidates_adjacent),
}


class SwapEngine:
    """Runs the order book and executes barter cycles against the seat ledger.

    Every public operation holds one re-entrant lock, so a submission,
    cancellation or whole matching pass is observed as a single step.
    All matchers share one settle path (holder check, conflict check,
    transfers, book removal); they differ only in how candidates are found.
    """

    def __init__(
        self,
        order_book: OrderBook,
        ledger: SeatLedger,
        event_manager: EventManager,
    ) -> None:
        """Initialize the SwapEngine.

        Args:
            order_book: OrderBook holding active exchange requests.
            ledger: SeatLedger owning seat holdings.
            event_manager: EventManager instance for emitting events.
        """
        self.order_book = order_book
        self.ledger = ledger
        self.event_manager = event_manager
        self._lock = threading.RLock()

    # --- Order intake ---

    def submit_order(self, seat_id: int, requested_course: str, submitter: str) -> Order:
        """Place an exchange request; see OrderBook.submit for errors."""
        with self._lock:
            order = self.order_book.submit(seat_id, requested_course, submitter)
            logger.info(
                "Order %d submitted by %s: seat %d for %s",
                order.id,
                submitter,
                seat_id,
                requested_course,
            )
            self.event_manager.emit_order_submitted(
                order_id=order.id,
                seat_id=order.seat_id,
                requested_course=order.requested_course,
                submitter=order.submitter,
            )
            return order

    def cancel_order(self, order_id: int, requester: str) -> Order:
        """Cancel one active order; see OrderBook.cancel for errors."""
        with self._lock:
            order = self.order_book.cancel(order_id, requester)
            logger.info("Order %d cancelled by %s", order_id, requester)
            self.event_manager.emit_order_cancelled(
                order_id=order.id,
                seat_id=order.seat_id,
                submitter=order.submitter,
                cancelled_by=requester,
            )
            return order

    def cancel_all_orders(self, requester: str) -> list[Order]:
        """Cancel the whole book. Admin only."""
        with self._lock:
            orders = self.order_book.cancel_all(requester)
            logger.info("All %d active orders cancelled by %s", len(orders), requester)
            self.event_manager.emit_all_orders_cancelled(
                order_ids=[o.id for o in orders],
                submitters=[o.submitter for o in orders],
                cancelled_by=requester,
            )
            return orders

    def list_active_orders(self) -> list[ActiveOrder]:
        """Snapshot of the active book in submission order."""
        with self._lock:
            return self.order_book.list_active()

    # --- Seat administration ---

    def mint_seat(
        self,
        requester: str,
        holder: str,
        course_id: str,
        time_slot: str,
        section: str = "",
        url: str = "",
    ) -> SeatInfo:
        """Issue a seat. Admin only.

        Raises:
            NotAuthorizedError: If requester is not an admin
        """
        if not self.order_book.is_admin(requester):
            raise NotAuthorizedError(f"'{requester}' may not mint seats")
        with self._lock:
            return self.ledger.mint_seat(
                holder=holder,
                course_id=course_id,
                time_slot=time_slot,
                section=section,
                url=url,
            )

    def burn_seat(self, seat_id: int, requester: str) -> None:
        """Destroy a seat, cancelling its active order first. Admin only.

        Raises:
            NotAuthorizedError: If requester is not an admin
            SeatNotFoundError: If seat doesn't exist
        """
        if not self.order_book.is_admin(requester):
            raise NotAuthorizedError(f"'{requester}' may not burn seats")
        with self._lock:
            self.ledger.get_seat(seat_id)
            order = self.order_book.get_order_for_seat(seat_id)
            if order is not None:
                self.cancel_order(order.id, requester)
            self.ledger.burn_seat(seat_id)

    # --- Matching passes ---

    def execute_two_way(self) -> PassResult:
        """Execute every conflict-free mutually-satisfying pair in one pass.

        Always emits two_way_swap_completed, with an empty list when
        nothing matched.
        """
        with self._lock:
            result = self._run_pass(PassKind.TWO_WAY, two_way_candidates)
            self.event_manager.emit_two_way_swap_completed(result.cycles)
            return result

    def execute_three_way_brute(self) -> PassResult:
        """Execute 3-cycles found by exhaustive triple enumeration."""
        return self.execute_three_way(MatchAlgorithm.BRUTE)

    def execute_three_way_adjacent(self) -> PassResult:
        """Execute 3-cycles found through the offered-course index."""
        return self.execute_three_way(MatchAlgorithm.ADJACENT)

    def execute_three_way(
        self, algorithm: MatchAlgorithm = MatchAlgorithm.ADJACENT
    ) -> PassResult:
        """Execute every conflict-free 3-cycle in one pass.

        Emits three_way_swap_completed when at least one cycle executed,
        no_three_way_swap_found otherwise.
        """
        kind, search = _THREE_WAY_SEARCHES[MatchAlgorithm(algorithm)]
        with self._lock:
            result = self._run_pass(kind, search)
            if result.matched:
                self.event_manager.emit_three_way_swap_completed(
                    result.cycles, algorithm=MatchAlgorithm(algorithm).value
                )
            else:
                self.event_manager.emit_no_three_way_swap_found(
                    algorithm=MatchAlgorithm(algorithm).value, examined=result.examined
                )
            return result

    def _run_pass(self, kind: PassKind, search: CandidateSearch) -> PassResult:
        """Drive a candidate search over the pass-start snapshot."""
        active, orphaned = self.order_book.snapshot()
        orders = tuple(active)
        consumed: set[int] = set()
        result = PassResult(kind=kind, examined=len(orders))

        for order in orphaned:
            reason = f"seat {order.seat_id} no longer exists, order {order.id} cannot be filled"
            result.failures.append(
                CycleFailure(order_ids=(order.id,), seat_id=order.seat_id, reason=reason)
            )
            logger.error("Order %d set aside: %s", order.id, reason)

        for cycle in search(orders, consumed):
            self._settle(cycle, consumed, result)

        if result.failures:
            logger.error(
                "%s pass hit %d book/ledger inconsistencies", kind.value, len(result.failures)
            )
        logger.info(
            "%s pass over %d orders: %d executed, %d conflict-rejected",
            kind.value,
            result.examined,
            len(result.cycles),
            result.rejected,
        )
        return result

    def _settle(self, cycle: Cycle, consumed: set[int], result: PassResult) -> bool:
        """Validate and execute one candidate cycle.

        Returns:
            True if the cycle executed and its orders were consumed.
        """
        order_ids = tuple(order.order_id for order in cycle)
        transfers = cycle_transfers(cycle)

        for order in cycle:
            try:
                holder = self.ledger.current_holder(order.seat_id)
            except SeatNotFoundError:
                holder = None
            if holder != order.submitter:
                self._record_failure(
                    result,
                    consumed,
                    order_ids,
                    order,
                    f"seat {order.seat_id} is held by {holder!r}, "
                    f"order {order.order_id} was placed by {order.submitter!r}",
                )
                return False

        conflicts = conflicting_slots(transfers, self.ledger)
        if conflicts:
            result.rejected += 1
            logger.debug(
                "Cycle %s rejected, schedule conflict %s (%s)",
                order_ids,
                conflicts,
                format_transfers(transfers),
            )
            return False

        applied = []
        try:
            for transfer in transfers:
                self.ledger.transfer(*transfer)
                applied.append(transfer)
        except TransferDeniedError as e:
            for transfer in reversed(applied):
                self.ledger.transfer(transfer.seat_id, transfer.to_holder, transfer.from_holder)
            stale = next(order for order in cycle if order.seat_id == e.seat_id)
            self._record_failure(result, consumed, order_ids, stale, str(e))
            return False

        self.order_book.consume(order_ids)
        consumed.update(order_ids)
        result.cycles.append(MatchedCycle(order_ids=order_ids, transfers=transfers))
        logger.info("Cycle %s executed: %s", order_ids, format_transfers(transfers))
        return True

    def _record_failure(
        self,
        result: PassResult,
        consumed: set[int],
        order_ids: tuple[int, ...],
        stale: ActiveOrder,
        reason: str,
    ) -> None:
        """Abort a cycle on a book/ledger mismatch and exclude the stale order."""
        # The stale order stays in the book but sits out the rest of this pass
        consumed.add(stale.order_id)
        result.failures.append(
            CycleFailure(order_ids=order_ids, seat_id=stale.seat_id, reason=reason)
        )
        logger.error("Cycle %s aborted: %s", order_ids, reason)
