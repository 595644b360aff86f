"""Data models for the matching engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from seatswap.order_book import ActiveOrder


class PassKind(StrEnum):
    """Which matcher produced a pass."""

    TWO_WAY = "two_way"
    THREE_WAY_BRUTE = "three_way_brute"
    THREE_WAY_ADJACENT = "three_way_adjacent"


class MatchAlgorithm(StrEnum):
    """Three-way search strategy."""

    BRUTE = "brute"
    ADJACENT = "adjacent"


class Transfer(NamedTuple):
    """One seat movement within a proposed cycle."""

    seat_id: int
    from_holder: str
    to_holder: str

    def to_dict(self) -> dict[str, Any]:
        return {"seat_id": self.seat_id, "from": self.from_holder, "to": self.to_holder}


def cycle_transfers(cycle: tuple[ActiveOrder, ...]) -> tuple[Transfer, ...]:
    """Compute the reassignment implied by a closed cycle.

    Each order requests the next order's offered course, so the next
    order's seat moves to this order's submitter. For X1 -> X2 -> X3 -> X1
    that gives seat(X2) -> X1, seat(X3) -> X2, seat(X1) -> X3.
    """
    size = len(cycle)
    transfers = []
    for idx, order in enumerate(cycle):
        nxt = cycle[(idx + 1) % size]
        transfers.append(Transfer(nxt.seat_id, nxt.submitter, order.submitter))
    return tuple(transfers)


@dataclass(frozen=True)
class MatchedCycle:
    """A cycle executed during a pass.

    Attributes:
        order_ids: Orders in cycle order (each requests the next one's course).
        transfers: Seat movements applied to the ledger.
    """

    order_ids: tuple[int, ...]
    transfers: tuple[Transfer, ...]

    @property
    def participants(self) -> frozenset[str]:
        return frozenset(t.to_holder for t in self.transfers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_ids": list(self.order_ids),
            "transfers": [t.to_dict() for t in self.transfers],
        }


@dataclass(frozen=True)
class CycleFailure:
    """A cycle (or a lone orphaned order) the ledger could not settle.

    Attributes:
        order_ids: Orders of the aborted cycle, or the single orphaned order.
        seat_id: Seat whose holder no longer matched the order book.
        reason: Human-readable description of the inconsistency.
    """

    order_ids: tuple[int, ...]
    seat_id: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"order_ids": list(self.order_ids), "seat_id": self.seat_id, "reason": self.reason}


@dataclass
class PassResult:
    """Outcome of one matcher invocation over a snapshot of the book.

    Attributes:
        kind: Matcher that ran.
        examined: Number of active orders in the pass snapshot.
        cycles: Executed cycles, in discovery order.
        rejected: Candidate cycles skipped because of a schedule conflict.
        failures: Cycles aborted by a book/ledger inconsistency.
    """

    kind: PassKind
    examined: int = 0
    cycles: list[MatchedCycle] = field(default_factory=list)
    rejected: int = 0
    failures: list[CycleFailure] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.cycles)

    @property
    def matched_order_ids(self) -> set[int]:
        return {order_id for cycle in self.cycles for order_id in cycle.order_ids}
