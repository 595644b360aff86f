"""Schedule conflict validation for proposed seat reassignments."""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from seatswap.ledger import SeatInfo
    from seatswap.matching.models import Transfer


class SeatDirectory(Protocol):
    """Read-only view of seat holdings needed by the validator."""

    def seats_of(self, holder: str) -> list[SeatInfo]:
        """List all seats held by an identity."""
        ...

    def get_seat(self, seat_id: int) -> SeatInfo:
        """Get seat metadata."""
        ...


def conflicting_slots(
    transfers: Iterable[Transfer], directory: SeatDirectory
) -> dict[str, list[str]]:
    """Find receivers who would hold two seats in one time slot.

    For every distinct receiver, the post-swap holding is the receiver's
    current seats minus the seats they give up in this proposal, plus the
    seats they receive. Untouched holdings take part in the comparison.

    Args:
        transfers: Proposed (seat_id, from_holder, to_holder) movements.
        directory: Source of current holdings and seat time slots.

    Returns:
        Mapping of receiver to the sorted list of duplicated time slots.
        Empty when the proposal is conflict-free.
    """
    giving: dict[str, set[int]] = defaultdict(set)
    receiving: dict[str, list[int]] = {}
    for transfer in transfers:
        giving[transfer.from_holder].add(transfer.seat_id)
        receiving.setdefault(transfer.to_holder, []).append(transfer.seat_id)

    conflicts: dict[str, list[str]] = {}
    for holder, received in receiving.items():
        given_up = giving[holder]
        slots = [
            seat.time_slot
            for seat in directory.seats_of(holder)
            if seat.seat_id not in given_up and seat.seat_id not in received
        ]
        slots.extend(directory.get_seat(seat_id).time_slot for seat_id in received)
        duplicated = sorted(slot for slot, count in Counter(slots).items() if count > 1)
        if duplicated:
            conflicts[holder] = duplicated
    return conflicts


def would_conflict(transfers: Iterable[Transfer], directory: SeatDirectory) -> bool:
    """Return True if the proposal leaves any receiver with a doubled time slot."""
    return bool(conflicting_slots(transfers, directory))
