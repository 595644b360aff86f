"""Candidate cycle search over a snapshot of active orders.

Each search is a generator yielding candidate cycles in a fixed scan order.
The caller settles every candidate before asking for the next one and adds
settled order IDs to ``consumed``; the generators read that set live, so an
order consumed by an earlier cycle is never offered again in the same pass.

A cycle is a tuple of orders in which every order requests the course
offered by the next one, and the last requests the first one's course.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterator, Sequence, Set
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seatswap.order_book import ActiveOrder

Cycle = tuple["ActiveOrder", ...]
CandidateSearch = Callable[[Sequence["ActiveOrder"], Set[int]], Iterator[Cycle]]


def two_way_candidates(orders: Sequence[ActiveOrder], consumed: Set[int]) -> Iterator[Cycle]:
    """Yield mutually-satisfying pairs, first-come in book order.

    Pairs (i, j) are scanned with i before j; once i is consumed the scan
    moves on to the next i.
    """
    for idx, first in enumerate(orders):
        if first.order_id in consumed:
            continue
        for second in orders[idx + 1 :]:
            if first.order_id in consumed:
                break
            if second.order_id in consumed:
                continue
            if (
                first.requested_course == second.offered_course
                and second.requested_course == first.offered_course
            ):
                yield (first, second)


def three_way_candidates_brute(
    orders: Sequence[ActiveOrder], consumed: Set[int]
) -> Iterator[Cycle]:
    """Yield closed 3-cycles by testing every ordered triple.

    Reference implementation: O(n^3) triples, each tested in O(1).
    """
    for x in orders:
        if x.order_id in consumed:
            continue
        for y in orders:
            if x.order_id in consumed:
                break
            if y.order_id in consumed or y.order_id == x.order_id:
                continue
            for z in orders:
                if y.order_id in consumed or x.order_id in consumed:
                    break
                if z.order_id in consumed or z.order_id in (x.order_id, y.order_id):
                    continue
                if (
                    x.requested_course == y.offered_course
                    and y.requested_course == z.offered_course
                    and z.requested_course == x.offered_course
                ):
                    yield (x, y, z)


def build_offer_index(orders: Sequence[ActiveOrder]) -> dict[str, list[ActiveOrder]]:
    """Map each offered course to the orders offering it, in book order."""
    index: dict[str, list[ActiveOrder]] = defaultdict(list)
    for order in orders:
        index[order.offered_course].append(order)
    return index


def build_closing_index(
    orders: Sequence[ActiveOrder],
) -> dict[tuple[str, str], list[ActiveOrder]]:
    """Map (offered course, requested course) to matching orders, in book order."""
    index: dict[tuple[str, str], list[ActiveOrder]] = defaultdict(list)
    for order in orders:
        index[(order.offered_course, order.requested_course)].append(order)
    return index


def three_way_candidates_adjacent(
    orders: Sequence[ActiveOrder], consumed: Set[int]
) -> Iterator[Cycle]:
    """Yield closed 3-cycles using course indexes instead of inner scans.

    For each X, the continuations Y come from the orders offering X's
    requested course, and the closing Z from the orders that offer Y's
    requested course while requesting X's offered course. Index buckets keep
    book order, so the yielded sequence equals the brute search's sequence.
    """
    offers = build_offer_index(orders)
    closers = build_closing_index(orders)

    for x in orders:
        if x.order_id in consumed:
            continue
        for y in offers.get(x.requested_course, ()):
            if x.order_id in consumed:
                break
            if y.order_id in consumed or y.order_id == x.order_id:
                continue
            for z in closers.get((y.requested_course, x.offered_course), ()):
                if y.order_id in consumed or x.order_id in consumed:
                    break
                if z.order_id in consumed or z.order_id in (x.order_id, y.order_id):
                    continue
                yield (x, y, z)
