"""Matching package - Two- and three-party barter cycle execution."""

from seatswap.matching.conflict import SeatDirectory, conflicting_slots, would_conflict
from seatswap.matching.engine import SwapEngine
from seatswap.matching.models import (
    CycleFailure,
    MatchAlgorithm,
    MatchedCycle,
    PassKind,
    PassResult,
    Transfer,
    cycle_transfers,
)
from seatswap.matching.search import (
    three_way_candidates_adjacent,
    three_way_candidates_brute,
    two_way_candidates,
)

__all__ = [
    "CycleFailure",
    "MatchAlgorithm",
    "MatchedCycle",
    "PassKind",
    "PassResult",
    "SeatDirectory",
    "SwapEngine",
    "Transfer",
    "conflicting_slots",
    "cycle_transfers",
    "three_way_candidates_adjacent",
    "three_way_candidates_brute",
    "two_way_candidates",
    "would_conflict",
]
