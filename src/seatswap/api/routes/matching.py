"""Matching pass endpoints."""

from fastapi import APIRouter, Query

from seatswap.api.dependencies import EngineDep
from seatswap.api.models import APIResponse, PassResultResponse, pass_result_to_response
from seatswap.matching import MatchAlgorithm

router = APIRouter(prefix="/matching", tags=["matching"])


@router.post("/two-way", response_model=APIResponse[PassResultResponse])
def execute_two_way(engine: EngineDep) -> APIResponse[PassResultResponse]:
    """Run one two-party matching pass."""
    result = engine.execute_two_way()
    return APIResponse(data=pass_result_to_response(result))


@router.post("/three-way", response_model=APIResponse[PassResultResponse])
def execute_three_way(
    engine: EngineDep,
    algorithm: MatchAlgorithm = Query(
        default=MatchAlgorithm.ADJACENT, description="Cycle search strategy"
    ),
) -> APIResponse[PassResultResponse]:
    """Run one three-party matching pass."""
    result = engine.execute_three_way(algorithm)
    return APIResponse(data=pass_result_to_response(result))
