"""Order history query endpoints."""

from fastapi import APIRouter, Query

from seatswap.api.dependencies import EngineDep
from seatswap.api.models import APIResponse, HistoryResponse, history_to_response
from seatswap.order_book import OrderState

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=APIResponse[list[HistoryResponse]])
def list_history(
    engine: EngineDep,
    final_state: OrderState | None = Query(default=None, description="Filter by final state"),
    submitter: str | None = Query(default=None, description="Filter by submitter"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[list[HistoryResponse]]:
    """List orders that left the book, most recent first."""
    history = engine.order_book.get_history(
        final_state=final_state,
        submitter=submitter,
        limit=limit,
        offset=offset,
    )
    return APIResponse(data=[history_to_response(h) for h in history])
