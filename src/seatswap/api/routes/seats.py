"""Seat ledger endpoints."""

from fastapi import APIRouter, status

from seatswap.api.dependencies import EngineDep, ParticipantDep
from seatswap.api.models import APIResponse, SeatCreate, SeatResponse, seat_to_response

router = APIRouter(tags=["seats"])


@router.post(
    "/seats",
    response_model=APIResponse[SeatResponse],
    status_code=status.HTTP_201_CREATED,
)
def mint_seat(
    seat: SeatCreate, engine: EngineDep, participant: ParticipantDep
) -> APIResponse[SeatResponse]:
    """Mint a new seat (admin only)."""
    minted = engine.mint_seat(
        requester=participant,
        holder=seat.holder,
        course_id=seat.course_id,
        time_slot=seat.time_slot,
        section=seat.section,
        url=seat.url,
    )
    return APIResponse(data=seat_to_response(minted))


@router.get("/seats/{seat_id}", response_model=APIResponse[SeatResponse])
def get_seat(seat_id: int, engine: EngineDep) -> APIResponse[SeatResponse]:
    """Get a seat's metadata and holder."""
    return APIResponse(data=seat_to_response(engine.ledger.get_seat(seat_id)))


@router.delete("/seats/{seat_id}", status_code=status.HTTP_204_NO_CONTENT)
def burn_seat(seat_id: int, engine: EngineDep, participant: ParticipantDep) -> None:
    """Burn a seat, cancelling its active order (admin only)."""
    engine.burn_seat(seat_id, requester=participant)


@router.get("/holders/{holder}/seats", response_model=APIResponse[list[SeatResponse]])
def list_holder_seats(holder: str, engine: EngineDep) -> APIResponse[list[SeatResponse]]:
    """List the seats held by an identity."""
    return APIResponse(data=[seat_to_response(s) for s in engine.ledger.seats_of(holder)])
