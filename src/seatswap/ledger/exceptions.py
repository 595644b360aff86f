"""Custom exceptions for the Seat Ledger."""


class LedgerError(Exception):
    """Base exception for Seat Ledger errors."""


class SeatNotFoundError(LedgerError):
    """Seat with given token ID does not exist."""


class TransferDeniedError(LedgerError):
    """Transfer source is not the seat's current holder."""

    def __init__(self, seat_id: int, from_holder: str, current_holder: str) -> None:
        super().__init__(
            f"Transfer of seat {seat_id} denied: '{from_holder}' is not the holder "
            f"(current holder '{current_holder}')"
        )
        self.seat_id = seat_id
        self.from_holder = from_holder
        self.current_holder = current_holder
