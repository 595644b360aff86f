"""Seat Ledger - Registry of course seat tokens and their holders."""

from seatswap.ledger.exceptions import (
    LedgerError,
    SeatNotFoundError,
    TransferDeniedError,
)
from seatswap.ledger.ledger import SeatLedger
from seatswap.ledger.models import Seat, SeatInfo

__all__ = [
    "LedgerError",
    "Seat",
    "SeatInfo",
    "SeatLedger",
    "SeatNotFoundError",
    "TransferDeniedError",
]
