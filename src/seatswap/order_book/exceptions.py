"""Custom exceptions for the Order Book."""


class OrderBookError(Exception):
    """Base exception for Order Book errors."""


class NotHolderError(OrderBookError):
    """Submitter does not currently hold the offered seat."""


class DuplicateOrderError(OrderBookError):
    """An active order already exists for this seat."""


class OrderNotFoundError(OrderBookError):
    """No active order with given ID."""


class NotAuthorizedError(OrderBookError):
    """Requester may not perform this operation."""
