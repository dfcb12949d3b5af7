"""Exceptions raised by the auction ledger reader."""

from typing import Optional


class AuctionLedgerError(Exception):
    """Base class for auction ledger errors."""


class RpcUnavailable(AuctionLedgerError):
    """An RPC operation failed on every attempt."""
    
    def __init__(self, label: str, attempts: int, last_error: Optional[BaseException] = None):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        reason = str(last_error) if last_error else "Unknown error"
        super().__init__(
            f'RPC operation "{label}" failed after {attempts} attempts. Last error: {reason}'
        )


class DecodeError(AuctionLedgerError):
    """A log entry or contract struct did not match the expected layout."""


class AuctionNotFound(AuctionLedgerError):
    """The requested auction index does not exist on the contract."""
    
    def __init__(self, auction_index: int, reason: str = "index out of range"):
        self.auction_index = auction_index
        super().__init__(f"Auction {auction_index} not found ({reason})")
