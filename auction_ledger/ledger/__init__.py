"""Auction ledger reconstruction: contract reads, bid history, projection and aggregation."""

from .ledger_reader import AuctionLedgerReader
from .bid_history import BidHistoryReconciler, BidHistory, BidStrategy, BidEvent, DecodeResult, rank_bids
from .projector import AuctionProjector, derive_status
from .auction_service import AuctionService, create_auction_service

__all__ = [
    "AuctionLedgerReader",
    "BidHistoryReconciler",
    "BidHistory",
    "BidStrategy",
    "BidEvent",
    "DecodeResult",
    "rank_bids",
    "AuctionProjector",
    "derive_status",
    "AuctionService",
    "create_auction_service",
]
