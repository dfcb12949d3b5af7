"""
Auction Ledger - read-side reconstruction of on-chain auctions.

Structure:
- infrastructure/: RPC retry client, contract ABIs, data classes, cache, metadata stores
- ledger/: contract reader, bid history reconciler, projector and aggregate service
- scripts/: command line inspection tool
- config.py: Shared configuration
"""

__version__ = "0.1.0"

from .config import config
from .infrastructure import (
    AuctionLedgerError,
    RpcUnavailable,
    DecodeError,
    AuctionNotFound,
    RpcRetryClient,
    LedgerStatus,
    AuctionStatus,
    RawAuctionState,
    AuctionDetails,
    Bid,
    Auction,
    AuctionStats,
    TTLCache,
)
from .ledger import (
    AuctionLedgerReader,
    BidHistoryReconciler,
    AuctionProjector,
    AuctionService,
    create_auction_service,
)

__all__ = [
    "config",
    "AuctionLedgerError",
    "RpcUnavailable",
    "DecodeError",
    "AuctionNotFound",
    "RpcRetryClient",
    "LedgerStatus",
    "AuctionStatus",
    "RawAuctionState",
    "AuctionDetails",
    "Bid",
    "Auction",
    "AuctionStats",
    "TTLCache",
    "AuctionLedgerReader",
    "BidHistoryReconciler",
    "AuctionProjector",
    "AuctionService",
    "create_auction_service",
    "__version__",
]
