"""Shared infrastructure: RPC access, contract ABIs, data classes, cache and metadata stores."""

from .errors import AuctionLedgerError, RpcUnavailable, DecodeError, AuctionNotFound
from .rpc_client import RpcRetryClient
from .contract_abis import (
    contract_abis,
    get_auction_abi,
    signature_topic,
    UPDATED_BID_SIGNATURE,
)
from .auction_data import (
    LedgerStatus,
    AuctionStatus,
    RawAuctionState,
    AuctionDetails,
    AuctionMetadata,
    Bid,
    Auction,
    AuctionStats,
    format_time_remaining,
)
from .cache import TTLCache
from .metadata_store import (
    MetadataStore,
    NullMetadataStore,
    YamlMetadataStore,
    SupabaseMetadataStore,
    create_metadata_store,
)

__all__ = [
    "AuctionLedgerError",
    "RpcUnavailable",
    "DecodeError",
    "AuctionNotFound",
    "RpcRetryClient",
    "contract_abis",
    "get_auction_abi",
    "signature_topic",
    "UPDATED_BID_SIGNATURE",
    "LedgerStatus",
    "AuctionStatus",
    "RawAuctionState",
    "AuctionDetails",
    "AuctionMetadata",
    "Bid",
    "Auction",
    "AuctionStats",
    "format_time_remaining",
    "TTLCache",
    "MetadataStore",
    "NullMetadataStore",
    "YamlMetadataStore",
    "SupabaseMetadataStore",
    "create_metadata_store",
]
