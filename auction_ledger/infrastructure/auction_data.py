"""Data classes for auction and bid information read from the auction contract."""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Sequence, Union

from .errors import DecodeError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Transaction hash recorded on bids synthesized from current contract state
STATE_DERIVED_TX_HASH = "derived-from-state"


class LedgerStatus(IntEnum):
    """Auction state enum as stored by the contract."""
    OPEN = 0
    CLOSED = 1
    PAID = 2


def parse_ledger_status(raw: Any) -> Union[LedgerStatus, int]:
    """Known contract states as LedgerStatus; any other value is kept as the raw int."""
    value = int(raw)
    try:
        return LedgerStatus(value)
    except ValueError:
        return value


class AuctionStatus(str, Enum):
    """Lifecycle status exposed to collaborators."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"
    CANCELLED = "cancelled"


def auction_key(auction_index: int) -> str:
    """Public identifier for a contract auction."""
    return f"contract-auction-{auction_index}"


def to_iso(timestamp: float) -> str:
    """Format unix seconds as an ISO-8601 UTC string with millisecond precision."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_zero_address(address: Optional[str]) -> bool:
    return not address or int(address, 16) == 0


def format_time_remaining(seconds: int) -> str:
    """Human readable countdown, e.g. '2d 3h 15m'."""
    total = int(seconds)
    if total <= 0:
        return "Auction ended"
    
    days = total // (24 * 3600)
    hours = (total % (24 * 3600)) // 3600
    minutes = (total % 3600) // 60
    
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _stringify_ints(data: Dict[str, Any], *fields: str) -> Dict[str, Any]:
    # uint256 amounts do not fit JSON numbers
    for name in fields:
        if data.get(name) is not None:
            data[name] = str(data[name])
    return data


@dataclass(frozen=True)
class RawAuctionState:
    """Verbatim `auctions(uint256)` struct for one auction."""
    name: str
    initial_price: int
    current_price: int
    bidder: str
    deadline: int
    bid_count: int
    status: Union[LedgerStatus, int]
    
    @classmethod
    def from_contract(cls, result: Sequence[Any]) -> "RawAuctionState":
        """
        Build from the tuple returned by the struct getter.
        
        Args:
            result: (name, initialPrice, currentPrice, bidder, deadline, bidCount, status)
            
        Raises:
            DecodeError: If the tuple does not have the expected shape
        """
        try:
            name, initial_price, current_price, bidder, deadline, bid_count, status = result
            return cls(
                name=str(name),
                initial_price=int(initial_price),
                current_price=int(current_price),
                bidder=str(bidder) if bidder else ZERO_ADDRESS,
                deadline=int(deadline),
                bid_count=int(bid_count),
                status=parse_ledger_status(status),
            )
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Unexpected auction struct {result!r}: {e}") from e
    
    @property
    def has_bidder(self) -> bool:
        return not is_zero_address(self.bidder)
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = int(self.status)
        return _stringify_ints(data, "initial_price", "current_price")


@dataclass(frozen=True)
class AuctionDetails:
    """Point-in-time `getAuctionDetails(uint256)` view."""
    current_winner: str
    current_price: int
    seconds_remaining: int
    status: Union[LedgerStatus, int]
    
    @classmethod
    def from_contract(cls, result: Sequence[Any]) -> "AuctionDetails":
        """
        Build from the tuple returned by getAuctionDetails.
        
        Raises:
            DecodeError: If the tuple does not have the expected shape
        """
        try:
            current_winner, current_price, seconds_remaining, status = result
            return cls(
                current_winner=str(current_winner) if current_winner else ZERO_ADDRESS,
                current_price=int(current_price),
                seconds_remaining=int(seconds_remaining),
                status=parse_ledger_status(status),
            )
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Unexpected auction details {result!r}: {e}") from e
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = int(self.status)
        return _stringify_ints(data, "current_price")


@dataclass
class Bid:
    """One historical bid on an auction."""
    id: str
    auction_id: str
    bidder_address: str
    amount: int
    transaction_hash: str
    observed_at: str
    is_winning: bool = False
    block_number: Optional[int] = None
    log_index: Optional[int] = None
    
    def to_dict(self) -> Dict[str, Any]:
        return _stringify_ints(asdict(self), "amount")


@dataclass(frozen=True)
class AuctionMetadata:
    """Human-authored fields stored off-chain for an auction."""
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    
    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AuctionMetadata":
        """Build from a metadata row (`name` is accepted as the title column)."""
        return cls(
            title=record.get("title") or record.get("name"),
            description=record.get("description"),
            image_url=record.get("image_url"),
            thumbnail_url=record.get("thumbnail_url"),
        )


@dataclass
class Auction:
    """Domain projection of one contract auction."""
    id: str
    auction_index: int
    title: str
    description: str
    artwork_url: str
    start_price: int
    current_bid: int
    bid_increment: int
    total_bids: int
    status: AuctionStatus
    start_time: str
    end_time: str
    seconds_remaining: int
    winner_id: Optional[str]
    contract_address: str
    token_id: str
    created_at: str
    updated_at: str
    
    def __repr__(self):
        return f"Auction(index={self.auction_index}, title={self.title!r}, status={self.status.value}, bids={self.total_bids})"
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return _stringify_ints(data, "start_price", "current_bid", "bid_increment")


@dataclass
class AuctionStats:
    """Contract-wide statistics."""
    total_auctions: int = 0
    active_auctions: int = 0
    ended_auctions: int = 0
    total_volume: str = "0"
    contract_address: str = ""
    
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
