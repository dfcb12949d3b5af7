"""
Bid history reconstruction from contract events.

The contract emits `UpdatedBid(auctionIndex, newOffer, bidder)` for every
accepted bid, but log queries and decoding are unreliable on public RPC
endpoints. `BidHistoryReconciler` therefore tries an ordered chain of
strategies and keeps the first non-empty result:

1. topic_scan     - raw eth_getLogs filtered by the keccak of the event
                    signature, payload decoded directly against the ABI layout
2. event_scan     - logs requested through the contract's UpdatedBid event,
                    which builds the filter from the event ABI and decodes
                    each entry with it
3. state_fallback - a single bid synthesized from the current auction struct

Whichever strategy wins, bids are ranked by amount (highest first) and every
bid matching the top amount is flagged as winning.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3

from ..config import config as default_config
from ..infrastructure.auction_data import (
    STATE_DERIVED_TX_HASH,
    Bid,
    auction_key,
    to_iso,
)
from ..infrastructure.contract_abis import (
    UPDATED_BID_SIGNATURE,
    UPDATED_BID_TYPES,
    contract_abis,
    signature_topic,
)
from ..infrastructure.errors import AuctionNotFound
from ..infrastructure.rpc_client import RpcRetryClient
from .ledger_reader import AuctionLedgerReader

logger = logging.getLogger(__name__)

UPDATED_BID_EVENT = "UpdatedBid"


@dataclass(frozen=True)
class BidEvent:
    """A decoded UpdatedBid log."""
    auction_index: int
    amount: int
    bidder: str
    transaction_hash: str
    block_number: Optional[int]
    log_index: Optional[int]


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one log: the event when ok, the reason otherwise."""
    event: Optional[BidEvent] = None
    ok: bool = False
    error: Optional[str] = None
    
    @classmethod
    def success(cls, event: BidEvent) -> "DecodeResult":
        return cls(event=event, ok=True)
    
    @classmethod
    def failure(cls, error: str) -> "DecodeResult":
        return cls(error=error)


Decoder = Callable[[Any], DecodeResult]


@dataclass(frozen=True)
class BidStrategy:
    """One way of reconstructing bids for an auction."""
    name: str
    fetch: Callable[[int], Awaitable[List[Bid]]]


@dataclass(frozen=True)
class BidHistory:
    """
    Ranked bids plus how they were obtained.
    
    `failed` names the strategies that raised before the answer was settled.
    A history with failures is degraded: it may be empty or partial only
    because the ledger could not be read.
    """
    bids: List[Bid] = field(default_factory=list)
    strategy: Optional[str] = None
    failed: Tuple[str, ...] = ()
    
    @property
    def degraded(self) -> bool:
        return bool(self.failed)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def _as_bytes(value: Any) -> bytes:
    return bytes(HexBytes(value))


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def rank_bids(bids: List[Bid]) -> List[Bid]:
    """
    Order bids by amount, highest first, and flag the winners.
    
    The sort is stable, so equal amounts keep their source order. Every bid
    equal to the highest amount is marked winning.
    """
    if not bids:
        return []
    
    ranked = sorted(bids, key=lambda bid: bid.amount, reverse=True)
    highest = ranked[0].amount
    return [replace(bid, is_winning=bid.amount == highest) for bid in ranked]


class BidHistoryReconciler:
    """
    Reconstructs the bid ledger of one auction.
    
    Strategy failures are logged and the next strategy runs; if every strategy
    fails the result is an empty list. AuctionNotFound is the one error that is
    propagated, because it is an answer rather than a failure.
    """
    
    def __init__(
        self,
        client: RpcRetryClient,
        reader: AuctionLedgerReader,
        from_block: Union[int, str, None] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.reader = reader
        self.address = to_checksum_address(reader.address)
        self.from_block = from_block if from_block is not None else default_config.from_block
        self._clock = clock
        
        self.signature_topic = signature_topic(UPDATED_BID_SIGNATURE)
        self._check_event_abi()
        
        self.strategies: List[BidStrategy] = [
            BidStrategy("topic_scan", self.scan_by_topic),
            BidStrategy("event_scan", self.scan_by_event),
            BidStrategy("state_fallback", self.from_current_state),
        ]
    
    def _check_event_abi(self):
        # A loaded artifact may declare UpdatedBid differently from the known layout
        try:
            event_topic = contract_abis.get_event_topic(UPDATED_BID_EVENT)
        except ValueError as e:
            logger.warning(f"⚠️ Event ABI scan will fail: {e}")
            return
        
        if event_topic.lower() != self.signature_topic.lower():
            logger.warning(
                f"⚠️ ABI UpdatedBid topic {event_topic} differs from {UPDATED_BID_SIGNATURE}; "
                "the two log scans will see different events"
            )
    
    async def reconcile(self, auction_index: int) -> BidHistory:
        """
        Run the strategy chain for an auction.
        
        Returns:
            BidHistory with bids sorted highest first, the strategy that
            produced them and the strategies that failed along the way
        
        Raises:
            AuctionNotFound: If the contract reports the auction does not exist
        """
        logger.info(f"🔍 Fetching bid history for auction {auction_index}...")
        failed: List[str] = []
        
        for position, strategy in enumerate(self.strategies, start=1):
            try:
                bids = await strategy.fetch(auction_index)
            except AuctionNotFound:
                raise
            except Exception as e:
                failed.append(strategy.name)
                logger.warning(f"⚠️ Method {position} ({strategy.name}) failed for auction {auction_index}: {e}")
                continue
            
            if bids:
                logger.info(f"✅ Method {position} ({strategy.name}) found {len(bids)} bid(s) for auction {auction_index}")
                return BidHistory(rank_bids(bids), strategy.name, tuple(failed))
            
            logger.info(f"Method {position} ({strategy.name}) found no bids for auction {auction_index}")
        
        if len(failed) == len(self.strategies):
            logger.error(f"💥 Every bid history method failed for auction {auction_index}; returning no bids")
        else:
            logger.info(f"📭 No bids found for auction {auction_index}")
        return BidHistory([], None, tuple(failed))
    
    async def get_bid_history(self, auction_index: int) -> List[Bid]:
        """
        Fetch bid history for an auction, ranked by amount.
        
        Returns:
            Bids sorted highest first; empty when the auction has no bids or
            every strategy failed
        
        Raises:
            AuctionNotFound: If the contract reports the auction does not exist
        """
        history = await self.reconcile(auction_index)
        return history.bids
    
    # Strategy 1: raw topic scan
    
    async def scan_by_topic(self, auction_index: int) -> List[Bid]:
        """Scan logs filtered by the signature hash, decoding the raw payload."""
        logs = await self.client.fetch_logs(
            {
                "address": self.address,
                "topics": [self.signature_topic],
                "fromBlock": self.from_block,
                "toBlock": "latest",
            },
            f"UpdatedBid events (topic) for auction {auction_index}",
        )
        logger.info(f"📊 Found {len(logs)} UpdatedBid log(s) using topic filtering")
        return await self._collect_bids(auction_index, logs, self.try_decode)
    
    # Strategy 2: contract event scan
    
    async def scan_by_event(self, auction_index: int) -> List[Bid]:
        """
        Request logs through the contract's UpdatedBid event.
        
        web3 builds the filter from the event ABI and decodes every entry; a
        payload it cannot decode fails this strategy as a whole.
        """
        async def _get_event_logs(w3):
            contract = self.client.contract(w3, self.address, self.reader.abi)
            event = getattr(contract.events, UPDATED_BID_EVENT)
            return list(await event.get_logs(from_block=self.from_block, to_block="latest"))
        
        entries = await self.client.execute_with_retry(
            _get_event_logs,
            f"Event Logs: UpdatedBid events (event ABI) for auction {auction_index}",
            self.client.log_max_attempts,
        )
        logger.info(f"📊 Found {len(entries)} UpdatedBid event(s) using the event ABI")
        return await self._collect_bids(auction_index, entries, self.try_decode_event)
    
    async def _collect_bids(self, auction_index: int, entries: List[Any], decoder: Decoder) -> List[Bid]:
        block_times: Dict[int, str] = {}
        bids: List[Bid] = []
        skipped = 0
        
        for position, entry in enumerate(entries):
            result = decoder(entry)
            if not result.ok:
                skipped += 1
                logger.debug(f"Skipping log {position}: {result.error}")
                continue
            
            event = result.event
            if event.auction_index != auction_index:
                continue
            
            observed_at = await self._resolve_timestamp(event.block_number, block_times)
            bids.append(self._to_bid(event, observed_at))
        
        if skipped:
            logger.warning(f"Skipped {skipped} undecodable log(s) while scanning auction {auction_index}")
        
        return bids
    
    def try_decode(self, log: Any) -> DecodeResult:
        """Decode a raw log by checking topic0 and ABI-decoding its data payload."""
        try:
            topics = log.get("topics") or []
            if not topics:
                return DecodeResult.failure("log has no topics")
            if _hex(topics[0]).lower() != self.signature_topic.lower():
                return DecodeResult.failure(f"topic {_hex(topics[0])} is not UpdatedBid")
            
            auction_index, amount, bidder = abi_decode(UPDATED_BID_TYPES, _as_bytes(log.get("data") or b""))
            
            return DecodeResult.success(BidEvent(
                auction_index=int(auction_index),
                amount=int(amount),
                bidder=to_checksum_address(bidder),
                transaction_hash=_hex(log.get("transactionHash") or "0x"),
                block_number=_optional_int(log.get("blockNumber")),
                log_index=_optional_int(log.get("logIndex")),
            ))
        except (DecodingError, ValueError, TypeError, AttributeError) as e:
            return DecodeResult.failure(f"{type(e).__name__}: {e}")
    
    def try_decode_event(self, entry: Any) -> DecodeResult:
        """Read a web3-decoded UpdatedBid entry into a BidEvent."""
        try:
            name = entry.get("event")
            if name is not None and name != UPDATED_BID_EVENT:
                return DecodeResult.failure(f"event {name} is not UpdatedBid")
            
            args = entry["args"]
            
            return DecodeResult.success(BidEvent(
                auction_index=int(args["_auctionIndex"]),
                amount=int(args["_newOffer"]),
                bidder=to_checksum_address(args["_bidderAddress"]),
                transaction_hash=_hex(entry.get("transactionHash") or "0x"),
                block_number=_optional_int(entry.get("blockNumber")),
                log_index=_optional_int(entry.get("logIndex")),
            ))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            return DecodeResult.failure(f"{type(e).__name__}: {e}")
    
    async def _resolve_timestamp(self, block_number: Optional[int], block_times: Dict[int, str]) -> str:
        """Block timestamp of a bid, or the current time if the block can't be read."""
        if block_number is None:
            return to_iso(self._clock())
        
        if block_number in block_times:
            return block_times[block_number]
        
        try:
            block = await self.client.fetch_block(block_number, f"block {block_number} timestamp")
            observed_at = to_iso(int(block["timestamp"]))
        except Exception as e:
            logger.warning(f"Failed to get timestamp for block {block_number}: {e}")
            return to_iso(self._clock())
        
        block_times[block_number] = observed_at
        return observed_at
    
    def _to_bid(self, event: BidEvent, observed_at: str) -> Bid:
        return Bid(
            id=f"bid-{event.transaction_hash}-{event.log_index}",
            auction_id=auction_key(event.auction_index),
            bidder_address=event.bidder,
            amount=event.amount,
            transaction_hash=event.transaction_hash,
            observed_at=observed_at,
            block_number=event.block_number,
            log_index=event.log_index,
        )
    
    # Strategy 3: current contract state
    
    async def from_current_state(self, auction_index: int) -> List[Bid]:
        """
        Synthesize the current leading bid from the auction struct.
        
        Only the latest bid is recoverable this way; earlier history is not.
        """
        state = await self.reader.get_auction_struct(auction_index)
        
        if not state.has_bidder or state.bid_count <= 0:
            logger.info(f"📭 Auction {auction_index} has no bids (bidCount: {state.bid_count})")
            return []
        
        logger.info(f"✅ Using current bid from contract state for auction {auction_index}")
        return [Bid(
            id=f"current-bid-{auction_index}",
            auction_id=auction_key(auction_index),
            bidder_address=state.bidder,
            amount=state.current_price,
            transaction_hash=STATE_DERIVED_TX_HASH,
            observed_at=to_iso(self._clock()),
            is_winning=True,
        )]
