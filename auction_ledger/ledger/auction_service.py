"""
Aggregate auction service.

Produces the collaborator-facing reads:
- list_auctions: every auction on the contract, projected concurrently
- get_auction: one auction by index
- get_bid_history: reconstructed bid ledger for one auction
- get_stats: contract-wide counts and settled volume
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

from web3 import Web3

from ..config import Config, config as default_config
from ..infrastructure.auction_data import Auction, AuctionStats, AuctionStatus, Bid
from ..infrastructure.cache import TTLCache
from ..infrastructure.contract_abis import contract_abis
from ..infrastructure.errors import AuctionLedgerError, AuctionNotFound
from ..infrastructure.metadata_store import create_metadata_store
from ..infrastructure.rpc_client import RpcRetryClient
from .bid_history import BidHistory, BidHistoryReconciler
from .ledger_reader import AuctionLedgerReader
from .projector import AuctionProjector

logger = logging.getLogger(__name__)

T = TypeVar("T")

COUNT_KEY = "auctions:count"
LIST_KEY = "auctions:list"


def format_volume(total_wei: int) -> str:
    """Wei total as a plain decimal ether string ("0" when nothing settled)."""
    if total_wei == 0:
        return "0"
    return format(Web3.from_wei(total_wei, "ether"), "f")


class AuctionService:
    """
    Read-side facade over the auction contract.
    
    Per-auction failures while listing are logged and the auction is left
    out; a failed count read yields an empty list. Caching is explicit and
    owned by the cache object passed in.
    """
    
    def __init__(
        self,
        reader: AuctionLedgerReader,
        reconciler: BidHistoryReconciler,
        projector: AuctionProjector,
        cache: Optional[TTLCache] = None,
        max_concurrency: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.reader = reader
        self.reconciler = reconciler
        self.projector = projector
        self.cache = cache or TTLCache(ttl=0)
        self.max_concurrency = max_concurrency or default_config.max_concurrency
        self._clock = clock
        self._semaphore: Optional[asyncio.Semaphore] = None
    
    @property
    def contract_address(self) -> str:
        return self.projector.contract_address
    
    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore
    
    async def _with_timeout(self, operation: Awaitable[T], timeout: Optional[float]) -> T:
        if timeout is None:
            return await operation
        return await asyncio.wait_for(operation, timeout)
    
    async def _cached(
        self,
        key: str,
        load: Callable[[], Awaitable[T]],
        keep: Callable[[T], bool] = lambda value: True,
    ) -> T:
        value = self.cache.get(key)
        if value is not None:
            logger.debug(f"Cache hit for {key}")
            return value
        
        value = await load()
        if keep(value):
            self.cache.set(key, value)
        else:
            logger.debug(f"Not caching incomplete result for {key}")
        return value
    
    async def get_total_auction_count(self) -> int:
        """Auction count from the contract (cached)."""
        return await self._cached(COUNT_KEY, self.reader.get_total_auction_count)
    
    async def _project(self, auction_index: int) -> Auction:
        async with self._get_semaphore():
            state, details = await asyncio.gather(
                self.reader.get_auction_struct(auction_index),
                self.reader.get_auction_details(auction_index),
            )
            return await self.projector.enrich(auction_index, state, details, self._clock())
    
    async def _project_or_none(self, auction_index: int) -> Optional[Auction]:
        try:
            auction = await self._project(auction_index)
        except Exception as e:
            logger.error(f"Error fetching auction {auction_index}: {e}")
            return None
        
        logger.info(f"✅ Auction {auction_index}: \"{auction.title}\" - {auction.status.value}")
        self.cache.set(f"auction:{auction_index}", auction)
        return auction
    
    async def _project_all(self, total: int) -> Tuple[int, List[Auction]]:
        if total == 0:
            logger.info("ℹ️ No auctions found on contract")
            return 0, []
        
        results = await asyncio.gather(*(self._project_or_none(index) for index in range(total)))
        auctions = [auction for auction in results if auction is not None]
        
        if len(auctions) < total:
            logger.warning(f"⚠️ Projected {len(auctions)} of {total} auctions; the rest failed")
        else:
            logger.info(f"🎉 Successfully fetched {len(auctions)} auctions")
        
        return total, auctions
    
    async def _list_with_count(self) -> Tuple[int, List[Auction]]:
        cached = self.cache.get(LIST_KEY)
        if cached is not None:
            return cached
        
        try:
            total = await self.get_total_auction_count()
        except AuctionLedgerError as e:
            logger.error(f"Failed to get total auctions: {e}")
            return 0, []
        
        result = await self._project_all(total)
        # A partial list would hide the failed auctions until the entry expires
        if len(result[1]) == total:
            self.cache.set(LIST_KEY, result)
        return result
    
    async def list_auctions(self, timeout: Optional[float] = None) -> List[Auction]:
        """
        Project every auction on the contract.
        
        Args:
            timeout: Optional overall timeout in seconds
        
        Returns:
            Auctions ordered by index; failed indices are omitted
        """
        _, auctions = await self._with_timeout(self._list_with_count(), timeout)
        return list(auctions)
    
    async def _ensure_exists(self, auction_index: int):
        if auction_index < 0:
            raise AuctionNotFound(auction_index, "negative index")
        
        try:
            total = await self.get_total_auction_count()
            if auction_index >= total:
                # The cached count may predate auctions created since
                self.cache.invalidate(COUNT_KEY, LIST_KEY)
                total = await self.get_total_auction_count()
        except AuctionLedgerError as e:
            # The per-auction read will still reveal a missing auction
            logger.warning(f"Could not verify auction {auction_index} exists: {e}")
            return
        
        if auction_index >= total:
            raise AuctionNotFound(auction_index, f"contract has {total} auctions")
    
    async def get_auction(self, auction_index: int, timeout: Optional[float] = None) -> Auction:
        """
        Project a single auction.
        
        Raises:
            AuctionNotFound: If the index does not exist
            RpcUnavailable: If the contract could not be read
        """
        async def _load() -> Auction:
            await self._ensure_exists(auction_index)
            return await self._project(auction_index)
        
        return await self._with_timeout(self._cached(f"auction:{auction_index}", _load), timeout)
    
    async def get_bid_history(self, auction_index: int, timeout: Optional[float] = None) -> List[Bid]:
        """
        Reconstructed bids for an auction, highest first.
        
        An empty list means either no bids or no readable source of bids.
        Histories produced after a failed strategy are not cached.
        
        Raises:
            AuctionNotFound: If the index does not exist
        """
        async def _load() -> BidHistory:
            await self._ensure_exists(auction_index)
            history = await self.reconciler.reconcile(auction_index)
            if history.degraded:
                logger.warning(
                    f"⚠️ Bid history for auction {auction_index} is incomplete "
                    f"(failed: {', '.join(history.failed)})"
                )
            return history
        
        history = await self._with_timeout(
            self._cached(f"bids:{auction_index}", _load, keep=lambda history: not history.degraded),
            timeout,
        )
        return list(history.bids)
    
    async def get_stats(self, timeout: Optional[float] = None) -> AuctionStats:
        """Contract-wide statistics folded from the full auction list."""
        total, auctions = await self._with_timeout(self._list_with_count(), timeout)
        
        active = sum(1 for auction in auctions if auction.status == AuctionStatus.ACTIVE)
        ended = sum(1 for auction in auctions if auction.status == AuctionStatus.ENDED)
        volume = sum(
            auction.current_bid
            for auction in auctions
            if auction.status == AuctionStatus.ENDED and auction.winner_id
        )
        
        return AuctionStats(
            total_auctions=total,
            active_auctions=active,
            ended_auctions=ended,
            total_volume=format_volume(volume),
            contract_address=self.contract_address,
        )
    
    async def health_check(self) -> Any:
        return await self.reader.client.health_check()
    
    async def close(self):
        """Release network resources."""
        await self.projector.metadata_store.close()
        await self.reader.client.close()


def create_auction_service(service_config: Optional[Config] = None, **overrides) -> AuctionService:
    """
    Wire an AuctionService from configuration.
    
    Args:
        service_config: Configuration object (defaults to the global config)
        overrides: Replacement components (client, metadata_store, cache, clock)
    """
    cfg = service_config or default_config
    
    if cfg.abi_path:
        contract_abis.load_artifact(cfg.abi_path)
    
    clock = overrides.get("clock", time.time)
    client = overrides.get("client") or RpcRetryClient(cfg)
    reader = AuctionLedgerReader(client, address=cfg.auction_address)
    reconciler = BidHistoryReconciler(client, reader, from_block=cfg.from_block, clock=clock)
    projector = AuctionProjector(
        metadata_store=overrides.get("metadata_store") or create_metadata_store(cfg),
        contract_address=cfg.auction_address,
        auction_duration=cfg.auction_duration,
        placeholder_image_url=cfg.placeholder_image_url,
        bid_increment=cfg.bid_increment,
    )
    cache = overrides.get("cache") or TTLCache(cfg.cache_ttl)
    
    logger.info(f"AuctionService ready for contract {cfg.auction_address}")
    return AuctionService(
        reader,
        reconciler,
        projector,
        cache=cache,
        max_concurrency=cfg.max_concurrency,
        clock=clock,
    )
