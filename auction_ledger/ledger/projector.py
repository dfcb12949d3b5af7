"""Projection of raw contract reads into Auction records."""

import logging
from typing import Optional

from ..config import config as default_config
from ..infrastructure.auction_data import (
    Auction,
    AuctionDetails,
    AuctionMetadata,
    AuctionStatus,
    LedgerStatus,
    RawAuctionState,
    auction_key,
    to_iso,
)
from ..infrastructure.metadata_store import MetadataStore, NullMetadataStore

logger = logging.getLogger(__name__)


def derive_status(state: RawAuctionState, details: AuctionDetails) -> AuctionStatus:
    """
    Lifecycle status of an auction.
    
    Open with time left is active. Open with no time left is ended: the
    deadline passed but nobody has closed the auction on-chain yet. Closed,
    Paid and any status value the contract enum does not define collapse to
    ended.
    """
    if state.status == LedgerStatus.OPEN and details.seconds_remaining > 0:
        return AuctionStatus.ACTIVE
    return AuctionStatus.ENDED


class AuctionProjector:
    """
    Combines the struct read, the details read and the wall-clock time into
    an `Auction`, filling presentation fields from off-chain metadata.
    """
    
    def __init__(
        self,
        metadata_store: Optional[MetadataStore] = None,
        contract_address: Optional[str] = None,
        auction_duration: Optional[int] = None,
        placeholder_image_url: Optional[str] = None,
        bid_increment: Optional[int] = None,
    ):
        self.metadata_store = metadata_store or NullMetadataStore()
        self.contract_address = contract_address or default_config.auction_address
        self.auction_duration = auction_duration if auction_duration is not None else default_config.auction_duration
        self.placeholder_image_url = placeholder_image_url or default_config.placeholder_image_url
        self.bid_increment = bid_increment if bid_increment is not None else default_config.bid_increment
    
    async def fetch_metadata(self, auction_index: int) -> Optional[AuctionMetadata]:
        """Look up metadata; a miss or a store failure both yield None."""
        try:
            return await self.metadata_store.get(auction_index)
        except Exception as e:
            logger.warning(f"No metadata for auction {auction_index}, using placeholders: {e}")
            return None
    
    async def enrich(
        self,
        auction_index: int,
        state: RawAuctionState,
        details: AuctionDetails,
        now: float,
    ) -> Auction:
        """Project an auction after consulting the metadata store."""
        metadata = await self.fetch_metadata(auction_index)
        return self.project(auction_index, state, details, now, metadata)
    
    def placeholder_image(self, auction_index: int) -> str:
        separator = "&" if "?" in self.placeholder_image_url else "?"
        return f"{self.placeholder_image_url}{separator}sig={auction_index}"
    
    def project(
        self,
        auction_index: int,
        state: RawAuctionState,
        details: AuctionDetails,
        now: float,
        metadata: Optional[AuctionMetadata] = None,
    ) -> Auction:
        """
        Build the Auction record. Pure: identical inputs give identical output.
        
        Args:
            auction_index: Contract index of the auction
            state: Struct read
            details: Details read
            now: Wall-clock time of the read, unix seconds
            metadata: Optional off-chain fields
        """
        status = derive_status(state, details)
        display_price = state.current_price if state.current_price > 0 else state.initial_price
        
        # The contract stores no start time; assume the nominal duration
        start_time = to_iso(state.deadline - self.auction_duration)
        
        title = (metadata.title if metadata else None) or state.name
        description = (metadata.description if metadata else None) or (
            f"Blockchain auction created on smart contract. Bids: {state.bid_count}"
        )
        artwork_url = (metadata.image_url if metadata else None) or self.placeholder_image(auction_index)
        
        return Auction(
            id=auction_key(auction_index),
            auction_index=auction_index,
            title=title,
            description=description,
            artwork_url=artwork_url,
            start_price=state.initial_price,
            current_bid=display_price,
            bid_increment=self.bid_increment,
            total_bids=state.bid_count,
            status=status,
            start_time=start_time,
            end_time=to_iso(state.deadline),
            seconds_remaining=details.seconds_remaining if status == AuctionStatus.ACTIVE else 0,
            winner_id=state.bidder if state.has_bidder else None,
            contract_address=self.contract_address,
            token_id=f"auction-{auction_index}",
            created_at=start_time,
            updated_at=to_iso(now),
        )
