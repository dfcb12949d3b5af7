"""Typed reads of the auction contract's view functions."""

import logging
from typing import Any, Dict, List, Optional

from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from ..config import config as default_config
from ..infrastructure.auction_data import AuctionDetails, RawAuctionState
from ..infrastructure.contract_abis import get_auction_abi
from ..infrastructure.errors import AuctionNotFound, DecodeError
from ..infrastructure.rpc_client import RpcRetryClient

logger = logging.getLogger(__name__)


class AuctionLedgerReader:
    """
    Reads auction state from the contract through the retry client.
    
    Contract reverts on a per-auction read are reported as AuctionNotFound;
    results with an unexpected shape raise DecodeError; exhausted retries
    propagate as RpcUnavailable.
    """
    
    def __init__(
        self,
        client: RpcRetryClient,
        address: Optional[str] = None,
        abi: Optional[List[Dict[str, Any]]] = None,
    ):
        self.client = client
        self.address = address or default_config.auction_address
        self.abi = abi or get_auction_abi()
    
    def _functions(self, w3):
        return self.client.contract(w3, self.address, self.abi).functions
    
    async def get_total_auction_count(self) -> int:
        """Number of auctions ever created on the contract."""
        result = await self.client.read_value(
            lambda w3: self._functions(w3).getTotalAuctions().call(),
            "total auctions count",
        )
        total = int(result)
        logger.info(f"🎯 Found {total} total auctions on {self.address}")
        return total
    
    async def get_auction_struct(self, auction_index: int) -> RawAuctionState:
        """
        Read the `auctions(index)` struct.
        
        Raises:
            AuctionNotFound: If the contract reverts for this index
            DecodeError: If the struct does not have the expected shape
        """
        try:
            result = await self.client.read_value(
                lambda w3: self._functions(w3).auctions(auction_index).call(),
                f"auction struct for index {auction_index}",
            )
        except ContractLogicError as e:
            raise AuctionNotFound(auction_index, f"struct read reverted: {e}") from e
        except BadFunctionCallOutput as e:
            raise DecodeError(f"Undecodable struct for auction {auction_index}: {e}") from e
        
        state = RawAuctionState.from_contract(result)
        logger.debug(
            f"Auction {auction_index} struct: name={state.name!r}, bids={state.bid_count}, "
            f"bidder={state.bidder if state.has_bidder else 'none'}, status={getattr(state.status, 'name', state.status)}"
        )
        return state
    
    async def get_auction_details(self, auction_index: int) -> AuctionDetails:
        """
        Read `getAuctionDetails(index)`.
        
        Raises:
            AuctionNotFound: If the contract reverts for this index
            DecodeError: If the result does not have the expected shape
        """
        try:
            result = await self.client.read_value(
                lambda w3: self._functions(w3).getAuctionDetails(auction_index).call(),
                f"auction details for index {auction_index}",
            )
        except ContractLogicError as e:
            raise AuctionNotFound(auction_index, f"details read reverted: {e}") from e
        except BadFunctionCallOutput as e:
            raise DecodeError(f"Undecodable details for auction {auction_index}: {e}") from e
        
        return AuctionDetails.from_contract(result)
    
    async def get_bid_count(self, auction_index: int) -> int:
        """
        Read `getBidCount(index)`.
        
        Raises:
            AuctionNotFound: If the contract reverts for this index
        """
        try:
            result = await self.client.read_value(
                lambda w3: self._functions(w3).getBidCount(auction_index).call(),
                f"bid count for auction {auction_index}",
            )
        except ContractLogicError as e:
            raise AuctionNotFound(auction_index, f"bid count read reverted: {e}") from e
        
        return int(result)
