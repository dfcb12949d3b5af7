"""
Contract ABI registry for the auction contract.

Ships the auction ABI built in, and can load it from a compiled
Foundry/Hardhat artifact instead when AUCTION_ABI_PATH is configured.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from eth_utils import event_abi_to_log_topic
from web3 import Web3

logger = logging.getLogger(__name__)

AUCTION_CONTRACT = "Auction"

# Canonical signature of the bid event
UPDATED_BID_SIGNATURE = "UpdatedBid(uint256,uint256,address)"
UPDATED_BID_TYPES = ["uint256", "uint256", "address"]


def _view(name: str, inputs: List[Dict[str, str]], outputs: List[Dict[str, str]]) -> Dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": outputs,
    }


def _event(name: str, inputs: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "name": name,
        "type": "event",
        "anonymous": False,
        "inputs": [dict(entry, indexed=False) for entry in inputs],
    }


AUCTION_ABI: List[Dict[str, Any]] = [
    _view(
        "getAuctionDetails",
        [{"name": "_id", "type": "uint256"}],
        [
            {"name": "currentWinner", "type": "address"},
            {"name": "currentPrice", "type": "uint256"},
            {"name": "secondsRemaining", "type": "uint256"},
            {"name": "status", "type": "uint8"},
        ],
    ),
    _view("getTotalAuctions", [], [{"name": "", "type": "uint256"}]),
    _view("getBidCount", [{"name": "_id", "type": "uint256"}], [{"name": "", "type": "uint256"}]),
    _view(
        "auctions",
        [{"name": "", "type": "uint256"}],
        [
            {"name": "name", "type": "string"},
            {"name": "initialPrice", "type": "uint256"},
            {"name": "currentPrice", "type": "uint256"},
            {"name": "bidder", "type": "address"},
            {"name": "deadline", "type": "uint256"},
            {"name": "bidCount", "type": "uint256"},
            {"name": "status", "type": "uint8"},
        ],
    ),
    _event("CreateAuction", [
        {"name": "_name", "type": "string"},
        {"name": "_initialPrice", "type": "uint256"},
    ]),
    _event("UpdatedBid", [
        {"name": "_auctionIndex", "type": "uint256"},
        {"name": "_newOffer", "type": "uint256"},
        {"name": "_bidderAddress", "type": "address"},
    ]),
    _event("UpdatedAuctionState", [
        {"name": "_name", "type": "string"},
        {"name": "_currentState", "type": "uint8"},
        {"name": "_auctionIndex", "type": "uint256"},
    ]),
    _event("AuctionWithdraw", [
        {"name": "_auctionIndex", "type": "uint256"},
        {"name": "_amount", "type": "uint256"},
        {"name": "_bidderAddress", "type": "address"},
    ]),
]


class ContractABIs:
    """
    Utility class to load and manage contract ABIs.
    
    The built-in auction ABI is registered up front; a compiled artifact
    can replace it via `load_artifact`.
    """
    
    def __init__(self):
        """Initialize the registry with the built-in auction ABI."""
        self._abis: Dict[str, List[Dict[str, Any]]] = {AUCTION_CONTRACT: AUCTION_ABI}
    
    def load_artifact(self, artifact_path: Union[str, Path], contract_name: str = AUCTION_CONTRACT) -> bool:
        """
        Load a contract ABI from a compiled artifact JSON file.
        
        Accepts Foundry (`out/<File>.sol/<Contract>.json`) and Hardhat artifacts,
        both of which carry an `abi` key, as well as a bare ABI list.
        
        Args:
            artifact_path: Path to the artifact file
            contract_name: Registry name to store the ABI under
            
        Returns:
            True if successful, False otherwise
        """
        artifact_path = Path(artifact_path)
        if not artifact_path.exists():
            logger.warning(f"Contract artifact not found: {artifact_path}")
            return False
        
        try:
            with open(artifact_path, 'r') as f:
                artifact = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading contract artifact for {contract_name}: {e}")
            return False
        
        abi = artifact if isinstance(artifact, list) else artifact.get('abi', [])
        if not abi:
            logger.error(f"Artifact {artifact_path} has no ABI entries")
            return False
        
        self._abis[contract_name] = abi
        logger.info(f"Loaded ABI for {contract_name} ({len(abi)} entries) from {artifact_path}")
        return True
    
    def get_abi(self, contract_name: str = AUCTION_CONTRACT) -> List[Dict[str, Any]]:
        """
        Get the ABI for a specific contract.
        
        Raises:
            ValueError: If contract ABI not registered
        """
        if contract_name not in self._abis:
            raise ValueError(f"ABI for {contract_name} not found. Available: {list(self._abis.keys())}")
        
        return self._abis[contract_name]
    
    def get_event_abi(self, event_name: str, contract_name: str = AUCTION_CONTRACT) -> Optional[Dict[str, Any]]:
        """Get the ABI entry for an event, or None if the contract has no such event."""
        for entry in self.get_abi(contract_name):
            if entry.get('type') == 'event' and entry.get('name') == event_name:
                return entry
        
        return None
    
    def get_event_topic(self, event_name: str, contract_name: str = AUCTION_CONTRACT) -> str:
        """
        Get the topic0 hash for an event, derived from its ABI entry.
        
        Raises:
            ValueError: If the event is not part of the ABI
        """
        event_abi = self.get_event_abi(event_name, contract_name)
        if event_abi is None:
            raise ValueError(f"Event {event_name} not found in {contract_name} ABI")
        
        return Web3.to_hex(event_abi_to_log_topic(event_abi))
    
    def list_functions(self, contract_name: str = AUCTION_CONTRACT) -> List[str]:
        """List all function names in a contract."""
        return [entry['name'] for entry in self.get_abi(contract_name) if entry.get('type') == 'function']
    
    def list_events(self, contract_name: str = AUCTION_CONTRACT) -> List[str]:
        """List all event names in a contract."""
        return [entry['name'] for entry in self.get_abi(contract_name) if entry.get('type') == 'event']


def signature_topic(signature: str) -> str:
    """keccak256 of an event signature as a 0x-prefixed hex string."""
    return Web3.to_hex(Web3.keccak(text=signature))


# Global instance for easy access
contract_abis = ContractABIs()


def get_auction_abi() -> List[Dict[str, Any]]:
    """Get the auction contract ABI."""
    return contract_abis.get_abi(AUCTION_CONTRACT)
