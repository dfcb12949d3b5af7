"""Configuration management for the auction ledger reader."""

import os
from pathlib import Path
from typing import List, Optional, Union
from dotenv import load_dotenv

# The .env file lives next to the package directory
PACKAGE_DIR = Path(__file__).parent.parent
ENV_FILE_PATH = PACKAGE_DIR / ".env"

# Load environment variables from .env file
load_dotenv(ENV_FILE_PATH)

DEFAULT_RPC_URL = "https://ethereum-sepolia-rpc.publicnode.com"
DEFAULT_AUCTION_ADDRESS = "0x59C2745FAe67E10BefB0F0Cf6C2056a724Eb0B71"
DEFAULT_PLACEHOLDER_IMAGE_URL = (
    "https://images.unsplash.com/photo-1634017839464-5c339ebe3cb4?w=800&h=800&fit=crop"
)
SEVEN_DAYS = 7 * 24 * 60 * 60


def _split_urls(value: str) -> List[str]:
    return [url.strip() for url in value.split(",") if url.strip()]


class Config:
    """Simple configuration class for the auction ledger reader."""
    
    def __init__(self):
        """Load configuration from environment variables."""
        
        # Blockchain connection (comma separated list = fallback endpoints)
        self.rpc_urls = _split_urls(os.getenv("BLOCKCHAIN_RPC_URL", DEFAULT_RPC_URL))
        self.chain_id = int(os.getenv("BLOCKCHAIN_CHAIN_ID", "11155111"))
        self.explorer_url = os.getenv("BLOCKCHAIN_EXPLORER_URL", "https://sepolia.etherscan.io")
        
        # Auction contract
        self.auction_address = os.getenv("BLOCKCHAIN_AUCTION_ADDRESS", DEFAULT_AUCTION_ADDRESS)
        deploy_block = os.getenv("BLOCKCHAIN_DEPLOY_BLOCK")
        self.deploy_block: Optional[int] = int(deploy_block) if deploy_block else None
        self.abi_path = os.getenv("AUCTION_ABI_PATH")
        
        # RPC retry policy
        self.rpc_max_attempts = int(os.getenv("RPC_MAX_ATTEMPTS", "3"))
        self.rpc_log_max_attempts = int(os.getenv("RPC_LOG_MAX_ATTEMPTS", "2"))
        self.rpc_retry_delay = float(os.getenv("RPC_RETRY_DELAY", "1.0"))
        self.rpc_timeout = float(os.getenv("RPC_TIMEOUT", "30"))
        
        # Projection and aggregation
        self.auction_duration = int(os.getenv("AUCTION_DURATION_SECONDS", str(SEVEN_DAYS)))
        self.max_concurrency = int(os.getenv("AUCTION_MAX_CONCURRENCY", "8"))
        self.cache_ttl = float(os.getenv("AUCTION_CACHE_TTL", "30"))
        self.placeholder_image_url = os.getenv(
            "AUCTION_PLACEHOLDER_IMAGE_URL", DEFAULT_PLACEHOLDER_IMAGE_URL
        )
        self.bid_increment = int(os.getenv("AUCTION_BID_INCREMENT_WEI", str(10 ** 16)))
        
        # Off-chain metadata
        self.metadata_backend = os.getenv("METADATA_BACKEND", "none").lower()
        self.metadata_yaml_path = os.getenv("METADATA_YAML_PATH")
        self.supabase_url = os.getenv("SUPABASE_URL")
        self.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY")
        
        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.debug = os.getenv("DEBUG", "true").lower() == "true"
    
    @property
    def rpc_url(self) -> str:
        """Primary RPC endpoint."""
        return self.rpc_urls[0] if self.rpc_urls else DEFAULT_RPC_URL
    
    @property
    def from_block(self) -> Union[int, str]:
        """First block to scan for events."""
        return self.deploy_block if self.deploy_block is not None else "earliest"
    
    def transaction_url(self, tx_hash: str) -> str:
        """Block explorer link for a transaction."""
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"
    
    def address_url(self, address: str) -> str:
        """Block explorer link for an address."""
        return f"{self.explorer_url.rstrip('/')}/address/{address}"
    
    def validate(self) -> bool:
        """
        Validate that required configuration is present.
        
        Returns:
            True if valid, False otherwise
        """
        errors = []
        
        if not self.rpc_urls:
            errors.append("BLOCKCHAIN_RPC_URL is required")
        
        if not self.auction_address:
            errors.append("BLOCKCHAIN_AUCTION_ADDRESS is required")
        
        if self.rpc_max_attempts < 1 or self.rpc_log_max_attempts < 1:
            errors.append("RPC_MAX_ATTEMPTS and RPC_LOG_MAX_ATTEMPTS must be at least 1")
        
        if self.max_concurrency < 1:
            errors.append("AUCTION_MAX_CONCURRENCY must be at least 1")
        
        if self.metadata_backend == "yaml" and not self.metadata_yaml_path:
            errors.append("METADATA_YAML_PATH is required for the yaml metadata backend")
        
        if self.metadata_backend == "supabase" and not (self.supabase_url and self.supabase_anon_key):
            errors.append("SUPABASE_URL and SUPABASE_ANON_KEY are required for the supabase metadata backend")
        
        if errors:
            print("⚠️  Configuration errors:")
            for error in errors:
                print(f"   - {error}")
            return False
        
        return True
    
    def display(self):
        """Display current configuration (hiding sensitive data)."""
        print("Configuration:")
        print(f"  RPC URLs: {', '.join(self.rpc_urls)}")
        print(f"  Chain ID: {self.chain_id}")
        print(f"  Auction contract: {self.auction_address or '✗ Not set'}")
        print(f"  From block: {self.from_block}")
        print(f"  RPC attempts: {self.rpc_max_attempts} (logs/blocks: {self.rpc_log_max_attempts})")
        print(f"  RPC retry delay: {self.rpc_retry_delay}s")
        print(f"  Max concurrency: {self.max_concurrency}")
        print(f"  Cache TTL: {self.cache_ttl}s")
        print(f"  Metadata backend: {self.metadata_backend}")
        print(f"  Supabase key: {'✓ Set' if self.supabase_anon_key else '✗ Not set'}")
        print(f"  Environment: {self.environment}")
        print(f"  Debug: {self.debug}")


# Global configuration instance
config = Config()
