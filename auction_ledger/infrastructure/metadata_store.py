"""
Off-chain metadata stores for auctions.

The projector looks up human-authored fields (title, description, image) by
auction index. A missing record is a normal outcome and is reported as None.

Backends:
- NullMetadataStore: always a miss
- YamlMetadataStore: overrides from a local YAML file
- SupabaseMetadataStore: `contract_auction_metadata` table via PostgREST
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiohttp
import yaml

from .auction_data import AuctionMetadata

logger = logging.getLogger(__name__)

SUPABASE_METADATA_TABLE = "contract_auction_metadata"


class MetadataStore:
    """Keyed lookup of auction metadata by contract index."""
    
    async def get(self, auction_index: int) -> Optional[AuctionMetadata]:
        raise NotImplementedError
    
    async def close(self):
        """Release any held resources."""


class NullMetadataStore(MetadataStore):
    """Store with no records."""
    
    async def get(self, auction_index: int) -> Optional[AuctionMetadata]:
        return None


class YamlMetadataStore(MetadataStore):
    """
    Metadata overrides read from a YAML file.
    
    Expected layout::
    
        auctions:
          0:
            title: Genesis
            description: First auction
            image_url: https://example.com/0.png
    
    The file is read once, on first lookup.
    """
    
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._records: Optional[Dict[int, Dict[str, Any]]] = None
    
    def _load(self) -> Dict[int, Dict[str, Any]]:
        with open(self.path, 'r') as f:
            document = yaml.safe_load(f) or {}
        
        auctions = document.get("auctions", {}) if isinstance(document, dict) else {}
        records = {int(index): dict(fields or {}) for index, fields in auctions.items()}
        logger.info(f"Loaded metadata for {len(records)} auction(s) from {self.path}")
        return records
    
    async def get(self, auction_index: int) -> Optional[AuctionMetadata]:
        if self._records is None:
            self._records = self._load()
        
        record = self._records.get(auction_index)
        return AuctionMetadata.from_record(record) if record else None


class SupabaseMetadataStore(MetadataStore):
    """Metadata rows fetched from Supabase's REST interface."""
    
    def __init__(self, url: str, anon_key: str, table: str = SUPABASE_METADATA_TABLE, timeout: float = 10):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.anon_key = anon_key
        self.timeout = timeout
    
    def _get_headers(self) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
            "Accept": "application/json",
        }
    
    async def get(self, auction_index: int) -> Optional[AuctionMetadata]:
        """
        Fetch the metadata row for an auction.
        
        Raises:
            aiohttp.ClientError: On transport failures or non-200 responses
        """
        params = {
            "contract_auction_id": f"eq.{auction_index}",
            "select": "*",
            "limit": "1",
        }
        
        async with aiohttp.ClientSession() as session:
            async with session.get(
                self.endpoint,
                headers=self._get_headers(),
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                response.raise_for_status()
                rows = await response.json()
        
        if not rows:
            logger.debug(f"No metadata found for auction {auction_index}")
            return None
        
        return AuctionMetadata.from_record(rows[0])


def create_metadata_store(store_config) -> MetadataStore:
    """
    Build the metadata store selected by METADATA_BACKEND.
    
    Raises:
        ValueError: If the backend is unknown or missing its settings
    """
    backend = store_config.metadata_backend
    
    if backend in ("", "none"):
        return NullMetadataStore()
    
    if backend == "yaml":
        if not store_config.metadata_yaml_path:
            raise ValueError("METADATA_YAML_PATH is required for the yaml metadata backend")
        return YamlMetadataStore(store_config.metadata_yaml_path)
    
    if backend == "supabase":
        if not (store_config.supabase_url and store_config.supabase_anon_key):
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required for the supabase metadata backend")
        return SupabaseMetadataStore(store_config.supabase_url, store_config.supabase_anon_key)
    
    raise ValueError(f"Unknown metadata backend: {backend}")
