"""
RPC client with bounded retries for reading the auction contract.

Every remote read (contract call, log query, block fetch) goes through
`RpcRetryClient`, which retries with exponential backoff and rotates through
the configured RPC endpoints between attempts.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

import aiohttp
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from ..config import config as default_config
from .errors import RpcUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that are deterministic for a given request; retrying cannot help
NON_RETRYABLE_ERRORS = (ContractLogicError, BadFunctionCallOutput, DecodingError)


class RpcRetryClient:
    """
    Read-only JSON-RPC client with per-operation retry budgets.
    
    Provides methods for:
    - Contract reads (`read_value`)
    - Event log queries (`fetch_logs`)
    - Block fetches (`fetch_block`, `block_number`)
    - Endpoint health checks
    
    Each call gets its own full retry budget; nothing is shared across calls.
    """
    
    def __init__(
        self,
        rpc_config=None,
        web3_instances: Optional[Sequence[Any]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the client.
        
        Args:
            rpc_config: Optional configuration object (defaults to the global config)
            web3_instances: Pre-built AsyncWeb3 instances, one per endpoint
            sleep: Coroutine used for backoff delays
        """
        self.config = rpc_config or default_config
        self.max_attempts = self.config.rpc_max_attempts
        self.log_max_attempts = self.config.rpc_log_max_attempts
        self.retry_delay = self.config.rpc_retry_delay
        self._sleep = sleep
        self._contracts: Dict[Tuple[int, str], Any] = {}
        self.last_endpoint: Optional[str] = None
        
        if web3_instances:
            self.endpoints = [f"endpoint-{i}" for i in range(len(web3_instances))]
            self._web3s = list(web3_instances)
        else:
            self.endpoints = list(self.config.rpc_urls)
            self._web3s = [self._connect(url) for url in self.endpoints]
        
        if not self._web3s:
            raise ValueError("At least one RPC endpoint is required")
        
        logger.info(f"RpcRetryClient created with {len(self._web3s)} endpoint(s)")
    
    def _connect(self, url: str) -> AsyncWeb3:
        timeout = aiohttp.ClientTimeout(total=self.config.rpc_timeout)
        return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url, request_kwargs={"timeout": timeout}))
    
    @property
    def w3(self) -> Any:
        """Primary web3 instance."""
        return self._web3s[0]
    
    def contract(self, w3: Any, address: str, abi: List[Dict[str, Any]]) -> Any:
        """Contract handle bound to a specific endpoint, created once per endpoint and address."""
        checksum_address = to_checksum_address(address)
        key = (id(w3), checksum_address)
        if key not in self._contracts:
            self._contracts[key] = w3.eth.contract(address=checksum_address, abi=abi)
        return self._contracts[key]
    
    def backoff_delay(self, attempt: int) -> float:
        """Delay after a failed attempt: base, 2x base, 4x base, ..."""
        return self.retry_delay * (2 ** (attempt - 1))
    
    async def execute_with_retry(
        self,
        operation: Callable[[Any], Awaitable[T]],
        label: str,
        max_attempts: Optional[int] = None,
    ) -> T:
        """
        Run `operation(w3)` until it succeeds or attempts are exhausted.
        
        Attempt n runs against endpoint (n - 1) modulo the endpoint count.
        
        Args:
            operation: Coroutine factory receiving the web3 instance to use
            label: Description used in log messages and in RpcUnavailable
            max_attempts: Attempt budget (defaults to the configured value)
            
        Returns:
            The operation's result
            
        Raises:
            RpcUnavailable: If every attempt failed
            ContractLogicError, BadFunctionCallOutput, DecodingError: Raised on first occurrence
        """
        attempts = max_attempts or self.max_attempts
        last_error: Optional[BaseException] = None
        
        for attempt in range(1, attempts + 1):
            w3 = self._web3s[(attempt - 1) % len(self._web3s)]
            if attempt > 1:
                logger.info(f"🔄 Retry {attempt}/{attempts}: {label}")
            else:
                logger.debug(f"📡 Executing: {label}")
            
            try:
                result = await operation(w3)
            except NON_RETRYABLE_ERRORS:
                raise
            except Exception as e:
                last_error = e
                logger.warning(f"❌ Attempt {attempt}/{attempts} failed for {label}: {e}")
                
                # Don't wait after the last attempt
                if attempt < attempts:
                    delay = self.backoff_delay(attempt)
                    logger.debug(f"⏳ Waiting {delay:.2f}s before retry...")
                    await self._sleep(delay)
                continue
            
            self.last_endpoint = self.endpoints[(attempt - 1) % len(self.endpoints)]
            if attempt > 1:
                logger.info(f"✅ {label} succeeded on retry {attempt}")
            return result
        
        logger.error(f"💥 All {attempts} attempts failed for {label}")
        raise RpcUnavailable(label, attempts, last_error)
    
    async def read_value(self, call: Callable[[Any], Awaitable[T]], label: str) -> T:
        """Contract read with automatic retry."""
        return await self.execute_with_retry(call, f"Contract Read: {label}", self.max_attempts)
    
    async def fetch_logs(self, filter_params: Dict[str, Any], label: str) -> List[Any]:
        """Event log query with automatic retry."""
        async def _get_logs(w3):
            return list(await w3.eth.get_logs(filter_params))
        
        return await self.execute_with_retry(_get_logs, f"Event Logs: {label}", self.log_max_attempts)
    
    async def fetch_block(self, number: Union[int, str], label: Optional[str] = None) -> Any:
        """Block fetch with automatic retry."""
        async def _get_block(w3):
            return await w3.eth.get_block(number)
        
        return await self.execute_with_retry(
            _get_block, f"Block Data: {label or f'block {number}'}", self.log_max_attempts
        )
    
    async def block_number(self, label: str = "latest block number") -> int:
        """Current chain head with automatic retry."""
        async def _get_block_number(w3):
            return await w3.eth.block_number
        
        return int(await self.execute_with_retry(_get_block_number, f"Block Data: {label}", self.log_max_attempts))
    
    async def health_check(self) -> Dict[str, Any]:
        """
        Check the RPC endpoints with a single block-number request.
        
        Returns:
            Dictionary with healthy flag, block number, latency in ms and endpoint
        """
        start = time.monotonic()
        try:
            number = await self.block_number("health check")
        except RpcUnavailable as e:
            logger.warning(f"RPC health check failed: {e}")
            return {
                "healthy": False,
                "block_number": None,
                "latency_ms": int((time.monotonic() - start) * 1000),
                "endpoint": None,
            }
        
        return {
            "healthy": True,
            "block_number": number,
            "latency_ms": int((time.monotonic() - start) * 1000),
            "endpoint": self.last_endpoint,
        }
    
    async def close(self):
        """Close provider sessions where the provider supports it."""
        for w3 in self._web3s:
            disconnect = getattr(getattr(w3, "provider", None), "disconnect", None)
            if disconnect is not None:
                await disconnect()
