# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: chain/connection.py
# Purpose: Select a working Ethereum RPC endpoint from an ordered candidate list
# =============================================================================
#
# DESIGN:
# - Candidates are tried strictly in order (operator override first)
# - Liveness probe = eth_blockNumber; latency is measured around the probe
# - A failed endpoint is abandoned for the rest of the run (no retries)
# - All candidates failing is FATAL: no fabricated chain data, ever
#
# The result is an immutable RpcConnection value that later stages receive
# explicitly, next to the live client.
#
# =============================================================================

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
from web3 import AsyncWeb3

from shared.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcConnection:
    """Metadata of the endpoint a run is using."""
    endpoint: str
    latency_ms: int
    fallbacks_attempted: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the rpcInfo block of the artifact."""
        return {
            "endpoint": self.endpoint,
            "latencyMs": self.latency_ms,
            "fallbacksAttempted": self.fallbacks_attempted,
        }


ClientFactory = Callable[[str, float], AsyncWeb3]


def build_client(endpoint: str, timeout_seconds: float) -> AsyncWeb3:
    """
    Create an async web3 client for one endpoint.

    Args:
        endpoint: HTTP(S) JSON-RPC URL
        timeout_seconds: Total timeout per RPC call

    Returns:
        Unconnected AsyncWeb3 instance
    """
    provider = AsyncWeb3.AsyncHTTPProvider(
        endpoint,
        request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout_seconds)},
    )
    return AsyncWeb3(provider)


async def close_client(w3: AsyncWeb3) -> None:
    """Release the HTTP session held by a client's provider."""
    disconnect = getattr(w3.provider, "disconnect", None)
    if disconnect is None:
        return
    try:
        await disconnect()
    except Exception as e:
        logger.debug(f"Error closing RPC session: {e}")


class RpcConnectionManager:
    """
    Finds the first live endpoint among the configured candidates.

    Usage:
        manager = RpcConnectionManager(config.rpc_candidates())
        connection, w3 = await manager.connect()
    """

    def __init__(
        self,
        candidates: List[str],
        timeout_seconds: float = 10.0,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize the connection manager.

        Args:
            candidates: Endpoint URLs in the order they must be tried
            timeout_seconds: Per-call timeout handed to the transport
            client_factory: Builds a client for an endpoint (injectable for tests)
        """
        self.candidates = list(candidates)
        self.timeout_seconds = timeout_seconds
        self.client_factory = client_factory or build_client

    async def connect(self) -> Tuple[RpcConnection, AsyncWeb3]:
        """
        Probe candidates in order and return the first live one.

        Returns:
            (RpcConnection, live client)

        Raises:
            ConnectivityError: If every candidate fails its probe
        """
        fallbacks_attempted = 0
        last_error = None

        for endpoint in self.candidates:
            logger.info(f"Trying RPC: {endpoint}")
            start = time.perf_counter()
            w3 = None
            try:
                w3 = self.client_factory(endpoint, self.timeout_seconds)
                block_number = await w3.eth.block_number
            except Exception as e:
                last_error = str(e) or type(e).__name__
                logger.warning(f"Failed to connect to {endpoint}: {last_error}")
                fallbacks_attempted += 1
                if w3 is not None:
                    await close_client(w3)
                continue

            latency_ms = int(round((time.perf_counter() - start) * 1000))
            logger.info(f"Connected to {endpoint} ({latency_ms}ms, block {block_number})")
            connection = RpcConnection(
                endpoint=endpoint,
                latency_ms=latency_ms,
                fallbacks_attempted=fallbacks_attempted,
            )
            return connection, w3

        raise ConnectivityError(fallbacks_attempted, last_error)
