# =============================================================================
# AUGUR FORK RISK MONITOR - CHAIN LAYER
# =============================================================================
#
# Everything that talks to an Ethereum node:
# - RPC endpoint selection with ordered fallbacks
# - Contract binding from the static manifest
# - Chunked event log retrieval
#
# This layer reads chain state only. It never scores anything.
#
# =============================================================================

from .connection import RpcConnection, RpcConnectionManager, build_client, close_client
from .contracts import (
    AugurContracts,
    ContractSpec,
    bind_contracts,
    load_manifest,
    DISPUTE_EVENT_NAME,
    DISPUTE_EVENT_FIELDS,
)
from .logs import LogRetrievalResult, fetch_event_logs, iter_block_chunks, window_start

__all__ = [
    "RpcConnection",
    "RpcConnectionManager",
    "build_client",
    "close_client",
    "AugurContracts",
    "ContractSpec",
    "bind_contracts",
    "load_manifest",
    "DISPUTE_EVENT_NAME",
    "DISPUTE_EVENT_FIELDS",
    "LogRetrievalResult",
    "fetch_event_logs",
    "iter_block_chunks",
    "window_start",
]
