# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: chain/logs.py
# Purpose: Chunked event log retrieval over a recent block window
# =============================================================================
#
# WINDOW:
#   from_block = max(0, current_block - lookback_days * BLOCKS_PER_DAY)
#   [from_block, current_block] is split into inclusive chunks of at most
#   chunk_size blocks (most public providers cap eth_getLogs at ~1000 blocks).
#
# POLICY:
# - Chunks are queried sequentially in ascending block order
# - A failing chunk is logged and SKIPPED; the remaining chunks still run
#   (a multi-day dispute window rarely hinges on one missed chunk)
#
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Tuple

from web3.contract import AsyncContract

logger = logging.getLogger(__name__)

# ~12 second blocks
BLOCKS_PER_DAY = 7200
DEFAULT_CHUNK_SIZE = 1000


@dataclass
class LogRetrievalResult:
    """Logs of one window plus a record of what could not be fetched."""
    logs: List[Any]
    from_block: int
    to_block: int
    chunks_total: int = 0
    failed_ranges: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def chunks_failed(self) -> int:
        return len(self.failed_ranges)

    @property
    def is_complete(self) -> bool:
        return not self.failed_ranges


def window_start(current_block: int, lookback_days: int) -> int:
    """First block of the lookback window."""
    return max(0, current_block - lookback_days * BLOCKS_PER_DAY)


def iter_block_chunks(
    from_block: int,
    to_block: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[Tuple[int, int]]:
    """
    Split an inclusive block range into ascending inclusive chunks.

    Args:
        from_block: First block (inclusive)
        to_block: Last block (inclusive)
        chunk_size: Max blocks per chunk

    Yields:
        (start, end) pairs covering the range exactly once
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    start = from_block
    while start <= to_block:
        end = min(start + chunk_size - 1, to_block)
        yield start, end
        start = end + 1


async def fetch_event_logs(
    contract: AsyncContract,
    event_name: str,
    current_block: int,
    lookback_days: int = 7,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_delay_seconds: float = 0.0,
) -> LogRetrievalResult:
    """
    Fetch decoded logs of one event over the recent window, best-effort.

    Args:
        contract: Bound contract emitting the event
        event_name: Event name in the contract ABI
        current_block: Chain head the window ends at
        lookback_days: Window length in days
        chunk_size: Max blocks per query
        chunk_delay_seconds: Pause between chunk queries

    Returns:
        LogRetrievalResult with the logs of every chunk that succeeded
    """
    from_block = window_start(current_block, lookback_days)
    event = getattr(contract.events, event_name)
    result = LogRetrievalResult(logs=[], from_block=from_block, to_block=current_block)

    logger.info(
        f"Querying {event_name} events in blocks {from_block}-{current_block} "
        f"(chunk size {chunk_size})"
    )

    for start, end in iter_block_chunks(from_block, current_block, chunk_size):
        result.chunks_total += 1
        if chunk_delay_seconds and result.chunks_total > 1:
            await asyncio.sleep(chunk_delay_seconds)

        try:
            chunk_logs = await event.get_logs(from_block=start, to_block=end)
        except Exception as e:
            logger.warning(f"Failed to query blocks {start}-{end}: {e}")
            result.failed_ranges.append((start, end))
            continue

        if chunk_logs:
            logger.info(f"Found {len(chunk_logs)} events in blocks {start}-{end}")
            result.logs.extend(chunk_logs)

    logger.info(
        f"Found {len(result.logs)} {event_name} events in last {lookback_days} days "
        f"({result.chunks_failed}/{result.chunks_total} chunks failed)"
    )
    return result
