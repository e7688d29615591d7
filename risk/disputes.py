# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/disputes.py
# Purpose: Turn raw DisputeCrowdsourcerCreated logs into ranked dispute records
# =============================================================================
#
# PIPELINE PER LOG:
# 1. Decode named fields (market, disputeCrowdsourcer, size)
#    - shape mismatch => EventSchemaError, log skipped
# 2. Convert bond size from attoREP to REP
# 3. Ask the market contract whether it is finalized
#    - finalized      => discard
#    - lookup failure => keep, dispute round defaults to 1
# 4. Estimate the dispute round from the bond size
#
# The round estimate is a heuristic, not protocol state: the initial bond is
# ~625 REP and doubles every round. Records say where their round came from.
#
# =============================================================================

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from web3 import AsyncWeb3

from chain.contracts import DISPUTE_EVENT_FIELDS, DISPUTE_EVENT_NAME
from shared.enums import DisputeRoundSource
from shared.exceptions import EventSchemaError
from .models import DisputeRecord

logger = logging.getLogger(__name__)

# Approximate initial dispute bond in REP
INITIAL_BOND_REP = 625.0
DEFAULT_DAYS_REMAINING = 7
RETRIEVAL_CAP = 10

MARKET_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "isFinalized",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class DisputeEvent:
    """Named fields of one DisputeCrowdsourcerCreated log."""
    market: str
    crowdsourcer: str
    size_atto: int
    block_number: Optional[int] = None

    @property
    def bond_size_rep(self) -> float:
        return float(AsyncWeb3.from_wei(self.size_atto, "ether"))


@dataclass
class AggregationStats:
    """Counters of one aggregation pass."""
    events_seen: int = 0
    schema_errors: int = 0
    finalized_skipped: int = 0
    detail_failures: int = 0
    records: int = 0


def _log_ref(log: Any) -> Optional[str]:
    tx_hash = _get(log, "transactionHash")
    if tx_hash is None:
        return None
    tx = tx_hash.hex() if hasattr(tx_hash, "hex") else str(tx_hash)
    return f"{tx}#{_get(log, 'logIndex')}"


def _get(container: Any, name: str) -> Any:
    """Read a field from an AttributeDict / dict without caring which."""
    if hasattr(container, "get"):
        return container.get(name)
    return getattr(container, name, None)


def decode_dispute_event(log: Any) -> DisputeEvent:
    """
    Decode one log by field name.

    Args:
        log: Decoded event log (web3 EventData)

    Returns:
        DisputeEvent

    Raises:
        EventSchemaError: If any expected field is absent or has the wrong type
    """
    args = _get(log, "args")
    if args is None:
        raise EventSchemaError(DISPUTE_EVENT_NAME, list(DISPUTE_EVENT_FIELDS), _log_ref(log))

    missing = [name for name in DISPUTE_EVENT_FIELDS if _get(args, name) is None]
    if missing:
        raise EventSchemaError(DISPUTE_EVENT_NAME, missing, _log_ref(log))

    market = _get(args, "market")
    size = _get(args, "size")
    if not isinstance(market, str) or isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise EventSchemaError(DISPUTE_EVENT_NAME, ["market", "size"], _log_ref(log))

    return DisputeEvent(
        market=market,
        crowdsourcer=str(_get(args, "disputeCrowdsourcer")),
        size_atto=size,
        block_number=_get(log, "blockNumber"),
    )


def estimate_dispute_round(bond_size_rep: float, initial_bond_rep: float = INITIAL_BOND_REP) -> int:
    """
    Estimate how many times a dispute has escalated.

    max(1, ceil(log2(bond / initial_bond))); bonds at or below the initial
    bond are round 1.
    """
    if initial_bond_rep <= 0:
        raise ValueError("initial_bond_rep must be positive")
    if bond_size_rep <= initial_bond_rep:
        return 1
    return max(1, math.ceil(math.log2(bond_size_rep / initial_bond_rep)))


def market_title(market_address: str) -> str:
    return f"Market {market_address[:10]}..."


class DisputeAggregator:
    """
    Builds ranked DisputeRecords from raw dispute logs.

    Tolerant: a market whose details cannot be read is kept with default
    values, and a malformed log is skipped, without aborting the pass.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        initial_bond_rep: float = INITIAL_BOND_REP,
        days_remaining_default: int = DEFAULT_DAYS_REMAINING,
        retrieval_cap: int = RETRIEVAL_CAP,
    ):
        """
        Initialize the aggregator.

        Args:
            w3: Connected client used for market lookups
            initial_bond_rep: Initial dispute bond for round estimation
            days_remaining_default: daysRemaining written to every record
            retrieval_cap: Max records returned
        """
        self.w3 = w3
        self.initial_bond_rep = initial_bond_rep
        self.days_remaining_default = days_remaining_default
        self.retrieval_cap = retrieval_cap
        self.stats = AggregationStats()

    async def aggregate(self, logs: List[Any]) -> List[DisputeRecord]:
        """
        Decode, filter, and rank dispute logs.

        Args:
            logs: Raw logs from the log retriever

        Returns:
            Records sorted by bond size (largest first), capped at retrieval_cap
        """
        self.stats = AggregationStats()
        finalized_cache: Dict[str, Optional[bool]] = {}
        records: List[DisputeRecord] = []

        for log in logs:
            self.stats.events_seen += 1
            try:
                event = decode_dispute_event(log)
            except EventSchemaError as e:
                self.stats.schema_errors += 1
                logger.error(f"Skipping dispute log: {e}")
                continue

            record = await self._build_record(event, finalized_cache)
            if record is not None:
                records.append(record)

        records.sort(key=lambda r: (-r.bond_size_rep, r.market_id))
        self.stats.records = len(records)
        logger.info(
            f"Processed {len(records)} active disputes "
            f"({self.stats.finalized_skipped} finalized, "
            f"{self.stats.detail_failures} without details, "
            f"{self.stats.schema_errors} malformed)"
        )
        return records[:self.retrieval_cap]

    async def _build_record(
        self,
        event: DisputeEvent,
        finalized_cache: Dict[str, Optional[bool]],
    ) -> Optional[DisputeRecord]:
        """Build one record, or None if the market is already finalized."""
        bond_size_rep = event.bond_size_rep

        if event.market not in finalized_cache:
            finalized_cache[event.market] = await self._is_finalized(event.market)
        finalized = finalized_cache[event.market]

        if finalized:
            self.stats.finalized_skipped += 1
            return None

        if finalized is None:
            dispute_round = 1
            source = DisputeRoundSource.DEFAULT
        else:
            dispute_round = estimate_dispute_round(bond_size_rep, self.initial_bond_rep)
            source = DisputeRoundSource.BOND_HEURISTIC

        return DisputeRecord(
            market_id=event.market,
            title=market_title(event.market),
            bond_size_rep=bond_size_rep,
            dispute_round=dispute_round,
            days_remaining=self.days_remaining_default,
            round_source=source,
        )

    async def _is_finalized(self, market_address: str) -> Optional[bool]:
        """
        Ask a market contract whether it is finalized.

        Returns:
            True/False, or None if the lookup failed
        """
        try:
            market = self.w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(market_address),
                abi=MARKET_ABI,
            )
            return bool(await market.functions.isFinalized().call())
        except Exception as e:
            self.stats.detail_failures += 1
            logger.warning(f"Could not get details for market {market_address}: {e}")
            return None


def largest_dispute_bond(records: List[DisputeRecord]) -> float:
    """Largest bond among the records, 0 when there are none."""
    if not records:
        return 0.0
    return max(r.bond_size_rep for r in records)
