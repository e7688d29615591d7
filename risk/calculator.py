# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/calculator.py
# Purpose: Orchestrate one fork risk calculation
# =============================================================================
#
# PIPELINE:
# 1. Connect to the first live RPC endpoint
# 2. Bind contracts from the manifest
# 3. Read the chain head and the universe fork state
#    - FORKING => terminal critical/100 result, steps 4-6 skipped
# 4. Fetch DisputeCrowdsourcerCreated logs over the lookback window
# 5. Aggregate active disputes
# 6. Score with the configured method
#
# ERRORS:
# calculate() raises; it never returns fabricated data. build_error_result()
# turns any exception into the explicit "unknown" artifact.
#
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from web3 import AsyncWeb3

from chain.connection import RpcConnection, RpcConnectionManager, close_client
from chain.contracts import AugurContracts, DISPUTE_EVENT_NAME, bind_contracts
from chain.logs import fetch_event_logs
from shared.config import ForkRiskConfig
from shared.enums import DisputeRoundSource, ForkState, RiskLevel, RiskMethod
from shared.exceptions import CalculationError, ForkRiskError
from .disputes import DisputeAggregator, largest_dispute_bond
from .models import DisputeRecord, RiskMetrics, RiskResult, SecurityMetrics
from . import scorer

logger = logging.getLogger(__name__)

METHOD_LABELS = {
    RiskMethod.BOND_RATIO: "Dispute Bond Ratio + Public RPC",
    RiskMethod.SECURITY_RATIO: "Dispute Bond + Security Ratio + Public RPC",
}
FORK_METHOD_LABEL = "Fork Detected"
ERROR_METHOD_LABEL = "Error"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ForkRiskCalculator:
    """
    Runs the calculation pipeline once.

    Coordinates:
    - RpcConnectionManager for endpoint selection
    - bind_contracts for the manifest
    - fetch_event_logs for the dispute window
    - DisputeAggregator for active disputes
    - scorer for the risk figure
    """

    def __init__(
        self,
        config: ForkRiskConfig,
        rpc_override: Optional[str] = None,
        client_factory: Optional[Callable] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the calculator.

        Args:
            config: Run configuration
            rpc_override: Preferred endpoint (takes precedence over ETH_RPC_URL)
            client_factory: Builds a web3 client per endpoint (tests inject fakes)
            clock: Source of "now" for timestamps
        """
        self.config = config
        self.clock = clock
        self.connection_manager = RpcConnectionManager(
            candidates=config.rpc_candidates(rpc_override),
            timeout_seconds=config.rpc_timeout_seconds,
            client_factory=client_factory,
        )

    async def calculate(self) -> RiskResult:
        """
        Execute the full calculation.

        Returns:
            RiskResult of a completed scoring run

        Raises:
            ForkRiskError: On any fatal failure; carries the connection if one
                           was established
        """
        logger.info("=" * 60)
        logger.info("AUGUR FORK RISK CALCULATOR - Starting run")
        logger.info(f"Method: {self.config.method.value}")
        logger.info(f"Fork threshold: {self.config.fork_threshold_rep} REP")
        logger.info("=" * 60)

        connection, w3 = await self.connection_manager.connect()
        try:
            return await self._calculate_with(connection, w3)
        except ForkRiskError as e:
            if e.connection is None:
                e.connection = connection
                e.fallbacks_attempted = connection.fallbacks_attempted
            raise
        except Exception as e:
            raise CalculationError(
                f"{type(e).__name__}: {e}",
                connection=connection,
                fallbacks_attempted=connection.fallbacks_attempted,
            ) from e
        finally:
            await close_client(w3)

    async def _calculate_with(self, connection: RpcConnection, w3: AsyncWeb3) -> RiskResult:
        contracts = bind_contracts(w3, self.config.manifest_path)

        block_number = await w3.eth.block_number
        timestamp = self.clock()
        logger.info(f"Block Number: {block_number}")

        state = await self.read_fork_state(contracts)
        if state == ForkState.FORKING:
            logger.warning("UNIVERSE IS FORKING! Setting maximum risk level")
            return self.forking_result(timestamp, block_number, connection)

        retrieval = await fetch_event_logs(
            contracts.augur,
            DISPUTE_EVENT_NAME,
            current_block=block_number,
            lookback_days=self.config.lookback_days,
            chunk_size=self.config.chunk_size,
            chunk_delay_seconds=self.config.chunk_delay_seconds,
        )

        aggregator = DisputeAggregator(
            w3,
            initial_bond_rep=self.config.initial_bond_rep,
            days_remaining_default=self.config.days_remaining_default,
            retrieval_cap=self.config.retrieval_cap,
        )
        disputes = await aggregator.aggregate(retrieval.logs)
        largest_bond = largest_dispute_bond(disputes)

        security = None
        if self.config.method == RiskMethod.SECURITY_RATIO:
            security = await self.read_security_metrics(contracts)
            score = scorer.score_security_ratio(
                largest_bond, self.config.fork_threshold_rep, security.security_ratio
            )
        else:
            score = scorer.score_bond_ratio(largest_bond, self.config.fork_threshold_rep)

        result = RiskResult(
            timestamp=timestamp,
            block_number=block_number,
            risk_level=score.risk_level,
            risk_percentage=score.risk_percentage,
            metrics=RiskMetrics(
                largest_dispute_bond=largest_bond,
                fork_threshold_percent=score.fork_threshold_percent,
                active_disputes=len(disputes),
                dispute_details=disputes,
                security=security,
            ),
            next_update=self._next_update(timestamp),
            rpc_info=connection.to_dict(),
            method=METHOD_LABELS[self.config.method],
            fork_threshold=self.config.fork_threshold_rep,
        )

        logger.info("=" * 60)
        logger.info("CALCULATION COMPLETE")
        logger.info(f"Risk Level: {score.risk_level.value}")
        logger.info(f"Largest Dispute Bond: {largest_bond} REP")
        logger.info(f"Fork Threshold: {score.fork_threshold_percent:.2f}%")
        logger.info(f"RPC Used: {connection.endpoint} ({connection.latency_ms}ms)")
        if not retrieval.is_complete:
            logger.warning(
                f"Result built from partial logs: {retrieval.chunks_failed} of "
                f"{retrieval.chunks_total} chunks failed"
            )
        logger.info("=" * 60)
        return result

    async def read_fork_state(self, contracts: AugurContracts) -> ForkState:
        """Ask the universe whether a fork is in progress."""
        is_forking = await contracts.universe.functions.isForking().call()
        return ForkState.FORKING if is_forking else ForkState.NORMAL

    async def read_security_metrics(self, contracts: AugurContracts) -> SecurityMetrics:
        """
        Read the inputs of the security-ratio formula.

        REP market cap uses the configured static REP price; there is no
        price oracle.
        """
        total_supply = await contracts.rep_token.functions.totalSupply().call()
        rep_decimals = await contracts.rep_token.functions.decimals().call()
        open_interest_atto = await contracts.universe.functions.getOpenInterestInAttoCash().call()
        cash_decimals = await contracts.cash.functions.decimals().call()

        rep_market_cap = total_supply / 10 ** rep_decimals * self.config.rep_price_usd
        open_interest = open_interest_atto / 10 ** cash_decimals
        ratio = scorer.security_ratio(rep_market_cap, open_interest)

        logger.info(f"REP market cap: ${rep_market_cap:,.0f}")
        logger.info(f"Open interest: ${open_interest:,.0f}")
        logger.info(f"Security ratio: {ratio if ratio is not None else 'n/a'}")

        return SecurityMetrics(
            rep_market_cap=rep_market_cap,
            open_interest=open_interest,
            security_ratio=ratio,
            minimum_multiplier=scorer.MINIMUM_SECURITY_MULTIPLIER,
            target_multiplier=scorer.TARGET_SECURITY_MULTIPLIER,
        )

    def forking_result(
        self,
        timestamp: datetime,
        block_number: Optional[int],
        connection: RpcConnection,
    ) -> RiskResult:
        """Terminal result while the universe is forking."""
        threshold = self.config.fork_threshold_rep
        percentage, level = scorer.forking_score()
        marker: List[DisputeRecord] = [
            DisputeRecord(
                market_id=scorer.FORKING_MARKET_ID,
                title=scorer.FORKING_TITLE,
                bond_size_rep=float(threshold),
                dispute_round=scorer.FORKING_DISPUTE_ROUND,
                days_remaining=0,
                round_source=DisputeRoundSource.FORK_MARKER,
            )
        ]
        return RiskResult(
            timestamp=timestamp,
            block_number=block_number,
            risk_level=level,
            risk_percentage=percentage,
            metrics=RiskMetrics(
                largest_dispute_bond=float(threshold),
                fork_threshold_percent=100.0,
                active_disputes=0,
                dispute_details=marker,
            ),
            next_update=self._next_update(timestamp),
            rpc_info=connection.to_dict(),
            method=FORK_METHOD_LABEL,
            fork_threshold=threshold,
        )

    def _next_update(self, timestamp: datetime) -> datetime:
        return timestamp + timedelta(minutes=self.config.update_interval_minutes)


def build_error_result(
    error: BaseException,
    config: ForkRiskConfig,
    timestamp: Optional[datetime] = None,
) -> RiskResult:
    """
    Explicit "unknown" result for a failed run.

    Args:
        error: The exception that ended the run
        config: Run configuration (threshold and update interval)
        timestamp: Time of failure (defaults to now)

    Returns:
        RiskResult with riskLevel=unknown and the error message
    """
    timestamp = timestamp or utc_now()
    connection = getattr(error, "connection", None)
    fallbacks = getattr(error, "fallbacks_attempted", 0) or 0
    if connection is not None:
        rpc_info = connection.to_dict()
    else:
        rpc_info = {"endpoint": None, "latencyMs": None, "fallbacksAttempted": fallbacks}

    return RiskResult(
        timestamp=timestamp,
        risk_level=RiskLevel.UNKNOWN,
        risk_percentage=0.0,
        metrics=RiskMetrics(),
        next_update=timestamp + timedelta(minutes=config.update_interval_minutes),
        rpc_info=rpc_info,
        method=ERROR_METHOD_LABEL,
        fork_threshold=config.fork_threshold_rep,
        error=str(error) or type(error).__name__,
    )
