# =============================================================================
# AUGUR FORK RISK MONITOR - RISK LAYER
# =============================================================================
#
# Turns chain reads into the fork-risk.json artifact:
# - Dispute aggregation (decode, filter finalized, rank)
# - Scoring (bond ratio, optional security ratio, fork override)
# - Orchestration of one run
# - Atomic artifact writes
#
# Entry point: python -m risk
#
# =============================================================================

from .models import DisputeRecord, RiskMetrics, RiskResult, SecurityMetrics
from .scorer import (
    RiskScore,
    determine_risk_level,
    fork_threshold_percent,
    score_bond_ratio,
    score_security_ratio,
)
from .disputes import DisputeAggregator, decode_dispute_event, estimate_dispute_round
from .calculator import ForkRiskCalculator, build_error_result
from .storage import ResultWriter

__all__ = [
    "DisputeRecord",
    "RiskMetrics",
    "RiskResult",
    "SecurityMetrics",
    "RiskScore",
    "determine_risk_level",
    "fork_threshold_percent",
    "score_bond_ratio",
    "score_security_ratio",
    "DisputeAggregator",
    "decode_dispute_event",
    "estimate_dispute_round",
    "ForkRiskCalculator",
    "build_error_result",
    "ResultWriter",
]
