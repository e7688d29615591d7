# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/models.py
# Purpose: Records written to the fork-risk.json artifact
# =============================================================================
#
# OUTPUT SCHEMA (fork-risk.json):
# {
#     "timestamp": string (ISO),
#     "blockNumber": int,                      (omitted when unknown)
#     "riskLevel": "low" | "moderate" | "high" | "critical" | "unknown",
#     "riskPercentage": float in [0, 100],
#     "metrics": {
#         "largestDisputeBond": float,
#         "forkThresholdPercent": float,
#         "activeDisputes": int,
#         "disputeDetails": [DisputeRecord],   (sorted by bond, desc)
#         ...security ratio metrics            (security_ratio method only)
#     },
#     "nextUpdate": string (ISO),
#     "rpcInfo": {"endpoint", "latencyMs", "fallbacksAttempted"},
#     "calculation": {"method": string, "forkThreshold": int, ...},
#     "error": string                          (present iff riskLevel == "unknown")
# }
#
# =============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from shared.enums import DisputeRoundSource, RiskLevel


def iso_utc(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class DisputeRecord:
    """One active, unresolved dispute found in the query window."""
    market_id: str
    title: str
    bond_size_rep: float
    dispute_round: int
    days_remaining: int
    round_source: DisputeRoundSource = DisputeRoundSource.BOND_HEURISTIC

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "marketId": self.market_id,
            "title": self.title,
            "bondSizeRep": self.bond_size_rep,
            "disputeRound": self.dispute_round,
            "daysRemaining": self.days_remaining,
            "disputeRoundSource": self.round_source.value,
        }


@dataclass
class SecurityMetrics:
    """Inputs of the security-ratio formula."""
    rep_market_cap: float
    open_interest: float
    security_ratio: Optional[float]  # None when open interest is zero
    minimum_multiplier: float
    target_multiplier: float


@dataclass
class RiskMetrics:
    """Metrics block of the artifact."""
    largest_dispute_bond: float = 0.0
    fork_threshold_percent: float = 0.0
    active_disputes: int = 0
    dispute_details: List[DisputeRecord] = field(default_factory=list)
    security: Optional[SecurityMetrics] = None

    def to_dict(self, max_details: Optional[int] = None) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Args:
            max_details: Cap on persisted dispute records (None = all)
        """
        details = sorted(
            self.dispute_details,
            key=lambda d: (-d.bond_size_rep, d.market_id),
        )
        if max_details is not None:
            details = details[:max_details]

        data = {
            "largestDisputeBond": self.largest_dispute_bond,
            "forkThresholdPercent": self.fork_threshold_percent,
            "activeDisputes": self.active_disputes,
            "disputeDetails": [d.to_dict() for d in details],
        }
        if self.security is not None:
            data["repMarketCap"] = self.security.rep_market_cap
            data["openInterest"] = self.security.open_interest
            data["securityRatio"] = (
                round(self.security.security_ratio, 2)
                if self.security.security_ratio is not None else None
            )
        return data


@dataclass
class RiskResult:
    """The single artifact produced by a run."""
    timestamp: datetime
    risk_level: RiskLevel
    risk_percentage: float
    metrics: RiskMetrics
    next_update: datetime
    rpc_info: Dict[str, Any]
    method: str
    fork_threshold: int
    block_number: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.risk_level == RiskLevel.UNKNOWN

    def to_dict(self, max_details: Optional[int] = None) -> Dict[str, Any]:
        """
        Convert to the fork-risk.json document.

        Args:
            max_details: Cap on persisted dispute records (None = all)
        """
        data: Dict[str, Any] = {"timestamp": iso_utc(self.timestamp)}
        if self.block_number is not None:
            data["blockNumber"] = self.block_number
        data["riskLevel"] = self.risk_level.value
        data["riskPercentage"] = self.risk_percentage
        data["metrics"] = self.metrics.to_dict(max_details)
        data["nextUpdate"] = iso_utc(self.next_update)
        data["rpcInfo"] = dict(self.rpc_info)

        calculation: Dict[str, Any] = {
            "method": self.method,
            "forkThreshold": self.fork_threshold,
        }
        security = self.metrics.security
        if security is not None:
            calculation["securityMultiplier"] = {
                "current": security.security_ratio,
                "minimum": security.minimum_multiplier,
                "target": security.target_multiplier,
            }
        data["calculation"] = calculation

        if self.error is not None:
            data["error"] = self.error
        return data
