# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/scorer.py
# Purpose: Deterministic mapping from dispute bond size to fork risk
# =============================================================================
#
# BOND RATIO (default):
#   percent = clamp(largest_bond / fork_threshold * 100, 0, 100)
#   critical  percent >= 75
#   high      percent >= 25
#   moderate  percent >= 10
#   low       otherwise
#   Tier bounds are closed on the lower side.
#
# SECURITY RATIO (earlier calculator revision, opt-in):
#   security_ratio = rep_market_cap / open_interest
#   adjusted       = percent_raw * (MIN_MULT / security_ratio)  if ratio < MIN_MULT
#   level on adjusted: critical >= 10, high >= 5, moderate >= 2
#   risk%          = round(min(50, percent_raw / 10 * 50)
#                          + (TARGET - ratio) / TARGET * 50 if ratio < TARGET)
#
# FORK OVERRIDE:
#   If the universe reports it is forking, scoring is bypassed: critical, 100.
#
# Everything here is pure: no I/O, no clock, no logging.
#
# =============================================================================

from dataclasses import dataclass
from typing import Optional, Tuple

from shared.enums import RiskLevel

# Lower bounds (percent of fork threshold) of each tier
CRITICAL_PERCENT = 75.0
HIGH_PERCENT = 25.0
MODERATE_PERCENT = 10.0

# Security-ratio variant
MINIMUM_SECURITY_MULTIPLIER = 3.0
TARGET_SECURITY_MULTIPLIER = 5.0
SECURITY_CRITICAL_PERCENT = 10.0
SECURITY_HIGH_PERCENT = 5.0
SECURITY_MODERATE_PERCENT = 2.0

# Synthetic dispute shown while the universe is forking
FORKING_MARKET_ID = "FORKING"
FORKING_TITLE = "Universe is currently forking"
FORKING_DISPUTE_ROUND = 99


@dataclass(frozen=True)
class RiskScore:
    """Outcome of one scoring call."""
    risk_percentage: float
    risk_level: RiskLevel
    fork_threshold_percent: float


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def fork_threshold_percent(largest_bond: float, fork_threshold: float) -> float:
    """
    Unclamped bond size as a percentage of the fork threshold.

    Raises:
        ValueError: If the threshold is not positive or the bond is negative
    """
    if fork_threshold <= 0:
        raise ValueError("fork_threshold must be positive")
    if largest_bond < 0:
        raise ValueError("largest_bond cannot be negative")
    # Multiply first so exact tier bounds stay exact in floating point
    return largest_bond * 100 / fork_threshold


def determine_risk_level(percent: float) -> RiskLevel:
    """Map a percentage of the fork threshold to a risk tier."""
    if percent >= CRITICAL_PERCENT:
        return RiskLevel.CRITICAL
    if percent >= HIGH_PERCENT:
        return RiskLevel.HIGH
    if percent >= MODERATE_PERCENT:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def score_bond_ratio(largest_bond: float, fork_threshold: float) -> RiskScore:
    """
    Score the largest active dispute bond against the fork threshold.

    Args:
        largest_bond: Largest active dispute bond in REP
        fork_threshold: Fork threshold in REP

    Returns:
        RiskScore with the clamped percentage and its tier
    """
    raw_percent = fork_threshold_percent(largest_bond, fork_threshold)
    percent = clamp(raw_percent)
    return RiskScore(
        risk_percentage=percent,
        risk_level=determine_risk_level(percent),
        fork_threshold_percent=raw_percent,
    )


def security_ratio(rep_market_cap: float, open_interest: float) -> Optional[float]:
    """REP market cap over open interest; None when there is no open interest."""
    if open_interest <= 0:
        return None
    return rep_market_cap / open_interest


def score_security_ratio(
    largest_bond: float,
    fork_threshold: float,
    ratio: Optional[float],
) -> RiskScore:
    """
    Score with the two-factor formula of the earlier calculator.

    Args:
        largest_bond: Largest active dispute bond in REP
        fork_threshold: Fork threshold in REP
        ratio: Security ratio (None = no open interest, no penalty)

    Returns:
        RiskScore combining bond size and security ratio
    """
    raw_percent = fork_threshold_percent(largest_bond, fork_threshold)

    adjusted = raw_percent
    if ratio is not None and 0 < ratio < MINIMUM_SECURITY_MULTIPLIER:
        adjusted = raw_percent * (MINIMUM_SECURITY_MULTIPLIER / ratio)

    if adjusted >= SECURITY_CRITICAL_PERCENT:
        level = RiskLevel.CRITICAL
    elif adjusted >= SECURITY_HIGH_PERCENT:
        level = RiskLevel.HIGH
    elif adjusted >= SECURITY_MODERATE_PERCENT:
        level = RiskLevel.MODERATE
    else:
        level = RiskLevel.LOW

    base_risk = min(50.0, raw_percent / 10 * 50)
    security_risk = 0.0
    if ratio is not None and ratio < TARGET_SECURITY_MULTIPLIER:
        security_risk = max(
            0.0,
            (TARGET_SECURITY_MULTIPLIER - ratio) / TARGET_SECURITY_MULTIPLIER * 50,
        )

    return RiskScore(
        risk_percentage=clamp(float(round(base_risk + security_risk))),
        risk_level=level,
        fork_threshold_percent=raw_percent,
    )


def forking_score() -> Tuple[float, RiskLevel]:
    """Terminal score while the universe is forking."""
    return 100.0, RiskLevel.CRITICAL
