# =============================================================================
# AUGUR FORK RISK MONITOR - SHARED ENUMS
# =============================================================================
#
# These enums define the vocabulary of the persisted artifact.
# Their string values are written verbatim to fork-risk.json and are read
# by the presentation layer, so they must not be renamed.
#
# =============================================================================

from enum import Enum


class RiskLevel(Enum):
    """
    Discrete fork risk level.

    UNKNOWN is reserved for the error artifact: it is written if and only if
    the run failed and the "error" field is populated.
    """
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class ForkState(Enum):
    """
    Oracle universe state as reported on-chain.

    FORKING always overrides any dispute-based score.
    """
    NORMAL = "NORMAL"
    FORKING = "FORKING"


class RiskMethod(Enum):
    """
    Risk formula used for a run.

    Exactly one method is applied per run; the two are never blended.

    BOND_RATIO:     largest dispute bond relative to the fork threshold
    SECURITY_RATIO: bond ratio combined with the REP market cap to
                    open interest penalty (earlier calculator revision)
    """
    BOND_RATIO = "bond_ratio"
    SECURITY_RATIO = "security_ratio"


class DisputeRoundSource(Enum):
    """Where a dispute record's round number came from."""
    BOND_HEURISTIC = "bond_heuristic"
    DEFAULT = "default"
    FORK_MARKER = "fork_marker"
