# =============================================================================
# AUGUR FORK RISK MONITOR - SHARED MODULE
# =============================================================================
#
# Shared utilities used by both the chain layer and the risk layer.
# No chain access and no scoring logic lives here.
#
# CONTENTS:
# - Enums (artifact vocabulary)
# - Exceptions (error taxonomy)
# - Run configuration (config/fork_risk.yaml + environment override)
# - Logging setup
#
# =============================================================================

from .enums import RiskLevel, ForkState, RiskMethod, DisputeRoundSource
from .exceptions import (
    ForkRiskError,
    ConnectivityError,
    ConfigurationError,
    EventSchemaError,
    CalculationError,
)
from .config import ForkRiskConfig, load_config, is_placeholder_url
from .logging_config import setup_logging

__all__ = [
    "RiskLevel",
    "ForkState",
    "RiskMethod",
    "DisputeRoundSource",
    "ForkRiskError",
    "ConnectivityError",
    "ConfigurationError",
    "EventSchemaError",
    "CalculationError",
    "ForkRiskConfig",
    "load_config",
    "is_placeholder_url",
    "setup_logging",
]
