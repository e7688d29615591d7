# =============================================================================
# AUGUR FORK RISK MONITOR - RUN CONFIGURATION
# =============================================================================
#
# Reads config/fork_risk.yaml and exposes it as a typed ForkRiskConfig.
#
# USAGE:
#   from shared.config import load_config
#
#   config = load_config()
#   config.rpc_candidates()   # override first, then public fallbacks
#
# RULES:
# - Missing file => built-in defaults (logged)
# - Unparseable YAML or invalid values => ConfigurationError
# - The RPC override comes from the environment, never from the YAML file
#
# =============================================================================

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .enums import RiskMethod
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Base directory
BASE_DIR = Path(__file__).parent.parent
CONFIG_PATH = BASE_DIR / "config" / "fork_risk.yaml"
MANIFEST_PATH = BASE_DIR / "contracts" / "augur-abis.json"
OUTPUT_PATH = BASE_DIR / "public" / "data" / "fork-risk.json"

# Public RPC endpoints (no API keys required)
PUBLIC_RPC_ENDPOINTS = [
    "https://eth.llamarpc.com",
    "https://main-light.eth.linkpool.io",
    "https://ethereum.publicnode.com",
    "https://1rpc.io/eth",
]

DEFAULT_OVERRIDE_ENV_VAR = "ETH_RPC_URL"

# Markers of an RPC URL that was copied from a template and never filled in
PLACEHOLDER_MARKERS = (
    "your-project-id",
    "your-api-key",
    "your_",
    "<",
    ">",
    "example.com",
    "example.org",
)

# 2.5% of the REP supply, as used by the current calculator
FORK_THRESHOLD_REP = 201715


def is_placeholder_url(url: Optional[str]) -> bool:
    """
    Check whether an RPC URL is empty or an unconfigured template value.

    Args:
        url: Candidate URL

    Returns:
        True if the URL must be ignored
    """
    if not url or not url.strip():
        return True
    lowered = url.strip().lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


@dataclass
class ForkRiskConfig:
    """Typed view of config/fork_risk.yaml."""
    rpc_endpoints: List[str] = field(default_factory=lambda: list(PUBLIC_RPC_ENDPOINTS))
    rpc_timeout_seconds: float = 10.0
    override_env_var: str = DEFAULT_OVERRIDE_ENV_VAR

    lookback_days: int = 7
    chunk_size: int = 1000
    chunk_delay_seconds: float = 0.0

    initial_bond_rep: float = 625.0
    days_remaining_default: int = 7
    retrieval_cap: int = 10

    fork_threshold_rep: int = FORK_THRESHOLD_REP
    method: RiskMethod = RiskMethod.BOND_RATIO
    rep_price_usd: Optional[float] = None

    output_path: Path = OUTPUT_PATH
    manifest_path: Path = MANIFEST_PATH
    persisted_disputes: int = 5
    update_interval_minutes: int = 60

    def override_url(self) -> Optional[str]:
        """Operator-supplied RPC URL from the environment, if usable."""
        url = os.getenv(self.override_env_var, "")
        if is_placeholder_url(url):
            if url:
                logger.info(f"Ignoring placeholder value in {self.override_env_var}")
            return None
        return url.strip()

    def rpc_candidates(self, override: Optional[str] = None) -> List[str]:
        """
        Ordered candidate list: override first, then public fallbacks.

        Args:
            override: Explicit override (e.g. from the CLI); takes precedence
                      over the environment variable

        Returns:
            Deduplicated list of endpoint URLs
        """
        first = override if not is_placeholder_url(override) else self.override_url()
        candidates: List[str] = []
        for url in ([first] if first else []) + self.rpc_endpoints:
            if url not in candidates:
                candidates.append(url)
        return candidates

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if not self.rpc_endpoints and not self.override_url():
            raise ConfigurationError("No RPC endpoints configured", "rpc.endpoints")
        positive = {
            "rpc.timeout_seconds": self.rpc_timeout_seconds,
            "logs.lookback_days": self.lookback_days,
            "logs.chunk_size": self.chunk_size,
            "disputes.initial_bond_rep": self.initial_bond_rep,
            "disputes.retrieval_cap": self.retrieval_cap,
            "risk.fork_threshold_rep": self.fork_threshold_rep,
            "output.persisted_disputes": self.persisted_disputes,
            "output.update_interval_minutes": self.update_interval_minutes,
        }
        for key, value in positive.items():
            if value <= 0:
                raise ConfigurationError(f"Value must be positive, got {value}", key)
        if self.chunk_delay_seconds < 0:
            raise ConfigurationError("Value must not be negative", "logs.chunk_delay_seconds")
        if self.days_remaining_default < 0:
            raise ConfigurationError("Value must not be negative", "disputes.days_remaining_default")
        if self.method == RiskMethod.SECURITY_RATIO and not self.rep_price_usd:
            raise ConfigurationError(
                "security_ratio method requires a positive rep_price_usd",
                "risk.rep_price_usd",
            )


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError("Section must be a mapping", name)
    return value


def load_config(config_path: Optional[Path] = None) -> ForkRiskConfig:
    """
    Load run configuration from YAML.

    Args:
        config_path: Path to the YAML file. Defaults to config/fork_risk.yaml

    Returns:
        Validated ForkRiskConfig

    Raises:
        ConfigurationError: If the file cannot be parsed or holds invalid values
    """
    path = Path(config_path) if config_path else CONFIG_PATH
    config = ForkRiskConfig()

    if not path.exists():
        logger.warning(f"Config file not found: {path} (using defaults)")
        config.validate()
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Config root must be a mapping", str(path))

    rpc = _section(raw, "rpc")
    logs = _section(raw, "logs")
    disputes = _section(raw, "disputes")
    risk = _section(raw, "risk")
    output = _section(raw, "output")
    contracts = _section(raw, "contracts")

    try:
        if "endpoints" in rpc:
            if not isinstance(rpc["endpoints"], list):
                raise ConfigurationError("Must be a list of URLs", "rpc.endpoints")
            config.rpc_endpoints = [str(url).strip() for url in rpc["endpoints"] if str(url).strip()]
        config.rpc_timeout_seconds = float(rpc.get("timeout_seconds", config.rpc_timeout_seconds))
        config.override_env_var = str(rpc.get("override_env_var", config.override_env_var))

        config.lookback_days = int(logs.get("lookback_days", config.lookback_days))
        config.chunk_size = int(logs.get("chunk_size", config.chunk_size))
        config.chunk_delay_seconds = float(logs.get("chunk_delay_seconds", config.chunk_delay_seconds))

        config.initial_bond_rep = float(disputes.get("initial_bond_rep", config.initial_bond_rep))
        config.days_remaining_default = int(
            disputes.get("days_remaining_default", config.days_remaining_default)
        )
        config.retrieval_cap = int(disputes.get("retrieval_cap", config.retrieval_cap))

        config.fork_threshold_rep = int(risk.get("fork_threshold_rep", config.fork_threshold_rep))
        config.method = RiskMethod(risk.get("method", config.method.value))
        if risk.get("rep_price_usd") is not None:
            config.rep_price_usd = float(risk["rep_price_usd"])

        if output.get("path"):
            config.output_path = _resolve(output["path"])
        if contracts.get("manifest"):
            config.manifest_path = _resolve(contracts["manifest"])
        config.persisted_disputes = int(output.get("persisted_disputes", config.persisted_disputes))
        config.update_interval_minutes = int(
            output.get("update_interval_minutes", config.update_interval_minutes)
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid config value: {e}", str(path)) from e

    config.validate()
    logger.info(f"Loaded config from {path} (method={config.method.value})")
    return config


def _resolve(raw_path: str) -> Path:
    """Relative paths in the config are relative to the project root."""
    path = Path(raw_path)
    return path if path.is_absolute() else BASE_DIR / path
