# =============================================================================
# UNIT TESTS - RUN CONFIGURATION
# =============================================================================
#
# YAML loading, validation and RPC candidate ordering.
#
# =============================================================================

import os
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

# Setup paths
BASE_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(BASE_DIR))

from shared.config import (
    CONFIG_PATH,
    FORK_THRESHOLD_REP,
    PUBLIC_RPC_ENDPOINTS,
    ForkRiskConfig,
    is_placeholder_url,
    load_config,
)
from shared.enums import RiskMethod
from shared.exceptions import ConfigurationError


# =============================================================================
# PLACEHOLDER DETECTION
# =============================================================================


class TestPlaceholderUrl:

    @pytest.mark.parametrize("url", [
        None,
        "",
        "   ",
        "https://mainnet.infura.io/v3/your-project-id",
        "https://eth-mainnet.alchemyapi.io/v2/YOUR_API_KEY",
        "<your rpc url>",
        "https://rpc.example.com",
    ])
    def test_placeholders(self, url):
        assert is_placeholder_url(url) is True

    def test_real_url(self):
        assert is_placeholder_url("https://eth.llamarpc.com") is False

    def test_host_containing_example_is_real(self):
        assert is_placeholder_url("https://rpc.examplechain.io") is False
        assert is_placeholder_url("https://example-node.internal:8545") is False


# =============================================================================
# RPC CANDIDATES
# =============================================================================


class TestRpcCandidates:

    def test_defaults_are_public_endpoints(self):
        assert ForkRiskConfig().rpc_candidates() == PUBLIC_RPC_ENDPOINTS

    @patch.dict(os.environ, {"ETH_RPC_URL": "https://node.internal:8545"})
    def test_env_override_goes_first(self):
        candidates = ForkRiskConfig().rpc_candidates()
        assert candidates[0] == "https://node.internal:8545"
        assert candidates[1:] == PUBLIC_RPC_ENDPOINTS

    @patch.dict(os.environ, {"ETH_RPC_URL": "https://mainnet.infura.io/v3/your-project-id"})
    def test_placeholder_env_is_ignored(self):
        assert ForkRiskConfig().rpc_candidates() == PUBLIC_RPC_ENDPOINTS

    @patch.dict(os.environ, {"ETH_RPC_URL": "https://env-node.internal"})
    def test_explicit_override_beats_env(self):
        candidates = ForkRiskConfig().rpc_candidates("https://cli-node.internal")
        assert candidates[0] == "https://cli-node.internal"
        assert "https://env-node.internal" not in candidates

    def test_duplicate_override_not_repeated(self):
        config = ForkRiskConfig(rpc_endpoints=["https://a.internal", "https://b.internal"])
        assert config.rpc_candidates("https://b.internal") == [
            "https://b.internal",
            "https://a.internal",
        ]


# =============================================================================
# LOADING
# =============================================================================


class TestLoadConfig:

    def test_shipped_config_matches_defaults(self):
        config = load_config(CONFIG_PATH)
        assert config.fork_threshold_rep == FORK_THRESHOLD_REP
        assert config.method == RiskMethod.BOND_RATIO
        assert config.lookback_days == 7
        assert config.chunk_size == 1000
        assert config.retrieval_cap == 10
        assert config.persisted_disputes == 5
        assert config.rpc_endpoints == PUBLIC_RPC_ENDPOINTS

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config.fork_threshold_rep == FORK_THRESHOLD_REP

    def test_partial_file(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("logs:\n  lookback_days: 3\n  chunk_size: 500\n")
        config = load_config(path)
        assert config.lookback_days == 3
        assert config.chunk_size == 500
        assert config.retrieval_cap == 10

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("rpc: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_bad_value(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("logs:\n  chunk_size: lots\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_scalar_endpoints_rejected(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("rpc:\n  endpoints: https://rpc.test\n")
        with pytest.raises(ConfigurationError) as exc:
            load_config(path)
        assert exc.value.source == "rpc.endpoints"

    def test_endpoint_list(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("rpc:\n  endpoints:\n    - https://rpc.test\n")
        assert load_config(path).rpc_endpoints == ["https://rpc.test"]

    def test_unknown_method(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("risk:\n  method: vibes\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_positive_value(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("risk:\n  fork_threshold_rep: 0\n")
        with pytest.raises(ConfigurationError) as exc:
            load_config(path)
        assert exc.value.source == "risk.fork_threshold_rep"

    def test_security_ratio_requires_price(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("risk:\n  method: security_ratio\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_security_ratio_with_price(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("risk:\n  method: security_ratio\n  rep_price_usd: 1.5\n")
        config = load_config(path)
        assert config.method == RiskMethod.SECURITY_RATIO
        assert config.rep_price_usd == 1.5

    def test_relative_paths_resolved_from_project_root(self, tmp_path):
        path = tmp_path / "fork_risk.yaml"
        path.write_text("output:\n  path: out/risk.json\n")
        config = load_config(path)
        assert config.output_path == BASE_DIR / "out" / "risk.json"
