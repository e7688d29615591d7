"""Global test fixtures: isolate runs from the operator's environment."""
import pytest


@pytest.fixture(autouse=True)
def clear_rpc_override(monkeypatch):
    """A real ETH_RPC_URL on the test machine must never reach the tests."""
    monkeypatch.delenv("ETH_RPC_URL", raising=False)
    yield
