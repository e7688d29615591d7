# =============================================================================
# UNIT TESTS - RPC CONNECTION MANAGER
# =============================================================================
#
# Ordered fallback, fallback counting and the all-failed error.
#
# =============================================================================

import pytest
import sys
from pathlib import Path

# Setup paths
BASE_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(BASE_DIR))

from chain.connection import RpcConnection, RpcConnectionManager, close_client
from shared.config import ForkRiskConfig
from shared.exceptions import ConnectivityError
from tests.fakes import FakeClient, FakeEth, client_factory, dead_client


ENDPOINTS = ["https://rpc-a.test", "https://rpc-b.test", "https://rpc-c.test"]


class TestRpcConnection:

    def test_to_dict(self):
        connection = RpcConnection("https://rpc-a.test", 42, 1)
        assert connection.to_dict() == {
            "endpoint": "https://rpc-a.test",
            "latencyMs": 42,
            "fallbacksAttempted": 1,
        }

    def test_immutable(self):
        connection = RpcConnection("https://rpc-a.test", 42, 1)
        with pytest.raises(AttributeError):
            connection.endpoint = "https://rpc-b.test"


# =============================================================================
# CONNECT
# =============================================================================


class TestConnect:

    @pytest.mark.asyncio
    async def test_first_live_endpoint_wins(self):
        factory = client_factory({endpoint: FakeClient(FakeEth()) for endpoint in ENDPOINTS})
        manager = RpcConnectionManager(ENDPOINTS, client_factory=factory)

        connection, w3 = await manager.connect()

        assert connection.endpoint == ENDPOINTS[0]
        assert connection.fallbacks_attempted == 0
        assert connection.latency_ms >= 0
        assert factory.calls == ENDPOINTS[:1]

    @pytest.mark.asyncio
    async def test_fallbacks_counted(self):
        live = FakeClient(FakeEth())
        factory = client_factory({
            ENDPOINTS[0]: dead_client(),
            ENDPOINTS[1]: dead_client("timeout"),
            ENDPOINTS[2]: live,
        })
        manager = RpcConnectionManager(ENDPOINTS, client_factory=factory)

        connection, w3 = await manager.connect()

        assert connection.endpoint == ENDPOINTS[2]
        assert connection.fallbacks_attempted == 2
        assert w3 is live
        assert factory.calls == ENDPOINTS

    @pytest.mark.asyncio
    async def test_failed_clients_are_closed(self):
        dead = dead_client()
        factory = client_factory({ENDPOINTS[0]: dead, ENDPOINTS[1]: FakeClient(FakeEth())})
        manager = RpcConnectionManager(ENDPOINTS[:2], client_factory=factory)

        await manager.connect()

        assert dead.provider.disconnects == 1

    @pytest.mark.asyncio
    async def test_all_failed_raises(self):
        factory = client_factory({endpoint: dead_client() for endpoint in ENDPOINTS})
        manager = RpcConnectionManager(ENDPOINTS, client_factory=factory)

        with pytest.raises(ConnectivityError) as exc:
            await manager.connect()

        assert exc.value.fallbacks_attempted == len(ENDPOINTS)
        assert exc.value.connection is None
        assert "attempted 3" in str(exc.value)

    @pytest.mark.asyncio
    async def test_factory_error_counts_as_failure(self):
        factory = client_factory({ENDPOINTS[1]: FakeClient(FakeEth())})
        manager = RpcConnectionManager(ENDPOINTS[:2], client_factory=factory)

        connection, _ = await manager.connect()

        assert connection.endpoint == ENDPOINTS[1]
        assert connection.fallbacks_attempted == 1

    @pytest.mark.asyncio
    async def test_override_tried_before_public_endpoints(self, monkeypatch):
        monkeypatch.setenv("ETH_RPC_URL", "https://private-node.test")
        config = ForkRiskConfig(rpc_endpoints=ENDPOINTS)
        factory = client_factory({
            "https://private-node.test": FakeClient(FakeEth()),
            ENDPOINTS[0]: FakeClient(FakeEth()),
        })
        manager = RpcConnectionManager(config.rpc_candidates(), client_factory=factory)

        connection, _ = await manager.connect()

        assert connection.endpoint == "https://private-node.test"
        assert connection.fallbacks_attempted == 0

    @pytest.mark.asyncio
    async def test_placeholder_override_skipped(self, monkeypatch):
        monkeypatch.setenv("ETH_RPC_URL", "https://mainnet.infura.io/v3/your-project-id")
        config = ForkRiskConfig(rpc_endpoints=ENDPOINTS)
        factory = client_factory({ENDPOINTS[0]: FakeClient(FakeEth())})
        manager = RpcConnectionManager(config.rpc_candidates(), client_factory=factory)

        connection, _ = await manager.connect()

        assert connection.endpoint == ENDPOINTS[0]
        assert connection.fallbacks_attempted == 0
        assert factory.calls == [ENDPOINTS[0]]

    @pytest.mark.asyncio
    async def test_close_client(self):
        client = FakeClient(FakeEth())
        await close_client(client)
        assert client.provider.disconnects == 1
