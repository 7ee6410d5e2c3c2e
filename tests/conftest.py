# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for provider health checker tests.
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.exceptions import TransportError  # noqa: E402
from core.models import MethodSpec, Provider, RequestOutcome, ToleranceCheck  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def rpc_result(value) -> str:
    """JSON-RPC success body; ints are hex-encoded."""
    result = hex(value) if isinstance(value, int) else value
    return json.dumps({"jsonrpc": "2.0", "id": 1, "result": result})


class ScriptedCaller:
    """
    MethodCaller with canned answers.

    script maps (provider_name, method) or provider_name to a response body
    or an Exception (returned as a failed outcome). delays maps
    provider_name to seconds slept before answering.
    """

    def __init__(self, script=None, delays=None):
        self.script = script or {}
        self.delays = delays or {}
        self.calls = []

    async def invoke(self, provider, method, params, timeout):
        self.calls.append((provider.name, method, tuple(params)))
        delay = self.delays.get(provider.name)
        if delay:
            await asyncio.sleep(delay)

        entry = self.script.get((provider.name, method), self.script.get(provider.name))
        if entry is None:
            return RequestOutcome.failed(TransportError(f"no response scripted for {provider.name}"))
        if isinstance(entry, Exception):
            return RequestOutcome.failed(entry)
        return RequestOutcome.ok(entry)


@pytest.fixture
def reference():
    return Provider(name="ref", url="https://ref.example.com")


@pytest.fixture
def candidates():
    return [
        Provider(name="a", url="https://a.example.com"),
        Provider(name="b", url="https://b.example.com"),
    ]


@pytest.fixture
def block_number_spec():
    return MethodSpec(method="eth_blockNumber", check=ToleranceCheck(max_difference=2))


@pytest.fixture
def make_caller():
    """Factory for ScriptedCaller."""
    return ScriptedCaller


@pytest.fixture
def rpc_body():
    """Factory for JSON-RPC success bodies."""
    return rpc_result
