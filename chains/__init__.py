"""
chains/ - Provider interaction layer.

Modules:
- transport: JSON-RPC transport (httpx) implementing MethodCaller
- fanout: Parallel fan-out with a shared deadline
"""

from chains.fanout import ProviderCall, collect_outcomes, run_parallel
from chains.transport import (
    MethodCaller,
    RPCStats,
    RPCTransport,
    build_request,
)

__all__ = [
    # Transport
    "MethodCaller",
    "RPCStats",
    "RPCTransport",
    "build_request",
    # Fan-out
    "ProviderCall",
    "collect_outcomes",
    "run_parallel",
]
