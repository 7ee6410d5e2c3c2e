# PATH: core/constants.py
"""
Constants for the provider health checker.

Contains enums, defaults, and configuration constants.
"""

from enum import Enum
from typing import Final

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_INTERVAL_SECONDS: Final[int] = 60
DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[int] = 10
DEFAULT_PORT: Final[int] = 8080

DEFAULT_PROVIDERS_FILE: Final[str] = "default_providers.json"
REFERENCE_PROVIDERS_FILE: Final[str] = "reference_providers.json"
TEST_METHODS_FILE: Final[str] = "test_methods.json"
OUTPUT_PROVIDERS_FILE: Final[str] = "providers.json"

# JSON-RPC
JSONRPC_VERSION: Final[str] = "2.0"
HEX_PREFIX: Final[str] = "0x"


class AuthType(str, Enum):
    """Authentication scheme of an RPC provider (wire values)."""
    NONE = "no-auth"
    BASIC = "basic-auth"   # Authorization: Basic base64(login:password)
    TOKEN = "token-auth"   # token sent as the URL query string


class ErrorCode(str, Enum):
    """
    Error codes carried by every HealthCheckerError.

    Transport codes are per provider/method; reference codes invalidate
    every candidate of a method; lookup codes only surface from
    single-chain runs.
    """
    # Transport
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TRANSPORT_TIMEOUT = "TRANSPORT_TIMEOUT"
    TRANSPORT_BAD_STATUS = "TRANSPORT_BAD_STATUS"
    TRANSPORT_BAD_BODY = "TRANSPORT_BAD_BODY"

    # Fan-out
    CALL_CANCELLED = "CALL_CANCELLED"

    # Comparison
    REFERENCE_FAILED = "REFERENCE_FAILED"
    REFERENCE_PARSE_ERROR = "REFERENCE_PARSE_ERROR"
    RESPONSE_PARSE_ERROR = "RESPONSE_PARSE_ERROR"
    MISSING_RESULT = "MISSING_RESULT"

    # Lookup
    CHAIN_NOT_FOUND = "CHAIN_NOT_FOUND"
    REFERENCE_NOT_FOUND = "REFERENCE_NOT_FOUND"

    # Config / output
    CONFIG_ERROR = "CONFIG_ERROR"
    OUTPUT_WRITE_ERROR = "OUTPUT_WRITE_ERROR"

    UNKNOWN = "UNKNOWN"
