"""
core - Core utilities and models for the provider health checker.

This package contains:
- models.py: Data models (Provider, ChainConfig, MethodSpec, results)
- constants.py: Enums and defaults
- exceptions.py: Typed exceptions with error codes
- validators.py: Per-type configuration validators
- logging.py: Structured JSON logging
"""

from core.constants import AuthType, ErrorCode
from core.exceptions import (
    CallCancelledError,
    ChainNotFoundError,
    ConfigError,
    HealthCheckerError,
    MissingResultError,
    NotFoundError,
    OutputWriteError,
    ReferenceFailedError,
    ReferenceNotFoundError,
    ReferenceParseError,
    ResponseParseError,
    TransportError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    ChainConfig,
    CheckResult,
    FailedMethodResult,
    MethodSpec,
    Provider,
    ProviderValidationResult,
    ReferenceChainConfig,
    RequestOutcome,
    ToleranceCheck,
)

__all__ = [
    # Constants
    "AuthType",
    "ErrorCode",
    # Exceptions
    "CallCancelledError",
    "ChainNotFoundError",
    "ConfigError",
    "HealthCheckerError",
    "MissingResultError",
    "NotFoundError",
    "OutputWriteError",
    "ReferenceFailedError",
    "ReferenceNotFoundError",
    "ReferenceParseError",
    "ResponseParseError",
    "TransportError",
    # Models
    "ChainConfig",
    "CheckResult",
    "FailedMethodResult",
    "MethodSpec",
    "Provider",
    "ProviderValidationResult",
    "ReferenceChainConfig",
    "RequestOutcome",
    "ToleranceCheck",
    # Logging
    "get_logger",
    "setup_logging",
]
