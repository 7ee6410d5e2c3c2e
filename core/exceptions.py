# PATH: core/exceptions.py
"""
Typed exceptions for the provider health checker.

Every error carries an ErrorCode and a details dict. Transport, fan-out and
comparison errors are never raised out of a validation pass: they are stored
inside RequestOutcome / CheckResult. Lookup errors are raised by
single-chain runs only.
"""

from typing import Optional

from core.constants import ErrorCode


class HealthCheckerError(Exception):
    """Base exception for the health checker."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class TransportError(HealthCheckerError):
    """JSON-RPC call failed (network, timeout, status or body)."""
    code = ErrorCode.TRANSPORT_ERROR


class CallCancelledError(HealthCheckerError):
    """Call did not finish before the fan-out deadline or cancellation."""
    code = ErrorCode.CALL_CANCELLED


class ReferenceFailedError(HealthCheckerError):
    """Reference provider call failed; no baseline to compare against."""
    code = ErrorCode.REFERENCE_FAILED

    def __init__(self, reference_name: str, details: Optional[dict] = None):
        super().__init__(
            f"validation failed: reference provider {reference_name} failed",
            details=details,
        )
        self.reference_name = reference_name


class ResponseParseError(HealthCheckerError):
    """Response body is not {"result": "<hex>"}."""
    code = ErrorCode.RESPONSE_PARSE_ERROR


class ReferenceParseError(HealthCheckerError):
    """Reference response could not be parsed."""
    code = ErrorCode.REFERENCE_PARSE_ERROR

    def __init__(self, reference_name: str, cause: Exception):
        super().__init__(
            f"failed to parse reference provider {reference_name} response: {cause}",
            details={"reference": reference_name},
        )
        self.reference_name = reference_name
        self.__cause__ = cause


class MissingResultError(HealthCheckerError):
    """No result recorded for a provider/method pair."""
    code = ErrorCode.MISSING_RESULT


class NotFoundError(HealthCheckerError, LookupError):
    """Requested chain or reference is not configured."""


class ChainNotFoundError(NotFoundError):
    code = ErrorCode.CHAIN_NOT_FOUND

    def __init__(self, chain_id: int):
        super().__init__(
            f"chain config not found for chainId: {chain_id}",
            details={"chain_id": chain_id},
        )
        self.chain_id = chain_id


class ReferenceNotFoundError(NotFoundError):
    code = ErrorCode.REFERENCE_NOT_FOUND

    def __init__(self, chain_id: int):
        super().__init__(
            f"reference config not found for chainId: {chain_id}",
            details={"chain_id": chain_id},
        )
        self.chain_id = chain_id


class ConfigError(HealthCheckerError):
    """Configuration could not be read, parsed or validated."""
    code = ErrorCode.CONFIG_ERROR


class OutputWriteError(HealthCheckerError):
    """Valid-provider list could not be persisted."""
    code = ErrorCode.OUTPUT_WRITE_ERROR
