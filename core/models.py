# PATH: core/models.py
"""
Core data models for the provider health checker.

Everything here is recreated on every validation pass; nothing is cached
between passes.

WIRE CONTRACT (provider lists, shared with the serving component):
================================================================
  {
    "chains": [
      {
        "name": "mainnet",
        "network": "ethereum",
        "chainId": 1,
        "providers": [
          {"name": "infura", "url": "https://...", "enabled": true,
           "authType": "token-auth", "authToken": "..."}
        ]
      }
    ]
  }

Auth fields that are empty are omitted on output.
================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from core.constants import AuthType


# ============================================================================
# PROVIDERS AND CHAINS
# ============================================================================

@dataclass(frozen=True)
class Provider:
    """One RPC endpoint. Immutable once loaded."""
    name: str
    url: str
    auth_type: AuthType = AuthType.NONE
    auth_login: str = ""
    auth_password: str = ""
    auth_token: str = ""
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Provider":
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError(f"enabled must be true or false, got {enabled!r}")
        return cls(
            name=str(data.get("name", "")),
            url=str(data.get("url", "")),
            auth_type=AuthType(data.get("authType") or AuthType.NONE.value),
            auth_login=str(data.get("authLogin") or ""),
            auth_password=str(data.get("authPassword") or ""),
            auth_token=str(data.get("authToken") or ""),
            enabled=enabled,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "enabled": self.enabled,
            "authType": self.auth_type.value,
        }
        if self.auth_login:
            result["authLogin"] = self.auth_login
        if self.auth_password:
            result["authPassword"] = self.auth_password
        if self.auth_token:
            result["authToken"] = self.auth_token
        return result


@dataclass
class ChainConfig:
    """A chain with its ordered candidate providers."""
    name: str
    network: str
    chain_id: int
    providers: list[Provider] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainConfig":
        return cls(
            name=str(data.get("name", "")).lower(),
            network=str(data.get("network", "")).lower(),
            chain_id=int(data.get("chainId", 0)),
            providers=[Provider.from_dict(p) for p in data.get("providers") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "network": self.network,
            "chainId": self.chain_id,
            "providers": [p.to_dict() for p in self.providers],
        }

    @property
    def enabled_providers(self) -> list[Provider]:
        return [p for p in self.providers if p.enabled]


@dataclass
class ReferenceChainConfig:
    """A chain's single trusted reference provider."""
    name: str
    network: str
    chain_id: int
    provider: Provider

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReferenceChainConfig":
        return cls(
            name=str(data.get("name", "")).lower(),
            network=str(data.get("network", "")).lower(),
            chain_id=int(data.get("chainId", 0)),
            provider=Provider.from_dict(data.get("provider") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "network": self.network,
            "chainId": self.chain_id,
            "provider": self.provider.to_dict(),
        }


# ============================================================================
# METHOD SPECS AND COMPARISON
# ============================================================================

@dataclass(frozen=True)
class ToleranceCheck:
    """
    Numeric closeness strategy: |reference - candidate| <= max_difference.

    Equality is the max_difference == 0 case.
    """
    max_difference: int = 0

    def __post_init__(self):
        if self.max_difference < 0:
            raise ValueError(f"max_difference must be non-negative, got {self.max_difference}")

    def difference(self, reference: int, candidate: int) -> int:
        return abs(reference - candidate)

    def accepts(self, diff: int) -> bool:
        return diff <= self.max_difference

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToleranceCheck":
        return cls(max_difference=int(str(data.get("maxDifference", 0)), 10))

    def to_dict(self) -> dict[str, Any]:
        return {"maxDifference": str(self.max_difference)}


@dataclass(frozen=True)
class MethodSpec:
    """A JSON-RPC method used as a health probe."""
    method: str
    params: tuple = ()
    check: ToleranceCheck = field(default_factory=ToleranceCheck)

    @property
    def max_difference(self) -> int:
        return self.check.max_difference

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MethodSpec":
        return cls(
            method=str(data.get("method", "")),
            params=tuple(data.get("params") or ()),
            check=ToleranceCheck.from_dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "params": list(self.params),
            **self.check.to_dict(),
        }


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class RequestOutcome:
    """Result of one transport call. Never persisted."""
    success: bool
    response: str = ""
    error: Optional[Exception] = None
    elapsed_ms: int = 0

    @classmethod
    def ok(cls, response: str, elapsed_ms: int = 0) -> "RequestOutcome":
        return cls(success=True, response=response, elapsed_ms=elapsed_ms)

    @classmethod
    def failed(cls, error: Exception, elapsed_ms: int = 0) -> "RequestOutcome":
        return cls(success=False, response="", error=error, elapsed_ms=elapsed_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "response": self.response,
            "error": str(self.error) if self.error else None,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass
class CheckResult:
    """One provider's verdict for one method."""
    valid: bool
    diff: Optional[int] = None
    outcome: Optional[RequestOutcome] = None
    error: Optional[Exception] = None
    reference_outcome: Optional[RequestOutcome] = None


@dataclass
class FailedMethodResult:
    """Diagnostics for a method a provider failed."""
    outcome: Optional[RequestOutcome]
    reference_outcome: Optional[RequestOutcome]
    error: Optional[Exception] = None
    diff: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.outcome.to_dict() if self.outcome else None,
            "reference_result": self.reference_outcome.to_dict() if self.reference_outcome else None,
            "error": str(self.error) if self.error else None,
            "diff": self.diff,
        }


@dataclass
class ProviderValidationResult:
    """One provider's verdict across all methods of a chain."""
    valid: bool
    failed_methods: dict[str, FailedMethodResult] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "failed_methods": {
                method: failed.to_dict()
                for method, failed in self.failed_methods.items()
            },
        }
