# PATH: core/validators.py
"""
Validators for configuration data.

One plain function per data type. Each returns a list of problems (empty
when valid) so callers can report everything at once; loaders take the
validator as a parameter and raise ConfigError via require_valid().

USAGE:
    from core.validators import validate_chain_config, require_valid

    require_valid(chain, validate_chain_config, source="default_providers.json")
"""

from typing import Callable, TypeVar
from urllib.parse import urlsplit

from core.constants import AuthType
from core.exceptions import ConfigError
from core.models import ChainConfig, MethodSpec, Provider, ReferenceChainConfig

T = TypeVar("T")


def is_valid_url(url: str) -> bool:
    """Check if string is an absolute http(s) URL."""
    if not isinstance(url, str) or not url:
        return False
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def validate_provider(provider: Provider) -> list[str]:
    problems = []

    if not provider.name:
        problems.append("provider name is required")
    if not provider.url:
        problems.append(f"provider {provider.name!r}: URL is required")
    elif not is_valid_url(provider.url):
        problems.append(f"provider {provider.name!r}: invalid URL {provider.url!r}")

    if provider.auth_type is AuthType.BASIC:
        if not provider.auth_login or not provider.auth_password:
            problems.append(f"provider {provider.name!r}: basic-auth requires authLogin and authPassword")
    elif provider.auth_type is AuthType.TOKEN:
        if not provider.auth_token:
            problems.append(f"provider {provider.name!r}: token-auth requires authToken")

    return problems


def _validate_chain_identity(name: str, network: str, chain_id: int) -> list[str]:
    problems = []
    if not name:
        problems.append("chain name is required")
    elif name != name.lower():
        problems.append("chain name must be lowercase")
    if not network:
        problems.append("network is required")
    elif network != network.lower():
        problems.append("network must be lowercase")
    if not chain_id:
        problems.append("chainId is required")
    return problems


def validate_chain_config(chain: ChainConfig) -> list[str]:
    problems = _validate_chain_identity(chain.name, chain.network, chain.chain_id)

    seen: set[str] = set()
    for provider in chain.providers:
        problems.extend(validate_provider(provider))
        if provider.name in seen:
            problems.append(f"chain {chain.chain_id}: duplicate provider name {provider.name!r}")
        seen.add(provider.name)

    return problems


def validate_reference_chain_config(chain: ReferenceChainConfig) -> list[str]:
    problems = _validate_chain_identity(chain.name, chain.network, chain.chain_id)
    problems.extend(validate_provider(chain.provider))
    return problems


def validate_method_spec(spec: MethodSpec) -> list[str]:
    problems = []
    if not spec.method:
        problems.append("method name cannot be empty")
    if spec.max_difference < 0:
        problems.append(f"method {spec.method!r}: maxDifference must be non-negative")
    return problems


def require_valid(obj: T, validator: Callable[[T], list[str]], source: str = "") -> T:
    """
    Run a validator and raise ConfigError listing every problem.

    Returns:
        The object unchanged, for chaining.
    """
    problems = validator(obj)
    if problems:
        where = f" in {source}" if source else ""
        raise ConfigError(
            f"invalid configuration{where}: {'; '.join(problems)}",
            details={"source": source, "problems": problems},
        )
    return obj
