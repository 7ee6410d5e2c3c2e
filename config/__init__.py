# PATH: config/__init__.py
"""
Configuration loading and output for the provider health checker.

Files are JSON; any other suffix is read as YAML:
- checker config: intervals, timeouts and data file paths
- default providers: {"chains": [{name, network, chainId, providers: [...]}]}
- reference providers: {"chains": [{name, network, chainId, provider: {...}}]}
- test methods: [{"method", "params", "maxDifference"}]

${VAR} placeholders in provider URLs and auth fields are expanded from
the environment.
"""

import json
import os
import re
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

import yaml

from core.constants import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_PORT,
    DEFAULT_PROVIDERS_FILE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    OUTPUT_PROVIDERS_FILE,
    REFERENCE_PROVIDERS_FILE,
    TEST_METHODS_FILE,
)
from core.exceptions import ConfigError, NotFoundError, OutputWriteError
from core.logging import get_logger
from core.models import ChainConfig, MethodSpec, Provider, ReferenceChainConfig
from core.validators import (
    require_valid,
    validate_chain_config,
    validate_method_spec,
    validate_reference_chain_config,
)

logger = get_logger(__name__)

CONFIG_DIR = Path(__file__).parent

_ENV_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


# =============================================================================
# FILE HELPERS
# =============================================================================

def load_config_file(filepath: Path | str) -> Any:
    """
    Load a JSON (.json) or YAML (any other suffix) file.

    Raises:
        ConfigError: If the file is missing or unparseable
    """
    filepath = Path(filepath)
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            if filepath.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {filepath}", details={"path": str(filepath)}) from e
    except OSError as e:
        raise ConfigError(f"failed to read config file {filepath}: {e}", details={"path": str(filepath)}) from e
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"failed to parse config {filepath}: {e}", details={"path": str(filepath)}) from e


def expand_env(value: str) -> str:
    """Replace ${VAR} with the environment value; unknown variables are kept."""
    def _sub(match: re.Match) -> str:
        resolved = os.getenv(match.group(1))
        if resolved is None:
            logger.warning(
                f"Environment variable {match.group(1)} is not set",
                extra={"context": {"variable": match.group(1)}},
            )
            return match.group(0)
        return resolved

    return _ENV_PLACEHOLDER.sub(_sub, value)


def _expand_provider(provider: Provider) -> Provider:
    return replace(
        provider,
        url=expand_env(provider.url),
        auth_login=expand_env(provider.auth_login),
        auth_password=expand_env(provider.auth_password),
        auth_token=expand_env(provider.auth_token),
    )


# =============================================================================
# CHECKER CONFIG
# =============================================================================

@dataclass
class CheckerConfig:
    """Top-level checker configuration."""
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    default_providers_path: str = DEFAULT_PROVIDERS_FILE
    reference_providers_path: str = REFERENCE_PROVIDERS_FILE
    tests_config_path: str = TEST_METHODS_FILE
    output_providers_path: str = OUTPUT_PROVIDERS_FILE
    port: int = DEFAULT_PORT


def load_checker_config(config_path: Path | str | None = None) -> CheckerConfig:
    """
    Load checker configuration.

    Without config_path the bundled config/checker_config.json is used, and
    defaults apply if it is absent. An explicit config_path must exist.
    Non-positive interval/timeout fall back to defaults. Relative data paths
    resolve against the config file directory.

    Args:
        config_path: Path to a checker config file

    Returns:
        CheckerConfig

    Raises:
        ConfigError: Explicit file missing, unreadable or invalid
    """
    explicit = config_path is not None
    config_path = Path(config_path) if explicit else CONFIG_DIR / "checker_config.json"

    if not explicit and not config_path.exists():
        logger.info(
            "Bundled checker config not found, using defaults",
            extra={"context": {"path": str(config_path)}},
        )
        data = {}
    else:
        data = load_config_file(config_path) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"checker config {config_path} must be an object")

    base_dir = config_path.parent

    def _path(key: str, default: str) -> str:
        value = data.get(key) or default
        path = Path(value)
        return str(path if path.is_absolute() else base_dir / path)

    try:
        interval = int(data.get("interval_seconds") or 0)
        timeout = float(data.get("request_timeout_seconds") or 0)
        port = int(data.get("port") or DEFAULT_PORT)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid checker config {config_path}: {e}") from e

    return CheckerConfig(
        interval_seconds=interval if interval > 0 else DEFAULT_INTERVAL_SECONDS,
        request_timeout_seconds=timeout if timeout > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS,
        default_providers_path=_path("default_providers_path", DEFAULT_PROVIDERS_FILE),
        reference_providers_path=_path("reference_providers_path", REFERENCE_PROVIDERS_FILE),
        tests_config_path=_path("tests_config_path", TEST_METHODS_FILE),
        output_providers_path=_path("output_providers_path", OUTPUT_PROVIDERS_FILE),
        port=port,
    )


# =============================================================================
# CHAINS
# =============================================================================

def _load_chain_entries(filepath: Path | str) -> list[dict]:
    data = load_config_file(filepath)
    chains = data.get("chains") if isinstance(data, dict) else None
    if not isinstance(chains, list):
        raise ConfigError(f"failed to parse config {filepath}: expected {{\"chains\": [...]}}")
    if not chains:
        raise ConfigError(f"no chains configured in {filepath}")
    return chains


def load_chains(
    filepath: Path | str,
    validator: Callable[[ChainConfig], list[str]] = validate_chain_config,
) -> list[ChainConfig]:
    """
    Load candidate chains.

    Names and networks are normalised to lowercase.

    Raises:
        ConfigError: Unreadable file, empty list or invalid entry
    """
    chains = []
    for entry in _load_chain_entries(filepath):
        try:
            chain = ChainConfig.from_dict(entry)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"invalid chain entry in {filepath}: {e}") from e
        chain.providers = [_expand_provider(p) for p in chain.providers]
        chains.append(require_valid(chain, validator, source=str(filepath)))
    return chains


def load_reference_chains(
    filepath: Path | str,
    validator: Callable[[ReferenceChainConfig], list[str]] = validate_reference_chain_config,
) -> list[ReferenceChainConfig]:
    """
    Load reference providers, one per chain.

    Raises:
        ConfigError: Unreadable file, empty list or invalid entry
    """
    chains = []
    for entry in _load_chain_entries(filepath):
        try:
            chain = ReferenceChainConfig.from_dict(entry)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"invalid reference chain entry in {filepath}: {e}") from e
        chain.provider = _expand_provider(chain.provider)
        chains.append(require_valid(chain, validator, source=str(filepath)))
    return chains


def chains_by_id(chains: Sequence[ChainConfig]) -> dict[int, ChainConfig]:
    return {chain.chain_id: chain for chain in chains}


def references_by_id(chains: Sequence[ReferenceChainConfig]) -> dict[int, ReferenceChainConfig]:
    return {chain.chain_id: chain for chain in chains}


def get_chain_by_name_and_network(
    chains: Sequence[ChainConfig],
    name: str,
    network: str,
) -> ChainConfig:
    """Find a chain by name and network (case-insensitive)."""
    for chain in chains:
        if chain.name == name.lower() and chain.network == network.lower():
            return chain
    raise NotFoundError(f"chain {name} ({network}) not found")


def get_reference_provider(
    chains: Sequence[ReferenceChainConfig],
    name: str,
    network: str,
) -> Provider:
    """Find a reference provider by chain name and network (case-insensitive)."""
    for chain in chains:
        if chain.name == name.lower() and chain.network == network.lower():
            return chain.provider
    raise NotFoundError(f"reference provider for {name} ({network}) not found")


# =============================================================================
# TEST METHODS
# =============================================================================

def load_method_specs(
    filepath: Path | str,
    validator: Callable[[MethodSpec], list[str]] = validate_method_spec,
) -> list[MethodSpec]:
    """
    Load the methods every chain is validated with.

    maxDifference may be an integer or a decimal string; default 0.

    Raises:
        ConfigError: Unreadable file, empty list or invalid entry
    """
    data = load_config_file(filepath)
    if not isinstance(data, list):
        raise ConfigError(f"failed to parse {filepath}: expected a list of methods")
    if not data:
        raise ConfigError(f"empty test configuration in {filepath}")

    specs = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ConfigError(f"invalid method entry in {filepath}: {entry!r}")
        params = entry.get("params")
        if params is not None and not isinstance(params, list):
            raise ConfigError(
                f"invalid params for method {entry.get('method')!r} in {filepath}: expected a list",
                details={"method": entry.get("method"), "params": params},
            )
        try:
            spec = MethodSpec.from_dict(entry)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"invalid maxDifference value: {entry.get('maxDifference')!r}",
                details={"method": entry.get("method"), "error": str(e)},
            ) from e
        specs.append(require_valid(spec, validator, source=str(filepath)))
    return specs


# =============================================================================
# OUTPUT
# =============================================================================

class ProvidersSink(Protocol):
    """Accepts the valid-provider chain list of one pass."""

    def write(self, chains: Sequence[ChainConfig]) -> None:
        ...


class JsonProvidersSink:
    """
    Writes {"chains": [...]} for the serving component.

    The file is replaced atomically so readers never see a partial write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def write(self, chains: Sequence[ChainConfig]) -> None:
        payload = {"chains": [chain.to_dict() for chain in chains]}
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.write("\n")
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise OutputWriteError(
                f"failed to write providers file {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

        logger.info(
            "Providers file written",
            extra={"context": {
                "path": str(self.path),
                "chains": len(chains),
                "providers": sum(len(c.providers) for c in chains),
            }},
        )


def read_providers_file(path: Path | str) -> list[ChainConfig]:
    """Read a file written by JsonProvidersSink."""
    data = load_config_file(path) or {}
    return [ChainConfig.from_dict(entry) for entry in data.get("chains") or []]
