"""
checker/runner.py - Validate every configured chain and publish the valid providers.

One runner per validation pass; nothing is carried over between passes.

Bulk run():
- chains without a reference provider are skipped (intentionally unmonitored)
- disabled providers are never queried and never published
- every validated chain yields one output record with only its valid
  providers (possibly none), handed to the sink in a single write
- a failed write is logged; the pass still returns its results

run_for_chain() raises NotFoundError instead of skipping.
"""

import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from chains.transport import MethodCaller
from checker.aggregator import validate_all_methods
from config import (
    CheckerConfig,
    JsonProvidersSink,
    ProvidersSink,
    chains_by_id,
    load_chains,
    load_method_specs,
    load_reference_chains,
    references_by_id,
)
from core.exceptions import ChainNotFoundError, ReferenceNotFoundError
from core.logging import get_logger
from core.models import (
    ChainConfig,
    MethodSpec,
    ProviderValidationResult,
    ReferenceChainConfig,
)

logger = get_logger(__name__)

ChainResults = dict[str, ProviderValidationResult]


@dataclass
class PassSummary:
    """Counters for one bulk pass."""
    chains_total: int = 0
    chains_validated: int = 0
    chains_skipped: list[int] = field(default_factory=list)
    providers_total: int = 0
    providers_valid: int = 0
    duration_ms: int = 0
    write_ok: Optional[bool] = None

    def to_dict(self) -> dict:
        return {
            "chains_total": self.chains_total,
            "chains_validated": self.chains_validated,
            "chains_skipped": self.chains_skipped,
            "providers_total": self.providers_total,
            "providers_valid": self.providers_valid,
            "duration_ms": self.duration_ms,
            "write_ok": self.write_ok,
        }


def valid_chain_record(chain: ChainConfig, results: ChainResults) -> ChainConfig:
    """Copy of chain keeping only providers whose overall verdict is valid."""
    return ChainConfig(
        name=chain.name,
        network=chain.network,
        chain_id=chain.chain_id,
        providers=[
            p for p in chain.providers
            if p.name in results and results[p.name].valid
        ],
    )


class ChainValidationRunner:
    """
    Coordinates validation across multiple chains.

    Usage:
        runner = ChainValidationRunner(chains, references, specs, transport, 10)
        results = await runner.run()
    """

    def __init__(
        self,
        chains: dict[int, ChainConfig],
        references: dict[int, ReferenceChainConfig],
        method_specs: Sequence[MethodSpec],
        caller: MethodCaller,
        timeout: float,
        sink: Optional[ProvidersSink] = None,
    ):
        self.chains = chains
        self.references = references
        self.method_specs = list(method_specs)
        self.caller = caller
        self.timeout = timeout
        self.sink = sink
        self.last_summary: Optional[PassSummary] = None

    @classmethod
    def from_config(
        cls,
        config: CheckerConfig,
        caller: MethodCaller,
        sink: Optional[ProvidersSink] = None,
    ) -> "ChainValidationRunner":
        """
        Build a fresh runner from the files named in config.

        Raises:
            ConfigError: If any file cannot be loaded
        """
        references = load_reference_chains(config.reference_providers_path)
        chains = load_chains(config.default_providers_path)
        specs = load_method_specs(config.tests_config_path)

        return cls(
            chains=chains_by_id(chains),
            references=references_by_id(references),
            method_specs=specs,
            caller=caller,
            timeout=config.request_timeout_seconds,
            sink=sink if sink is not None else JsonProvidersSink(config.output_providers_path),
        )

    async def _validate_chain(
        self,
        chain: ChainConfig,
        reference: ReferenceChainConfig,
    ) -> ChainResults:
        candidates = chain.enabled_providers
        results = await validate_all_methods(
            self.method_specs,
            reference.provider,
            candidates,
            self.caller,
            self.timeout,
        )

        for name, result in results.items():
            if not result.valid:
                logger.info(
                    f"Provider {name} failed validation on chain {chain.chain_id}",
                    extra={"context": {
                        "chain_id": chain.chain_id,
                        "provider": name,
                        "failed_methods": {
                            method: str(failed.error) if failed.error else f"diff={failed.diff}"
                            for method, failed in result.failed_methods.items()
                        },
                    }},
                )

        logger.info(
            f"Chain {chain.chain_id} validated",
            extra={"context": {
                "chain_id": chain.chain_id,
                "chain": f"{chain.name}/{chain.network}",
                "valid": sum(1 for r in results.values() if r.valid),
                "total": len(candidates),
            }},
        )
        return results

    async def run(self) -> dict[int, ChainResults]:
        """
        Validate every chain that has a reference and write the valid providers.

        Returns:
            Mapping chain_id -> provider name -> ProviderValidationResult
        """
        start = time.monotonic()
        summary = PassSummary(chains_total=len(self.chains))
        all_results: dict[int, ChainResults] = {}
        output: list[ChainConfig] = []

        for chain_id, chain in self.chains.items():
            reference = self.references.get(chain_id)
            if reference is None:
                summary.chains_skipped.append(chain_id)
                logger.debug(
                    f"No reference provider for chain {chain_id}, skipping",
                    extra={"context": {"chain_id": chain_id}},
                )
                continue

            results = await self._validate_chain(chain, reference)
            all_results[chain_id] = results
            record = valid_chain_record(chain, results)
            output.append(record)

            summary.chains_validated += 1
            summary.providers_total += len(results)
            summary.providers_valid += len(record.providers)

        if self.sink is not None:
            try:
                self.sink.write(output)
                summary.write_ok = True
            except Exception:
                summary.write_ok = False
                logger.error(
                    "Failed to write valid providers",
                    exc_info=True,
                    extra={"context": {"chains": len(output)}},
                )

        summary.duration_ms = int((time.monotonic() - start) * 1000)
        self.last_summary = summary
        logger.info("Validation pass complete", extra={"context": summary.to_dict()})
        return all_results

    async def run_for_chain(self, chain_id: int) -> ChainResults:
        """
        Validate a single chain without writing output.

        Raises:
            ChainNotFoundError: chain_id is not configured
            ReferenceNotFoundError: chain has no reference provider
        """
        chain = self.chains.get(chain_id)
        if chain is None:
            raise ChainNotFoundError(chain_id)

        reference = self.references.get(chain_id)
        if reference is None:
            raise ReferenceNotFoundError(chain_id)

        return await self._validate_chain(chain, reference)
