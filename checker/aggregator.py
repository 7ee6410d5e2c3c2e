"""
checker/aggregator.py - Merge per-method verdicts into one verdict per provider.

A provider is valid only if every configured method passed. Failed methods
keep the candidate and reference outcomes for diagnostics.
"""

import asyncio
from typing import Sequence

from chains.transport import MethodCaller
from checker.method_validator import validate_method
from core.exceptions import MissingResultError
from core.models import (
    CheckResult,
    FailedMethodResult,
    MethodSpec,
    Provider,
    ProviderValidationResult,
)


def merge_method_results(
    specs: Sequence[MethodSpec],
    per_method: Sequence[dict[str, CheckResult]],
    candidates: Sequence[Provider],
) -> dict[str, ProviderValidationResult]:
    """
    Combine validate_method() outputs (same order as specs).

    Returns:
        Mapping candidate name -> ProviderValidationResult
    """
    results: dict[str, ProviderValidationResult] = {}

    for provider in candidates:
        failed: dict[str, FailedMethodResult] = {}

        for spec, method_results in zip(specs, per_method):
            check = method_results.get(provider.name)
            if check is None:
                failed[spec.method] = FailedMethodResult(
                    outcome=None,
                    reference_outcome=None,
                    error=MissingResultError(
                        f"provider result not found for {spec.method}",
                        details={"provider": provider.name, "method": spec.method},
                    ),
                )
            elif not check.valid:
                failed[spec.method] = FailedMethodResult(
                    outcome=check.outcome,
                    reference_outcome=check.reference_outcome,
                    error=check.error,
                    diff=check.diff,
                )

        results[provider.name] = ProviderValidationResult(
            valid=not failed,
            failed_methods=failed,
        )

    return results


async def validate_all_methods(
    specs: Sequence[MethodSpec],
    reference: Provider,
    candidates: Sequence[Provider],
    caller: MethodCaller,
    timeout: float,
) -> dict[str, ProviderValidationResult]:
    """
    Run every method against the candidates and aggregate.

    Methods are independent and run concurrently.
    """
    per_method = await asyncio.gather(*(
        validate_method(spec, reference, candidates, caller, timeout)
        for spec in specs
    ))
    return merge_method_results(specs, per_method, candidates)
