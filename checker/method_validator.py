"""
checker/method_validator.py - Validate candidates against a reference for one method.

Pipeline:
1. Fan out the method over [reference] + candidates
2. Reference failed -> every candidate invalid (ReferenceFailedError)
3. Reference unparseable -> every candidate invalid (ReferenceParseError)
4. Per candidate: failed call or unparseable body -> invalid;
   otherwise diff = |reference - candidate| and the method's
   ToleranceCheck decides

An unreliable reference never passes or fails candidates on its own values.
"""

import json
from typing import Sequence

from chains.fanout import collect_outcomes
from chains.transport import MethodCaller
from core.constants import HEX_PREFIX
from core.exceptions import (
    ReferenceFailedError,
    ReferenceParseError,
    ResponseParseError,
)
from core.logging import get_logger
from core.models import CheckResult, MethodSpec, Provider, RequestOutcome

logger = get_logger(__name__)


def parse_hex_quantity(value: str) -> int:
    """
    Parse a base-16 quantity, optional 0x prefix, case-insensitive.

    Raises:
        ValueError: If value is not a hex number
    """
    digits = value
    if len(digits) > 2 and digits[:2].lower() == HEX_PREFIX:
        digits = digits[2:]
    if not digits or not all(c in "0123456789abcdefABCDEF" for c in digits):
        raise ValueError(f"failed to parse result as hex number: {value!r}")
    return int(digits, 16)


def parse_jsonrpc_result(response: str) -> int:
    """
    Extract the numeric result from a JSON-RPC response body.

    Expects {"result": "<hex string>"}.

    Raises:
        ResponseParseError: On any other shape
    """
    try:
        body = json.loads(response)
    except (ValueError, RecursionError) as e:
        raise ResponseParseError(f"failed to unmarshal JSON-RPC response: {e}") from e

    if not isinstance(body, dict):
        raise ResponseParseError("JSON-RPC response is not an object")

    if "result" not in body:
        rpc_error = body.get("error")
        if isinstance(rpc_error, dict):
            message = rpc_error.get("message", rpc_error)
            raise ResponseParseError(
                f"JSON-RPC error: {message}",
                details={"rpc_error": rpc_error},
            )
        raise ResponseParseError("JSON-RPC response has no result")

    result = body["result"]
    if not isinstance(result, str):
        raise ResponseParseError(f"JSON-RPC result is not a hex string: {result!r}")

    try:
        return parse_hex_quantity(result)
    except ValueError as e:
        raise ResponseParseError(str(e)) from e


def _fail_all(
    candidates: Sequence[Provider],
    outcomes: dict[str, RequestOutcome],
    reference_outcome: RequestOutcome | None,
    error: Exception,
) -> dict[str, CheckResult]:
    return {
        provider.name: CheckResult(
            valid=False,
            outcome=outcomes.get(provider.name),
            error=error,
            reference_outcome=reference_outcome,
        )
        for provider in candidates
    }


async def validate_method(
    spec: MethodSpec,
    reference: Provider,
    candidates: Sequence[Provider],
    caller: MethodCaller,
    timeout: float,
) -> dict[str, CheckResult]:
    """
    Validate every candidate against the reference for one method.

    Args:
        spec: Method, params and tolerance
        reference: Trusted reference provider
        candidates: Providers under test
        caller: Transport capability
        timeout: Shared deadline in seconds

    Returns:
        Mapping candidate name -> CheckResult
    """
    async def call(provider: Provider) -> RequestOutcome:
        return await caller.invoke(provider, spec.method, spec.params, timeout)

    # Reference is read back by position so a candidate sharing its name
    # can never stand in for it
    ref_outcome, *candidate_outcomes = await collect_outcomes(
        [reference, *candidates], timeout, call
    )
    outcomes = {p.name: o for p, o in zip(candidates, candidate_outcomes)}

    if not ref_outcome.success:
        logger.warning(
            f"Reference provider {reference.name} failed for {spec.method}",
            extra={"context": {
                "reference": reference.name,
                "method": spec.method,
                "error": str(ref_outcome.error),
            }},
        )
        return _fail_all(
            candidates, outcomes, ref_outcome,
            ReferenceFailedError(reference.name),
        )

    try:
        ref_value = parse_jsonrpc_result(ref_outcome.response)
    except ResponseParseError as e:
        logger.warning(
            f"Reference provider {reference.name} returned unparseable {spec.method} response",
            extra={"context": {"reference": reference.name, "method": spec.method, "error": str(e)}},
        )
        return _fail_all(
            candidates, outcomes, ref_outcome,
            ReferenceParseError(reference.name, e),
        )

    results: dict[str, CheckResult] = {}
    for provider in candidates:
        outcome = outcomes[provider.name]

        if not outcome.success:
            results[provider.name] = CheckResult(
                valid=False,
                outcome=outcome,
                error=outcome.error,
                reference_outcome=ref_outcome,
            )
            continue

        try:
            value = parse_jsonrpc_result(outcome.response)
        except ResponseParseError as e:
            results[provider.name] = CheckResult(
                valid=False,
                outcome=outcome,
                error=ResponseParseError(
                    f"failed to parse provider response: {e.message}",
                    details={"provider": provider.name, **e.details},
                ),
                reference_outcome=ref_outcome,
            )
            continue

        diff = spec.check.difference(ref_value, value)
        results[provider.name] = CheckResult(
            valid=spec.check.accepts(diff),
            diff=diff,
            outcome=outcome,
            reference_outcome=ref_outcome,
        )

    return results
