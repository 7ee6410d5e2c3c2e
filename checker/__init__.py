"""
checker/ - Validation engine.

Modules:
- method_validator: One method, reference vs candidates
- aggregator: All methods, one verdict per provider
- runner: All chains, valid-provider output
"""

from checker.aggregator import merge_method_results, validate_all_methods
from checker.method_validator import (
    parse_hex_quantity,
    parse_jsonrpc_result,
    validate_method,
)
from checker.runner import (
    ChainValidationRunner,
    PassSummary,
    valid_chain_record,
)

__all__ = [
    # Method validator
    "parse_hex_quantity",
    "parse_jsonrpc_result",
    "validate_method",
    # Aggregator
    "merge_method_results",
    "validate_all_methods",
    # Runner
    "ChainValidationRunner",
    "PassSummary",
    "valid_chain_record",
]
