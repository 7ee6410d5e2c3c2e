# PATH: tests/unit/test_models.py
"""
Tests for core/models.py and core/exceptions.py.
"""

import unittest

from core.constants import AuthType, ErrorCode
from core.exceptions import (
    ChainNotFoundError,
    HealthCheckerError,
    ReferenceFailedError,
    ReferenceParseError,
    TransportError,
)
from core.models import (
    ChainConfig,
    MethodSpec,
    Provider,
    ReferenceChainConfig,
    RequestOutcome,
    ToleranceCheck,
)


class TestProvider(unittest.TestCase):

    def test_from_dict_defaults(self):
        provider = Provider.from_dict({"name": "a", "url": "https://a.example.com"})

        self.assertIs(provider.auth_type, AuthType.NONE)
        self.assertTrue(provider.enabled)
        self.assertEqual(provider.auth_token, "")

    def test_enabled_must_be_boolean(self):
        with self.assertRaises(ValueError):
            Provider.from_dict({"name": "a", "url": "https://a.example.com", "enabled": "false"})

    def test_enabled_false(self):
        provider = Provider.from_dict({"name": "a", "url": "https://a.example.com", "enabled": False})
        self.assertFalse(provider.enabled)

    def test_to_dict_omits_empty_auth(self):
        data = Provider("a", "https://a.example.com").to_dict()

        self.assertEqual(data, {"name": "a", "url": "https://a.example.com", "enabled": True, "authType": "no-auth"})

    def test_to_dict_basic_auth(self):
        data = Provider("a", "https://a.example.com", AuthType.BASIC, "u", "p").to_dict()

        self.assertEqual(data["authType"], "basic-auth")
        self.assertEqual((data["authLogin"], data["authPassword"]), ("u", "p"))

    def test_frozen(self):
        provider = Provider("a", "https://a.example.com")
        with self.assertRaises(AttributeError):
            provider.url = "https://b.example.com"


class TestChainConfig(unittest.TestCase):

    def test_lowercases_identity(self):
        chain = ChainConfig.from_dict({"name": "Base", "network": "Mainnet", "chainId": "8453"})

        self.assertEqual((chain.name, chain.network, chain.chain_id), ("base", "mainnet", 8453))
        self.assertEqual(chain.providers, [])

    def test_to_dict_uses_wire_keys(self):
        data = ChainConfig("base", "mainnet", 8453).to_dict()
        self.assertEqual(data, {"name": "base", "network": "mainnet", "chainId": 8453, "providers": []})

    def test_reference_to_dict(self):
        ref = ReferenceChainConfig("base", "mainnet", 8453, Provider("ref", "https://ref.example.com"))
        self.assertEqual(ref.to_dict()["provider"]["name"], "ref")


class TestToleranceCheck(unittest.TestCase):

    def test_difference_is_absolute(self):
        check = ToleranceCheck(2)
        self.assertEqual(check.difference(100, 98), 2)
        self.assertEqual(check.difference(98, 100), 2)

    def test_accepts_boundary(self):
        check = ToleranceCheck(2)
        self.assertTrue(check.accepts(2))
        self.assertFalse(check.accepts(3))

    def test_zero_means_equality(self):
        check = ToleranceCheck()
        self.assertTrue(check.accepts(check.difference(5, 5)))
        self.assertFalse(check.accepts(check.difference(5, 6)))

    def test_negative_rejected(self):
        with self.assertRaises(ValueError):
            ToleranceCheck(-1)

    def test_dict_form(self):
        self.assertEqual(ToleranceCheck.from_dict({"maxDifference": "12"}).max_difference, 12)
        self.assertEqual(ToleranceCheck(12).to_dict(), {"maxDifference": "12"})

    def test_large_values(self):
        check = ToleranceCheck(1)
        big = 2**255
        self.assertEqual(check.difference(big, big + 1), 1)


class TestMethodSpec(unittest.TestCase):

    def test_from_dict(self):
        spec = MethodSpec.from_dict({"method": "eth_getBalance", "params": ["0xabc", "latest"], "maxDifference": 3})

        self.assertEqual(spec.params, ("0xabc", "latest"))
        self.assertEqual(spec.max_difference, 3)
        self.assertEqual(spec.to_dict()["maxDifference"], "3")


class TestRequestOutcome(unittest.TestCase):

    def test_failed_has_empty_response(self):
        outcome = RequestOutcome.failed(TransportError("boom"), elapsed_ms=5)

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.response, "")
        self.assertEqual(outcome.to_dict()["error"], "[TRANSPORT_ERROR] boom")


class TestExceptions(unittest.TestCase):

    def test_str_includes_code(self):
        self.assertEqual(str(HealthCheckerError("x")), "[UNKNOWN] x")

    def test_code_override(self):
        err = TransportError("slow", code=ErrorCode.TRANSPORT_TIMEOUT, details={"provider": "a"})
        self.assertEqual(err.code, ErrorCode.TRANSPORT_TIMEOUT)
        self.assertEqual(err.details, {"provider": "a"})

    def test_reference_errors_name_the_reference(self):
        self.assertIn("reference provider ref failed", str(ReferenceFailedError("ref")))
        cause = ValueError("bad hex")
        err = ReferenceParseError("ref", cause)
        self.assertIn("bad hex", str(err))
        self.assertIs(err.__cause__, cause)

    def test_chain_not_found_message(self):
        self.assertEqual(ChainNotFoundError(5).message, "chain config not found for chainId: 5")
