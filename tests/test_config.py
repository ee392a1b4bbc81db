"""Tests for configuration loading and chain metadata."""

import pytest

from token_verifier.chains import chain_name, default_chain_ids, get_chain, is_supported
from token_verifier.config import Config


ENV_KEYS = (
    "ETHERSCAN_API_KEY",
    "DEFAULT_CHAIN_ID",
    "CALL_TIMEOUT_SECONDS",
    "ENABLE_CACHING",
    "CACHE_TTL_SECONDS",
    "CACHE_MAX_ENTRIES",
    "CLASSIFIER_PROFILE",
    "CHECKSUM_SCHEME",
    "RPC_URL_1",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("token_verifier.config.load_dotenv", lambda: None)
    return monkeypatch


class TestConfig:

    def test_defaults(self, clean_env):
        config = Config.from_env()
        assert config.default_chain_id == 1
        assert config.enable_caching
        assert config.cache_ttl_seconds == 3600
        assert config.cache_max_entries == 1024
        assert config.classifier_profile == "strict"
        assert config.checksum_scheme == "legacy"
        assert config.validate() == ["No ETHERSCAN_API_KEY configured"]

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("ETHERSCAN_API_KEY", "abc")
        clean_env.setenv("DEFAULT_CHAIN_ID", "56")
        clean_env.setenv("ENABLE_CACHING", "false")
        clean_env.setenv("CLASSIFIER_PROFILE", "LOOSE")
        clean_env.setenv("RPC_URL_1", "https://node.internal")

        config = Config.from_env()
        assert config.etherscan_api_key == "abc"
        assert config.default_chain_id == 56
        assert not config.enable_caching
        assert config.classifier_profile == "loose"
        assert config.get_rpc_url(1) == "https://node.internal"
        assert config.get_rpc_url(56) == "https://bsc-dataseed.binance.org"
        assert config.validate() == []

    def test_validate_reports_every_issue(self):
        config = Config(
            default_chain_id=999,
            classifier_profile="fuzzy",
            checksum_scheme="sha3",
            call_timeout_seconds=0,
            max_concurrent_chains=0,
        )
        assert len(config.validate()) == 6


class TestChains:

    def test_lookup(self):
        assert get_chain(137).name == "Polygon Mainnet"
        assert get_chain(999) is None
        assert is_supported(8453)
        assert not is_supported(999)

    def test_display_name_fallback(self):
        assert chain_name(42161) == "Arbitrum One"
        assert chain_name(999) == "Chain 999"

    def test_default_chain_ids(self):
        assert default_chain_ids() == [1, 56, 137, 8453, 10, 42161, 43114, 250]
