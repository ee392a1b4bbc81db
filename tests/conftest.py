"""Shared fixtures for the token verifier test suite."""

import pytest

from token_verifier.analyzer import TokenAnalyzer
from token_verifier.cache import VerificationCache
from token_verifier.config import Config
from token_verifier.crosschain import CrossChainOrchestrator
from token_verifier.engine import VerificationEngine

from tests.fakes import FakeExplorer, FakeRpc


@pytest.fixture
def config() -> Config:
    return Config(
        etherscan_api_key="test-key",
        call_timeout_seconds=1.0,
        chain_timeout_seconds=2.0,
    )


@pytest.fixture
def rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def explorer() -> FakeExplorer:
    return FakeExplorer()


@pytest.fixture
def analyzer(config, rpc, explorer) -> TokenAnalyzer:
    return TokenAnalyzer(config, rpc, explorer)


@pytest.fixture
def orchestrator(config, analyzer) -> CrossChainOrchestrator:
    return CrossChainOrchestrator(
        analyzer,
        chain_timeout=config.chain_timeout_seconds,
        max_concurrent_chains=config.max_concurrent_chains,
    )


@pytest.fixture
def engine(config, analyzer, orchestrator) -> VerificationEngine:
    return VerificationEngine(
        config,
        analyzer,
        orchestrator,
        cache=VerificationCache(ttl_seconds=config.cache_ttl_seconds),
    )
