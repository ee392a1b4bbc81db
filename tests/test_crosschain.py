"""Tests for cross-chain verification."""

import asyncio

import pytest

from token_verifier.chains import CHAINS
from token_verifier.crosschain import (
    CrossChainOrchestrator,
    cross_chain_recommendations,
    detect_wrapped_token,
)
from token_verifier.models import AnalysisFailed, CrossChainInfo, WrappedTokenInfo

from tests.fakes import DEPLOYER, RISKY_SOURCE, SAFE_TOKEN, WHALE_HOLDERS, install_token


FIVE_CHAINS = [1, 56, 137, 8453, 10]


class TestDetectWrappedToken:

    @pytest.mark.parametrize("name,expected", [
        ("WETH9", ("Wrapped", "bridge")),
        ("Wrapped Ether", ("Wrapped", "bridge")),
        ("wstETH", ("Wrapped Staked", "liquid_staking")),
        ("xSUSHI", ("Cross-chain", "bridge")),
        ("AnyCallProxy", ("Multichain (AnyCall)", "bridge")),
        ("Ark Token", ("Ark Bridge", "bridge")),
        ("StargateToken", ("Stargate", "bridge")),
    ])
    def test_wrapped_names(self, name, expected):
        assert detect_wrapped_token(name) == expected

    @pytest.mark.parametrize("name", ["SimpleToken", "Wallet", "Market", "", None])
    def test_plain_names(self, name):
        assert detect_wrapped_token(name) is None


class TestRecommendations:

    def test_not_found_anywhere(self):
        info = CrossChainInfo(base_address=SAFE_TOKEN, base_chain_id=1)
        assert cross_chain_recommendations(info) == [
            "No verified versions found - do not interact",
            "Token not found on any network",
        ]

    def test_rules_are_ordered(self):
        info = CrossChainInfo(
            base_address=SAFE_TOKEN,
            base_chain_id=1,
            tokens_found=6,
            verified_on_chains=4,
            high_risk_on_chains=2,
            bridge_indicators=["Token deployed on 6 chains"],
            wrapped_versions=[WrappedTokenInfo(chain=1, wrapped_address=SAFE_TOKEN, wrapper_name="Wrapped")],
        )
        assert cross_chain_recommendations(info) == [
            "Token rated HIGH or CRITICAL risk on 2 chain(s)",
            "Token deployed on many chains - verify legitimacy of all versions",
            "Token has 1 wrapped version(s) detected",
            "2 version(s) not verified - increased risk",
            "Potential cross-chain bridge token detected",
        ]

    def test_two_medium_chains_are_not_called_safe(self):
        info = CrossChainInfo(
            base_address=SAFE_TOKEN,
            base_chain_id=1,
            tokens_found=3,
            verified_on_chains=3,
            medium_risk_on_chains=2,
        )
        assert "Token appears safe on all verified chains" not in cross_chain_recommendations(info)


class TestCrossChainOrchestrator:

    @pytest.mark.asyncio
    async def test_single_chain(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        info = await orchestrator.verify(SAFE_TOKEN, [1])

        assert info.tokens_found == 1
        assert info.verified_on_chains == 1
        assert info.bridge_indicators == []
        assert info.recommendations == ["Token exists on single chain only"]

    @pytest.mark.asyncio
    async def test_unsupported_chain_keeps_a_record(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        info = await orchestrator.verify(SAFE_TOKEN, [1, 999])

        unsupported = info.per_chain_results[1]
        assert unsupported.chain_id == 999
        assert unsupported.chain_name == "Chain 999"
        assert not unsupported.exists
        assert unsupported.error == "Unsupported chain"
        assert info.tokens_found == 1

    @pytest.mark.asyncio
    async def test_many_chains(self, orchestrator, rpc, explorer):
        for chain_id in FIVE_CHAINS:
            install_token(rpc, explorer, SAFE_TOKEN, chain_id)
        info = await orchestrator.verify(SAFE_TOKEN, FIVE_CHAINS)

        assert [r.chain_id for r in info.per_chain_results] == FIVE_CHAINS
        assert info.tokens_found == 5
        assert info.bridge_indicators == ["Token deployed on 5 chains"]
        assert info.recommendations == [
            "Token deployed on many chains - verify legitimacy of all versions",
            "Potential cross-chain bridge token detected",
            "Token appears safe on all verified chains",
        ]

    @pytest.mark.asyncio
    async def test_verification_varies(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        install_token(rpc, explorer, SAFE_TOKEN, 56, source=None)
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])

        assert info.verified_on_chains == 1
        assert "Verification status varies across chains" in info.bridge_indicators
        assert "1 version(s) not verified - increased risk" in info.recommendations

    @pytest.mark.asyncio
    async def test_multiple_owners(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        install_token(rpc, explorer, SAFE_TOKEN, 56, creator=DEPLOYER, label=None)
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])
        assert "Multiple owner addresses across chains (2)" in info.bridge_indicators

    @pytest.mark.asyncio
    async def test_not_found(self, orchestrator):
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])

        assert info.tokens_found == 0
        assert all(r.error == "No contract found at this address" for r in info.per_chain_results)
        assert info.recommendations == [
            "No verified versions found - do not interact",
            "Token not found on any network",
        ]

    @pytest.mark.asyncio
    async def test_high_risk_chain(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        install_token(
            rpc,
            explorer,
            SAFE_TOKEN,
            56,
            source=RISKY_SOURCE,
            holders=WHALE_HOLDERS,
            creator=DEPLOYER,
            label=None,
        )
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])

        assert info.high_risk_on_chains == 1
        assert "High risk on 1 chains" in info.bridge_indicators
        assert info.recommendations[0] == "Token rated HIGH or CRITICAL risk on 1 chain(s)"
        assert "Token appears safe on all verified chains" not in info.recommendations

    @pytest.mark.asyncio
    async def test_wrapped_versions(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1, contract_name="WETH9")
        install_token(rpc, explorer, SAFE_TOKEN, 56, contract_name="SimpleToken")
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])

        assert info.wrapped_versions == [
            WrappedTokenInfo(chain=1, wrapped_address=SAFE_TOKEN, wrapper_name="Wrapped", indicator="bridge"),
        ]
        assert "Token has 1 wrapped version(s) detected" in info.recommendations

    @pytest.mark.asyncio
    async def test_chain_timeout(self, analyzer, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        rpc.delay = 1.0
        orchestrator = CrossChainOrchestrator(analyzer, chain_timeout=0.05)
        info = await orchestrator.verify(SAFE_TOKEN, [1])

        result = info.per_chain_results[0]
        assert not result.exists
        assert result.error == "Chain analysis timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_failing_chain_is_isolated(self, orchestrator, analyzer, rpc, explorer, monkeypatch):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        install_token(rpc, explorer, SAFE_TOKEN, 56)
        analyze = analyzer.analyze

        async def flaky(address, chain_id):
            if chain_id == 56:
                raise RuntimeError("explorer exploded")
            return await analyze(address, chain_id)

        monkeypatch.setattr(analyzer, "analyze", flaky)
        info = await orchestrator.verify(SAFE_TOKEN, [1, 56])

        assert info.per_chain_results[0].exists
        assert info.per_chain_results[1].error == "explorer exploded"
        assert info.tokens_found == 1

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, analyzer, monkeypatch):
        active = 0
        peak = 0
        analyze = analyzer.analyze

        async def tracked(address, chain_id):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return await analyze(address, chain_id)

        monkeypatch.setattr(analyzer, "analyze", tracked)
        orchestrator = CrossChainOrchestrator(analyzer, max_concurrent_chains=2)
        info = await orchestrator.verify(SAFE_TOKEN)

        assert len(info.per_chain_results) == len(CHAINS)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_defaults_and_dedupe(self, orchestrator):
        info = await orchestrator.verify(SAFE_TOKEN)
        assert [r.chain_id for r in info.per_chain_results] == list(CHAINS)

        info = await orchestrator.verify(SAFE_TOKEN, [1, 1, 56])
        assert [r.chain_id for r in info.per_chain_results] == [1, 56]

    @pytest.mark.asyncio
    async def test_explicit_empty_chain_list_checks_nothing(self, orchestrator, rpc):
        info = await orchestrator.verify(SAFE_TOKEN, [])

        assert info.per_chain_results == []
        assert info.tokens_found == 0
        assert rpc.calls == []
        assert orchestrator.resolve_targets([]) == []
        assert orchestrator.resolve_targets(None) == list(CHAINS)

    @pytest.mark.asyncio
    async def test_outcomes_are_returned_for_completed_chains(self, orchestrator, rpc, explorer):
        install_token(rpc, explorer, SAFE_TOKEN, 1)
        info, outcomes = await orchestrator.verify_with_outcomes(SAFE_TOKEN, [1, 56, 999])

        assert set(outcomes) == {1, 56}
        assert outcomes[1].analysis == info.per_chain_results[0].analysis
        assert isinstance(outcomes[56], AnalysisFailed)
