"""Cross-chain verification: one token address checked on many networks."""

import asyncio
import logging
import re
from dataclasses import replace
from typing import Optional

from .analyzer import TokenAnalyzer
from .chains import chain_name, default_chain_ids, is_supported
from .errors import UnsupportedChainError
from .models import (
    AnalysisFailed,
    AnalysisOutcome,
    ChainVerificationResult,
    CrossChainInfo,
    RiskLevel,
    WrappedTokenInfo,
)

logger = logging.getLogger(__name__)

HIGH_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)

# (pattern on the verified contract name, wrapper name, indicator); first match wins
WRAPPED_TOKEN_PATTERNS = (
    (re.compile(r"^wst", re.IGNORECASE), "Wrapped Staked", "liquid_staking"),
    (re.compile(r"^W[A-Z0-9]|(?i:wrapped)"), "Wrapped", "bridge"),
    (re.compile(r"^x[A-Z]"), "Cross-chain", "bridge"),
    (re.compile(r"anycall", re.IGNORECASE), "Multichain (AnyCall)", "bridge"),
    (re.compile(r"\bark\b", re.IGNORECASE), "Ark Bridge", "bridge"),
    (re.compile(r"stargate", re.IGNORECASE), "Stargate", "bridge"),
)


def detect_wrapped_token(contract_name: Optional[str]) -> Optional[tuple[str, str]]:
    """Return ``(wrapper_name, indicator)`` when a contract name looks wrapped."""
    if not contract_name:
        return None
    for pattern, wrapper_name, indicator in WRAPPED_TOKEN_PATTERNS:
        if pattern.search(contract_name):
            return wrapper_name, indicator
    return None


def chain_result(chain_id: int, address: str, outcome: AnalysisOutcome) -> ChainVerificationResult:
    """Collapse one chain's analysis outcome into a per-chain record."""
    name = chain_name(chain_id)
    if isinstance(outcome, AnalysisFailed):
        return ChainVerificationResult(chain_id, name, address, exists=False, error=outcome.error.message)
    return ChainVerificationResult(chain_id, name, address, exists=True, analysis=outcome.analysis)


def detect_bridge_patterns(results: list[ChainVerificationResult]) -> list[str]:
    patterns = []
    analyses = [r.analysis for r in results if r.analysis is not None]

    existing = sum(1 for r in results if r.exists)
    if existing > 1:
        patterns.append(f"Token deployed on {existing} chains")

    high_risk = sum(1 for a in analyses if a.risk_level in HIGH_RISK_LEVELS)
    if high_risk:
        patterns.append(f"High risk on {high_risk} chains")

    verified = sum(1 for a in analyses if not a.findings.unverified_code)
    if 0 < verified < existing:
        patterns.append("Verification status varies across chains")

    owners = {a.ownership.owner for a in analyses if a.ownership.owner}
    if len(owners) > 1:
        patterns.append(f"Multiple owner addresses across chains ({len(owners)})")

    concentrated = sum(1 for a in analyses if a.holders.is_highly_concentrated)
    if concentrated > existing / 2:
        patterns.append("High holder concentration across most chains")

    return patterns


def detect_wrapped_versions(results: list[ChainVerificationResult]) -> list[WrappedTokenInfo]:
    wrapped = []
    for result in results:
        if result.analysis is None:
            continue
        match = detect_wrapped_token(result.analysis.contract_name)
        if match:
            wrapper_name, indicator = match
            wrapped.append(WrappedTokenInfo(
                chain=result.chain_id,
                wrapped_address=result.token_address,
                wrapper_name=wrapper_name,
                indicator=indicator,
            ))
    return wrapped


def cross_chain_recommendations(info: CrossChainInfo) -> list[str]:
    """Ordered, non-exclusive rule list over the aggregate counts."""
    recommendations = []

    if info.high_risk_on_chains > 0:
        recommendations.append(f"Token rated HIGH or CRITICAL risk on {info.high_risk_on_chains} chain(s)")

    if info.tokens_found > 4:
        recommendations.append("Token deployed on many chains - verify legitimacy of all versions")

    if info.wrapped_versions:
        recommendations.append(f"Token has {len(info.wrapped_versions)} wrapped version(s) detected")

    if info.verified_on_chains < info.tokens_found:
        unverified = info.tokens_found - info.verified_on_chains
        recommendations.append(f"{unverified} version(s) not verified - increased risk")

    if info.verified_on_chains == 0:
        recommendations.append("No verified versions found - do not interact")

    if info.bridge_indicators:
        recommendations.append("Potential cross-chain bridge token detected")

    if info.tokens_found == 0:
        recommendations.append("Token not found on any network")
    elif info.tokens_found == 1:
        recommendations.append("Token exists on single chain only")
    elif info.high_risk_on_chains == 0 and info.medium_risk_on_chains <= 1:
        recommendations.append("Token appears safe on all verified chains")

    return recommendations


class CrossChainOrchestrator:
    """Fans a token analysis out over several chains.

    Each chain runs in its own task under a shared concurrency limit and a
    per-chain timeout. A chain that fails or times out yields an
    ``exists=False`` record; it never aborts the other chains.
    """

    def __init__(
        self,
        analyzer: TokenAnalyzer,
        chain_timeout: Optional[float] = 90.0,
        max_concurrent_chains: int = 8,
    ):
        self.analyzer = analyzer
        self.chain_timeout = chain_timeout
        self.max_concurrent_chains = max_concurrent_chains

    def resolve_targets(self, chain_ids: Optional[list[int]] = None) -> list[int]:
        """Requested chains in order without repeats; ``None`` means every supported chain."""
        if chain_ids is None:
            return default_chain_ids()
        return list(dict.fromkeys(chain_ids))

    async def verify(
        self,
        address: str,
        chain_ids: Optional[list[int]] = None,
        base_chain_id: int = 1,
    ) -> CrossChainInfo:
        """Analyze ``address`` on ``chain_ids`` (default: every supported chain)."""
        info, _ = await self.verify_with_outcomes(address, chain_ids, base_chain_id)
        return info

    async def verify_with_outcomes(
        self,
        address: str,
        chain_ids: Optional[list[int]] = None,
        base_chain_id: int = 1,
    ) -> tuple[CrossChainInfo, dict[int, AnalysisOutcome]]:
        """Like ``verify``, also returning the outcome of every chain that completed."""
        targets = self.resolve_targets(chain_ids)
        logger.info("Cross-chain verification of %s on %d chains", address, len(targets))

        outcomes: dict[int, AnalysisOutcome] = {}
        results = await self.analyze_chains(address, targets, outcomes)
        analyses = [r.analysis for r in results if r.analysis is not None]

        info = CrossChainInfo(
            base_address=address.lower(),
            base_chain_id=base_chain_id,
            per_chain_results=results,
            tokens_found=sum(1 for r in results if r.exists),
            verified_on_chains=sum(1 for a in analyses if not a.findings.unverified_code),
            high_risk_on_chains=sum(1 for a in analyses if a.risk_level in HIGH_RISK_LEVELS),
            medium_risk_on_chains=sum(1 for a in analyses if a.risk_level is RiskLevel.MEDIUM),
            bridge_indicators=detect_bridge_patterns(results),
            wrapped_versions=detect_wrapped_versions(results),
        )
        return replace(info, recommendations=cross_chain_recommendations(info)), outcomes

    async def analyze_chains(
        self,
        address: str,
        chain_ids: list[int],
        outcomes: Optional[dict[int, AnalysisOutcome]] = None,
    ) -> list[ChainVerificationResult]:
        """Per-chain records, in ``chain_ids`` order.

        Completed outcomes are also stored in ``outcomes`` when it is given.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_chains)
        record_address = address.lower()

        async def analyze_one(chain_id: int) -> ChainVerificationResult:
            if not is_supported(chain_id):
                return ChainVerificationResult(
                    chain_id,
                    chain_name(chain_id),
                    record_address,
                    exists=False,
                    error=UnsupportedChainError(chain_id).message,
                )

            async with semaphore:
                try:
                    outcome = await asyncio.wait_for(
                        self.analyzer.analyze(address, chain_id),
                        self.chain_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning("Chain %s timed out after %ss", chain_id, self.chain_timeout)
                    return ChainVerificationResult(
                        chain_id,
                        chain_name(chain_id),
                        record_address,
                        exists=False,
                        error=f"Chain analysis timed out after {self.chain_timeout}s",
                    )
                except Exception as e:
                    logger.error("Chain %s analysis failed: %s", chain_id, e)
                    return ChainVerificationResult(
                        chain_id, chain_name(chain_id), record_address, exists=False, error=str(e) or "Analysis error"
                    )

            if outcomes is not None:
                outcomes[chain_id] = outcome
            return chain_result(chain_id, record_address, outcome)

        results = await asyncio.gather(*(analyze_one(chain_id) for chain_id in chain_ids))
        return list(results)
