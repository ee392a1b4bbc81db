"""Risk scoring and per-token recommendations.

Scores run from 0 (do not touch) to 100 (no findings). The deductions are
fixed constants kept for parity with earlier releases; change them only
together with the expected-score tests.
"""

from dataclasses import dataclass

from .models import (
    HolderDistribution,
    OwnershipInfo,
    RiskFindings,
    RiskLevel,
    StandardDetection,
)


@dataclass(frozen=True)
class ScoringWeights:
    start: int = 100

    # Ownership
    per_ownership_risk: int = 5
    multisig_bonus: int = 10
    proxy_penalty: int = 15

    # Holders
    concentrated_penalty: int = 20
    many_concentration_findings_penalty: int = 10
    many_concentration_findings: int = 2  # strictly more than this

    # Security
    unverified_penalty: int = 20
    selfdestruct_penalty: int = 15
    minting_penalty: int = 10
    pausable_penalty: int = 10
    blacklist_penalty: int = 10
    proxy_pattern_penalty: int = 5
    per_risk_penalty: int = 2
    risk_penalty_cap: int = 30

    # Standards
    erc20_bonus: int = 5


DEFAULT_WEIGHTS = ScoringWeights()

# (minimum score, level), checked top-down
LEVEL_BREAKPOINTS = (
    (80, RiskLevel.LOW),
    (60, RiskLevel.MEDIUM),
    (40, RiskLevel.HIGH),
)


def score_token(
    standard: StandardDetection,
    ownership: OwnershipInfo,
    holders: HolderDistribution,
    findings: RiskFindings,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Fold every signal into a single 0-100 score."""
    score = weights.start

    score -= len(ownership.risks) * weights.per_ownership_risk
    if ownership.is_multisig:
        score += weights.multisig_bonus
    if ownership.is_proxy:
        score -= weights.proxy_penalty

    if holders.is_highly_concentrated:
        score -= weights.concentrated_penalty
    if len(holders.concentration_risks) > weights.many_concentration_findings:
        score -= weights.many_concentration_findings_penalty

    if findings.unverified_code:
        score -= weights.unverified_penalty
    if findings.has_selfdestruct:
        score -= weights.selfdestruct_penalty
    if findings.has_minting:
        score -= weights.minting_penalty
    if findings.is_pausable:
        score -= weights.pausable_penalty
    if findings.has_blacklist:
        score -= weights.blacklist_penalty
    if findings.proxy_patterns:
        score -= weights.proxy_pattern_penalty

    score -= min(findings.risk_count * weights.per_risk_penalty, weights.risk_penalty_cap)

    if standard.is_erc20:
        score += weights.erc20_bonus

    return max(0, min(100, score))


def risk_level(score: int) -> RiskLevel:
    for minimum, level in LEVEL_BREAKPOINTS:
        if score >= minimum:
            return level
    return RiskLevel.CRITICAL


def recommend(
    ownership: OwnershipInfo,
    holders: HolderDistribution,
    findings: RiskFindings,
    level: RiskLevel,
) -> list[str]:
    """Ordered recommendation list for a single-chain analysis."""
    recommendations = []

    if findings.unverified_code:
        recommendations.append("Do not interact - contract source is not verified")
    if findings.has_selfdestruct:
        recommendations.append("High risk - contract can be destroyed by owner")
    if findings.has_blacklist:
        recommendations.append("Medium risk - your address can be blacklisted")
    if findings.has_minting:
        recommendations.append("Inflation risk - owner can mint unlimited tokens")
    if holders.is_highly_concentrated:
        recommendations.append("Liquidity risk - token is highly concentrated among few holders")
    if ownership.is_proxy and not ownership.is_multisig:
        recommendations.append("Single owner can upgrade contract at any time")

    recommendations.append({
        RiskLevel.LOW: "This token appears to be safe for interaction",
        RiskLevel.MEDIUM: "Proceed with caution - manual review recommended",
        RiskLevel.HIGH: "Not recommended for automated transactions - manual approval required",
        RiskLevel.CRITICAL: "Do not interact - this token has critical security issues",
    }[level])

    return recommendations
