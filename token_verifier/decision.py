"""Automation decision policy.

The policy is default-deny. A token is safe only when its risk level is LOW
and none of the hard overrides fire. ``can_automate`` implies ``is_safe``,
and ``is_safe`` implies a LOW risk level.
"""

from typing import Optional

from .models import CrossChainInfo, RiskLevel, TokenAnalysis, VerificationDecision


REASON_SAFE_AUTOMATABLE = "Token appears safe for automated transactions"
REASON_SAFE_MANUAL = "Token is safe but requires user interaction"
REASON_REQUIRES_APPROVAL = "Token has risks and requires approval"
REASON_UNSAFE = "Token is not safe to interact with"

LEVEL_RISKS = {
    RiskLevel.CRITICAL: "Token rated CRITICAL risk",
    RiskLevel.HIGH: "Token rated HIGH risk",
    RiskLevel.MEDIUM: "Token rated MEDIUM risk",
}


def _reason(is_safe: bool, can_automate: bool, requires_approval: bool) -> str:
    if is_safe:
        return REASON_SAFE_AUTOMATABLE if can_automate else REASON_SAFE_MANUAL
    return REASON_REQUIRES_APPROVAL if requires_approval else REASON_UNSAFE


def error_decision(message: str, reason_prefix: str = "Cannot verify token") -> VerificationDecision:
    return VerificationDecision(
        is_safe=False,
        can_automate=False,
        requires_approval=False,
        risks=[f"Verification Error: {message}"],
        reason=f"{reason_prefix}: {message}",
    )


def decide(
    analysis: TokenAnalysis,
    cross_chain: Optional[CrossChainInfo] = None,
) -> VerificationDecision:
    """Turn an analysis (and optional cross-chain view) into a decision."""
    if analysis.error:
        return error_decision(analysis.error)

    risks = []
    is_safe = False
    can_automate = False
    requires_approval = False

    level = analysis.risk_level
    if level is RiskLevel.LOW:
        is_safe = True
        can_automate = True
    else:
        risks.append(LEVEL_RISKS[level])
        if level in (RiskLevel.HIGH, RiskLevel.MEDIUM):
            requires_approval = True

    risks.extend(analysis.findings.risks)

    if cross_chain is not None:
        if cross_chain.high_risk_on_chains > 0:
            risks.append(f"High risk on {cross_chain.high_risk_on_chains} chain(s)")
            is_safe = False

        if cross_chain.tokens_found == 0:
            risks.append("Token not found on any network")
            is_safe = False
        elif cross_chain.verified_on_chains == 0:
            risks.append("Not verified on any chain")
            is_safe = False

    if analysis.findings.unverified_code:
        can_automate = False
        if is_safe:
            is_safe = False
            risks.append("Unverified contract source code")

    if analysis.holders.is_highly_concentrated:
        requires_approval = True
        if is_safe:
            is_safe = False
            risks.append("Highly concentrated token holdings")

    can_automate = can_automate and is_safe

    if not is_safe and level is RiskLevel.LOW:
        risks.append("Unable to verify token safety with confidence")

    return VerificationDecision(
        is_safe=is_safe,
        can_automate=can_automate,
        requires_approval=requires_approval,
        risks=list(dict.fromkeys(risks)),
        reason=_reason(is_safe, can_automate, requires_approval),
    )
