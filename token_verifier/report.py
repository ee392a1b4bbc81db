"""Plain-text reports for analyses and verification results."""

from .chains import chain_name
from .models import CrossChainInfo, TokenAnalysis, VerificationResult

RULE = "=" * 41


def _yes_no(value: bool) -> str:
    return "YES" if value else "NO"


def format_analysis(analysis: TokenAnalysis) -> str:
    """Full single-chain analysis report."""
    standard = analysis.standard
    ownership = analysis.ownership
    holders = analysis.holders
    findings = analysis.findings

    top_holder = f"{holders.top_holder_pct:.2f}%" if holders.total_holders else "N/A"

    lines = [
        "=== Token Analysis Report ===",
        f"Token Address: {analysis.token_address}",
        f"Chain: {chain_name(analysis.chain_id)} ({analysis.chain_id})",
        f"Timestamp: {analysis.timestamp}",
    ]
    if analysis.contract_name:
        lines.append(f"Contract Name: {analysis.contract_name}")
    if analysis.error:
        lines.append(f"Error: {analysis.error}")

    lines += [
        "",
        "--- Token Standard ---",
        f"Type: {standard.detected_type}",
        f"ERC20: {standard.is_erc20}",
        f"ERC721: {standard.is_erc721}",
        f"ERC1155: {standard.is_erc1155}",
        f"Confidence: {standard.confidence}%",
        "",
        "--- Ownership ---",
        f"Owner: {ownership.owner or 'Unknown'}",
        f"Multisig: {ownership.is_multisig}",
        f"Proxy: {ownership.is_proxy}",
    ]
    if ownership.proxy_implementation:
        lines.append(f"Implementation: {ownership.proxy_implementation}")
    lines += [
        f"Risks: {len(ownership.risks)}",
        "",
        "--- Holder Distribution ---",
        f"Total Holders: {holders.total_holders}",
        f"Top Holder %: {top_holder}",
        f"Top 5 Combined: {holders.top5_pct:.2f}%",
        f"Top 10 Combined: {holders.top10_pct:.2f}%",
        f"Concentration Risk: {_yes_no(holders.is_highly_concentrated)}",
        "",
        "--- Security Risks ---",
        f"Verified: {_yes_no(not findings.unverified_code)}",
        f"Selfdestruct: {findings.has_selfdestruct}",
        f"Minting: {findings.has_minting}",
        f"Pausable: {findings.is_pausable}",
        f"Blacklist: {findings.has_blacklist}",
        f"Total Risks: {findings.risk_count}",
        "",
        "--- Overall Assessment ---",
        f"Security Score: {analysis.overall_score}/100",
        f"Risk Level: {analysis.risk_level.value}",
        "",
        "--- Recommendations ---",
        *analysis.recommendations,
    ]

    if analysis.warnings:
        lines += ["", "--- Warnings ---", *(f"* {w}" for w in analysis.warnings)]

    return "\n".join(lines)


def format_cross_chain(info: CrossChainInfo) -> str:
    lines = [
        "=== Cross-Chain Token Analysis ===",
        f"Base Token Address: {info.base_address}",
        f"Analysis Timestamp: {info.timestamp}",
        "",
        "--- Chain Summary ---",
        f"Total Chains Checked: {len(info.per_chain_results)}",
        f"Tokens Found: {info.tokens_found}",
        f"Verified on Chains: {info.verified_on_chains}",
        f"High/Critical Risk on Chains: {info.high_risk_on_chains}",
        f"Medium Risk on Chains: {info.medium_risk_on_chains}",
        "",
    ]

    if info.per_chain_results:
        lines.append("--- Per-Chain Status ---")
        for result in info.per_chain_results:
            if result.analysis:
                status = f"{result.analysis.risk_level.value} ({result.analysis.overall_score}/100)"
            elif result.exists:
                status = "UNKNOWN"
            else:
                status = "NOT FOUND"
            if result.error:
                status += f" - {result.error}"
            lines.append(f"{result.chain_name}: {status}")
        lines.append("")

    if info.bridge_indicators:
        lines.append("--- Bridge Indicators ---")
        lines += [f"* {indicator}" for indicator in info.bridge_indicators]
        lines.append("")

    if info.wrapped_versions:
        lines.append("--- Wrapped Versions ---")
        lines += [
            f"{wrapped.wrapper_name} on {chain_name(wrapped.chain)}"
            for wrapped in info.wrapped_versions
        ]
        lines.append("")

    lines.append("--- Recommendations ---")
    lines += [f"* {rec}" for rec in info.recommendations]

    return "\n".join(lines)


def build_formatted_report(analysis, cross_chain) -> str:
    """Detailed section embedded in a result envelope."""
    sections = []
    if analysis is not None:
        sections.append(format_analysis(analysis))
    if cross_chain is not None:
        sections.append(format_cross_chain(cross_chain))
    return "\n\n".join(sections) or "No analysis available"


def verification_report(result: VerificationResult) -> str:
    """Decision banner plus the detailed analysis."""
    decision = result.decision
    lines = [
        RULE,
        "TOKEN VERIFICATION REPORT",
        RULE,
        f"Request ID: {result.request_id}",
        f"Timestamp: {result.timestamp}",
        "",
        "--- Verification Decision ---",
        f"Safe to Interact: {_yes_no(decision.is_safe)}",
        f"Can Automate: {_yes_no(decision.can_automate)}",
        f"Requires Approval: {_yes_no(decision.requires_approval)}",
        f"Reason: {decision.reason}",
        "",
    ]

    if decision.risks:
        lines.append("--- Detected Risks ---")
        lines += [f"* {risk}" for risk in decision.risks]
        lines.append("")

    lines += [
        "--- Detailed Analysis ---",
        result.formatted_report,
        "",
        RULE,
    ]
    return "\n".join(lines)


def verification_summary(result: VerificationResult) -> str:
    decision = result.decision
    return "\n".join([
        f"Token: {result.request.token_address}",
        f"Status: {'SAFE' if decision.is_safe else 'UNSAFE'}",
        f"Automate: {_yes_no(decision.can_automate)}",
        f"Risks Detected: {len(decision.risks)}",
        f"Reason: {decision.reason}",
    ])


def compare_verifications(results: list[VerificationResult]) -> str:
    """Side-by-side listing of a batch, with totals."""
    lines = [RULE, "TOKEN VERIFICATION COMPARISON", RULE, ""]

    for i, result in enumerate(results, 1):
        lines += [
            f"{i}. {result.request.token_address}",
            f"   Status: {'SAFE' if result.decision.is_safe else 'UNSAFE'}",
            f"   Risks: {len(result.decision.risks)}",
            f"   Reason: {result.decision.reason}",
            "",
        ]

    total = len(results)
    safe = sum(1 for r in results if r.decision.is_safe)
    automatable = sum(1 for r in results if r.decision.can_automate)
    lines += [
        "--- Summary ---",
        f"Total Tokens: {total}",
        f"Safe: {safe}/{total}",
        f"Can Automate: {automatable}/{total}",
        RULE,
    ]
    return "\n".join(lines)
