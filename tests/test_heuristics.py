"""Tests for the capability detectors."""

from token_verifier.heuristics import (
    UNVERIFIED_RISK,
    BytecodeHeuristics,
    FingerprintDetector,
    KeywordDetector,
)
from token_verifier.models import ContractSnapshot

from tests.fakes import CLEAN_SOURCE, RISKY_SOURCE, SAFE_TOKEN


def snapshot(source=None, bytecode="0x6080604052"):
    return ContractSnapshot(
        address=SAFE_TOKEN,
        chain_id=1,
        bytecode=bytecode,
        source_code=source,
        is_contract=True,
    )


class TestSourceDetectors:
    """Verified source is matched by keyword."""

    def test_clean_source(self):
        findings = BytecodeHeuristics().analyze(snapshot(CLEAN_SOURCE))
        assert not findings.unverified_code
        assert findings.risks == []
        assert findings.risk_count == 0

    def test_risky_source_sets_every_flag(self):
        findings = BytecodeHeuristics().analyze(snapshot(RISKY_SOURCE))
        assert findings.has_selfdestruct
        assert findings.has_minting
        assert findings.is_pausable
        assert findings.has_blacklist
        assert findings.proxy_patterns == []
        assert findings.risk_count == 4

    def test_keywords_are_case_insensitive(self):
        findings = BytecodeHeuristics().analyze(snapshot("function SELFDESTRUCT() {}"))
        assert findings.has_selfdestruct

    def test_delegatecall_proxy(self):
        findings = BytecodeHeuristics().analyze(snapshot("assembly { delegatecall(gas(), impl, 0, 0, 0, 0) }"))
        assert findings.proxy_patterns == ["Uses delegate call pattern"]

    def test_uups_proxy(self):
        findings = BytecodeHeuristics().analyze(snapshot("contract Token is UUPSUpgradeable {}"))
        assert findings.proxy_patterns == ["UUPS proxy detected"]
        assert findings.risk_count == 1

    def test_bytecode_ignored_when_source_present(self):
        findings = BytecodeHeuristics().analyze(snapshot(CLEAN_SOURCE, bytecode="0x33146000ff"))
        assert not findings.has_selfdestruct


class TestBytecodeDetectors:
    """Without source the contract is unverified and fingerprints run."""

    def test_unverified_is_a_risk(self):
        findings = BytecodeHeuristics().analyze(snapshot())
        assert findings.unverified_code
        assert findings.risks == [UNVERIFIED_RISK]
        assert findings.risk_count == 1

    def test_selfdestruct_fingerprint(self):
        findings = BytecodeHeuristics().analyze(snapshot(bytecode="0x6080604033146000ff"))
        assert findings.has_selfdestruct
        assert findings.risk_count == 2

    def test_minimal_proxy_trampoline(self):
        code = "0x363d3d373d3d3d363d73" + "ab" * 20 + "5af43d82803e903d91602b57fd5bf3"
        findings = BytecodeHeuristics().analyze(snapshot(bytecode=code))
        assert findings.proxy_patterns == ["Minimal proxy delegatecall trampoline"]

    def test_sstore_presence(self):
        findings = BytecodeHeuristics().analyze(snapshot(bytecode="0x600160005500"))
        assert "Bytecode writes persistent storage (SSTORE)" in findings.risks


class TestCustomDetectors:
    """Detector lists are swappable."""

    def test_custom_source_rules(self):
        heuristics = BytecodeHeuristics(
            source_detectors=[KeywordDetector("sell-lock", ["cannotsell"], "Sales are blocked")],
        )
        findings = heuristics.analyze(snapshot("bool cannotSell = true; function mint() {}"))
        assert findings.risks == ["Sales are blocked"]
        assert not findings.has_minting

    def test_custom_fingerprint_requires_all_fragments(self):
        detector = FingerprintDetector("pair", ["aa", "bb"], "Both fragments present")
        assert detector.detect(snapshot(bytecode="0xaa00bb")) is not None
        assert detector.detect(snapshot(bytecode="0xaa00")) is None
