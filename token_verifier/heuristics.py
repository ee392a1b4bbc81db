"""Pattern detectors for dangerous token capabilities.

Detectors are small strategy objects. Verified source is preferred: when it
is available only source detectors run. Without source, the contract is
flagged as unverified and the bytecode fingerprint detectors run instead.
Rules can be swapped by passing different detector lists to
``BytecodeHeuristics``.
"""

import abc
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import ContractSnapshot, RiskFindings


UNVERIFIED_RISK = "Contract source code not verified"

FLAGS = ("has_selfdestruct", "has_minting", "is_pausable", "has_blacklist")


@dataclass(frozen=True)
class DetectorHit:
    risk: str
    flag: Optional[str] = None
    proxy_pattern: Optional[str] = None


class Detector(abc.ABC):
    """Base class for capability detectors."""

    NAME: str = ""

    @abc.abstractmethod
    def detect(self, snapshot: ContractSnapshot) -> Optional[DetectorHit]:
        """Return a hit when the pattern is present, otherwise None."""
        ...


class KeywordDetector(Detector):
    """Case-insensitive keyword search over verified source."""

    def __init__(
        self,
        name: str,
        keywords: Sequence[str],
        risk: str,
        flag: Optional[str] = None,
        proxy_pattern: Optional[str] = None,
    ):
        self.NAME = name
        self.keywords = tuple(k.lower() for k in keywords)
        self.hit = DetectorHit(risk=risk, flag=flag, proxy_pattern=proxy_pattern)

    def detect(self, snapshot: ContractSnapshot) -> Optional[DetectorHit]:
        source = (snapshot.source_code or "").lower()
        if any(keyword in source for keyword in self.keywords):
            return self.hit
        return None


class FingerprintDetector(Detector):
    """Matches when every hex fragment occurs in the runtime bytecode."""

    def __init__(
        self,
        name: str,
        fragments: Sequence[str],
        risk: str,
        flag: Optional[str] = None,
        proxy_pattern: Optional[str] = None,
    ):
        self.NAME = name
        self.fragments = tuple(f.lower() for f in fragments)
        self.hit = DetectorHit(risk=risk, flag=flag, proxy_pattern=proxy_pattern)

    def detect(self, snapshot: ContractSnapshot) -> Optional[DetectorHit]:
        code = snapshot.code_hex
        if code and all(fragment in code for fragment in self.fragments):
            return self.hit
        return None


DEFAULT_SOURCE_DETECTORS: tuple[Detector, ...] = (
    KeywordDetector(
        "selfdestruct",
        ("selfdestruct", "suicide"),
        "Contract has selfdestruct function - can be destroyed",
        flag="has_selfdestruct",
    ),
    KeywordDetector(
        "minting",
        ("mint(", "_mint"),
        "Contract has minting capabilities - can create new tokens",
        flag="has_minting",
    ),
    KeywordDetector(
        "pausable",
        ("pause", "_pause"),
        "Contract has pausable functions - transfers can be frozen",
        flag="is_pausable",
    ),
    KeywordDetector(
        "blacklist",
        ("blacklist", "_blacklist"),
        "Contract has blacklist functionality - can block addresses",
        flag="has_blacklist",
    ),
    KeywordDetector(
        "delegate-proxy",
        ("proxy", "delegatecall"),
        "Uses proxy pattern - can be upgraded by owner",
        proxy_pattern="Uses delegate call pattern",
    ),
    KeywordDetector(
        "uups-proxy",
        ("upgradeable", "uups"),
        "UUPS proxy pattern - upgradeable contract",
        proxy_pattern="UUPS proxy detected",
    ),
)

DEFAULT_BYTECODE_DETECTORS: tuple[Detector, ...] = (
    FingerprintDetector(
        "selfdestruct",
        ("ff", "3314"),
        "Bytecode contains selfdestruct pattern - can be destroyed",
        flag="has_selfdestruct",
    ),
    FingerprintDetector(
        "delegatecall-trampoline",
        ("363d3d373d3d3d363d73",),
        "Bytecode contains delegatecall proxy trampoline",
        proxy_pattern="Minimal proxy delegatecall trampoline",
    ),
    FingerprintDetector(
        "create2",
        ("3d3d3d3d",),
        "Bytecode contains CREATE2 deployment pattern",
    ),
    FingerprintDetector(
        "sstore",
        ("55",),
        "Bytecode writes persistent storage (SSTORE)",
    ),
)


class BytecodeHeuristics:
    """Runs detectors over a snapshot and folds hits into ``RiskFindings``."""

    def __init__(
        self,
        source_detectors: Sequence[Detector] = DEFAULT_SOURCE_DETECTORS,
        bytecode_detectors: Sequence[Detector] = DEFAULT_BYTECODE_DETECTORS,
    ):
        self.source_detectors = tuple(source_detectors)
        self.bytecode_detectors = tuple(bytecode_detectors)

    def analyze(self, snapshot: ContractSnapshot) -> RiskFindings:
        risks: list[str] = []
        proxy_patterns: list[str] = []
        flags = dict.fromkeys(FLAGS, False)

        unverified = not snapshot.has_source
        if unverified:
            risks.append(UNVERIFIED_RISK)
            detectors = self.bytecode_detectors
        else:
            detectors = self.source_detectors

        for detector in detectors:
            hit = detector.detect(snapshot)
            if hit is None:
                continue
            risks.append(hit.risk)
            if hit.flag:
                flags[hit.flag] = True
            if hit.proxy_pattern:
                proxy_patterns.append(hit.proxy_pattern)

        return RiskFindings(
            proxy_patterns=proxy_patterns,
            unverified_code=unverified,
            risks=risks,
            risk_count=len(risks),
            **flags,
        )
