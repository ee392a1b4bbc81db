"""Data models for the token verifier."""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from .errors import VerificationError


class RiskLevel(str, Enum):
    """Risk classification derived from the overall score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TokenStandard(str, Enum):
    """Token standards the classifier can recognise."""
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"
    UNKNOWN = "Unknown"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class AddressValidation:
    """Outcome of structural address validation."""
    address: str
    is_valid: bool
    is_checksum: bool = False
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def normalized(self) -> Optional[str]:
        """Canonical lowercase form, or None when the address is invalid."""
        return self.address.lower() if self.is_valid else None


@dataclass(frozen=True)
class ContractSnapshot:
    """Everything fetched about one address on one chain."""
    address: str
    chain_id: int
    bytecode: str = "0x"
    source_code: Optional[str] = None
    is_contract: bool = False
    contract_name: Optional[str] = None
    implementation: Optional[str] = None  # As reported by the explorer

    @property
    def code_hex(self) -> str:
        """Bytecode as lowercase hex without the ``0x`` prefix."""
        code = self.bytecode or ""
        if code[:2].lower() == "0x":
            code = code[2:]
        return code.lower()

    @property
    def has_source(self) -> bool:
        return bool(self.source_code)


@dataclass(frozen=True)
class StandardDetection:
    """Token standards matched from bytecode selectors."""
    is_erc20: bool = False
    is_erc721: bool = False
    is_erc1155: bool = False
    detected_type: str = TokenStandard.UNKNOWN.value
    selectors: list[str] = field(default_factory=list)
    confidence: int = 0


@dataclass(frozen=True)
class OwnershipInfo:
    """Creator/owner and upgradeability signals."""
    owner: Optional[str] = None
    owner_label: Optional[str] = None
    is_multisig: bool = False
    is_proxy: bool = False
    proxy_implementation: Optional[str] = None
    risks: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HolderRecord:
    """One entry of the explorer's top-holder list."""
    address: str
    percentage: float


@dataclass(frozen=True)
class HolderDistribution:
    """Concentration of supply among the largest holders."""
    total_holders: int = 0
    top_holder_address: Optional[str] = None
    top_holder_pct: float = 0.0
    top5_pct: float = 0.0
    top10_pct: float = 0.0
    concentration_risks: list[str] = field(default_factory=list)
    is_highly_concentrated: bool = False


@dataclass(frozen=True)
class RiskFindings:
    """Dangerous capabilities detected in source or bytecode."""
    has_selfdestruct: bool = False
    has_minting: bool = False
    is_pausable: bool = False
    has_blacklist: bool = False
    proxy_patterns: list[str] = field(default_factory=list)
    unverified_code: bool = False
    risks: list[str] = field(default_factory=list)
    risk_count: int = 0


@dataclass(frozen=True)
class TokenAnalysis:
    """Full single-chain analysis of one token; the unit that gets cached."""
    token_address: str
    chain_id: int
    timestamp: str
    is_contract: bool
    standard: StandardDetection
    ownership: OwnershipInfo
    holders: HolderDistribution
    findings: RiskFindings
    overall_score: int
    risk_level: RiskLevel
    recommendations: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None
    contract_name: Optional[str] = None  # Verified name, when the explorer has one


@dataclass(frozen=True)
class AnalysisOk:
    analysis: TokenAnalysis


@dataclass(frozen=True)
class AnalysisDegraded:
    """Analysis completed but at least one collaborator call failed."""
    analysis: TokenAnalysis
    reason: str


@dataclass(frozen=True)
class AnalysisFailed:
    """Analysis could not run; ``analysis`` is a score-0 CRITICAL placeholder."""
    analysis: TokenAnalysis
    error: VerificationError


AnalysisOutcome = Union[AnalysisOk, AnalysisDegraded, AnalysisFailed]


@dataclass(frozen=True)
class VerificationDecision:
    """Automation decision rendered from an analysis."""
    is_safe: bool
    can_automate: bool
    requires_approval: bool
    risks: list[str] = field(default_factory=list)
    reason: str = ""


@dataclass(frozen=True)
class ChainVerificationResult:
    """Per-chain record inside a cross-chain verification."""
    chain_id: int
    chain_name: str
    token_address: str
    exists: bool
    analysis: Optional[TokenAnalysis] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class WrappedTokenInfo:
    """A deployment whose name marks it as a wrapped or bridged token."""
    chain: int
    wrapped_address: str
    wrapper_name: str
    indicator: str = "bridge"
    bridge_address: Optional[str] = None


@dataclass(frozen=True)
class CrossChainInfo:
    """Aggregate of one token's analyses across several chains."""
    base_address: str
    base_chain_id: int
    per_chain_results: list[ChainVerificationResult] = field(default_factory=list)
    tokens_found: int = 0
    verified_on_chains: int = 0
    high_risk_on_chains: int = 0
    medium_risk_on_chains: int = 0
    bridge_indicators: list[str] = field(default_factory=list)
    wrapped_versions: list[WrappedTokenInfo] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now_iso)


@dataclass(frozen=True)
class VerificationRequest:
    """Inbound verification request."""
    token_address: str
    chain_id: Optional[int] = None
    cross_chain: bool = False
    chain_ids: Optional[list[int]] = None


@dataclass(frozen=True)
class VerificationResult:
    """Result envelope returned by the engine."""
    request_id: str
    timestamp: str
    request: VerificationRequest
    decision: VerificationDecision
    formatted_report: str
    chain_analysis: Optional[TokenAnalysis] = None
    cross_chain_analysis: Optional[CrossChainInfo] = None

    def to_dict(self) -> dict:
        return to_json_dict(self)


# Wire names that do not follow plain snake -> camel conversion
_JSON_NAMES = {
    "is_erc20": "isERC20",
    "is_erc721": "isERC721",
    "is_erc1155": "isERC1155",
    "cross_chain": "crossChainVerification",
}


def _camel(name: str) -> str:
    if name in _JSON_NAMES:
        return _JSON_NAMES[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_json_dict(obj: Any) -> Any:
    """Render models as JSON-ready structures with camelCase keys."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {_camel(f.name): to_json_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, VerificationError):
        return obj.to_dict()
    if isinstance(obj, dict):
        return {str(k): to_json_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_json_dict(v) for v in obj]
    return obj
