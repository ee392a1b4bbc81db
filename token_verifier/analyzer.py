"""Single-chain token analysis pipeline."""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from .address import validate_address
from .bytecode import classify_bytecode, get_profile
from .chains import is_supported
from .clients import BytecodeProvider, ExplorerProvider, SourceInfo, call_with_timeout
from .config import Config
from .errors import (
    AddressValidationError,
    NotAContractError,
    ProviderError,
    UnexpectedAnalysisError,
    UnsupportedChainError,
    VerificationError,
)
from .heuristics import BytecodeHeuristics
from .holders import HolderConcentrationAnalyzer
from .models import (
    AnalysisDegraded,
    AnalysisFailed,
    AnalysisOk,
    AnalysisOutcome,
    ContractSnapshot,
    HolderDistribution,
    OwnershipInfo,
    RiskFindings,
    RiskLevel,
    StandardDetection,
    TokenAnalysis,
    utc_now_iso,
)
from .ownership import OwnershipAnalyzer
from .scoring import recommend, risk_level, score_token

logger = logging.getLogger(__name__)

T = TypeVar("T")


def failed_analysis(
    address: str,
    chain_id: int,
    error: str,
    warnings: Optional[list[str]] = None,
    is_contract: bool = False,
    recommendation: str = "Analysis failed - cannot determine if token is safe",
) -> TokenAnalysis:
    """Score-0 CRITICAL placeholder used whenever an analysis cannot run."""
    return TokenAnalysis(
        token_address=address.lower(),
        chain_id=chain_id,
        timestamp=utc_now_iso(),
        is_contract=is_contract,
        standard=StandardDetection(),
        ownership=OwnershipInfo(risks=["Analysis failed"]),
        holders=HolderDistribution(concentration_risks=["Analysis failed"]),
        findings=RiskFindings(unverified_code=True, risks=[error], risk_count=1),
        overall_score=0,
        risk_level=RiskLevel.CRITICAL,
        recommendations=[recommendation],
        warnings=list(warnings or []),
        error=error,
    )


class TokenAnalyzer:
    """Runs every sub-analysis for one token on one chain.

    Sub-analyses run concurrently and never abort each other: each one falls
    back to a degraded default and records a warning instead of raising.
    """

    def __init__(
        self,
        config: Config,
        rpc: BytecodeProvider,
        explorer: ExplorerProvider,
        heuristics: Optional[BytecodeHeuristics] = None,
    ):
        self.config = config
        self.rpc = rpc
        self.explorer = explorer
        self.profile = get_profile(config.classifier_profile)
        self.heuristics = heuristics or BytecodeHeuristics()
        self.ownership = OwnershipAnalyzer(explorer, config.call_timeout_seconds)
        self.holders = HolderConcentrationAnalyzer(
            explorer,
            sample_size=config.holder_sample_size,
            call_timeout=config.call_timeout_seconds,
        )

    async def analyze(self, address: str, chain_id: int) -> AnalysisOutcome:
        """Analyze ``address`` on ``chain_id``. Never raises (except on cancellation)."""
        validation = validate_address(address, self.config.checksum_scheme)
        if not validation.is_valid:
            error = AddressValidationError(address, validation.errors)
            return AnalysisFailed(
                failed_analysis(address or "", chain_id, error.message, validation.warnings),
                error,
            )

        normalized = validation.normalized
        if not is_supported(chain_id):
            error = UnsupportedChainError(chain_id)
            return AnalysisFailed(failed_analysis(normalized, chain_id, error.message), error)

        try:
            return await self._analyze(normalized, chain_id, validation.warnings)
        except Exception as e:
            logger.exception("Analysis of %s on chain %s failed", normalized, chain_id)
            error = UnexpectedAnalysisError(str(e) or e.__class__.__name__)
            return AnalysisFailed(failed_analysis(normalized, chain_id, error.message), error)

    async def _analyze(self, address: str, chain_id: int, notes: list[str]) -> AnalysisOutcome:
        snapshot, bytecode_error, warnings = await self.fetch_snapshot(address, chain_id)

        if bytecode_error is not None:
            # Without bytecode the contract cannot be shown to exist
            return AnalysisFailed(
                failed_analysis(address, chain_id, bytecode_error.message, notes + warnings),
                bytecode_error,
            )

        if not snapshot.is_contract:
            error = NotAContractError(address)
            return AnalysisFailed(
                failed_analysis(
                    address,
                    chain_id,
                    error.message,
                    notes,
                    recommendation="Do not interact - no contract deployed at this address",
                ),
                error,
            )

        standard, (ownership, ownership_warnings), (holders, holder_warnings), findings = await asyncio.gather(
            self._isolated(self._detect_standard(snapshot), StandardDetection(), "standard detection", warnings),
            self._isolated(
                self.ownership.analyze(snapshot),
                (OwnershipInfo(risks=["Failed to analyze ownership"]), []),
                "ownership analysis",
                warnings,
            ),
            self._isolated(
                self.holders.analyze(address, chain_id),
                (HolderDistribution(concentration_risks=["Failed to analyze holder distribution"]), []),
                "holder analysis",
                warnings,
            ),
            self._isolated(
                self._detect_risks(snapshot),
                RiskFindings(unverified_code=True, risks=["Failed to detect security risks"], risk_count=1),
                "risk detection",
                warnings,
            ),
        )
        warnings.extend(ownership_warnings)
        warnings.extend(holder_warnings)

        score = score_token(standard, ownership, holders, findings)
        level = risk_level(score)

        analysis = TokenAnalysis(
            token_address=address,
            chain_id=chain_id,
            timestamp=utc_now_iso(),
            is_contract=snapshot.is_contract,
            standard=standard,
            ownership=ownership,
            holders=holders,
            findings=findings,
            overall_score=score,
            risk_level=level,
            recommendations=recommend(ownership, holders, findings, level),
            warnings=notes + warnings,
            contract_name=snapshot.contract_name,
        )

        if warnings:
            return AnalysisDegraded(analysis, "; ".join(warnings))
        return AnalysisOk(analysis)

    async def fetch_snapshot(
        self,
        address: str,
        chain_id: int,
    ) -> tuple[ContractSnapshot, Optional[VerificationError], list[str]]:
        """Fetch bytecode and verified source concurrently.

        Returns the snapshot, the bytecode lookup error (None on success),
        and warnings for failed lookups.
        """
        timeout = self.config.call_timeout_seconds
        bytecode_result, source_result = await asyncio.gather(
            self._capture(call_with_timeout(self.rpc.get_bytecode(address, chain_id), timeout, "rpc")),
            self._capture(call_with_timeout(self.explorer.get_source(address, chain_id), timeout, "explorer")),
        )

        warnings = []
        bytecode_error = None
        if isinstance(bytecode_result, VerificationError):
            logger.warning("Bytecode lookup failed for %s on %s: %s", address, chain_id, bytecode_result)
            warnings.append(f"Bytecode lookup failed: {bytecode_result}")
            bytecode_error = bytecode_result
            bytecode = "0x"
        else:
            bytecode = bytecode_result or "0x"

        source: Optional[SourceInfo] = None
        if isinstance(source_result, VerificationError):
            logger.warning("Source lookup failed for %s on %s: %s", address, chain_id, source_result)
            warnings.append(f"Source lookup failed: {source_result}")
        else:
            source = source_result

        code = bytecode[2:] if bytecode[:2].lower() == "0x" else bytecode
        snapshot = ContractSnapshot(
            address=address,
            chain_id=chain_id,
            bytecode=bytecode,
            source_code=source.source_code if source and source.source_code else None,
            is_contract=bool(code),
            contract_name=source.contract_name or None if source else None,
            implementation=source.implementation or None if source else None,
        )
        return snapshot, bytecode_error, warnings

    @staticmethod
    async def _capture(awaitable: Awaitable[T]):
        # Provider failures become values so that both lookups always finish.
        try:
            return await awaitable
        except (ProviderError, UnsupportedChainError) as e:
            return e

    @staticmethod
    async def _isolated(awaitable: Awaitable[T], default: T, label: str, warnings: list[str]) -> T:
        try:
            return await awaitable
        except Exception as e:
            logger.warning("%s failed: %s", label.capitalize(), e)
            warnings.append(f"{label.capitalize()} failed: {e}")
            return default

    async def _detect_standard(self, snapshot: ContractSnapshot) -> StandardDetection:
        return classify_bytecode(snapshot.bytecode, self.profile)

    async def _detect_risks(self, snapshot: ContractSnapshot) -> RiskFindings:
        return self.heuristics.analyze(snapshot)
