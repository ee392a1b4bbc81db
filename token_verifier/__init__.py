"""Token risk verification for EVM chains."""
from .config import Config
from .engine import VerificationEngine, create_engine
from .models import (
    AnalysisDegraded,
    AnalysisFailed,
    AnalysisOk,
    CrossChainInfo,
    RiskLevel,
    TokenAnalysis,
    VerificationDecision,
    VerificationRequest,
    VerificationResult,
)

__version__ = "0.1.0"

__all__ = [
    "Config",
    "VerificationEngine",
    "create_engine",
    "AnalysisOk",
    "AnalysisDegraded",
    "AnalysisFailed",
    "CrossChainInfo",
    "RiskLevel",
    "TokenAnalysis",
    "VerificationDecision",
    "VerificationRequest",
    "VerificationResult",
]
