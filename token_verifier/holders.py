"""Holder concentration analysis."""

import logging
from dataclasses import dataclass
from typing import Sequence

from .clients import ExplorerProvider, call_with_timeout
from .errors import ProviderError
from .models import HolderDistribution, HolderRecord

logger = logging.getLogger(__name__)


NO_HOLDERS_RISK = "Cannot analyze holder distribution"


@dataclass(frozen=True)
class ConcentrationThresholds:
    """Percent-of-supply limits; every limit is exclusive (strictly greater)."""

    top_holder_extreme: float = 50.0
    top_holder_high: float = 30.0
    top5: float = 80.0
    top10: float = 95.0


DEFAULT_THRESHOLDS = ConcentrationThresholds()


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def summarize_holders(
    holders: Sequence[HolderRecord],
    thresholds: ConcentrationThresholds = DEFAULT_THRESHOLDS,
) -> HolderDistribution:
    """Compute top-1/5/10 shares and concentration findings.

    ``holders`` may arrive in any order; they are ranked by share first.
    """
    if not holders:
        return HolderDistribution(concentration_risks=[NO_HOLDERS_RISK])

    holders = sorted(holders, key=lambda h: h.percentage, reverse=True)
    top = holders[0]
    top_pct = _clamp_pct(top.percentage)
    top5_pct = _clamp_pct(sum(h.percentage for h in holders[:5]))
    top10_pct = _clamp_pct(sum(h.percentage for h in holders[:10]))

    risks = []
    concentrated = False

    if top_pct > thresholds.top_holder_extreme:
        risks.append(f"Top holder owns {top_pct:.2f}% - extreme concentration")
        concentrated = True
    elif top_pct > thresholds.top_holder_high:
        risks.append(f"Top holder owns {top_pct:.2f}% - high concentration")
        concentrated = True

    if top5_pct > thresholds.top5:
        risks.append(f"Top 5 holders own {top5_pct:.2f}% - highly concentrated")
        concentrated = True

    if top10_pct > thresholds.top10:
        risks.append(f"Top 10 holders own {top10_pct:.2f}% - effectively centralized")
        concentrated = True

    return HolderDistribution(
        total_holders=len(holders),
        top_holder_address=top.address.lower(),
        top_holder_pct=top_pct,
        top5_pct=top5_pct,
        top10_pct=top10_pct,
        concentration_risks=risks,
        is_highly_concentrated=concentrated,
    )


class HolderConcentrationAnalyzer:
    """Fetches the top holders of a token and summarizes concentration."""

    def __init__(
        self,
        explorer: ExplorerProvider,
        sample_size: int = 10,
        call_timeout: float = 30.0,
        thresholds: ConcentrationThresholds = DEFAULT_THRESHOLDS,
    ):
        self.explorer = explorer
        self.sample_size = sample_size
        self.call_timeout = call_timeout
        self.thresholds = thresholds

    async def analyze(self, address: str, chain_id: int) -> tuple[HolderDistribution, list[str]]:
        try:
            holders = await call_with_timeout(
                self.explorer.get_token_holders(address, chain_id, self.sample_size),
                self.call_timeout,
                "explorer",
            )
        except ProviderError as e:
            logger.warning("Holder lookup failed for %s on %s: %s", address, chain_id, e)
            return (
                HolderDistribution(concentration_risks=["Failed to analyze holder distribution"]),
                [f"Holder lookup failed: {e}"],
            )

        return summarize_holders(list(holders)[: self.sample_size], self.thresholds), []
