"""Ownership and proxy analysis."""

import logging
import re
from typing import Optional

from .address import ZERO_ADDRESS
from .clients import ExplorerProvider, call_with_timeout
from .errors import ProviderError
from .models import ContractSnapshot, OwnershipInfo

logger = logging.getLogger(__name__)


# Minimal-proxy (EIP-1167 style) trampolines
MINIMAL_PROXY_FINGERPRINTS = (
    "3d82803d3d3d3d363d3d37",
    "363d3d373d3d3d363d73",
)
EIP1167_IMPLEMENTATION_RE = re.compile(r"363d3d373d3d3d363d73([0-9a-f]{40})5af4")

MULTISIG_MARKERS = ("multisig", "safe")

PROXY_RISK = "Uses proxy pattern (upgradeable)"
SINGLE_OWNER_RISK = "Single owner address (high centralization risk)"
UNKNOWN_OWNER_RISK = "Unknown or null owner"
NO_CREATION_INFO_RISK = "Unable to get contract creation info"


def is_multisig_label(label: Optional[str]) -> bool:
    if not label:
        return False
    lowered = label.lower()
    return any(marker in lowered for marker in MULTISIG_MARKERS)


def detect_minimal_proxy(code_hex: str) -> bool:
    return any(fp in code_hex for fp in MINIMAL_PROXY_FINGERPRINTS)


def embedded_implementation(code_hex: str) -> Optional[str]:
    """Implementation address hard-coded in an EIP-1167 proxy, if any."""
    match = EIP1167_IMPLEMENTATION_RE.search(code_hex)
    return "0x" + match.group(1) if match else None


def assess_ownership(
    snapshot: ContractSnapshot,
    creator: Optional[str],
    label: Optional[str],
) -> OwnershipInfo:
    """Derive ownership flags from already-fetched creation data."""
    code = snapshot.code_hex
    risks = []

    is_multisig = is_multisig_label(label)
    is_proxy = detect_minimal_proxy(code)
    implementation = embedded_implementation(code) or snapshot.implementation or None

    if is_proxy:
        risks.append(PROXY_RISK)

    if not is_multisig:
        risks.append(SINGLE_OWNER_RISK)

    if not creator or creator.lower() == ZERO_ADDRESS:
        risks.append(UNKNOWN_OWNER_RISK)

    return OwnershipInfo(
        owner=creator.lower() if creator else None,
        owner_label=label or None,
        is_multisig=is_multisig,
        is_proxy=is_proxy,
        proxy_implementation=implementation.lower() if implementation else None,
        risks=risks,
    )


class OwnershipAnalyzer:
    """Resolves the creator of a contract and scores its centralization."""

    def __init__(self, explorer: ExplorerProvider, call_timeout: float = 30.0):
        self.explorer = explorer
        self.call_timeout = call_timeout

    async def analyze(self, snapshot: ContractSnapshot) -> tuple[OwnershipInfo, list[str]]:
        """Return ownership info plus warnings for any failed lookups.

        A missing or failed creation lookup yields a degraded result rather
        than an error.
        """
        warnings = []

        try:
            creation = await call_with_timeout(
                self.explorer.get_contract_creation(snapshot.address, snapshot.chain_id),
                self.call_timeout,
                "explorer",
            )
        except ProviderError as e:
            logger.warning("Creation lookup failed for %s on %s: %s", snapshot.address, snapshot.chain_id, e)
            warnings.append(f"Ownership lookup failed: {e}")
            creation = None

        if creation is None:
            return OwnershipInfo(risks=[NO_CREATION_INFO_RISK]), warnings

        label = None
        if creation.creator:
            try:
                label = await call_with_timeout(
                    self.explorer.get_address_label(creation.creator, snapshot.chain_id),
                    self.call_timeout,
                    "explorer",
                )
            except ProviderError as e:
                logger.debug("Label lookup failed for %s: %s", creation.creator, e)
                warnings.append(f"Owner label lookup failed: {e}")

        return assess_ownership(snapshot, creation.creator, label), warnings
