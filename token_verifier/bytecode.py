"""Selector extraction and token-standard classification from bytecode.

Solidity's function dispatcher compares ``msg.sig`` against each selector
with ``PUSH4 <selector> EQ``, so the PUSH4 operands of a contract are a good
approximation of its external interface. Hand-written dispatchers, data
sections and metadata can add or hide candidates; treat the output as
detected candidates, not proof.
"""

from dataclasses import dataclass

from .models import StandardDetection, TokenStandard


PUSH1 = 0x60
PUSH4 = 0x63
PUSH32 = 0x7F


def _strip_prefix(bytecode: str) -> str:
    code = bytecode or ""
    if code[:2].lower() == "0x":
        code = code[2:]
    return code.lower()


def extract_selectors(bytecode: str) -> list[str]:
    """Return PUSH4 operands as ``0x``-prefixed selectors, first-seen order.

    The walk is opcode-aligned: operands of other PUSH instructions are
    skipped so that their payload bytes are never read as opcodes.
    """
    code = _strip_prefix(bytecode)
    try:
        raw = bytes.fromhex(code[: len(code) - len(code) % 2])
    except ValueError:
        return []

    selectors: list[str] = []
    seen = set()
    i = 0
    while i < len(raw):
        op = raw[i]
        if PUSH1 <= op <= PUSH32:
            width = op - PUSH1 + 1
            if op == PUSH4 and i + 1 + 4 <= len(raw):
                selector = "0x" + raw[i + 1:i + 5].hex()
                if selector not in seen:
                    seen.add(selector)
                    selectors.append(selector)
            i += 1 + width
        else:
            i += 1
    return selectors


# Reference selectors (4-byte keccak prefixes of the standard signatures)
ERC20_SELECTORS = {
    "totalSupply()": "0x18160ddd",
    "balanceOf(address)": "0x70a08231",
    "transfer(address,uint256)": "0xa9059cbb",
    "transferFrom(address,address,uint256)": "0x23b872dd",
    "approve(address,uint256)": "0x095ea7b3",
    "allowance(address,address)": "0xdd62ed3e",
}

ERC721_SELECTORS = {
    "ownerOf(uint256)": "0x6352211e",
    "balanceOf(address)": "0x70a08231",
    "safeTransferFrom(address,address,uint256)": "0x42842e0e",
    "setApprovalForAll(address,bool)": "0xa22cb465",
    "isApprovedForAll(address,address)": "0xe985e9c5",
    "approve(address,uint256)": "0x095ea7b3",
    "getApproved(uint256)": "0x081812fc",
}

ERC721_SELECTORS_EXTENDED = {
    **ERC721_SELECTORS,
    "transferFrom(address,address,uint256)": "0x23b872dd",
}

ERC1155_SELECTORS = {
    "balanceOf(address,uint256)": "0x00fdd58e",
    "balanceOfBatch(address[],uint256[])": "0x4e1273f4",
    "setApprovalForAll(address,bool)": "0xa22cb465",
    "isApprovedForAll(address,address)": "0xe985e9c5",
    "safeTransferFrom(address,address,uint256,uint256,bytes)": "0xf242432a",
    "safeBatchTransferFrom(address,address,uint256[],uint256[],bytes)": "0x2eb2c2d6",
}

MAX_CONFIDENCE_DENOMINATOR = 20


@dataclass(frozen=True)
class ClassifierProfile:
    """Reference selector sets, match thresholds and matching mode.

    ``match_mode`` is ``"substring"`` (search the raw bytecode for each
    reference selector) or ``"selectors"`` (membership in the extracted
    PUSH4 set).
    """

    name: str
    erc20: tuple[str, ...]
    erc721: tuple[str, ...]
    erc1155: tuple[str, ...]
    erc20_threshold: int
    erc721_threshold: int
    erc1155_threshold: int
    match_mode: str = "substring"

    @property
    def reference_selectors(self) -> set[str]:
        return set(self.erc20) | set(self.erc721) | set(self.erc1155)


STRICT = ClassifierProfile(
    name="strict",
    erc20=tuple(ERC20_SELECTORS.values()),
    erc721=tuple(ERC721_SELECTORS.values()),
    erc1155=tuple(ERC1155_SELECTORS.values()),
    erc20_threshold=6,
    erc721_threshold=5,
    erc1155_threshold=4,
    match_mode="substring",
)

LOOSE = ClassifierProfile(
    name="loose",
    erc20=tuple(ERC20_SELECTORS.values()),
    erc721=tuple(ERC721_SELECTORS_EXTENDED.values()),
    erc1155=tuple(ERC1155_SELECTORS.values()),
    erc20_threshold=4,
    erc721_threshold=4,
    erc1155_threshold=4,
    match_mode="selectors",
)

PROFILES = {profile.name: profile for profile in (STRICT, LOOSE)}


def get_profile(name: str) -> ClassifierProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown classifier profile: {name}") from None


def _detected_type(is_erc20: bool, is_erc721: bool, is_erc1155: bool) -> str:
    # Display priority only; every matching flag is reported.
    if is_erc20:
        return TokenStandard.ERC20.value
    if is_erc721:
        return TokenStandard.ERC721.value
    if is_erc1155:
        return TokenStandard.ERC1155.value
    return TokenStandard.UNKNOWN.value


def classify_selectors(
    selectors,
    profile: ClassifierProfile = STRICT,
    reported_selectors=None,
) -> StandardDetection:
    """Classify a set of detected selectors against ``profile``."""
    found = {s.lower() for s in selectors}

    erc20_hits = sum(1 for s in profile.erc20 if s in found)
    erc721_hits = sum(1 for s in profile.erc721 if s in found)
    erc1155_hits = sum(1 for s in profile.erc1155 if s in found)

    is_erc20 = erc20_hits >= profile.erc20_threshold
    is_erc721 = erc721_hits >= profile.erc721_threshold
    is_erc1155 = erc1155_hits >= profile.erc1155_threshold

    if reported_selectors is None:
        reported_selectors = selectors

    # Every distinct detected function counts, not only reference matches
    detected = len({s.lower() for s in reported_selectors})
    denominator = min(len(profile.reference_selectors), MAX_CONFIDENCE_DENOMINATOR)
    confidence = min(100, round(detected / denominator * 100)) if denominator else 0

    return StandardDetection(
        is_erc20=is_erc20,
        is_erc721=is_erc721,
        is_erc1155=is_erc1155,
        detected_type=_detected_type(is_erc20, is_erc721, is_erc1155),
        selectors=list(dict.fromkeys(reported_selectors)),
        confidence=confidence,
    )


def classify_bytecode(bytecode: str, profile: ClassifierProfile = STRICT) -> StandardDetection:
    """Extract selectors from ``bytecode`` and classify them."""
    code = _strip_prefix(bytecode)
    if not code:
        return StandardDetection()

    extracted = extract_selectors(code)

    if profile.match_mode == "substring":
        found = [s for s in profile.reference_selectors if s[2:] in code]
    else:
        found = extracted

    return classify_selectors(found, profile, reported_selectors=extracted)
