"""Contract address validation.

Two checksum schemes are available:

``legacy``
    The scheme the verifier has always shipped with. It derives the case of
    each hex letter from bit patterns of the address bytes themselves rather
    than from a keccak hash, so it does NOT agree with EIP-55. It is kept as
    the default so existing warnings stay stable; see DESIGN.md.

``eip55``
    The standard mixed-case checksum (keccak-256 of the lowercase address),
    computed with ``eth_utils``.

A checksum mismatch is only ever a warning. Malformed input never raises.
"""

import re

from eth_utils import to_checksum_address

from .models import AddressValidation


ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
ZERO_ADDRESS = "0x" + "0" * 40


def is_address(value: str) -> bool:
    return bool(value) and ADDRESS_RE.match(value) is not None


def _byte_at(hex_digits: str, pos: int) -> int:
    # Slices past the end read as 0.
    chunk = hex_digits[pos:pos + 2]
    return int(chunk, 16) if chunk else 0


def legacy_checksum(address: str) -> str:
    """Mixed-case form under the legacy (non EIP-55) scheme."""
    if not is_address(address):
        raise ValueError("Invalid address format")

    digits = address.lower()[2:]
    out = []
    for i, char in enumerate(digits):
        current = _byte_at(digits, i * 2)
        following = _byte_at(digits, (i + 1) * 2) if i < 39 else 0
        combined = (current << 8) | following
        hash_bit = (combined >> (i % 8)) & 1
        out.append(char.upper() if hash_bit and char.isalpha() else char)
    return "0x" + "".join(out)


def checksum(address: str, scheme: str = "legacy") -> str:
    if scheme == "eip55":
        return to_checksum_address(address)
    return legacy_checksum(address)


def validate_address(address: str, scheme: str = "legacy") -> AddressValidation:
    """Validate ``address`` structurally and report checksum problems as warnings."""
    if not address:
        return AddressValidation(
            address=address or "",
            is_valid=False,
            errors=["Address is empty or undefined"],
        )

    if not is_address(address):
        return AddressValidation(
            address=address,
            is_valid=False,
            errors=["Invalid address format: must be 42 characters (0x followed by 40 hex chars)"],
        )

    digits = address[2:]
    warnings = []
    is_checksum = False

    if digits == digits.lower() or digits == digits.upper():
        warnings.append("Address is not checksummed")
    else:
        is_checksum = address == checksum(address, scheme)
        if not is_checksum:
            warnings.append("Address checksum is invalid")

    return AddressValidation(
        address=address,
        is_valid=True,
        is_checksum=is_checksum,
        warnings=warnings,
    )
