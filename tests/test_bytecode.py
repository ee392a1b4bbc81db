"""Tests for selector extraction and token-standard classification."""

import pytest

from token_verifier.bytecode import (
    ERC1155_SELECTORS,
    ERC20_SELECTORS,
    ERC721_SELECTORS,
    LOOSE,
    STRICT,
    classify_bytecode,
    classify_selectors,
    extract_selectors,
    get_profile,
)

from tests.fakes import ERC20_CODE, build_bytecode


ERC20 = list(ERC20_SELECTORS.values())
ERC721 = list(ERC721_SELECTORS.values())
ERC1155 = list(ERC1155_SELECTORS.values())


class TestExtractSelectors:

    def test_transfer_selector(self):
        assert "0xa9059cbb" in extract_selectors("63a9059cbb")

    def test_accepts_0x_prefix(self):
        assert extract_selectors("0x63a9059cbb14") == ["0xa9059cbb"]

    def test_dedupes_in_first_seen_order(self):
        code = build_bytecode(["0xa9059cbb", "0x70a08231", "0xa9059cbb"])
        assert extract_selectors(code) == ["0xa9059cbb", "0x70a08231"]

    def test_skips_other_push_operands(self):
        # PUSH32 whose payload starts with a PUSH4-looking byte sequence
        code = "7f" + "63deadbeef" + "00" * 27
        assert extract_selectors(code) == []

    def test_truncated_push4(self):
        assert extract_selectors("63a905") == []

    def test_invalid_hex(self):
        assert extract_selectors("0xzzzz") == []

    def test_empty(self):
        assert extract_selectors("0x") == []
        assert extract_selectors("") == []


class TestClassifySelectors:

    def test_full_erc20(self):
        result = classify_selectors(ERC20)
        assert result.is_erc20
        assert not result.is_erc721
        assert not result.is_erc1155
        assert result.detected_type == "ERC20"

    def test_partial_erc20_is_not_erc20_under_strict(self):
        assert not classify_selectors(ERC20[:5], STRICT).is_erc20

    def test_partial_erc20_is_erc20_under_loose(self):
        assert classify_selectors(ERC20[:4], LOOSE).is_erc20

    def test_erc721_threshold(self):
        assert classify_selectors(ERC721[:5]).is_erc721
        assert not classify_selectors(ERC721[:4]).is_erc721

    def test_erc1155(self):
        result = classify_selectors(ERC1155)
        assert result.is_erc1155
        assert result.detected_type == "ERC1155"

    def test_multiple_standards_reported_with_display_priority(self):
        result = classify_selectors(ERC20 + ERC721)
        assert result.is_erc20 and result.is_erc721
        assert result.detected_type == "ERC20"

    def test_unknown(self):
        result = classify_selectors(["0xdeadbeef"])
        assert result.detected_type == "Unknown"
        # 1 detected function out of 15 reference selectors
        assert result.confidence == 7

    def test_confidence_counts_distinct_detected_functions(self):
        # 15 distinct reference selectors across the three strict sets
        assert classify_selectors(ERC20).confidence == 40
        assert classify_selectors(ERC20 + ERC20).confidence == 40

    def test_confidence_counts_non_reference_selectors(self):
        extras = ["0x11111111", "0x22222222", "0x33333333", "0x44444444", "0x55555555", "0x66666666"]
        result = classify_bytecode(build_bytecode(ERC20 + extras))

        assert result.is_erc20
        assert result.confidence == 80

    def test_confidence_never_exceeds_100(self):
        everything = ERC20 + ERC721 + ERC1155 + ["0xdeadbeef"]
        assert classify_selectors(everything).confidence == 100


class TestClassifyBytecode:

    def test_erc20_contract(self):
        result = classify_bytecode(ERC20_CODE)
        assert result.is_erc20
        assert result.selectors == ERC20

    def test_loose_profile_uses_extracted_selectors(self):
        code = build_bytecode(ERC20[:4])
        assert classify_bytecode(code, LOOSE).is_erc20
        assert not classify_bytecode(code, STRICT).is_erc20

    def test_no_code(self):
        result = classify_bytecode("0x")
        assert result.detected_type == "Unknown"
        assert result.selectors == []


class TestProfiles:

    def test_lookup(self):
        assert get_profile("strict") is STRICT
        assert get_profile("loose") is LOOSE

    def test_unknown_profile(self):
        with pytest.raises(ValueError):
            get_profile("paranoid")

    def test_loose_erc721_reference_has_eight_entries(self):
        assert len(LOOSE.erc721) == 8
        assert len(STRICT.erc721) == 7
