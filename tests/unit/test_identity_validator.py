"""
Unit tests for identity number validation.

Tests verify:
- Known valid and invalid numbers
- Document type by leading digit
- Format errors (length, non-digits, leading digit)
- Checksum agreement with an independent reference over many inputs
"""

import random

import pytest

from src.domain.exceptions import ChecksumError, ErrorKind, IdentityFormatError
from src.domain.identity import DocumentType, compute_check_digit, validate_identity_number


def reference_check_digit(first_nine: str) -> int:
    """Straight transcription of the doubling rule for cross-checking."""
    total = 0
    for i, ch in enumerate(first_nine):
        d = int(ch)
        if i % 2 == 0:
            d = d * 2
            d = d - 9 if d > 9 else d
        total += d
    return (10 - total % 10) % 10


class TestKnownNumbers:
    """Reference values for the validator."""

    def test_national_id_valid(self) -> None:
        """1000000008 is a valid national ID."""
        result = validate_identity_number("1000000008")
        assert result.valid is True
        assert result.document_type == DocumentType.NATIONAL

    def test_checksum_mismatch(self) -> None:
        """1000000000 fails the checksum; expected check digit is 8."""
        with pytest.raises(ChecksumError) as exc_info:
            validate_identity_number("1000000000")
        assert exc_info.value.expected == 8
        assert exc_info.value.actual == 0
        assert exc_info.value.kind == ErrorKind.CHECKSUM

    def test_bad_leading_digit(self) -> None:
        """3000000008 has an unknown leading digit."""
        with pytest.raises(IdentityFormatError) as exc_info:
            validate_identity_number("3000000008")
        assert exc_info.value.kind == ErrorKind.FORMAT

    def test_wrong_length(self) -> None:
        """12345 is too short."""
        with pytest.raises(IdentityFormatError):
            validate_identity_number("12345")

    def test_longer_valid_example(self) -> None:
        assert validate_identity_number("1234567897").valid is True


class TestDocumentType:
    """Leading digit selects the document type."""

    @pytest.mark.parametrize("prefix", ["200000000", "700000000", "800000000"])
    def test_resident_permit_prefixes(self, prefix: str) -> None:
        number = prefix + str(compute_check_digit(prefix))
        assert validate_identity_number(number).document_type == DocumentType.RESIDENT_PERMIT

    @pytest.mark.parametrize("leading", ["0", "3", "4", "5", "6", "9"])
    def test_other_leading_digits_rejected(self, leading: str) -> None:
        prefix = leading + "00000000"
        with pytest.raises(IdentityFormatError):
            validate_identity_number(prefix + str(compute_check_digit(prefix)))


class TestFormat:
    """Shape checks happen before the checksum."""

    @pytest.mark.parametrize("value", ["", "100000000", "10000000080", "10000000a8", "1000-00008"])
    def test_malformed_rejected(self, value: str) -> None:
        with pytest.raises(IdentityFormatError):
            validate_identity_number(value)

    def test_non_ascii_digits_rejected(self) -> None:
        """Arabic-Indic digits are not accepted."""
        with pytest.raises(IdentityFormatError):
            validate_identity_number("١٠٠٠٠٠٠٠٠٨")

    def test_surrounding_whitespace_ignored(self) -> None:
        result = validate_identity_number("  1000000008 ")
        assert result.number == "1000000008"

    def test_non_string_rejected(self) -> None:
        with pytest.raises(IdentityFormatError):
            validate_identity_number(1000000008)  # type: ignore[arg-type]


class TestChecksumProperty:
    """Validity matches the recomputed check digit for arbitrary inputs."""

    def test_valid_iff_check_digit_matches(self) -> None:
        rng = random.Random(20240601)
        for _ in range(2000):
            number = rng.choice("1278") + "".join(rng.choice("0123456789") for _ in range(9))
            expected_valid = reference_check_digit(number[:9]) == int(number[9])
            try:
                validate_identity_number(number)
                valid = True
            except ChecksumError:
                valid = False
            assert valid is expected_valid, number

    def test_deterministic(self) -> None:
        assert validate_identity_number("1000000008") == validate_identity_number("1000000008")
