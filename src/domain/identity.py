"""
Identity number validation for national IDs and resident permits.

Identity numbers are 10 digits. The leading digit selects the document
type and the last digit is a Luhn-style check digit over the first nine:

    - digits at even indices (0, 2, 4, 6, 8 from the left) are doubled,
      and 9 is subtracted when the doubled value exceeds 9
    - digits at odd indices are taken as-is
    - check digit = (10 - sum % 10) % 10

Validation is pure and deterministic. Surrounding whitespace is ignored;
anything else that is not a digit is a format error.
"""

from dataclasses import dataclass
from enum import Enum

from .exceptions import ChecksumError, IdentityFormatError

IDENTITY_NUMBER_LENGTH = 10


class DocumentType(str, Enum):
    """Identity document family, selected by the leading digit."""

    NATIONAL = "national"
    RESIDENT_PERMIT = "resident_permit"


_DOCUMENT_TYPES = {
    "1": DocumentType.NATIONAL,
    "2": DocumentType.RESIDENT_PERMIT,
    "7": DocumentType.RESIDENT_PERMIT,
    "8": DocumentType.RESIDENT_PERMIT,
}


@dataclass(frozen=True)
class IdentityCheck:
    """Successful validation outcome."""

    number: str
    document_type: DocumentType
    valid: bool = True


def compute_check_digit(first_nine: str) -> int:
    """Compute the expected 10th digit for the given first nine digits."""
    total = 0
    for index, char in enumerate(first_nine):
        digit = int(char)
        if index % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - (total % 10)) % 10


def validate_identity_number(value: str) -> IdentityCheck:
    """
    Validate an identity or resident-permit number.

    Args:
        value: Candidate identity number

    Returns:
        IdentityCheck with the cleaned number and its document type

    Raises:
        IdentityFormatError: Wrong length, non-digits, or unknown leading digit
        ChecksumError: Check digit mismatch
    """
    if not isinstance(value, str):
        raise IdentityFormatError("Identity number must be a string")

    number = value.strip()
    if len(number) != IDENTITY_NUMBER_LENGTH or not number.isascii() or not number.isdigit():
        raise IdentityFormatError("Identity number must be exactly 10 digits")

    document_type = _DOCUMENT_TYPES.get(number[0])
    if document_type is None:
        raise IdentityFormatError(
            "Identity number must start with 1 (national) or 2, 7, 8 (resident permit)"
        )

    expected = compute_check_digit(number[:9])
    actual = int(number[9])
    if expected != actual:
        raise ChecksumError("Identity number check digit does not match", expected, actual)

    return IdentityCheck(number=number, document_type=document_type)
