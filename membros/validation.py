"""
Pre-flight validation for Brazilian documents, phones and request payloads.

Everything here is local and synchronous: failures are raised as
:class:`MembrosValidationError` before any request is sent.
"""
import re
from collections.abc import Collection, Iterable
from typing import Any

import msgspec

from membros import _enums, _errors, _types

__all__ = (
    "OrderItem",
    "clean_digits",
    "format_brazilian_phone",
    "format_document",
    "get_document_type",
    "validate_brazilian_phone",
    "validate_cnpj",
    "validate_cpf",
    "validate_customer_data",
    "validate_document",
    "validate_email",
    "validate_order_items",
)

CPF_LENGTH = 11
CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"[^0-9]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class OrderItem(msgspec.Struct, kw_only=True, omit_defaults=True):
    """A line of an order."""
    description: str
    amount: int
    """Unit price in cents."""
    quantity: int
    id: str | None = None
    metadata: _types.Metadata | None = None


def clean_digits(value: str) -> str:
    """Strip every non-digit character."""
    return _NON_DIGITS.sub("", value)


def _repeated(digits: str) -> bool:
    return len(set(digits)) == 1


def _cpf_check_digit(digits: str) -> int:
    # Weights run from len(digits) + 1 down to 2.
    weight = len(digits) + 1
    total = sum(int(digit) * (weight - index) for index, digit in enumerate(digits))
    remainder = total * 10 % 11
    return 0 if remainder >= 10 else remainder


def _cnpj_check_digit(digits: str) -> int:
    # Weights cycle 9..2 from the rightmost digit leftwards.
    total = 0
    weight = 2
    for digit in reversed(digits):
        total += int(digit) * weight
        weight = 2 if weight == 9 else weight + 1
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def validate_cpf(cpf: str) -> bool:
    """
    Check a CPF's two verification digits.

    Punctuation is ignored. Sequences of a single repeated digit are
    rejected even though they satisfy the checksum.
    """
    digits = clean_digits(cpf)
    if len(digits) != CPF_LENGTH or _repeated(digits):
        return False
    first = _cpf_check_digit(digits[:9])
    if first != int(digits[9]):
        return False
    return _cpf_check_digit(digits[:10]) == int(digits[10])


def validate_cnpj(cnpj: str) -> bool:
    """
    Check a CNPJ's two verification digits.

    Punctuation is ignored. Sequences of a single repeated digit are
    rejected.
    """
    digits = clean_digits(cnpj)
    if len(digits) != CNPJ_LENGTH or _repeated(digits):
        return False
    first = _cnpj_check_digit(digits[:12])
    if first != int(digits[12]):
        return False
    return _cnpj_check_digit(digits[:13]) == int(digits[13])


def get_document_type(document: str) -> _enums.DocumentType:
    """
    Infer the document type from its digit count.

    Parameters
    ----------
    document : str
        CPF or CNPJ, with or without punctuation.

    Returns
    -------
    DocumentType
        ``CPF`` for 11 digits, ``CNPJ`` for 14.

    Raises
    ------
    MembrosValidationError
        With code ``INVALID_DOCUMENT_FORMAT`` for any other length.
    """
    length = len(clean_digits(document))
    if length == CPF_LENGTH:
        return _enums.DocumentType.CPF
    if length == CNPJ_LENGTH:
        return _enums.DocumentType.CNPJ
    raise _errors.MembrosValidationError(
        "Invalid document format. Must be a valid CPF (11 digits) or CNPJ (14 digits)",
        "INVALID_DOCUMENT_FORMAT",
    )


def _infer_type(digits: str) -> _enums.DocumentType | None:
    if len(digits) == CPF_LENGTH:
        return _enums.DocumentType.CPF
    if len(digits) == CNPJ_LENGTH:
        return _enums.DocumentType.CNPJ
    return None


def validate_document(
    document: str,
    document_type: _enums.DocumentType | None = None,
) -> bool:
    """
    Validate a CPF or CNPJ.

    When ``document_type`` is omitted it is inferred from the digit count;
    a length matching neither type is simply invalid. Never raises.
    """
    digits = clean_digits(document)
    document_type = document_type or _infer_type(digits)
    if document_type == _enums.DocumentType.CPF:
        return validate_cpf(digits)
    if document_type == _enums.DocumentType.CNPJ:
        return validate_cnpj(digits)
    return False


def format_document(
    document: str,
    document_type: _enums.DocumentType | None = None,
) -> str:
    """
    Apply the canonical mask: ``000.000.000-00`` or ``00.000.000/0000-00``.

    The type is inferred from the digit count when omitted. Input whose
    digits do not fit the type is returned unchanged.
    """
    digits = clean_digits(document)
    document_type = document_type or _infer_type(digits)
    if document_type == _enums.DocumentType.CPF and len(digits) == CPF_LENGTH:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if document_type == _enums.DocumentType.CNPJ and len(digits) == CNPJ_LENGTH:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
    return document


def validate_email(email: str) -> bool:
    return bool(_EMAIL.match(email))


def validate_brazilian_phone(phone: str) -> bool:
    """Landlines have 10 digits (DDD + 8), mobiles 11 (DDD + 9)."""
    return len(clean_digits(phone)) in (10, 11)


def format_brazilian_phone(phone: str) -> _types.Phone:
    """
    Split a free-form Brazilian phone into country, area and number.

    Parameters
    ----------
    phone : str
        Phone with area code, e.g. ``"(11) 99988-8777"``.

    Returns
    -------
    Phone
        Country code ``"55"``, the first two digits as area code and the
        rest as subscriber number.

    Raises
    ------
    MembrosValidationError
        With code ``INVALID_PHONE_FORMAT`` unless 10 or 11 digits remain.
    """
    digits = clean_digits(phone)
    if not validate_brazilian_phone(digits):
        raise _errors.MembrosValidationError(
            "Invalid Brazilian phone number format",
            "INVALID_PHONE_FORMAT",
        )
    return _types.Phone(country_code="55", area_code=digits[:2], number=digits[2:])


def validate_customer_data(
    name: str | None,
    email: str | None,
    document: str | None,
) -> None:
    """
    Check the fields required to register a customer.

    Raises
    ------
    MembrosValidationError
        With code ``CUSTOMER_VALIDATION_ERROR``; ``details["errors"]`` lists
        every failed field.
    """
    errors = []
    if not name or len(name.strip()) < 2:
        errors.append("Name is required and must be at least 2 characters long")
    if not email or not validate_email(email):
        errors.append("Valid email address is required")
    if not document:
        errors.append("Document is required")
    elif not validate_document(document):
        errors.append("Invalid document format. Must be a valid CPF or CNPJ")

    if errors:
        raise _errors.MembrosValidationError(
            f"Validation failed: {', '.join(errors)}",
            "CUSTOMER_VALIDATION_ERROR",
            details={"errors": errors},
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_order_items(items: Collection[OrderItem]) -> None:
    """
    Check order items before an order is sent.

    Raises
    ------
    MembrosValidationError
        ``MISSING_ORDER_ITEMS`` for an empty collection, otherwise
        ``ORDER_VALIDATION_ERROR`` with every problem in ``details["errors"]``.
    """
    if not items:
        raise _errors.MembrosValidationError(
            "At least one order item is required",
            "MISSING_ORDER_ITEMS",
        )

    errors: list[str] = []
    for index, item in enumerate(items, 1):
        errors.extend(f"Item {index}: {problem}" for problem in _item_problems(item))

    if errors:
        raise _errors.MembrosValidationError(
            f"Order validation failed: {', '.join(errors)}",
            "ORDER_VALIDATION_ERROR",
            details={"errors": errors},
        )


def _item_problems(item: OrderItem) -> Iterable[str]:
    if not item.description or not item.description.strip():
        yield "Description is required"
    if not _is_int(item.amount):
        yield "Amount must be an integer (in cents)"
    elif item.amount <= 0:
        yield "Amount must be greater than 0"
    if not _is_int(item.quantity):
        yield "Quantity must be an integer"
    elif item.quantity <= 0:
        yield "Quantity must be greater than 0"
