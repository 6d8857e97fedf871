from typing import Generic, TypeVar

import msgspec

__all__ = ("Address", "ListParams", "ListResponse", "Metadata", "Phone", "Phones")

T = TypeVar("T")

Metadata = dict[str, str | int | float | bool]


class Phone(msgspec.Struct, frozen=True):
    """Structured Brazilian phone number."""
    country_code: str
    """Always ``"55"``."""
    area_code: str
    """Two digit area code (DDD)."""
    number: str
    """Subscriber number, 8 digits for landlines and 9 for mobiles."""

    def __str__(self) -> str:
        return f"+{self.country_code} ({self.area_code}) {self.number}"


class Phones(msgspec.Struct, omit_defaults=True):
    mobile_phone: Phone | None = None
    home_phone: Phone | None = None


class Address(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Postal address."""
    street: str
    number: str
    neighborhood: str
    city: str
    state: str
    """Two letter state code."""
    zip_code: str
    complement: str | None = None
    country: str | None = None


class ListResponse(msgspec.Struct, Generic[T]):
    """A page of a list endpoint."""
    data: list[T]
    has_more: bool = False
    total_count: int | None = None


class ListParams(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Pagination and creation date filters accepted by list endpoints."""
    limit: int | None = None
    offset: int | None = None
    created_after: str | None = None
    """ISO 8601 lower bound on the creation date."""
    created_before: str | None = None
    """ISO 8601 upper bound on the creation date."""

    def to_query(self) -> dict[str, int | str]:
        return msgspec.to_builtins(self)
