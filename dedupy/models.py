"""Data models for the report pipeline.

Raw rows are validated with Pydantic (header aliases, whitespace trimming);
everything downstream of decoding is a frozen ``dataclass`` so it can be used
as a dictionary key and compared field by field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .money import Cents

# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------


class RawTransaction(BaseModel):
    """Loosely typed view of one report row, looked up by header name.

    Header names are lowercased and trimmed before validation, so aliases are
    listed in lowercase. Columns not listed here are ignored.
    """

    model_config = ConfigDict(strict=True, extra="ignore", str_strip_whitespace=True)

    date_time: str = Field(
        default="", validation_alias=AliasChoices("date/time", "date_time", "date")
    )
    kind: str = Field(validation_alias=AliasChoices("type", "kind"))
    sku: str = Field(validation_alias=AliasChoices("sku", "product id", "product-id"))
    total: str = Field(validation_alias=AliasChoices("total", "amount"))
    # Empty means "not a unit sale" (refunds, fees); decoded as 0.
    quantity: str = Field(default="", validation_alias=AliasChoices("quantity", "qty"))
    description: str = Field(validation_alias=AliasChoices("description"))


# Header names accepted for each required field, for header validation and
# error messages.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "kind": ("type", "kind"),
    "sku": ("sku", "product id", "product-id"),
    "total": ("total", "amount"),
    "description": ("description",),
}


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """A decoded transaction with exact cent amounts."""

    kind: str
    sku: str
    description: str
    total_cents: Cents
    quantity: int
    unit_cents: Cents
    date_time: str = ""

    @property
    def has_sku(self) -> bool:
        return self.sku != ""


# ---------------------------------------------------------------------------
# Consolidation keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, order=True)
class IdentifiedKey:
    """Consolidates sales of one product at one unit price; sums quantity."""

    kind: str
    sku: str
    description: str
    unit_cents: Cents


@dataclass(frozen=True, slots=True, order=True)
class AdjustmentKey:
    """Consolidates transactions without a product id; sums signed cents."""

    kind: str
    description: str


ConsolidationKey: TypeAlias = IdentifiedKey | AdjustmentKey


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

OUTPUT_HEADER: tuple[str, ...] = ("type", "sku", "description", "quantity", "total")


@dataclass(frozen=True, slots=True)
class OutputRow:
    """One finalized, flattened row handed to a sink."""

    kind: str
    sku: str
    description: str
    quantity: int
    total_cents: Cents

    def sort_key(self) -> tuple[str, str, str, int, int]:
        """(kind, description) first; remaining fields make the order total."""

        return (self.kind, self.description, self.sku, self.quantity, self.total_cents)


__all__ = [
    "RawTransaction",
    "REQUIRED_FIELDS",
    "ParsedTransaction",
    "IdentifiedKey",
    "AdjustmentKey",
    "ConsolidationKey",
    "OUTPUT_HEADER",
    "OutputRow",
]
