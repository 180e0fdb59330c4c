"""Movement records, month buckets and the validation shared by the stock ledger."""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, NamedTuple

Quantity = int | float | Decimal


class MovementKind(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"


class LedgerError(Exception):
    pass


class InvalidQuantityError(LedgerError):
    def __init__(self, sku: str, kind: MovementKind, quantity: object, position: int | None = None) -> None:
        self.sku = sku
        self.kind = kind
        self.quantity = quantity
        self.position = position
        super().__init__(
            f'{kind.value.capitalize()} quantity for SKU "{sku}" must be a positive, finite number (got {quantity!r}).'
        )


class NegativeStockError(LedgerError):
    def __init__(self, sku: str, occurred_at: datetime, balance: Quantity) -> None:
        self.sku = sku
        self.occurred_at = occurred_at
        self.balance = balance
        super().__init__(f'Negative stock for SKU "{sku}" on {occurred_at.date().isoformat()}.')


class Month(NamedTuple):
    year: int
    month: int

    @classmethod
    def of(cls, value: datetime) -> "Month":
        value = to_utc(value)
        return cls(value.year, value.month)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class MovementRecord:
    """A dated quantity change for one SKU as handed over by the storage layer."""

    sku: str
    quantity: Quantity
    date: str | date | datetime


@dataclass(frozen=True)
class Movement:
    sku: str
    quantity: Quantity
    occurred_at: datetime
    kind: MovementKind

    @property
    def signed_quantity(self) -> Quantity:
        return self.quantity if self.kind is MovementKind.PURCHASE else -self.quantity


def to_utc(value: str | date | datetime) -> datetime:
    """Returns ``value`` as an aware UTC datetime. Naive values are read as UTC."""
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid date value: {value!r}") from exc
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    elif not isinstance(value, datetime):
        raise TypeError(f"Invalid date value: {value!r}")

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_quantity(quantity: object) -> bool:
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float, Decimal)):
        return False
    if isinstance(quantity, Decimal):
        return quantity.is_finite() and quantity > 0
    return math.isfinite(quantity) and quantity > 0


def validate_quantities(records: Iterable[MovementRecord], kind: MovementKind) -> None:
    for position, record in enumerate(records):
        if not is_valid_quantity(record.quantity):
            raise InvalidQuantityError(record.sku, kind, record.quantity, position)


def unify_quantities(
    purchases: tuple[MovementRecord, ...],
    sales: tuple[MovementRecord, ...],
) -> tuple[tuple[MovementRecord, ...], tuple[MovementRecord, ...]]:
    """
    Converts every quantity to ``Decimal`` when any record already carries one.

    ``Decimal`` and ``float`` do not mix in arithmetic, so a batch holding both
    is brought to ``Decimal`` through ``str`` (``0.5`` becomes ``Decimal("0.5")``).
    Batches without a ``Decimal`` are returned unchanged.
    """
    if not any(isinstance(record.quantity, Decimal) for record in (*purchases, *sales)):
        return purchases, sales

    def as_decimal(records: tuple[MovementRecord, ...]) -> tuple[MovementRecord, ...]:
        return tuple(
            record if isinstance(record.quantity, Decimal) else replace(record, quantity=Decimal(str(record.quantity)))
            for record in records
        )

    return as_decimal(purchases), as_decimal(sales)


def normalize_movements(
    purchases: Iterable[MovementRecord],
    sales: Iterable[MovementRecord],
) -> list[Movement]:
    """
    Validates both sequences and tags them into a single list, purchases first.

    Quantities are checked for every record before any movement is built, so
    an invalid record aborts the call before anything is aggregated.
    """
    purchases = tuple(purchases)
    sales = tuple(sales)
    validate_quantities(purchases, MovementKind.PURCHASE)
    validate_quantities(sales, MovementKind.SALE)
    purchases, sales = unify_quantities(purchases, sales)

    movements = [
        Movement(record.sku, record.quantity, to_utc(record.date), MovementKind.PURCHASE)
        for record in purchases
    ]
    movements.extend(
        Movement(record.sku, record.quantity, to_utc(record.date), MovementKind.SALE)
        for record in sales
    )
    return movements
