"""
Stock ledger: per-SKU balances and monthly summaries computed from purchase
and sale movements.

Both entry points are pure. They read the movement sequences once, keep
their accumulators local to the call and return frozen values.

``calculate_stock_balances`` sums purchases first and then applies sales, so
it only sees the balance at the end of its own processing order.
``build_monthly_stock_report`` replays movements chronologically and rejects
any point in time where a SKU's running balance drops below zero.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from app.services.movements import (
    Month,
    MovementKind,
    MovementRecord,
    NegativeStockError,
    Quantity,
    normalize_movements,
    to_utc,
    unify_quantities,
    validate_quantities,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockBalance:
    sku: str
    purchased: Quantity
    sold: Quantity
    balance: Quantity


@dataclass(frozen=True)
class MonthlyStockSummary:
    month: Month
    purchases: Quantity
    sales: Quantity
    closing_balance: Quantity


MonthlyStockReport = dict[str, tuple[MonthlyStockSummary, ...]]


@dataclass
class _BalanceAccumulator:
    purchased: Quantity = 0
    sold: Quantity = 0
    balance: Quantity = 0
    last_movement_at: datetime | None = None


@dataclass
class _MonthAccumulator:
    opening_balance: Quantity
    purchases: Quantity = 0
    sales: Quantity = 0
    closing_balance: Quantity = field(init=False)

    def __post_init__(self) -> None:
        self.closing_balance = self.opening_balance


def _ensure_non_negative(balance: Quantity, sku: str, occurred_at: datetime) -> None:
    if balance < 0:
        raise NegativeStockError(sku, occurred_at, balance)


def calculate_stock_balances(
    purchases: Iterable[MovementRecord],
    sales: Iterable[MovementRecord],
) -> dict[str, StockBalance]:
    purchases = tuple(purchases)
    sales = tuple(sales)
    validate_quantities(purchases, MovementKind.PURCHASE)
    validate_quantities(sales, MovementKind.SALE)
    purchases, sales = unify_quantities(purchases, sales)

    totals: dict[str, _BalanceAccumulator] = {}

    for purchase in purchases:
        entry = totals.setdefault(purchase.sku, _BalanceAccumulator())
        entry.purchased += purchase.quantity
        entry.balance += purchase.quantity
        entry.last_movement_at = to_utc(purchase.date)

    for sale in sales:
        entry = totals.setdefault(sale.sku, _BalanceAccumulator())
        occurred_at = to_utc(sale.date)
        entry.sold += sale.quantity
        entry.balance -= sale.quantity
        entry.last_movement_at = occurred_at
        _ensure_non_negative(entry.balance, sale.sku, occurred_at)

    # Re-check every SKU so a bad running total in one SKU cannot hide behind another.
    for sku, entry in totals.items():
        _ensure_non_negative(entry.balance, sku, entry.last_movement_at)

    logger.debug(
        "Aggregated %d purchases and %d sales into %d SKU balances",
        len(purchases),
        len(sales),
        len(totals),
    )
    return {
        sku: StockBalance(sku=sku, purchased=entry.purchased, sold=entry.sold, balance=entry.balance)
        for sku, entry in totals.items()
    }


def build_monthly_stock_report(
    purchases: Iterable[MovementRecord],
    sales: Iterable[MovementRecord],
) -> MonthlyStockReport:
    movements = normalize_movements(purchases, sales)
    # sorted() is stable: equal timestamps keep purchases-then-sales input order.
    movements = sorted(movements, key=lambda movement: movement.occurred_at)

    months_by_sku: dict[str, dict[Month, _MonthAccumulator]] = {}
    running_balances: dict[str, Quantity] = {}

    for movement in movements:
        month = Month.of(movement.occurred_at)
        current_balance = running_balances.get(movement.sku, 0)
        sku_months = months_by_sku.setdefault(movement.sku, {})
        summary = sku_months.get(month)
        if summary is None:
            summary = sku_months[month] = _MonthAccumulator(opening_balance=current_balance)

        updated_balance = current_balance + movement.signed_quantity
        _ensure_non_negative(updated_balance, movement.sku, movement.occurred_at)

        if movement.kind is MovementKind.PURCHASE:
            summary.purchases += movement.quantity
        else:
            summary.sales += movement.quantity
        summary.closing_balance = updated_balance
        running_balances[movement.sku] = updated_balance

    logger.debug("Replayed %d movements across %d SKUs", len(movements), len(months_by_sku))
    return {
        sku: tuple(
            MonthlyStockSummary(
                month=month,
                purchases=summary.purchases,
                sales=summary.sales,
                closing_balance=summary.closing_balance,
            )
            for month, summary in sorted(sku_months.items())
        )
        for sku, sku_months in months_by_sku.items()
    }
