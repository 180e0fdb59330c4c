import csv
import io
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from app.models.inventory import Product, Purchase, Sale
from app.schemas.inventory import (
    DetailedReportRowOut,
    ProductReportOut,
    ReportOut,
    ReportRowOut,
    ReportSummaryOut,
)
from app.services.movements import Month

ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"))


def build_financial_report(
    *,
    total_products: int,
    purchases: Sequence[Purchase],
    sales: Sequence[Sale],
    period_start: datetime | None = None,
    period_end: datetime | None = None,
    max_detail_rows: int | None = None,
) -> ReportOut:
    """
    Groups already-filtered purchases and sales into monthly revenue/cost/net rows.

    revenue = sum(sale.quantity * sale.unit_price), cost =
    sum(purchase.quantity * purchase.unit_cost), net = revenue - cost, both per
    UTC month and for the whole period.
    """
    grouped: dict[Month, dict[str, Decimal | int]] = {}

    def ensure_row(month: Month) -> dict[str, Decimal | int]:
        row = grouped.get(month)
        if row is None:
            row = {"units_purchased": 0, "units_sold": 0, "revenue": ZERO, "cost": ZERO}
            grouped[month] = row
        return row

    total_cost = ZERO
    total_revenue = ZERO
    for purchase in purchases:
        value = Decimal(purchase.unit_cost) * purchase.quantity
        row = ensure_row(Month.of(purchase.purchased_at))
        row["units_purchased"] = int(row["units_purchased"]) + purchase.quantity
        row["cost"] = Decimal(row["cost"]) + value
        total_cost += value

    for sale in sales:
        value = Decimal(sale.unit_price) * sale.quantity
        row = ensure_row(Month.of(sale.sold_at))
        row["units_sold"] = int(row["units_sold"]) + sale.quantity
        row["revenue"] = Decimal(row["revenue"]) + value
        total_revenue += value

    rows = [
        ReportRowOut(
            month=month.label,
            units_purchased=int(values["units_purchased"]),
            units_sold=int(values["units_sold"]),
            revenue=_money(values["revenue"]),
            cost=_money(values["cost"]),
            net=_money(Decimal(values["revenue"]) - Decimal(values["cost"])),
        )
        for month, values in sorted(grouped.items(), key=lambda item: item[0])
    ]

    details = [
        DetailedReportRowOut(
            id=purchase.id,
            type="purchase",
            product_id=purchase.product.id,
            product_code=purchase.product.code,
            product_name=purchase.product.name,
            quantity=purchase.quantity,
            unit_value=_money(purchase.unit_cost),
            total=_money(Decimal(purchase.unit_cost) * purchase.quantity),
            date=purchase.purchased_at,
        )
        for purchase in purchases
    ]
    details.extend(
        DetailedReportRowOut(
            id=sale.id,
            type="sale",
            product_id=sale.product.id,
            product_code=sale.product.code,
            product_name=sale.product.name,
            quantity=sale.quantity,
            unit_value=_money(sale.unit_price),
            total=_money(Decimal(sale.unit_price) * sale.quantity),
            date=sale.sold_at,
        )
        for sale in sales
    )
    details.sort(key=lambda detail: detail.date, reverse=True)
    if max_detail_rows is not None:
        details = details[:max_detail_rows]

    summary = ReportSummaryOut(
        total_products=total_products,
        total_purchases=sum(purchase.quantity for purchase in purchases),
        total_sales=sum(sale.quantity for sale in sales),
        total_revenue=_money(total_revenue),
        total_cost=_money(total_cost),
        net=_money(total_revenue - total_cost),
    )
    return ReportOut(
        period_start=period_start,
        period_end=period_end,
        summary=summary,
        rows=rows,
        details=details,
    )


def build_product_report(
    *,
    products: Sequence[Product],
    purchases: Sequence[Purchase],
    sales: Sequence[Sale],
    period_start: datetime | None = None,
    period_end: datetime | None = None,
) -> list[ProductReportOut]:
    purchased: dict[int, int] = {}
    purchase_value: dict[int, Decimal] = {}
    sold: dict[int, int] = {}
    sales_value: dict[int, Decimal] = {}

    for purchase in purchases:
        purchased[purchase.product_id] = purchased.get(purchase.product_id, 0) + purchase.quantity
        purchase_value[purchase.product_id] = purchase_value.get(purchase.product_id, ZERO) + (
            Decimal(purchase.unit_cost) * purchase.quantity
        )
    for sale in sales:
        sold[sale.product_id] = sold.get(sale.product_id, 0) + sale.quantity
        sales_value[sale.product_id] = sales_value.get(sale.product_id, ZERO) + (
            Decimal(sale.unit_price) * sale.quantity
        )

    report = []
    for product in products:
        total_purchased = purchased.get(product.id, 0)
        total_sold = sold.get(product.id, 0)
        stock = total_purchased - total_sold
        report.append(
            ProductReportOut(
                product_id=product.id,
                code=product.code,
                name=product.name,
                price=_money(product.price),
                total_purchased=total_purchased,
                total_purchase_value=_money(purchase_value.get(product.id, ZERO)),
                total_sold=total_sold,
                total_sales_value=_money(sales_value.get(product.id, ZERO)),
                stock=stock,
                stock_value=_money(Decimal(product.price) * stock),
                period_start=period_start,
                period_end=period_end,
            )
        )
    return report


def report_rows_to_csv(rows: Sequence[ReportRowOut]) -> str:
    sio = io.StringIO()
    writer = csv.writer(sio)
    writer.writerow(["month", "units_purchased", "units_sold", "revenue", "cost", "net"])
    for row in rows:
        writer.writerow(
            [
                row.month,
                row.units_purchased,
                row.units_sold,
                str(row.revenue),
                str(row.cost),
                str(row.net),
            ]
        )
    return sio.getvalue()


def product_report_to_csv(items: Sequence[ProductReportOut]) -> str:
    sio = io.StringIO()
    writer = csv.writer(sio)
    writer.writerow(
        [
            "product_id",
            "code",
            "name",
            "price",
            "total_purchased",
            "total_purchase_value",
            "total_sold",
            "total_sales_value",
            "stock",
            "stock_value",
            "period_start",
            "period_end",
        ]
    )
    for item in items:
        writer.writerow(
            [
                item.product_id,
                item.code,
                item.name,
                str(item.price),
                item.total_purchased,
                str(item.total_purchase_value),
                item.total_sold,
                str(item.total_sales_value),
                item.stock,
                str(item.stock_value),
                item.period_start.isoformat() if item.period_start else "",
                item.period_end.isoformat() if item.period_end else "",
            ]
        )
    return sio.getvalue()
