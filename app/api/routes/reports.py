from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_inventory_store, to_naive_utc, validate_period
from app.core.config import settings
from app.schemas.inventory import ProductReportOut, ReportFormat, ReportOut
from app.services.inventory_store import InventoryStore
from app.services.reporting import (
    build_financial_report,
    build_product_report,
    product_report_to_csv,
    report_rows_to_csv,
)

router = APIRouter(prefix="/inventory/reports", tags=["Reports"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=ReportOut)
def financial_report(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    format: ReportFormat = Query(default="json"),
    store: InventoryStore = Depends(get_inventory_store),
):
    validate_period(start, end)
    date_from = to_naive_utc(start)
    date_to = to_naive_utc(end)

    report = build_financial_report(
        total_products=len(store.list_products()),
        purchases=store.list_purchases(date_from=date_from, date_to=date_to),
        sales=store.list_sales(date_from=date_from, date_to=date_to),
        period_start=date_from,
        period_end=date_to,
        max_detail_rows=settings.report_max_detail_rows,
    )
    if format == "csv":
        return _csv_response(report_rows_to_csv(report.rows), "inventory-report.csv")
    return report


@router.get("/products", response_model=list[ProductReportOut])
def product_report(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    format: ReportFormat = Query(default="json"),
    store: InventoryStore = Depends(get_inventory_store),
):
    validate_period(start, end)
    date_from = to_naive_utc(start)
    date_to = to_naive_utc(end)

    items = build_product_report(
        products=store.list_products(),
        purchases=store.list_purchases(date_from=date_from, date_to=date_to),
        sales=store.list_sales(date_from=date_from, date_to=date_to),
        period_start=date_from,
        period_end=date_to,
    )
    if format == "csv":
        return _csv_response(product_report_to_csv(items), "inventory-products-report.csv")
    return items
