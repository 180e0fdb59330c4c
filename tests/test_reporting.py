import csv
import io
from datetime import datetime
from decimal import Decimal

from app.models.inventory import Product, Purchase, Sale
from app.services.reporting import (
    build_financial_report,
    build_product_report,
    product_report_to_csv,
    report_rows_to_csv,
)


def _catalogue():
    notebook = Product(id=1, code="BK-001", name="Notebook - Dot Grid", price=Decimal("14.50"))
    pen = Product(id=2, code="PN-002", name="Gel Pen - 0.5mm", price=Decimal("2.20"))
    purchases = [
        Purchase(id=1, product=notebook, product_id=1, quantity=120, unit_cost=Decimal("7.80"), purchased_at=datetime(2024, 1, 10)),
        Purchase(id=2, product=pen, product_id=2, quantity=400, unit_cost=Decimal("1.10"), purchased_at=datetime(2024, 2, 5)),
    ]
    sales = [
        Sale(id=1, product=notebook, product_id=1, quantity=40, unit_price=Decimal("16.50"), sold_at=datetime(2024, 2, 20)),
        Sale(id=2, product=pen, product_id=2, quantity=150, unit_price=Decimal("2.50"), sold_at=datetime(2024, 3, 12)),
    ]
    return [notebook, pen], purchases, sales


def test_financial_report_groups_by_month():
    products, purchases, sales = _catalogue()

    report = build_financial_report(total_products=len(products), purchases=purchases, sales=sales)

    assert [(row.month, row.units_purchased, row.units_sold) for row in report.rows] == [
        ("2024-01", 120, 0),
        ("2024-02", 400, 40),
        ("2024-03", 0, 150),
    ]
    january, february, march = report.rows
    assert january.cost == Decimal("936.00")
    assert january.net == Decimal("-936.00")
    assert february.revenue == Decimal("660.00")
    assert february.cost == Decimal("440.00")
    assert february.net == Decimal("220.00")
    assert march.revenue == Decimal("375.00")

    assert report.summary.total_products == 2
    assert report.summary.total_purchases == 520
    assert report.summary.total_sales == 190
    assert report.summary.total_revenue == Decimal("1035.00")
    assert report.summary.total_cost == Decimal("1376.00")
    assert report.summary.net == Decimal("-341.00")


def test_financial_report_details_are_newest_first_and_capped():
    products, purchases, sales = _catalogue()

    report = build_financial_report(total_products=2, purchases=purchases, sales=sales, max_detail_rows=3)

    assert [(d.type, d.id) for d in report.details] == [("sale", 2), ("sale", 1), ("purchase", 2)]
    assert report.details[0].product_code == "PN-002"
    assert report.details[0].total == Decimal("375.00")


def test_product_report_computes_stock_and_values():
    products, purchases, sales = _catalogue()

    items = build_product_report(products=products, purchases=purchases, sales=sales)

    notebook = items[0]
    assert notebook.total_purchased == 120
    assert notebook.total_sold == 40
    assert notebook.stock == 80
    assert notebook.stock_value == Decimal("1160.00")
    assert notebook.total_purchase_value == Decimal("936.00")
    assert notebook.total_sales_value == Decimal("660.00")


def test_product_report_lists_products_without_movements():
    products, _, _ = _catalogue()
    items = build_product_report(products=products, purchases=[], sales=[])
    assert [(item.code, item.stock, item.stock_value) for item in items] == [
        ("BK-001", 0, Decimal("0.00")),
        ("PN-002", 0, Decimal("0.00")),
    ]


def test_csv_exports_have_headers_and_rows():
    products, purchases, sales = _catalogue()
    report = build_financial_report(total_products=2, purchases=purchases, sales=sales)

    rows = list(csv.reader(io.StringIO(report_rows_to_csv(report.rows))))
    assert rows[0] == ["month", "units_purchased", "units_sold", "revenue", "cost", "net"]
    assert rows[2] == ["2024-02", "400", "40", "660.00", "440.00", "220.00"]

    items = build_product_report(products=products, purchases=purchases, sales=sales)
    product_rows = list(csv.reader(io.StringIO(product_report_to_csv(items))))
    assert product_rows[0][:3] == ["product_id", "code", "name"]
    assert product_rows[1][1] == "BK-001"
    assert product_rows[1][-2:] == ["", ""]
