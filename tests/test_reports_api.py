import csv
import io


def _seed(client, make_product):
    notebook = make_product(code="bk-001", name="Notebook", price="14.50")
    pen = make_product(code="pn-002", name="Gel Pen", price="2.20")
    for product_id, quantity, unit_cost, at in [
        (notebook["id"], 120, "7.80", "2024-01-10T09:00:00"),
        (pen["id"], 400, "1.10", "2024-02-05T13:30:00"),
    ]:
        response = client.post(
            "/inventory/purchases",
            json={"product_id": product_id, "quantity": quantity, "unit_cost": unit_cost, "purchased_at": at},
        )
        assert response.status_code == 201
    for product_id, quantity, unit_price, at in [
        (notebook["id"], 40, "16.50", "2024-02-20T16:00:00"),
        (pen["id"], 150, "2.50", "2024-03-12T11:10:00"),
    ]:
        response = client.post(
            "/inventory/sales",
            json={"product_id": product_id, "quantity": quantity, "unit_price": unit_price, "sold_at": at},
        )
        assert response.status_code == 201
    return notebook, pen


def test_financial_report_json(client, make_product):
    _seed(client, make_product)

    body = client.get("/inventory/reports").json()

    assert body["summary"] == {
        "total_products": 2,
        "total_purchases": 520,
        "total_sales": 190,
        "total_revenue": "1035.00",
        "total_cost": "1376.00",
        "net": "-341.00",
    }
    assert [row["month"] for row in body["rows"]] == ["2024-01", "2024-02", "2024-03"]
    assert body["rows"][1]["net"] == "220.00"
    assert [d["type"] for d in body["details"]] == ["sale", "sale", "purchase", "purchase"]
    assert body["period_start"] is None


def test_financial_report_respects_period(client, make_product):
    _seed(client, make_product)

    body = client.get(
        "/inventory/reports",
        params={"start": "2024-02-01T00:00:00", "end": "2024-02-29T23:59:59"},
    ).json()

    assert [row["month"] for row in body["rows"]] == ["2024-02"]
    assert body["summary"]["total_revenue"] == "660.00"
    assert body["summary"]["total_cost"] == "440.00"
    assert body["period_start"] == "2024-02-01T00:00:00"


def test_financial_report_csv(client, make_product):
    _seed(client, make_product)

    response = client.get("/inventory/reports", params={"format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="inventory-report.csv"' in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["month", "units_purchased", "units_sold", "revenue", "cost", "net"]
    assert rows[1] == ["2024-01", "120", "0", "0.00", "936.00", "-936.00"]


def test_product_report(client, make_product):
    notebook, _ = _seed(client, make_product)

    items = client.get("/inventory/reports/products").json()

    by_code = {item["code"]: item for item in items}
    assert by_code["BK-001"]["product_id"] == notebook["id"]
    assert by_code["BK-001"]["stock"] == 80
    assert by_code["BK-001"]["stock_value"] == "1160.00"
    assert by_code["PN-002"]["total_sales_value"] == "375.00"

    csv_response = client.get("/inventory/reports/products", params={"format": "csv"})
    assert 'filename="inventory-products-report.csv"' in csv_response.headers["content-disposition"]


def test_report_rejects_inverted_period_and_unknown_format(client):
    inverted = client.get(
        "/inventory/reports",
        params={"start": "2024-03-01T00:00:00", "end": "2024-01-01T00:00:00"},
    )
    assert inverted.status_code == 400
    assert client.get("/inventory/reports", params={"format": "xml"}).status_code == 422


def test_period_mixing_aware_and_naive_bounds(client, make_product):
    _seed(client, make_product)

    mixed = client.get(
        "/inventory/reports",
        params={"start": "2024-02-01T00:00:00Z", "end": "2024-02-29T23:59:59"},
    )
    assert mixed.status_code == 200
    assert mixed.json()["summary"]["total_revenue"] == "660.00"

    inverted = client.get(
        "/inventory/reports/products",
        params={"start": "2024-03-01T05:00:00+05:00", "end": "2024-02-01T00:00:00"},
    )
    assert inverted.status_code == 400

    listed = client.get(
        "/inventory/sales",
        params={"date_from": "2024-01-01T00:00:00Z", "date_to": "2024-12-31T00:00:00"},
    )
    assert listed.status_code == 200
    assert len(listed.json()) == 2
