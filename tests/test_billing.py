# tests/test_billing.py
from datetime import date
from decimal import Decimal

from portfolio.utils.billing import compute_invoice, compute_quote, to_money
from portfolio.utils.filters import format_currency, format_number

ITEMS = [
    {"description": "Design", "quantity": 2, "unit_price": 100},
    {"description": "Hosting", "quantity": 1, "unit_price": 50},
]


# ---------------------------------------------------------
# Reine Berechnung
# ---------------------------------------------------------
def test_invoice_totals_with_vat():
    result = compute_invoice(ITEMS, invoice_date=date(2024, 1, 20))
    assert result.subtotal == Decimal("250.00")
    assert result.tax == Decimal("47.50")
    assert result.total == Decimal("297.50")
    assert result.deadline == date(2024, 2, 3)
    assert [line["line_total"] for line in result.lines] == [200.0, 50.0]


def test_invoice_small_business_has_no_tax():
    result = compute_invoice(ITEMS, small_business=True)
    assert result.tax == Decimal("0.00")
    assert result.total == Decimal("250.00")


def test_rounding_is_commercial():
    assert to_money("0.125") == Decimal("0.13")
    result = compute_invoice([{"quantity": 3, "unit_price": "0.1"}])
    assert result.subtotal == Decimal("0.30")
    assert result.tax == Decimal("0.06")


def test_quote_uses_default_rate_and_validity():
    result = compute_quote(
        [{"description": "Bot", "hours": 10}, {"description": "Setup", "hours": 2, "rate": 50}],
        quote_date=date(2024, 3, 1),
    )
    assert [line["line_total"] for line in result.lines] == [750.0, 100.0]
    assert result.subtotal == Decimal("850.00")
    assert result.total == Decimal("1011.50")
    assert result.deadline == date(2024, 3, 31)


def test_filters():
    assert format_currency(1234.5) == "1.234,50 €"
    assert format_number(2.0) == "2"
    assert format_number(1.5) == "1,5"


# ---------------------------------------------------------
# Endpunkte
# ---------------------------------------------------------
def test_calculate_endpoint(admin_client):
    r = admin_client.post("/api/invoices/calculate", json={"items": ITEMS, "invoice_date": "2024-01-20"})
    assert r.status_code == 200
    data = r.json()
    assert data["subtotal"] == 250.0
    assert data["tax"] == 47.5
    assert data["total"] == 297.5
    assert data["due_date"] == "2024-02-03"


def test_calculate_follows_small_business_setting(admin_client):
    admin_client.post("/api/settings", json={"kleinunternehmer": True})
    data = admin_client.post("/api/invoices/calculate", json={"items": ITEMS}).json()
    assert data["small_business"] is True
    assert data["tax"] == 0


def test_quote_endpoint_uses_hourly_rate_setting(admin_client):
    admin_client.post("/api/settings", json={"hourly_rate": "90"})
    data = admin_client.post(
        "/api/quotes/calculate",
        json={"items": [{"description": "Umsetzung", "hours": 4}], "quote_date": "2024-03-01"},
    ).json()
    assert data["subtotal"] == 360.0
    assert data["valid_until"] == "2024-03-31"


def test_hourly_rate_with_decimal_comma(admin_client):
    admin_client.post("/api/settings", json={"hourly_rate": "75,50"})
    r = admin_client.post("/api/quotes/calculate", json={"items": [{"description": "Umsetzung", "hours": 2}]})
    assert r.status_code == 200
    assert r.json()["items"][0]["rate"] == 75.5
    assert r.json()["subtotal"] == 151.0

    admin_client.post("/api/settings", json={"hourly_rate": "80 €"})
    data = admin_client.post("/api/quotes/calculate", json={"items": [{"description": "X", "hours": 1}]}).json()
    assert data["subtotal"] == 80.0


def test_invalid_hourly_rate_falls_back_to_default(admin_client):
    admin_client.post("/api/settings", json={"hourly_rate": "nach Absprache"})
    r = admin_client.post("/api/quotes/calculate", json={"items": [{"description": "X", "hours": 2}]})
    assert r.status_code == 200
    assert r.json()["subtotal"] == 150.0

    r = admin_client.post("/api/quotes/print", json={"customer_name": "A", "items": [{"description": "X", "hours": 1}]})
    assert r.status_code == 200


def test_calculate_requires_admin(client):
    assert client.post("/api/invoices/calculate", json={"items": ITEMS}).status_code == 401


def test_invoice_numbers_are_sequential(admin_client):
    first = admin_client.post(
        "/api/invoices",
        json={"customer_name": "Muster GmbH", "items": ITEMS, "invoice_date": "2024-05-01"},
    ).json()
    second = admin_client.post(
        "/api/invoices",
        json={"customer_name": "Muster GmbH", "amount": 100, "invoice_date": "2024-06-01"},
    ).json()

    assert first["invoice_number"] == "R-2024-001"
    assert first["total"] == 297.5
    assert second["invoice_number"] == "R-2024-002"
    assert second["amount"] == 100.0
    assert second["total"] == 119.0


def test_duplicate_invoice_number_rejected(admin_client):
    payload = {"invoice_number": "R-2024-042", "customer_name": "A", "amount": 10}
    assert admin_client.post("/api/invoices", json=payload).status_code == 200
    assert admin_client.post("/api/invoices", json=payload).status_code == 400


def test_invoice_without_items_or_amount(admin_client):
    r = admin_client.post("/api/invoices", json={"customer_name": "A"})
    assert r.status_code == 400


def test_invoice_status_and_paid_date(admin_client):
    invoice = admin_client.post("/api/invoices", json={"customer_name": "A", "amount": 100}).json()
    assert invoice["status"] == "offen"
    assert invoice["paid_date"] is None

    paid = admin_client.put(f"/api/invoices/{invoice['id']}", json={"status": "bezahlt"}).json()
    assert paid["paid_date"] == date.today().isoformat()

    reopened = admin_client.put(f"/api/invoices/{invoice['id']}", json={"status": "offen"}).json()
    assert reopened["paid_date"] is None


def test_invoice_filters(admin_client):
    admin_client.post("/api/invoices", json={"customer_name": "Alpha AG", "amount": 10})
    admin_client.post("/api/invoices", json={"customer_name": "Beta KG", "amount": 20, "status": "bezahlt"})

    assert [i["customer_name"] for i in admin_client.get("/api/invoices?status=bezahlt").json()] == ["Beta KG"]
    assert [i["customer_name"] for i in admin_client.get("/api/invoices?q=Alpha").json()] == ["Alpha AG"]


def test_invoice_for_registered_customer(admin_client, customer_client):
    invoice = admin_client.post(
        "/api/invoices", json={"customer_id": customer_client.customer_id, "amount": 50}
    ).json()
    assert invoice["customer_name"] == "Muster GmbH"
    assert invoice["customer_email"] == "max@beispiel.de"


def test_delete_invoice(admin_client):
    invoice = admin_client.post("/api/invoices", json={"customer_name": "A", "amount": 10}).json()
    assert admin_client.delete(f"/api/invoices/{invoice['id']}").status_code == 200
    assert admin_client.get("/api/invoices").json() == []


def test_print_views(admin_client):
    invoice = admin_client.post(
        "/api/invoices",
        json={"customer_name": "Muster GmbH", "items": ITEMS, "invoice_date": "2024-01-20"},
    ).json()

    r = admin_client.get(f"/api/invoices/{invoice['id']}/print")
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert "R-2024-001" in r.text
    assert "297,50 €" in r.text
    assert "03.02.2024" in r.text

    r = admin_client.post(
        "/api/quotes/print",
        json={"customer_name": "Muster GmbH", "items": [{"description": "Bot", "hours": 2}], "small_business": True},
    )
    assert r.status_code == 200
    assert "Muster GmbH" in r.text
    assert "§ 19 UStG" in r.text
