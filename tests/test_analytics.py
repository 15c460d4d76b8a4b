# tests/test_analytics.py
from datetime import date, timedelta

from conftest import create_request
from portfolio.analytics import trailing_months


def test_trailing_months_crosses_year():
    assert trailing_months(date(2024, 2, 15)) == [
        "2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02",
    ]


def test_empty_analytics(admin_client):
    data = admin_client.get("/api/admin/analytics").json()
    assert data["conversion"] == {"total": 0, "completed": 0, "rate": 0}
    assert data["avg_response_time_hours"] is None
    assert data["top_customers"] == []
    assert len(data["requests_per_month"]) == 6
    assert all(m["count"] == 0 for m in data["requests_per_month"])
    assert all(m["revenue"] == 0 for m in data["revenue_per_month"])


def test_analytics_with_data(admin_client, customer_client, other_customer_client):
    first = create_request(customer_client)
    create_request(customer_client, project_type="discord-bot")
    create_request(other_customer_client)

    admin_client.put(f"/api/admin/requests/{first}", json={"status": "completed"})
    admin_client.post(f"/api/requests/{first}/messages", data={"content": "Danke für die Anfrage!"})
    admin_client.post(
        "/api/invoices",
        json={"customer_id": customer_client.customer_id, "amount": 100, "status": "bezahlt"},
    )

    data = admin_client.get("/api/admin/analytics").json()
    assert data["conversion"] == {"total": 3, "completed": 1, "rate": 33.3}
    assert data["project_types"][0] == {"project_type": "webdesign", "count": 2}
    assert {"status": "completed", "count": 1} in data["status_distribution"]
    assert data["requests_per_month"][-1]["count"] == 3
    assert data["revenue_per_month"][-1]["revenue"] == 119.0
    assert data["avg_response_time_hours"] is not None

    top = data["top_customers"][0]
    assert top["email"] == "max@beispiel.de"
    assert top["request_count"] == 2
    assert top["total_value"] == 119.0


def test_analytics_requires_admin(customer_client):
    assert customer_client.get("/api/admin/analytics").status_code == 401


def test_dashboard(admin_client, customer_client):
    create_request(customer_client)
    admin_client.post("/api/projects", data={"title": "Referenz"})
    admin_client.post("/api/invoices", json={"customer_name": "A", "amount": 100, "status": "bezahlt"})
    past = (date.today() - timedelta(days=30)).isoformat()
    admin_client.post("/api/invoices", json={"customer_name": "B", "amount": 100, "invoice_date": past})
    admin_client.post("/api/invoices", json={"customer_name": "C", "amount": 10})

    data = admin_client.get("/api/dashboard").json()
    assert data["stats"] == {"projects": 1, "customers": 1, "open_requests": 1, "invoices": 3}
    assert data["revenue"] == {"total": 249.9, "paid": 119.0, "open": 11.9, "overdue": 119.0}

    types = [a["type"] for a in data["activities"]]
    assert "customer_registered" in types
    assert "request_received" in types
    assert len(data["activities"]) <= 10


def test_activity_filter(admin_client, customer_client):
    create_request(customer_client)
    rows = admin_client.get("/api/admin/activities?type=request_received").json()
    assert len(rows) == 1
    assert all(r["type"] == "request_received" for r in rows)
