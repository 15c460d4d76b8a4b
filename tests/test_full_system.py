# tests/test_full_system.py
# Kompletter Durchlauf: Besucher → Kunde → Admin → Bewertung auf der Startseite
from fastapi.testclient import TestClient

from conftest import next_weekday, register


# 🧪 Öffentliche Seite ------------------------------------------------------

def test_health(client):
    """Health-Check sollte ohne Login erreichbar sein."""
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_public_endpoints_without_login(client):
    """Portfolio-Inhalte sind öffentlich."""
    for path in ("/api/projects", "/api/services", "/api/skills", "/api/faqs", "/api/reviews", "/api/settings"):
        assert client.get(path).status_code == 200, path


# 🧪 Ende-zu-Ende -----------------------------------------------------------

def test_request_to_public_review(client, admin_client):
    """
    Kunde registriert sich, stellt eine Anfrage, der Admin schließt sie ab,
    der Kunde bewertet und nach Freigabe erscheint die Bewertung öffentlich.
    """
    customer_id = register(client, "neu@beispiel.de", name="Nina Neu", company="Neu & Co")

    r = client.post("/api/requests", json={
        "project_type": "custom-app",
        "budget": "ueber-2500",
        "timeline": "flexibel",
        "description": "Interne Verwaltungs-App",
    })
    assert r.status_code == 200
    request_id = r.json()["id"]

    # Admin sieht die Anfrage als neu
    admin_view = admin_client.get(f"/api/admin/requests/{request_id}").json()
    assert admin_view["status"] == "new"
    assert admin_view["customer_id"] == customer_id
    assert admin_view["email"] == "neu@beispiel.de"

    # Rückfrage und Antwort
    assert admin_client.post(f"/api/requests/{request_id}/messages", data={"content": "Welche Plattform?"}).status_code == 200
    assert client.post(f"/api/requests/{request_id}/messages", data={"content": "Web reicht."}).status_code == 200

    # Termin buchen und bestätigen
    day = next_weekday()
    appointment = client.post(
        "/api/customer/appointments",
        json={"date": day.isoformat(), "time_slot": "13:00", "request_id": request_id},
    ).json()
    r = admin_client.put(f"/api/admin/appointments/{appointment['id']}", json={"status": "confirmed"})
    assert r.json()["status"] == "confirmed"

    # Abschluss
    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"status": "completed", "progress": 100})
    assert r.status_code == 200
    mine = client.get(f"/api/requests/{request_id}").json()
    assert mine["status"] == "completed"
    assert mine["progress"] == 100

    # Bewertung bleibt bis zur Freigabe unsichtbar
    review = client.post("/api/customer/reviews", json={
        "request_id": request_id,
        "rating": 5,
        "title": "Sehr zufrieden",
        "content": "Schnell und sauber umgesetzt.",
    }).json()
    assert review["is_approved"] is False
    assert client.get("/api/reviews").json() == []

    admin_client.put(f"/api/admin/reviews/{review['id']}", json={"is_approved": True})
    public = client.get("/api/reviews").json()
    assert len(public) == 1
    assert public[0]["rating"] == 5
    assert public[0]["company"] == "Neu & Co"
    assert public[0]["project_type"] == "Custom App"

    # Rechnung und Dashboard
    invoice = admin_client.post(
        "/api/invoices",
        json={"customer_id": customer_id, "items": [{"description": "App", "quantity": 1, "unit_price": 2000}]},
    ).json()
    assert invoice["total"] == 2380.0
    admin_client.put(f"/api/invoices/{invoice['id']}", json={"status": "bezahlt"})

    dashboard = admin_client.get("/api/dashboard").json()
    assert dashboard["stats"]["customers"] == 1
    assert dashboard["stats"]["open_requests"] == 0
    assert dashboard["revenue"]["paid"] == 2380.0


def test_admin_and_customer_in_same_session(client):
    """Beide Logins in einer Session: Admin-Routen gehen, Kundenrouten auch."""
    register(client, "beides@beispiel.de")
    client.post("/api/login", json={"password": "admin"})

    assert client.get("/api/auth/check").json() == {"authenticated": True}
    assert client.get("/api/requests").status_code == 200
    assert client.get("/api/admin/requests").status_code == 200


def test_lifespan_starts_and_stops_scheduler(monkeypatch):
    """Hintergrundjobs laufen nur zwischen Start und Stopp der App."""
    import main

    calls = []

    async def fake_stop():
        calls.append("stop")

    monkeypatch.setattr(main, "ENABLE_SCHEDULER", True)
    monkeypatch.setattr(main, "start_scheduler", lambda: calls.append("start"))
    monkeypatch.setattr(main, "stop_scheduler", fake_stop)

    with TestClient(main.app) as c:
        assert calls == ["start"]
        assert c.get("/api/health").status_code == 200
    assert calls == ["start", "stop"]
