# tests/test_contracts.py
from datetime import date

from conftest import create_request
from portfolio.contracts import generate_contract
from portfolio.models import ContractTemplate, Customer
from portfolio.utils.placeholders import build_placeholders, substitute

TEMPLATE = (
    "Vertrag {{VERTRAGSNUMMER}} vom {{DATUM}}\n"
    "Auftraggeber: {{KUNDE_NAME}} ({{KUNDE_FIRMA}})\n"
    "Projekt: {{PROJEKT_TYP}}, Budget {{PROJEKT_BUDGET}}\n"
    "Anbieter: {{ANBIETER_NAME}}\n"
    "{{UNBEKANNT}}"
)


def _template_id(admin_client):
    r = admin_client.post("/api/admin/contract-templates", json={"name": "Webprojekt", "content": TEMPLATE})
    assert r.status_code == 200
    return r.json()["id"]


def test_generate_contract_fills_placeholders(admin_client, customer_client):
    admin_client.post("/api/settings", json={"impressum_name": "Max Dev"})
    request_id = create_request(customer_client)
    template_id = _template_id(admin_client)

    r = admin_client.post(
        "/api/admin/contracts/generate",
        json={"template_id": template_id, "customer_id": customer_client.customer_id, "request_id": request_id},
    )
    assert r.status_code == 200
    number = r.json()["contract_number"]
    assert number == f"V-{date.today().year}-001"

    contract = admin_client.get(f"/api/admin/contracts/{r.json()['id']}").json()
    assert contract["status"] == "draft"
    assert contract["title"] == "Webprojekt"
    assert f"Vertrag {number} vom {date.today().strftime('%d.%m.%Y')}" in contract["content"]
    assert "Auftraggeber: Max Mustermann (Muster GmbH)" in contract["content"]
    assert "Projekt: Webdesign, Budget 1.000 - 2.500 €" in contract["content"]
    assert "Anbieter: Max Dev" in contract["content"]
    assert "{{UNBEKANNT}}" in contract["content"]


def test_contract_text_is_frozen(admin_client, customer_client):
    template_id = _template_id(admin_client)
    r = admin_client.post(
        "/api/admin/contracts/generate",
        json={"template_id": template_id, "customer_id": customer_client.customer_id},
    )
    contract_id = r.json()["id"]
    before = admin_client.get(f"/api/admin/contracts/{contract_id}").json()["content"]

    admin_client.put(f"/api/admin/contract-templates/{template_id}", json={"content": "Neu"})
    customer_client.put("/api/customer/profile", json={"name": "Anderer Name"})

    assert admin_client.get(f"/api/admin/contracts/{contract_id}").json()["content"] == before


def test_request_must_belong_to_customer(admin_client, customer_client, other_customer_client):
    request_id = create_request(other_customer_client)
    template_id = _template_id(admin_client)
    r = admin_client.post(
        "/api/admin/contracts/generate",
        json={"template_id": template_id, "customer_id": customer_client.customer_id, "request_id": request_id},
    )
    assert r.status_code == 404


def test_contract_numbers_per_year(db, customer_client):
    customer = db.get(Customer, customer_client.customer_id)
    template = ContractTemplate(name="T", content="{{VERTRAGSNUMMER}}")
    db.add(template)
    db.commit()

    first = generate_contract(db, template, customer, None, today=date(2024, 3, 1))
    second = generate_contract(db, template, customer, None, today=date(2024, 9, 1))
    next_year = generate_contract(db, template, customer, None, today=date(2025, 1, 2))

    assert first.contract_number == "V-2024-001"
    assert second.contract_number == "V-2024-002"
    assert next_year.contract_number == "V-2025-001"
    assert next_year.content == "V-2025-001"


def test_sign_and_unsign(admin_client, customer_client):
    template_id = _template_id(admin_client)
    contract_id = admin_client.post(
        "/api/admin/contracts/generate",
        json={"template_id": template_id, "customer_id": customer_client.customer_id},
    ).json()["id"]

    signed = admin_client.put(f"/api/admin/contracts/{contract_id}", json={"status": "signed"}).json()
    assert signed["signed_at"] is not None

    sent = admin_client.put(f"/api/admin/contracts/{contract_id}", json={"status": "sent"}).json()
    assert sent["signed_at"] is None

    assert admin_client.put(f"/api/admin/contracts/{contract_id}", json={"status": "archiviert"}).status_code == 422


def test_deleting_template_keeps_contracts(admin_client, customer_client):
    template_id = _template_id(admin_client)
    contract_id = admin_client.post(
        "/api/admin/contracts/generate",
        json={"template_id": template_id, "customer_id": customer_client.customer_id},
    ).json()["id"]

    assert admin_client.delete(f"/api/admin/contract-templates/{template_id}").status_code == 200
    contract = admin_client.get(f"/api/admin/contracts/{contract_id}").json()
    assert contract["template_id"] is None


def test_default_template(admin_client):
    data = admin_client.get("/api/admin/contract-templates/default").json()
    assert "{{VERTRAGSNUMMER}}" in data["content"]
    assert "{{KUNDE_NAME}}" in data["content"]


def test_placeholders_without_data():
    values = build_placeholders(None, None, {}, today=date(2024, 5, 17))
    assert values["DATUM"] == "17.05.2024"
    assert values["KUNDE_NAME"] == ""
    assert substitute("Hallo {{KUNDE_NAME}}!", values) == "Hallo !"


def test_message_template_render(admin_client, customer_client):
    request_id = create_request(customer_client)
    r = admin_client.post(
        "/api/admin/templates",
        json={
            "name": "Status",
            "category": "status",
            "subject": "Anfrage #{{ANFRAGE_ID}}",
            "content": "Hallo {{KUNDE_NAME}}, Status: {{PROJEKT_STATUS}} ({{PROJEKT_FORTSCHRITT}})",
        },
    )
    template_id = r.json()["id"]

    rendered = admin_client.get(f"/api/admin/templates/{template_id}/render?request_id={request_id}").json()
    assert rendered["subject"] == f"Anfrage #{request_id}"
    assert rendered["content"] == "Hallo Max Mustermann, Status: Neu (0%)"

    assert admin_client.post(
        "/api/admin/templates", json={"name": "X", "category": "spam", "content": "x"}
    ).status_code == 422
    assert [t["name"] for t in admin_client.get("/api/admin/templates?category=status").json()] == ["Status"]
