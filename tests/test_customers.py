# tests/test_customers.py
from conftest import create_request

from portfolio.utils.uploads import url_to_path


def _request_with_file(c, filename):
    request_id = create_request(c)
    r = c.post(
        f"/api/requests/{request_id}/messages",
        data={"content": "Datei anbei"},
        files={"file": (filename, b"Inhalt", "text/plain")},
    )
    assert r.status_code == 200
    return request_id, url_to_path(r.json()["message"]["file_path"])


def test_customer_list_counts_requests(customer_client, other_customer_client, admin_client):
    create_request(customer_client)
    create_request(customer_client, project_type="custom-app")

    rows = {c["email"]: c for c in admin_client.get("/api/customers").json()}
    assert rows["max@beispiel.de"]["request_count"] == 2
    assert rows["erika@beispiel.de"]["request_count"] == 0


def test_customer_detail_includes_requests(customer_client, admin_client):
    request_id = create_request(customer_client)
    data = admin_client.get(f"/api/customers/{customer_client.customer_id}").json()
    assert data["email"] == "max@beispiel.de"
    assert [r["id"] for r in data["requests"]] == [request_id]


def test_cascade_delete_only_touches_deleted_customer(customer_client, other_customer_client, admin_client):
    a_request, a_file = _request_with_file(customer_client, "a.txt")
    b_request, b_file = _request_with_file(other_customer_client, "b.txt")

    r = admin_client.delete(f"/api/customers/{customer_client.customer_id}")
    assert r.status_code == 200

    assert admin_client.get(f"/api/customers/{customer_client.customer_id}").status_code == 404
    assert admin_client.get(f"/api/admin/requests/{a_request}").status_code == 404
    assert not a_file.exists()

    # der andere Kunde bleibt vollständig erhalten
    assert admin_client.get(f"/api/admin/requests/{b_request}").status_code == 200
    thread = other_customer_client.get(f"/api/requests/{b_request}/messages").json()
    assert len(thread) == 1
    assert b_file.exists()


def test_deleted_customer_session_is_dropped(customer_client, admin_client):
    admin_client.delete(f"/api/customers/{customer_client.customer_id}")
    assert customer_client.get("/api/customer/check").json() == {"authenticated": False}


def test_customer_documents(customer_client, other_customer_client, admin_client):
    r = admin_client.post(
        f"/api/customers/{customer_client.customer_id}/documents",
        data={"title": "Angebot"},
        files={"file": ("angebot.pdf", b"%PDF-1.4 Angebot", "application/pdf")},
    )
    assert r.status_code == 200
    doc_id = r.json()["id"]

    mine = customer_client.get("/api/customer/documents").json()
    assert [d["title"] for d in mine] == ["Angebot"]
    assert other_customer_client.get("/api/customer/documents").json() == []

    download = customer_client.get(f"/api/customer/documents/{doc_id}/download")
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 Angebot"

    assert other_customer_client.get(f"/api/customer/documents/{doc_id}/download").status_code == 404
