# tests/test_requests.py
from conftest import create_request

from portfolio.utils.uploads import url_to_path


def test_customer_creates_and_lists_own_requests(customer_client, other_customer_client):
    own_id = create_request(customer_client)
    create_request(other_customer_client, project_type="discord-bot")

    mine = customer_client.get("/api/requests").json()
    assert [r["id"] for r in mine] == [own_id]
    assert mine[0]["status"] == "new"
    assert mine[0]["progress"] == 0


def test_foreign_request_is_forbidden(customer_client, other_customer_client):
    request_id = create_request(customer_client)

    assert other_customer_client.get(f"/api/requests/{request_id}").status_code == 403
    assert other_customer_client.get(f"/api/requests/{request_id}/messages").status_code == 403
    r = other_customer_client.post(f"/api/requests/{request_id}/messages", data={"content": "Hallo?"})
    assert r.status_code == 403


def test_missing_request_is_404(customer_client):
    assert customer_client.get("/api/requests/999").status_code == 404


def test_admin_sees_request_with_customer_data(customer_client, admin_client):
    request_id = create_request(customer_client)

    rows = admin_client.get("/api/admin/requests").json()
    assert len(rows) == 1
    assert rows[0]["id"] == request_id
    assert rows[0]["email"] == "max@beispiel.de"
    assert rows[0]["company"] == "Muster GmbH"
    assert rows[0]["status"] == "new"


def test_admin_update_keeps_unsent_fields(customer_client, admin_client):
    request_id = create_request(customer_client)

    r = admin_client.put(
        f"/api/admin/requests/{request_id}",
        json={"status": "in_progress", "deadline": "2030-03-01", "admin_notes": "Design abstimmen"},
    )
    assert r.status_code == 200

    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"progress": 40})
    data = r.json()["request"]
    assert data["status"] == "in_progress"
    assert data["deadline"] == "2030-03-01"
    assert data["admin_notes"] == "Design abstimmen"
    assert data["progress"] == 40


def test_unknown_status_rejected(customer_client, admin_client):
    request_id = create_request(customer_client)
    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"status": "done"})
    assert r.status_code == 422


def test_progress_out_of_range_rejected(customer_client, admin_client):
    request_id = create_request(customer_client)
    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"progress": 150})
    assert r.status_code == 422


def test_status_change_logs_notification_even_without_smtp(customer_client, admin_client):
    request_id = create_request(customer_client)
    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"status": "waiting"})
    assert r.status_code == 200

    logs = admin_client.get("/api/admin/email-logs").json()
    status_logs = [log for log in logs if log["email_type"] == "status_update"]
    assert len(status_logs) == 1
    assert status_logs[0]["status"] == "skipped"


def test_message_thread(customer_client, admin_client):
    request_id = create_request(customer_client)

    r = customer_client.post(f"/api/requests/{request_id}/messages", data={"content": "Wann geht es los?"})
    assert r.status_code == 200
    r = admin_client.post(f"/api/requests/{request_id}/messages", data={"content": "Nächste Woche."})
    assert r.status_code == 200

    thread = customer_client.get(f"/api/requests/{request_id}/messages").json()
    assert [m["sender_type"] for m in thread] == ["customer", "admin"]
    assert thread[0]["sender_id"] == customer_client.customer_id
    assert thread[1]["content"] == "Nächste Woche."


def test_message_requires_text_or_file(customer_client):
    request_id = create_request(customer_client)
    r = customer_client.post(f"/api/requests/{request_id}/messages", data={"content": "   "})
    assert r.status_code == 400


def test_message_with_attachment(customer_client):
    request_id = create_request(customer_client)

    r = customer_client.post(
        f"/api/requests/{request_id}/messages",
        files={"file": ("briefing.pdf", b"%PDF-1.4 Briefing", "application/pdf")},
    )
    assert r.status_code == 200
    msg = r.json()["message"]
    assert msg["content"] is None
    assert msg["original_name"] == "briefing.pdf"
    assert msg["file_path"].startswith("/uploads/requests/")
    assert url_to_path(msg["file_path"]).exists()

    files = customer_client.get(f"/api/requests/{request_id}/files").json()
    assert len(files) == 1
    assert files[0]["uploaded_by"] == "customer"


def test_attachment_type_checked(customer_client):
    request_id = create_request(customer_client)
    r = customer_client.post(
        f"/api/requests/{request_id}/messages",
        files={"file": ("virus.exe", b"MZ", "application/octet-stream")},
    )
    assert r.status_code == 400


def test_delete_request_removes_messages_and_files(customer_client, admin_client):
    request_id = create_request(customer_client)
    r = customer_client.post(
        f"/api/requests/{request_id}/messages",
        data={"content": "Anbei das Logo"},
        files={"file": ("logo.png", b"\x89PNG fake", "image/png")},
    )
    path = url_to_path(r.json()["message"]["file_path"])
    assert path.exists()

    assert admin_client.delete(f"/api/admin/requests/{request_id}").status_code == 200
    assert admin_client.get(f"/api/admin/requests/{request_id}").status_code == 404
    assert not path.exists()
