# tests/test_reviews.py
from conftest import create_request


def _completed_request(customer_client, admin_client):
    request_id = create_request(customer_client)
    r = admin_client.put(f"/api/admin/requests/{request_id}", json={"status": "completed", "progress": 100})
    assert r.status_code == 200
    return request_id


def test_review_only_after_completion(customer_client):
    request_id = create_request(customer_client)
    r = customer_client.post("/api/customer/reviews", json={"request_id": request_id, "rating": 5})
    assert r.status_code == 400


def test_review_unknown_request(customer_client):
    r = customer_client.post("/api/customer/reviews", json={"request_id": 4711, "rating": 5})
    assert r.status_code == 404


def test_review_foreign_request(customer_client, other_customer_client, admin_client):
    request_id = _completed_request(customer_client, admin_client)
    r = other_customer_client.post("/api/customer/reviews", json={"request_id": request_id, "rating": 1})
    assert r.status_code == 403


def test_rating_range(customer_client, admin_client):
    request_id = _completed_request(customer_client, admin_client)
    for rating in (0, 6):
        r = customer_client.post("/api/customer/reviews", json={"request_id": request_id, "rating": rating})
        assert r.status_code == 422


def test_one_review_per_request(customer_client, admin_client):
    request_id = _completed_request(customer_client, admin_client)
    payload = {"request_id": request_id, "rating": 4, "content": "Gute Arbeit"}

    r = customer_client.post("/api/customer/reviews", json=payload)
    assert r.status_code == 200
    assert r.json()["is_approved"] is False
    assert r.json()["is_public"] is True

    assert customer_client.post("/api/customer/reviews", json=payload).status_code == 400
    assert len(customer_client.get("/api/customer/reviews").json()) == 1


def test_moderation_flow(customer_client, admin_client, client):
    request_id = _completed_request(customer_client, admin_client)
    review_id = customer_client.post(
        "/api/customer/reviews",
        json={"request_id": request_id, "rating": 5, "title": "Top!"},
    ).json()["id"]

    assert client.get("/api/reviews").json() == []
    assert [r["id"] for r in admin_client.get("/api/admin/reviews?pending=true").json()] == [review_id]

    r = admin_client.put(f"/api/admin/reviews/{review_id}", json={"is_approved": True})
    assert r.json()["is_approved"] is True

    public = client.get("/api/reviews").json()
    assert len(public) == 1
    assert public[0]["title"] == "Top!"
    assert public[0]["customer_name"] == "Max Mustermann"
    assert "customer_id" not in public[0]
    assert admin_client.get("/api/admin/reviews?pending=true").json() == []

    # ausgeblendet bleibt sie freigegeben, aber unsichtbar
    admin_client.put(f"/api/admin/reviews/{review_id}", json={"is_public": False})
    assert client.get("/api/reviews").json() == []

    assert admin_client.delete(f"/api/admin/reviews/{review_id}").status_code == 200
    assert admin_client.get("/api/admin/reviews").json() == []
