from datetime import date, timedelta

import pytest

from patakeja.extensions import mail
from patakeja.models import ViewingRequest, db


def _tomorrow():
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def viewing(client, tenant, listing, auth_headers):
    resp = client.post(f"/api/properties/{listing.id}/viewings",
                       json={"preferred_date": _tomorrow(), "preferred_time": "10:30", "notes": "After work"},
                       headers=auth_headers(tenant))
    assert resp.status_code == 201
    return db.session.get(ViewingRequest, resp.get_json()["viewing"]["id"])


def test_schedule_viewing_emails_landlord(client, tenant, landlord, listing, auth_headers):
    with mail.record_messages() as outbox:
        resp = client.post(f"/api/properties/{listing.id}/viewings",
                           json={"preferred_date": _tomorrow(), "preferred_time": "14:00"},
                           headers=auth_headers(tenant))
    assert resp.status_code == 201
    body = resp.get_json()["viewing"]
    assert body["status"] == "pending"
    assert body["landlord_id"] == landlord.id
    assert body["preferred_time"] == "14:00"
    assert body["phone"] == "0712345678"
    assert body["tenant_name"] == "John Tenant"

    assert len(outbox) == 1
    assert outbox[0].recipients == ["landlord@example.com"]
    assert "John Tenant" in outbox[0].body


@pytest.mark.parametrize("payload", [
    {"preferred_time": "10:00"},
    {"preferred_date": "2020-01-01", "preferred_time": "10:00"},
    {"preferred_date": "tomorrow", "preferred_time": "10:00"},
    {"preferred_date": "2099-01-01", "preferred_time": "25:99"},
    {"preferred_date": 20261020, "preferred_time": "10:00"},
    {"preferred_date": "2099-01-01", "preferred_time": 1030},
    {"preferred_date": ["2099-01-01"], "preferred_time": "10:00"},
])
def test_schedule_viewing_validation(client, tenant, listing, auth_headers, payload):
    resp = client.post(f"/api/properties/{listing.id}/viewings", json=payload, headers=auth_headers(tenant))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_cannot_view_own_or_unavailable_listing(client, landlord, tenant, listing, make_property, auth_headers):
    payload = {"preferred_date": _tomorrow(), "preferred_time": "10:00"}
    assert client.post(f"/api/properties/{listing.id}/viewings", json=payload,
                       headers=auth_headers(landlord)).status_code == 400

    rented = make_property(landlord, status="rented")
    assert client.post(f"/api/properties/{rented.id}/viewings", json=payload,
                       headers=auth_headers(tenant)).status_code == 400


def test_list_viewings_by_side(client, tenant, landlord, admin, viewing, auth_headers):
    assert client.get("/api/viewings", headers=auth_headers(tenant)).get_json()["count"] == 1
    assert client.get("/api/viewings", headers=auth_headers(landlord)).get_json()["count"] == 0
    assert client.get("/api/viewings?as=landlord", headers=auth_headers(landlord)).get_json()["count"] == 1
    assert client.get("/api/viewings", headers=auth_headers(admin)).get_json()["count"] == 1
    assert client.get("/api/viewings?as=tenant", headers=auth_headers(admin)).get_json()["count"] == 0
    assert client.get("/api/viewings?as=landlord", headers=auth_headers(admin)).get_json()["count"] == 0
    assert client.get("/api/viewings?as=all", headers=auth_headers(tenant)).get_json()["count"] == 1
    assert client.get("/api/viewings?as=landlord&status=confirmed",
                      headers=auth_headers(landlord)).get_json()["count"] == 0


def test_landlord_confirms_viewing(client, landlord, viewing, auth_headers):
    with mail.record_messages() as outbox:
        resp = client.post(f"/api/viewings/{viewing.id}/confirm", headers=auth_headers(landlord))
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "confirmed"
    assert outbox[0].recipients == ["tenant@example.com"]
    assert "confirmed" in outbox[0].subject


def test_only_landlord_can_answer(client, tenant, viewing, auth_headers):
    resp = client.post(f"/api/viewings/{viewing.id}/decline", headers=auth_headers(tenant))
    assert resp.status_code == 403


def test_answered_viewing_cannot_change(client, landlord, tenant, viewing, auth_headers):
    assert client.post(f"/api/viewings/{viewing.id}/decline", headers=auth_headers(landlord)).status_code == 200
    resp = client.post(f"/api/viewings/{viewing.id}/confirm", headers=auth_headers(landlord))
    assert resp.status_code == 400
    assert "declined" in resp.get_json()["message"]
    assert client.post(f"/api/viewings/{viewing.id}/cancel", headers=auth_headers(tenant)).status_code == 400


def test_tenant_cancels_viewing(client, tenant, landlord, viewing, auth_headers):
    assert client.post(f"/api/viewings/{viewing.id}/cancel", headers=auth_headers(landlord)).status_code == 403
    resp = client.post(f"/api/viewings/{viewing.id}/cancel", headers=auth_headers(tenant))
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "cancelled"
