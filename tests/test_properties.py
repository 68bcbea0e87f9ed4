import io
from datetime import datetime, timedelta

import pytest

from patakeja.models import ActivityLog, Property, db


NEW_LISTING = {
    "title": "Bedsitter in Roysambu",
    "property_type": "bedsitter",
    "location": "Roysambu, Nairobi",
    "rent_amount": 9500,
    "bedrooms": 0,
    "bathrooms": 1,
    "phone": "0733123456",
    "description": "Unfurnished bedsitter near TRM",
}


def test_create_property_as_landlord(client, landlord, auth_headers):
    resp = client.post("/api/properties", json=NEW_LISTING, headers=auth_headers(landlord))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["user_id"] == landlord.id
    assert body["rent_amount"] == 9500.0
    assert body["status"] == "available"
    assert body["phone"] == "0733123456"


def test_create_property_requires_landlord_role(client, tenant, auth_headers):
    resp = client.post("/api/properties", json=NEW_LISTING, headers=auth_headers(tenant))
    assert resp.status_code == 403


def test_create_property_validation(client, landlord, auth_headers):
    resp = client.post("/api/properties", json={**NEW_LISTING, "rent_amount": 0}, headers=auth_headers(landlord))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"

    missing = {k: v for k, v in NEW_LISTING.items() if k != "location"}
    resp = client.post("/api/properties", json=missing, headers=auth_headers(landlord))
    assert resp.status_code == 400
    assert "location" in resp.get_json()["message"]


@pytest.mark.parametrize("overrides", [
    {"rent_amount": "NaN"},
    {"rent_amount": "Infinity"},
    {"rent_amount": "abc"},
    {"latitude": "nan"},
    {"title": 12345},
    {"phone": 712345678},
])
def test_create_property_rejects_malformed_values(client, landlord, auth_headers, overrides):
    resp = client.post("/api/properties", json={**NEW_LISTING, **overrides}, headers=auth_headers(landlord))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
    assert Property.query.count() == 0


def test_admin_create_property_bad_owner(client, admin, auth_headers):
    for owner in ("abc", 9999, [1]):
        resp = client.post("/api/properties", json={**NEW_LISTING, "user_id": owner}, headers=auth_headers(admin))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"


def test_admin_creates_property_for_landlord_and_is_logged(client, admin, landlord, auth_headers):
    resp = client.post("/api/properties", json={**NEW_LISTING, "user_id": landlord.id}, headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.get_json()["user_id"] == landlord.id
    log = ActivityLog.query.one()
    assert log.action_type == "created_property"
    assert log.staff_id == admin.id


def test_browse_hides_phone_and_unavailable(client, landlord, make_property):
    make_property(landlord, title="Available flat")
    make_property(landlord, title="Taken flat", status="rented")

    resp = client.get("/api/properties")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 1
    assert body["properties"][0]["title"] == "Available flat"
    assert body["properties"][0]["phone"] is None


def test_browse_newest_first(client, landlord, make_property):
    old = make_property(landlord, title="Older")
    old.created_at = datetime.utcnow() - timedelta(days=3)
    db.session.commit()
    make_property(landlord, title="Newer")

    titles = [p["title"] for p in client.get("/api/properties").get_json()["properties"]]
    assert titles == ["Newer", "Older"]


def test_browse_filters(client, landlord, make_property):
    make_property(landlord, title="Furnished studio", property_type="studio", rent_amount=30000,
                  bedrooms=1, description="Fully furnished with wifi")
    make_property(landlord, title="Bare bedsitter", property_type="bedsitter", rent_amount=8000,
                  bedrooms=0, description="Unfurnished, water included")
    make_property(landlord, title="Holiday BnB", property_type="bnb", rent_amount=4000,
                  bedrooms=1, description="Daily and weekly stays")

    def titles(**params):
        return {p["title"] for p in client.get("/api/properties", query_string=params).get_json()["properties"]}

    assert titles(q="bedsitter") == {"Bare bedsitter"}
    assert titles(property_type="studio") == {"Furnished studio"}
    assert titles(max_rent=10000) == {"Bare bedsitter", "Holiday BnB"}
    assert titles(min_rent=10000) == {"Furnished studio"}
    assert titles(bedrooms=1) == {"Furnished studio", "Holiday BnB"}
    assert titles(furnished="furnished") == {"Furnished studio"}
    assert "Bare bedsitter" in titles(furnished="unfurnished")
    assert titles(rental_term="short-term") == {"Holiday BnB"}
    assert titles(rental_term="long-term") == {"Furnished studio", "Bare bedsitter"}


def test_browse_pagination(client, landlord, make_property):
    for i in range(5):
        make_property(landlord, title=f"Listing {i}")
    body = client.get("/api/properties", query_string={"limit": 2, "offset": 2}).get_json()
    assert body["total"] == 5
    assert len(body["properties"]) == 2


def test_admin_can_browse_all_statuses(client, admin, landlord, make_property, auth_headers):
    make_property(landlord, title="Available flat")
    make_property(landlord, title="Sold house", status="sold")
    resp = client.get("/api/properties", query_string={"status": "all"}, headers=auth_headers(admin))
    assert resp.get_json()["total"] == 2
    anon = client.get("/api/properties", query_string={"status": "all"})
    assert anon.get_json()["total"] == 1


def test_detail_phone_visibility(client, listing, landlord, tenant, admin, make_payment, auth_headers):
    anon = client.get(f"/api/properties/{listing.id}").get_json()
    assert anon["phone"] is None
    assert anon["has_contact_access"] is False
    assert anon["landlord_name"] == "Jane Landlord"

    assert client.get(f"/api/properties/{listing.id}", headers=auth_headers(tenant)).get_json()["phone"] is None
    assert client.get(f"/api/properties/{listing.id}", headers=auth_headers(landlord)).get_json()["phone"] == "0722000111"
    assert client.get(f"/api/properties/{listing.id}", headers=auth_headers(admin)).get_json()["phone"] == "0722000111"

    make_payment(tenant, listing, expires_at=datetime.utcnow() + timedelta(days=3))
    paid = client.get(f"/api/properties/{listing.id}", headers=auth_headers(tenant)).get_json()
    assert paid["phone"] == "0722000111"
    assert paid["has_contact_access"] is True

    browse = client.get("/api/properties", headers=auth_headers(tenant)).get_json()
    assert browse["properties"][0]["phone"] == "0722000111"


def test_detail_phone_hidden_after_access_expires(client, listing, tenant, make_payment, auth_headers):
    make_payment(tenant, listing, expires_at=datetime.utcnow() - timedelta(minutes=1))
    body = client.get(f"/api/properties/{listing.id}", headers=auth_headers(tenant)).get_json()
    assert body["phone"] is None
    assert body["has_contact_access"] is False


def test_unknown_property_is_404(client):
    resp = client.get("/api/properties/9999")
    assert resp.status_code == 404


def test_update_property_owner_only(client, listing, landlord, make_user, auth_headers):
    other = make_user(email="other@example.com", role="landlord")
    resp = client.patch(f"/api/properties/{listing.id}", json={"rent_amount": 27000}, headers=auth_headers(other))
    assert resp.status_code == 403

    resp = client.patch(f"/api/properties/{listing.id}", json={"rent_amount": 27000, "status": "rented"},
                        headers=auth_headers(landlord))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["rent_amount"] == 27000.0
    assert body["status"] == "rented"


def test_update_rejects_unknown_status(client, listing, landlord, auth_headers):
    resp = client.patch(f"/api/properties/{listing.id}", json={"status": "demolished"}, headers=auth_headers(landlord))
    assert resp.status_code == 400


def test_delete_property(client, listing, landlord, auth_headers):
    resp = client.delete(f"/api/properties/{listing.id}", headers=auth_headers(landlord))
    assert resp.status_code == 200
    assert db.session.get(Property, listing.id) is None


def test_admin_delete_is_logged(client, listing, admin, auth_headers):
    resp = client.delete(f"/api/properties/{listing.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    log = ActivityLog.query.one()
    assert log.action_type == "deleted_property"
    assert log.details["title"] == "2 Bedroom Apartment"


def test_my_properties(client, landlord, make_user, make_property, auth_headers):
    other = make_user(email="other@example.com", role="landlord")
    make_property(landlord, title="Mine")
    make_property(other, title="Theirs")
    body = client.get("/api/properties/mine", headers=auth_headers(landlord)).get_json()
    assert [p["title"] for p in body["properties"]] == ["Mine"]
    assert body["properties"][0]["phone"] == "0722000111"


def test_upload_images_locally(client, listing, landlord, auth_headers):
    data = {"images": [(io.BytesIO(b"\x89PNG fake"), "front.png"), (io.BytesIO(b"jpeg"), "kitchen.jpg")]}
    resp = client.post(f"/api/properties/{listing.id}/images", data=data,
                       content_type="multipart/form-data", headers=auth_headers(landlord))
    assert resp.status_code == 201
    body = resp.get_json()
    assert len(body["image_urls"]) == 2
    assert body["image_url"] == body["image_urls"][0]
    assert "/api/uploads/" in body["image_url"]

    path = body["image_url"].split("/api", 1)[1]
    served = client.get("/api" + path)
    assert served.status_code == 200
    assert served.data == b"\x89PNG fake"


def test_upload_rejects_bad_extension(client, listing, landlord, auth_headers):
    data = {"images": [(io.BytesIO(b"MZ"), "virus.exe")]}
    resp = client.post(f"/api/properties/{listing.id}/images", data=data,
                       content_type="multipart/form-data", headers=auth_headers(landlord))
    assert resp.status_code == 400


def test_stats(client, landlord, make_property):
    make_property(landlord, location="Kilimani")
    make_property(landlord, location="kilimani")
    make_property(landlord, location="Westlands", status="sold")
    body = client.get("/api/stats").get_json()
    assert body == {"available_properties": 2, "landlords": 1, "locations": 2}
