from datetime import datetime, timedelta
from unittest.mock import patch

from patakeja.extensions import mail
from patakeja.models import ActivityLog, ContactPayment, Property, PropertyNotification, db
from patakeja.models.payment import PENDING
from patakeja.services.notifications import send_availability_checks


def test_availability_check_emails_landlords(client, admin, landlord, make_property, auth_headers):
    available = make_property(landlord, title="Still listed")
    make_property(landlord, title="Already sold", status="sold")

    with mail.record_messages() as outbox:
        resp = client.post("/api/admin/notifications/availability-check", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.get_json() == {"checked": 1, "sent": 1, "skipped": 0}
    notification = PropertyNotification.query.one()
    assert notification.property_id == available.id
    assert notification.email_sent_to == "landlord@example.com"
    assert len(outbox) == 1
    assert f"/property-response/{notification.response_token}?response=sold" in outbox[0].body
    assert ActivityLog.query.one().action_type == "sent_availability_checks"


def test_landlord_response_updates_listing(client, app, listing):
    send_availability_checks()
    token = PropertyNotification.query.one().response_token

    resp = client.get(f"/api/notifications/respond/{token}?response=unavailable")
    assert resp.status_code == 200
    assert resp.get_json()["property_status"] == "unavailable"
    assert db.session.get(Property, listing.id).status == "unavailable"

    again = client.post(f"/api/notifications/respond/{token}", json={"response": "available"})
    assert again.status_code == 400


def test_respond_validation(client):
    assert client.get("/api/notifications/respond/unknown-token?response=sold").status_code == 404
    assert client.get("/api/notifications/respond/unknown-token?response=maybe").status_code == 400


def test_list_notifications_for_landlord(client, landlord, admin, make_user, make_property, auth_headers):
    other = make_user(email="other@example.com", role="landlord")
    make_property(landlord)
    make_property(other)
    send_availability_checks()

    mine = client.get("/api/notifications", headers=auth_headers(landlord)).get_json()["notifications"]
    assert [n["landlord_id"] for n in mine] == [landlord.id]
    everything = client.get("/api/notifications", headers=auth_headers(admin)).get_json()["notifications"]
    assert len(everything) == 2


def test_cli_commands(app, tenant, listing, make_payment):
    make_payment(tenant, listing, status=PENDING, checkout_request_id="ws_CO_cli",
                 created_at=datetime.utcnow() - timedelta(minutes=30))
    runner = app.test_cli_runner()

    with patch("patakeja.services.payments.MpesaClient.from_config") as from_config:
        from_config.return_value.stk_query.return_value = {"ResultCode": "1037", "ResultDesc": "DS timeout"}
        result = runner.invoke(args=["payments", "reconcile"])
    assert result.exit_code == 0
    assert '"failed": 1' in result.output
    assert ContactPayment.query.one().payment_status == "failed"

    result = runner.invoke(args=["payments", "send-reminders"])
    assert result.exit_code == 0
    assert "No expiring payments found" in result.output

    result = runner.invoke(args=["notifications", "availability-check"])
    assert result.exit_code == 0
    assert '"sent": 1' in result.output


def test_cli_make_admin(app, tenant):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "make-admin", "tenant@example.com"])
    assert result.exit_code == 0
    assert tenant.is_admin()

    missing = runner.invoke(args=["users", "make-admin", "new@example.com"])
    assert missing.exit_code != 0

    created = runner.invoke(args=["users", "make-admin", "new@example.com", "--password", "secret123"])
    assert created.exit_code == 0
