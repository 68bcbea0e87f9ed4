import pytest

from config import ProductionConfig, TestingConfig
from patakeja import create_app
from patakeja.scheduler import start_scheduler


def test_health(client):
    body = client.get("/api/health").get_json()
    assert body["status"] == "ok"
    assert body["service"] == "patakeja-backend"
    assert body["database"] == "ok"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "not_found", "path": "/api/nope"}


def test_production_config_requires_secrets(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", None)
    with pytest.raises(ValueError, match="SECRET_KEY"):
        create_app(ProductionConfig)


def test_create_app_accepts_class(app):
    other = create_app(TestingConfig)
    assert other.config["TESTING"] is True
    assert "scheduler" not in other.extensions


def test_scheduler_registers_jobs(app):
    scheduler = start_scheduler(app)
    try:
        assert {job.id for job in scheduler.get_jobs()} == {
            "reconcile_pending_payments",
            "send_expiry_reminders",
            "send_availability_checks",
        }
    finally:
        scheduler.shutdown(wait=False)
