"""Smoke tests focused on startup-critical components."""

from fastapi.testclient import TestClient

from app.demo_data import seed_demo_data
from app.main import app
from app.startup import StartupValidator, init_database
from modules.merchants.models.merchant_models import Merchant, Transaction
from modules.promotions.models.promo_models import CampaignLog, PromoCode


def test_startup_creates_schema_and_serves_root():
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_startup_checks_pass_after_init():
    init_database()

    passed, errors, warnings = StartupValidator().validate_all()

    assert passed, errors


def test_all_routers_registered():
    paths = {route.path for route in app.router.routes}

    for expected in [
        "/api/promocodes",
        "/api/promocodes/validate",
        "/api/promocodes/redeem",
        "/api/promocodes/apply",
        "/api/promocodes/distribute",
        "/api/promocodes/generate",
        "/api/bonus-schemes",
        "/api/credits/award-bonus",
        "/api/credits/manual",
        "/api/credits/{user_id}",
        "/api/referral-rules",
        "/api/merchants",
        "/api/transactions",
        "/api/financials/debits",
        "/api/financials/payouts",
        "/api/segments",
        "/api/dashboard/kpi",
    ]:
        assert expected in paths


def test_demo_seed_is_idempotent(db_session):
    seed_demo_data(db_session)
    seed_demo_data(db_session)

    assert db_session.query(Merchant).count() == 2
    assert db_session.query(Transaction).count() == 2
    assert db_session.query(PromoCode).count() == 3
    assert db_session.query(CampaignLog).count() == 3

    save20 = db_session.query(PromoCode).filter(PromoCode.code == "SAVE20").one()
    assert save20.usage_count == 45
    assert save20.usage_limit_per_user == 1


def test_seeded_views(client, db_session):
    seed_demo_data(db_session)

    promos = client.get("/api/promocodes").json()["data"]
    transactions = client.get("/api/transactions").json()["data"]

    assert [promo["code"] for promo in promos] == ["BOOSTRATE", "GLITCH500", "SAVE20"]
    save20 = next(promo for promo in promos if promo["code"] == "SAVE20")
    assert save20["last_campaign_sent"].startswith("2026-01-14T10:30")
    assert {t["ref_number"]: t["amount_output_target"] for t in transactions} == {
        "TXN100001": 323.45,
        "TXN100002": None,
    }


def test_error_body_shape(client):
    response = client.get("/api/bonus-schemes/12345")

    assert response.status_code == 404
    assert set(response.json()) == {"error", "detail", "path"}
