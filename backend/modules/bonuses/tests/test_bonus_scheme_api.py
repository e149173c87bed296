# backend/modules/bonuses/tests/test_bonus_scheme_api.py

import pytest

from modules.bonuses.models.bonus_models import BonusScheme
from tests.factories import BonusSchemeFactory, CreditLedgerEntryFactory

TIERS = [
    {"min": 0, "max": 1000, "value": 50},
    {"min": 1001, "max": 5000, "value": 100},
    {"min": 5001, "max": None, "value": 200},
]


def scheme_payload(**overrides):
    payload = {
        "name": "Big Sender Bonus",
        "bonus_type": "TRANSACTION_THRESHOLD_CREDIT",
        "currency": "gbp",
        "is_tiered": True,
        "tiers": TIERS,
        "eligibility_rules": {"oneTimeOnly": True, "paymentMethods": ["card"]},
        "start_date": "2025-01-01T00:00:00Z",
        "end_date": "2030-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestBonusSchemeApi:
    """Bonus scheme catalog endpoints"""

    def test_create_tiered_scheme(self, client, db_session):
        response = client.post("/api/bonus-schemes", json=scheme_payload())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        scheme = db_session.query(BonusScheme).filter(BonusScheme.id == body["id"]).one()
        assert scheme.currency == "GBP"
        assert scheme.tiers == TIERS
        assert scheme.eligibility_rules["one_time_only"] is True
        assert scheme.eligibility_rules["payment_methods"] == ["card"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"tiers": []},
            {"tiers": [{"min": 0, "max": 1000, "value": 50}, {"min": 900, "max": None, "value": 100}]},
            {"tiers": [{"min": 0, "max": None, "value": 50}, {"min": 1001, "max": 2000, "value": 100}]},
            {"is_tiered": False, "tiers": [], "commission_type": "PERCENTAGE"},
            {"end_date": "2024-01-01T00:00:00Z"},
        ],
    )
    def test_invalid_scheme_rejected(self, client, overrides):
        response = client.post("/api/bonus-schemes", json=scheme_payload(**overrides))

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_list_and_get(self, client):
        scheme = BonusSchemeFactory(name="Welcome credit")

        listed = client.get("/api/bonus-schemes")
        fetched = client.get(f"/api/bonus-schemes/{scheme.id}")

        assert listed.status_code == 200
        assert [item["name"] for item in listed.json()["data"]] == ["Welcome credit"]
        assert fetched.json()["eligibility_rules"]["one_time_only"] is True

    def test_get_unknown_scheme(self, client):
        response = client.get("/api/bonus-schemes/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_partial_update_keeps_other_fields(self, client):
        scheme = BonusSchemeFactory(credit_amount=5.0, currency="GBP")

        response = client.put(
            f"/api/bonus-schemes/{scheme.id}", json={"credit_amount": 7.5, "status": "INACTIVE"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["credit_amount"] == 7.5
        assert body["status"] == "INACTIVE"
        assert body["currency"] == "GBP"
        assert body["name"] == scheme.name

    def test_update_revalidates_merged_scheme(self, client):
        scheme = BonusSchemeFactory()

        response = client.put(f"/api/bonus-schemes/{scheme.id}", json={"is_tiered": True})

        assert response.status_code == 400

    def test_delete_unused_scheme(self, client, db_session):
        scheme = BonusSchemeFactory()

        response = client.delete(f"/api/bonus-schemes/{scheme.id}")

        assert response.status_code == 200
        assert db_session.query(BonusScheme).count() == 0

    def test_delete_scheme_with_ledger_entries(self, client):
        scheme = BonusSchemeFactory()
        CreditLedgerEntryFactory(scheme=scheme)

        response = client.delete(f"/api/bonus-schemes/{scheme.id}")

        assert response.status_code == 409
        assert response.json()["error"] == "SCHEME_IN_USE"
