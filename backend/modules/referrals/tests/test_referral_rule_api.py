# backend/modules/referrals/tests/test_referral_rule_api.py

from modules.referrals.models.referral_models import ReferralRule
from tests.factories import ReferralRuleFactory


def rule_payload(**overrides):
    payload = {
        "name": "UK referral",
        "reward_type": "BOTH",
        "base_currency": "gbp",
        "referrer_reward": 10,
        "referee_reward": 5,
        "min_transaction_threshold": 50,
    }
    payload.update(overrides)
    return payload


class TestReferralRuleApi:
    """Referral rule endpoints"""

    def test_create_rule(self, client):
        response = client.post("/api/referral-rules", json=rule_payload())

        assert response.status_code == 200
        body = response.json()
        assert body["base_currency"] == "GBP"
        assert body["is_enabled"] is True
        assert body["referrer_reward"] == 10

    def test_duplicate_currency(self, client, db_session):
        client.post("/api/referral-rules", json=rule_payload())

        response = client.post("/api/referral-rules", json=rule_payload(name="Another"))

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_CURRENCY"
        assert db_session.query(ReferralRule).count() == 1

    def test_update_to_taken_currency(self, client):
        ReferralRuleFactory(base_currency="GBP")
        usd = ReferralRuleFactory(base_currency="USD")

        response = client.put(f"/api/referral-rules/{usd.id}", json={"base_currency": "gbp"})

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_CURRENCY"

    def test_update_keeps_own_currency(self, client):
        rule = ReferralRuleFactory(base_currency="EUR")

        response = client.put(
            f"/api/referral-rules/{rule.id}",
            json={"base_currency": "EUR", "is_enabled": False, "reward_type": "REFERRER"},
        )

        assert response.status_code == 200
        assert response.json()["is_enabled"] is False
        assert response.json()["reward_type"] == "REFERRER"

    def test_list_ordered_by_currency(self, client):
        ReferralRuleFactory(base_currency="USD")
        ReferralRuleFactory(base_currency="CAD")
        ReferralRuleFactory(base_currency="GBP")

        response = client.get("/api/referral-rules")

        assert [rule["base_currency"] for rule in response.json()["data"]] == ["CAD", "GBP", "USD"]

    def test_delete_rule(self, client, db_session):
        rule = ReferralRuleFactory()

        response = client.delete(f"/api/referral-rules/{rule.id}")

        assert response.status_code == 200
        assert db_session.query(ReferralRule).count() == 0

    def test_unknown_rule(self, client):
        assert client.get("/api/referral-rules/999").status_code == 404
        assert client.delete("/api/referral-rules/999").status_code == 404
