# backend/modules/promotions/tests/test_promo_code_api.py

from datetime import timedelta

import pytest

from core.time_utils import utcnow
from modules.promotions.models.promo_models import CampaignLog, PromoCode, PromoRedemption
from tests.factories import CampaignLogFactory, PromoCodeFactory, PromoRedemptionFactory


def promo_payload(**overrides):
    payload = {
        "code": "WELCOME10",
        "type": "Fixed",
        "value": 10,
        "currency": "usd",
        "usage_limit_global": 100,
        "usage_limit_per_user": 1,
        "start_date": "2025-01-01T00:00:00Z",
        "end_date": "2030-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestPromoCodeCatalog:
    """Creating, listing and managing promo codes"""

    def test_create_promo_code(self, client, db_session):
        response = client.post("/api/promocodes", json=promo_payload(code=" welcome10 "))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["code"] == "WELCOME10"

        promo = db_session.query(PromoCode).filter(PromoCode.id == body["id"]).one()
        assert promo.currency == "USD"
        assert promo.usage_count == 0
        assert promo.user_segment == {"type": "all"}

    def test_duplicate_code_conflicts(self, client):
        client.post("/api/promocodes", json=promo_payload())

        response = client.post("/api/promocodes", json=promo_payload(code="welcome10"))

        assert response.status_code == 409
        assert response.json() == {
            "error": "DUPLICATE_CODE",
            "detail": "Promo code already exists",
            "path": "/api/promocodes",
        }

    def test_waiver_is_accepted_as_fee_waiver(self, client, db_session):
        response = client.post(
            "/api/promocodes", json=promo_payload(code="NOFEE", type="Waiver", value=0)
        )

        assert response.status_code == 200
        promo = db_session.query(PromoCode).filter(PromoCode.code == "NOFEE").one()
        assert promo.type == "FeeWaiver"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"end_date": "2024-01-01T00:00:00Z"},
            {"type": "Percentage", "value": 150},
            {"max_discount": 20},
            {"usage_limit_global": 0},
            {"type": "Bogus"},
        ],
    )
    def test_invalid_configuration_rejected(self, client, overrides):
        response = client.post("/api/promocodes", json=promo_payload(**overrides))

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_list_includes_last_campaign_sent(self, client, save20):
        PromoCodeFactory(code="OLDER", start_date=save20.start_date.replace(year=2020))
        CampaignLogFactory(code="SAVE20", user_id="user_001")

        response = client.get("/api/promocodes")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [promo["code"] for promo in data] == ["SAVE20", "OLDER"]
        assert data[0]["last_campaign_sent"] is not None
        assert data[1]["last_campaign_sent"] is None
        assert data[0]["is_active"] is True

    def test_get_unknown_promo(self, client):
        response = client.get("/api/promocodes/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_disable_promo(self, client, save20):
        response = client.put(f"/api/promocodes/{save20.id}/status", json={"status": "Disabled"})

        assert response.status_code == 200
        assert response.json()["status"] == "Disabled"
        assert response.json()["is_active"] is False

    def test_delete_unused_promo(self, client, db_session, save20):
        response = client.delete(f"/api/promocodes/{save20.id}")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert db_session.query(PromoCode).count() == 0

    def test_delete_redeemed_promo_conflicts(self, client, save20):
        PromoRedemptionFactory(promo_code=save20)

        response = client.delete(f"/api/promocodes/{save20.id}")

        assert response.status_code == 409
        assert response.json()["error"] == "PROMO_IN_USE"


class TestPromoValidation:
    """Read-only evaluation endpoint"""

    def test_percentage_discount(self, client, save20):
        response = client.post("/api/promocodes/validate", json={"code": "save20", "amount": 500})

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["discount_amount"] == 100.0
        assert body["display_text"] == "20.0% off (USD 100.00 saved)"
        assert body["promo"]["code"] == "SAVE20"

    def test_validation_does_not_consume(self, client, db_session, save20):
        client.post("/api/promocodes/validate", json={"code": "SAVE20", "amount": 500})

        db_session.refresh(save20)
        assert save20.usage_count == 45
        assert db_session.query(PromoRedemption).count() == 0

    def test_below_threshold(self, client, save20):
        response = client.post("/api/promocodes/validate", json={"code": "SAVE20", "amount": 50})

        assert response.status_code == 400
        assert response.json()["error"] == "BELOW_THRESHOLD"

    def test_unknown_code(self, client):
        response = client.post("/api/promocodes/validate", json={"code": "NOPE", "amount": 50})

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"
        assert response.json()["detail"] == "Invalid promo code"

    def test_camel_case_fields_accepted(self, client):
        PromoCodeFactory(code="GBPNGN", restrictions={"corridors": ["GBP-NGN"]})

        response = client.post(
            "/api/promocodes/validate",
            json={
                "code": "GBPNGN",
                "amount": 200,
                "sourceCurrency": "GBP",
                "destCurrency": "NGN",
                "userId": "user_001",
            },
        )

        assert response.status_code == 200

    def test_fx_boost_outcome(self, client):
        PromoCodeFactory(code="BOOSTRATE", type="FX_BOOST", value=5.0, min_threshold=500)

        response = client.post("/api/promocodes/validate", json={"code": "BOOSTRATE", "amount": 600})

        body = response.json()
        assert body["rate_boost"] == 5.0
        assert body["discount_amount"] == 0.0
        assert body["display_text"] == "+5.0 rate boost"

    def test_missing_amount_is_bad_request(self, client):
        response = client.post("/api/promocodes/validate", json={"code": "SAVE20"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["path"] == "/api/promocodes/validate"


class TestPromoRedemption:
    """Committing uses against the running counters"""

    def test_sequential_redemptions_accumulate(self, client, db_session, save20):
        for i in range(5):
            response = client.post(
                "/api/promocodes/redeem",
                json={"code": "SAVE20", "amount": 500, "transaction_id": f"TXN{i}"},
            )
            assert response.status_code == 200

        db_session.refresh(save20)
        assert save20.usage_count == 50
        assert save20.total_discount_utilized == 500.0
        assert db_session.query(PromoRedemption).count() == 5

    def test_usage_cap_stops_next_redemption(self, client, db_session):
        promo = PromoCodeFactory(code="LIMITED", usage_limit_global=3)

        statuses = [
            client.post("/api/promocodes/redeem", json={"code": "LIMITED", "amount": 100}).status_code
            for _ in range(3)
        ]
        rejected = client.post("/api/promocodes/redeem", json={"code": "LIMITED", "amount": 100})

        assert statuses == [200, 200, 200]
        assert rejected.status_code == 400
        assert rejected.json()["error"] == "USAGE_CAP_REACHED"
        db_session.refresh(promo)
        assert promo.usage_count == 3

    def test_per_user_cap(self, client):
        PromoCodeFactory(code="ONCE", usage_limit_per_user=1)
        body = {"code": "ONCE", "amount": 100, "user_id": "user_001"}

        first = client.post("/api/promocodes/redeem", json=body)
        second = client.post("/api/promocodes/redeem", json=body)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "PER_USER_CAP_REACHED"

    def test_budget_cap(self, client, db_session):
        promo = PromoCodeFactory(code="BUDGET", value=60.0, budget_limit=100.0)

        first = client.post("/api/promocodes/redeem", json={"code": "BUDGET", "amount": 100})
        second = client.post("/api/promocodes/redeem", json={"code": "BUDGET", "amount": 100})

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "BUDGET_CAP_REACHED"
        db_session.refresh(promo)
        assert promo.usage_count == 1
        assert promo.total_discount_utilized == 60.0
        assert promo.total_discount_utilized <= promo.budget_limit

    def test_budget_filled_exactly(self, client, db_session):
        promo = PromoCodeFactory(code="EXACT", value=50.0, budget_limit=100.0)

        statuses = [
            client.post("/api/promocodes/redeem", json={"code": "EXACT", "amount": 100}).status_code
            for _ in range(3)
        ]

        assert statuses == [200, 200, 400]
        db_session.refresh(promo)
        assert promo.total_discount_utilized == 100.0

    def test_apply_cannot_overrun_budget(self, client, db_session):
        promo = PromoCodeFactory(
            code="NEARLYDONE", budget_limit=100.0, total_discount_utilized=90.0
        )

        response = client.post(
            "/api/promocodes/apply", json={"code": "NEARLYDONE", "discount_amount": 60}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "BUDGET_CAP_REACHED"
        db_session.refresh(promo)
        assert promo.total_discount_utilized == 90.0
        assert promo.usage_count == 0
        assert db_session.query(PromoRedemption).count() == 0

    def test_apply_records_redemption(self, client, save20):
        response = client.post(
            "/api/promocodes/apply",
            json={"code": "SAVE20", "discount_amount": 100, "userId": "user_001", "transactionId": "TXN1"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["usage_count"] == 46
        assert body["total_discount_utilized"] == 100.0

        history = client.get(f"/api/promocodes/{save20.id}/redemptions").json()
        assert len(history) == 1
        assert history[0]["user_id"] == "user_001"
        assert history[0]["transaction_id"] == "TXN1"

    def test_apply_refused_for_disabled_code(self, client, db_session):
        promo = PromoCodeFactory(code="OFF", status="Disabled")

        response = client.post("/api/promocodes/apply", json={"code": "OFF", "discount_amount": 5})

        assert response.status_code == 400
        assert response.json()["error"] == "EXPIRED_OR_INACTIVE"
        db_session.refresh(promo)
        assert promo.usage_count == 0

    @pytest.mark.parametrize(
        "start_offset,end_offset",
        [(-30, -1), (1, 30)],
        ids=["expired", "not_started"],
    )
    def test_apply_refused_outside_window(self, client, db_session, start_offset, end_offset):
        now = utcnow()
        promo = PromoCodeFactory(
            code="WINDOWED",
            start_date=now + timedelta(days=start_offset),
            end_date=now + timedelta(days=end_offset),
        )

        validated = client.post("/api/promocodes/validate", json={"code": "WINDOWED", "amount": 100})
        applied = client.post("/api/promocodes/apply", json={"code": "WINDOWED", "discount_amount": 5})

        assert validated.json()["error"] == "EXPIRED_OR_INACTIVE"
        assert applied.status_code == 400
        assert applied.json()["error"] == "EXPIRED_OR_INACTIVE"
        db_session.refresh(promo)
        assert promo.usage_count == 0
        assert db_session.query(PromoRedemption).count() == 0


class TestPromoGeneration:
    """Bulk generation and campaign distribution"""

    def test_generate_batch(self, client, db_session):
        config = promo_payload()
        del config["code"]

        response = client.post(
            "/api/promocodes/generate",
            json={"batch_size": 3, "prefix": "summer", "config": config},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 3
        assert len(set(body["codes"])) == 3
        assert all(code.startswith("SUMMER-") for code in body["codes"])
        assert all(len(code) == len("SUMMER-") + 8 for code in body["codes"])
        assert db_session.query(PromoCode).count() == 3

    def test_generate_batch_over_limit(self, client):
        config = promo_payload()
        del config["code"]

        response = client.post(
            "/api/promocodes/generate", json={"batch_size": 5000, "config": config}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_distribute_fresh_codes(self, client, db_session):
        config = promo_payload(prefix="welcome")
        del config["code"]

        response = client.post(
            "/api/promocodes/distribute",
            json={
                "segment": "new_users",
                "user_ids": ["user_001", "user_002", "user_001"],
                "promo_config": config,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert all(code.startswith("WELCOME-") for code in body["codes"])
        assert db_session.query(CampaignLog).count() == 2

        promo = db_session.query(PromoCode).filter(PromoCode.code == body["codes"][0]).one()
        assert promo.usage_limit_global == 1
        assert promo.user_segment == {"type": "targeted", "user_id": "user_001"}

        owner = client.post(
            "/api/promocodes/validate",
            json={"code": body["codes"][0], "amount": 100, "user_id": "user_001"},
        )
        stranger = client.post(
            "/api/promocodes/validate",
            json={"code": body["codes"][0], "amount": 100, "user_id": "user_002"},
        )
        assert owner.status_code == 200
        assert stranger.json()["error"] == "SEGMENT_NOT_ELIGIBLE"

    def test_distribute_existing_code(self, client, db_session, save20):
        response = client.post(
            "/api/promocodes/distribute",
            json={
                "segment": "churned_users",
                "user_ids": ["user_003", "user_004"],
                "existing_code_id": "save20",
            },
        )

        assert response.status_code == 200
        assert response.json()["codes"] == ["SAVE20", "SAVE20"]
        logs = db_session.query(CampaignLog).all()
        assert {log.user_id for log in logs} == {"user_003", "user_004"}
        assert all(log.segment == "churned_users" for log in logs)

    def test_distribute_unknown_existing_code(self, client, db_session):
        response = client.post(
            "/api/promocodes/distribute",
            json={"segment": "new_users", "user_ids": ["user_001"], "existing_code": "NOPE"},
        )

        assert response.status_code == 404
        assert db_session.query(CampaignLog).count() == 0

    def test_distribute_requires_one_source(self, client):
        response = client.post(
            "/api/promocodes/distribute",
            json={"segment": "new_users", "user_ids": ["user_001"]},
        )

        assert response.status_code == 400
