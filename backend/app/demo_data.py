"""
Demo data for local development.

Seeds a couple of merchants, their transactions and a handful of promo
codes with campaign history so the admin portal has something to show.
Seeding is skipped for any table that already holds rows.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from modules.merchants.models.merchant_models import (
    Commission,
    ForexLog,
    Merchant,
    Transaction,
)
from modules.promotions.models.promo_models import CampaignLog, PromoCode

logger = logging.getLogger(__name__)


def seed_merchants(db: Session):
    """Create demo merchants with one converted and one pending transaction."""
    if db.query(Merchant).first():
        logger.info("Merchants already present, skipping")
        return

    db.add_all([
        Merchant(
            id="m1",
            mito_id="MITO001",
            type="Business",
            name="Global Tech Ltd",
            reg_number="RC12345",
            email="contact@globaltech.com",
            base_currency="NGN",
            payout_currency="USD",
            status="Active",
        ),
        Merchant(
            id="m2",
            mito_id="MITO002",
            type="Individual",
            name="John Doe Logistics",
            reg_number="N/A",
            email="john@doelogistics.com",
            base_currency="NGN",
            payout_currency="GBP",
            status="Onboarding",
        ),
    ])
    db.flush()

    db.add_all([
        Transaction(
            id="t1",
            ref_number="TXN100001",
            merchant_id="m1",
            type="Debit",
            amount_debit_ngn=500000.00,
            debit_date=datetime(2024, 10, 24, 10, 30),
            status="Successful",
        ),
        Transaction(
            id="t2",
            ref_number="TXN100002",
            merchant_id="m2",
            type="Debit",
            amount_debit_ngn=150000.00,
            debit_date=datetime(2024, 10, 24, 11, 15),
            status="Pending",
        ),
    ])
    db.flush()

    db.add(ForexLog(
        id="f1",
        transaction_id="t1",
        conversion_date=datetime(2024, 10, 24, 14, 0),
        rate_applied=1545.79,
        amount_input_ngn=500000.00,
        amount_output_target=323.45,
    ))
    db.add(Commission(
        id="c1",
        transaction_id="t1",
        base_commission_ngn=5000.00,
        forex_spread_ngn=2500.00,
        total_commission_ngn=7500.00,
        payout_status="Due",
    ))
    logger.info("Seeded 2 merchants and 2 transactions")


def seed_promo_codes(db: Session):
    """Create demo promo codes and the campaigns that sent them."""
    if db.query(PromoCode).first():
        logger.info("Promo codes already present, skipping")
        return

    db.add_all([
        PromoCode(
            code="SAVE20",
            type="Percentage",
            value=20.0,
            min_threshold=100.0,
            currency="USD",
            usage_limit_global=1000,
            usage_count=45,
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 12, 31, 23, 59, 59),
            status="Active",
        ),
        PromoCode(
            code="GLITCH500",
            type="Fixed",
            value=500.0,
            currency="USD",
            usage_limit_global=50,
            usage_count=12,
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 12, 31, 23, 59, 59),
            status="Disabled",
        ),
        PromoCode(
            code="BOOSTRATE",
            type="FX_BOOST",
            value=5.0,
            min_threshold=500.0,
            currency="GBP",
            usage_limit_global=-1,
            usage_count=89,
            start_date=datetime(2024, 6, 1),
            end_date=datetime(2024, 8, 31, 23, 59, 59),
            status="Active",
        ),
    ])

    db.add_all([
        CampaignLog(user_id="user_001", code="SAVE20", segment="new_users",
                    sent_at=datetime(2026, 1, 14, 10, 30)),
        CampaignLog(user_id="user_002", code="SAVE20", segment="new_users",
                    sent_at=datetime(2026, 1, 14, 10, 30)),
        CampaignLog(user_id="user_003", code="BOOSTRATE", segment="churned_users",
                    sent_at=datetime(2026, 1, 12, 14, 15)),
    ])
    logger.info("Seeded 3 promo codes and 3 campaign sends")


def seed_demo_data(db: Session):
    """Seed all demo data in one transaction"""
    try:
        seed_merchants(db)
        seed_promo_codes(db)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding demo data: {str(e)}")
        raise
