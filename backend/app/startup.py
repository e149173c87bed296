"""
Application startup validation and initialization.

This module performs startup checks, creates the schema and optionally
seeds demo data before the application serves requests.
"""

import logging
import sys
from typing import List, Tuple

import sqlalchemy as sa
from sqlalchemy import text

from core.config import get_settings, validate_production_config
from core.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "promo_codes",
    "promo_redemptions",
    "campaign_logs",
    "bonus_schemes",
    "credit_ledger",
    "referral_rules",
    "merchants",
    "transactions",
]


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.settings = get_settings()
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_environment_config(self) -> bool:
        """Validate environment configuration"""
        try:
            validate_production_config()

            if self.settings.is_development and self.settings.seed_demo_data:
                self.warnings.append("Demo data seeding is enabled")

            return True
        except ValueError as e:
            self.errors.append(f"Configuration validation failed: {str(e)}")
            return False

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except Exception as e:
            self.errors.append(f"Database connection failed: {str(e)}")
            return False

    def check_required_tables(self) -> bool:
        """Check that the schema was created"""
        try:
            existing_tables = sa.inspect(engine).get_table_names()
            missing_tables = [t for t in REQUIRED_TABLES if t not in existing_tables]

            if missing_tables:
                self.errors.append(f"Missing database tables: {', '.join(missing_tables)}")
                return False

            return True
        except Exception as e:
            self.warnings.append(f"Could not check database tables: {str(e)}")
            return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
        ]

        all_passed = True
        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            try:
                if not check_func():
                    all_passed = False
            except Exception as e:
                self.errors.append(f"{check_name} check failed with error: {str(e)}")
                all_passed = False

        return all_passed, self.errors, self.warnings


def init_database():
    """Create all tables for the registered models"""
    # Model modules must be imported so their tables are on Base.metadata
    from modules.promotions.models import promo_models  # noqa: F401
    from modules.bonuses.models import bonus_models  # noqa: F401
    from modules.referrals.models import referral_models  # noqa: F401
    from modules.merchants.models import merchant_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")


def seed_demo_data_if_enabled():
    settings = get_settings()
    if not settings.seed_demo_data:
        return

    from app.demo_data import seed_demo_data

    db = SessionLocal()
    try:
        seed_demo_data(db)
    finally:
        db.close()


def run_startup_checks():
    """Run all startup validation checks"""
    settings = get_settings()
    logger.info("=" * 60)
    logger.info("Starting Mito admin backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    if warnings:
        logger.warning("Startup Warnings:")
        for warning in warnings:
            logger.warning(f"  {warning}")

    if errors:
        logger.error("Startup Errors:")
        for error in errors:
            logger.error(f"  {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_logging():
    """Configure root logging from settings"""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
