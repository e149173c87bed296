from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.exceptions import register_exception_handlers
from app.startup import (
    configure_logging,
    init_database,
    run_startup_checks,
    seed_demo_data_if_enabled,
)

# ========== Promotions ==========
from modules.promotions import promotions_router, segments_router

# ========== Bonus Schemes & Credits ==========
from modules.bonuses import bonus_scheme_router, credit_router

# ========== Referral Rules ==========
from modules.referrals import referral_rules_router

# ========== Merchants & Financials ==========
from modules.merchants.routers.merchant_router import (
    dashboard_router,
    financials_router,
    merchant_router,
    transaction_router,
)

settings = get_settings()

app = FastAPI(
    title="Mito Admin API",
    description="""
    ## Mito Admin Portal API

    Back office for the Mito money-transfer service.

    ### Modules
    - **Promo Codes**: Discount codes, eligibility checks, atomic redemption and campaigns
    - **Bonus Schemes**: Flat, percentage and tiered credit awards
    - **Credits**: Append-only credit ledger with balances, history and manual adjustments
    - **Referral Rules**: Per-currency referral rewards
    - **Merchants**: Merchant onboarding, transactions, debits, payouts and dashboard KPIs

    ### Errors
    Failures return `{"error": <code>, "detail": <message>, "path": <request path>}`.
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ========== Include all routers ==========
app.include_router(promotions_router)
app.include_router(segments_router)
app.include_router(bonus_scheme_router)
app.include_router(credit_router)
app.include_router(referral_rules_router)
app.include_router(merchant_router)
app.include_router(transaction_router)
app.include_router(financials_router)
app.include_router(dashboard_router)


@app.on_event("startup")
async def startup_event():
    """Initialize the database on application startup"""
    configure_logging()
    init_database()

    # Run startup validation checks
    run_startup_checks()

    seed_demo_data_if_enabled()


@app.get("/")
def read_root():
    return {"status": "ok", "service": "Mito admin backend is running"}
