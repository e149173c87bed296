# backend/modules/merchants/routers/merchant_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db

from ..schemas.merchant_schemas import (
    DashboardKpi,
    DebitLogList,
    MerchantCreate,
    MerchantCreated,
    MerchantList,
    MerchantResponse,
    MerchantStatusUpdate,
    PayoutList,
    TransactionDetail,
    TransactionList,
)
from ..services.merchant_service import MerchantService

merchant_router = APIRouter(prefix="/api/merchants", tags=["merchants"])
transaction_router = APIRouter(prefix="/api/transactions", tags=["transactions"])
financials_router = APIRouter(prefix="/api/financials", tags=["financials"])
dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@merchant_router.get("", response_model=MerchantList)
def list_merchants(db: Session = Depends(get_db)):
    return MerchantList(data=MerchantService(db).list_merchants())


@merchant_router.post("", response_model=MerchantCreated)
def create_merchant(merchant_data: MerchantCreate, db: Session = Depends(get_db)):
    """Register a merchant for onboarding"""
    merchant = MerchantService(db).create_merchant(merchant_data)
    return MerchantCreated(id=merchant.id, mito_id=merchant.mito_id)


@merchant_router.get("/{merchant_id}", response_model=MerchantResponse)
def get_merchant(merchant_id: str, db: Session = Depends(get_db)):
    return MerchantService(db).get_merchant(merchant_id)


@merchant_router.put("/{merchant_id}/status", response_model=MerchantResponse)
def update_merchant_status(
    merchant_id: str, update: MerchantStatusUpdate, db: Session = Depends(get_db)
):
    return MerchantService(db).update_status(merchant_id, update.status)


@transaction_router.get("", response_model=TransactionList)
def list_transactions(db: Session = Depends(get_db)):
    """Transactions with merchant name, forex output and commission"""
    return TransactionList(data=MerchantService(db).list_transactions())


@transaction_router.get("/{transaction_id}", response_model=TransactionDetail)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    return MerchantService(db).get_transaction(transaction_id)


@financials_router.get("/debits", response_model=DebitLogList)
def list_debits(db: Session = Depends(get_db)):
    return DebitLogList(data=MerchantService(db).list_debits())


@financials_router.get("/payouts", response_model=PayoutList)
def list_payouts(db: Session = Depends(get_db)):
    return PayoutList(data=MerchantService(db).list_payouts())


@dashboard_router.get("/kpi", response_model=DashboardKpi)
def get_dashboard_kpis(db: Session = Depends(get_db)):
    """Commission earned and forex payout totals"""
    return MerchantService(db).get_kpis()
