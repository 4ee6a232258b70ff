import datetime
import logging
from fastapi import APIRouter, Depends, Query
from typing import Annotated, List, Optional

from ..auth.schemas import Principal
from ..auth.security import get_current_principal

from .filters import CustomerFilter, PaymentFilter
from .overrides import ProfitOverrideStore, get_profit_overrides
from .repository import ReportRepository, get_report_repository
from .schemas import (
    CarBrandBucket, CustomerHistoryResponse, CustomerReportRow, DashboardStatsResponse,
    FilteredPaymentRow, MonthlyBucket, ProfitUpdateRequest, ProfitUpdateResponse, SummaryResponse,
)
# Service functions that contain the business logic
from . import service as report_service

logger = logging.getLogger(__name__)


def get_today() -> datetime.date:
    """Reference date for overdue checks; overridden in tests."""
    return datetime.date.today()


Repository = Annotated[ReportRepository, Depends(get_report_repository)]
Today = Annotated[datetime.date, Depends(get_today)]

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    # Apply auth dependency to all routes in this router
    dependencies=[Depends(get_current_principal)],
    responses={401: {"description": "Not authenticated"}},
)


@router.get("/summary", response_model=SummaryResponse)
async def get_financial_summary(repository: Repository, today: Today):
    return await report_service.generate_summary_report(repository, today=today)


@router.get("/monthly", response_model=List[MonthlyBucket])
async def get_monthly_report(repository: Repository, today: Today):
    return await report_service.generate_monthly_report(repository, today=today)


@router.get("/customers", response_model=List[CustomerReportRow])
async def get_customer_report(
    repository: Repository,
    today: Today,
    status: Optional[str] = Query(None, description="overdue or completed"),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or phone"),
    car_brand: Optional[str] = Query(None, description="Exact car brand"),
):
    filters = CustomerFilter(status=status, search=search, car_brand=car_brand)
    return await report_service.generate_customer_report(repository, filters, today=today)


@router.get("/car-brands", response_model=List[CarBrandBucket])
async def get_car_brand_report(repository: Repository):
    return await report_service.generate_car_brand_report(repository)


@router.get("/filtered", response_model=List[FilteredPaymentRow])
async def get_filtered_payments(
    repository: Repository,
    today: Today,
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD, inclusive"),
    customer_name: Optional[str] = Query(None, alias="customerName"),
    car_brand: Optional[str] = Query(None, alias="carBrand"),
    payment_status: Optional[str] = Query(None, alias="paymentStatus", description="pending, paid or overdue"),
):
    filters = PaymentFilter(
        start_date=start_date,
        end_date=end_date,
        customer_name=customer_name,
        car_brand=car_brand,
        payment_status=payment_status,
    )
    return await report_service.generate_filtered_payments_report(repository, filters, today=today)


@router.get("/customer/{customer_id}/history", response_model=CustomerHistoryResponse)
async def get_customer_history(customer_id: str, repository: Repository):
    return await report_service.generate_customer_history(repository, customer_id)


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    repository: Repository,
    today: Today,
    principal: Annotated[Principal, Depends(get_current_principal)],
    overrides: Annotated[ProfitOverrideStore, Depends(get_profit_overrides)],
):
    return await report_service.generate_dashboard_stats(
        repository, today=today, corrected_profit=overrides.get(principal.session_key)
    )


@router.post("/update-profit", response_model=ProfitUpdateResponse)
async def update_profit(
    body: ProfitUpdateRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    overrides: Annotated[ProfitOverrideStore, Depends(get_profit_overrides)],
):
    return report_service.update_profit_override(overrides, principal.session_key, body.total_profit)
