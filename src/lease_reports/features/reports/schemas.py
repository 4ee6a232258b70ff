"""Lease Reports API Schemas

This module defines Pydantic models used by the financial reporting endpoints:

1. Financial Summary
2. Monthly Breakdown
3. Customer Report
4. Car Brand Breakdown
5. Filtered Payments
6. Customer Payment History
7. Dashboard Statistics
8. Profit Override

The summary, monthly, customer and car-brand reports keep their snake_case
field names; the dashboard, history and profit override bodies are camelCase."""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
import datetime


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# 1. Financial Summary
class SummaryResponse(BaseModel):
    total_customers: int = 0
    total_invested: float = 0.0
    total_collected: float = 0.0
    total_pending: float = 0.0
    overdue_customers: int = 0
    completed_customers: int = 0
    total_profit: float = Field(0.0, description="total_collected - total_invested")


# 2. Monthly Breakdown
class MonthlyBucket(BaseModel):
    period: str = Field(..., description="Due-date bucket as YYYY-MM")
    total_payments: int
    collected_amount: float
    pending_amount: float
    overdue_amount: float
    overdue_payments: int
    completed_payments: int


# 3. Customer Report
class CustomerReportRow(BaseModel):
    id: int
    public_id: str
    full_name: str
    phone_number: str
    car_brand: Optional[str] = None
    car_model: Optional[str] = None
    car_year: Optional[int] = None
    car_purchase_cost: float
    leasing_amount: float
    monthly_installment: float
    lease_duration: int
    lease_start_date: Optional[datetime.date] = None
    created_at: datetime.datetime
    status: str
    total_payments: int
    payments_made: int
    total_paid: float
    remaining_amount: float
    last_payment_date: Optional[datetime.date] = None
    next_due_date: Optional[datetime.date] = None


# 4. Car Brand Breakdown
class CarBrandBucket(BaseModel):
    car_brand: str = Field(..., serialization_alias="carBrand")
    total_cars: int
    total_leasing_amount: float
    avg_monthly_installment: float


# 5. Filtered Payments
class FilteredPaymentRow(BaseModel):
    id: int
    public_id: str
    amount: float
    due_date: datetime.date
    payment_date: Optional[datetime.date] = None
    status: str
    is_overdue: bool
    customer_public_id: str
    full_name: str
    phone_number: str
    car_brand: Optional[str] = None
    car_model: Optional[str] = None


# 6. Customer Payment History
class PaymentResponse(CamelModel):
    public_id: str
    amount: float
    due_date: datetime.date
    payment_date: Optional[datetime.date] = None
    status: str


class CustomerHistoryResponse(CamelModel):
    customer_public_id: str
    total_amount: float
    paid_amount: float
    remaining_amount: float
    payments: List[PaymentResponse]


# 7. Dashboard Statistics
class DashboardStatsResponse(CamelModel):
    total_customers: int = 0
    active_leases: int = 0
    fully_paid_customers: int = 0
    monthly_payments: float = 0.0
    total_invested: float = 0.0
    total_collected: float = 0.0
    total_unpaid: float = 0.0
    overdue_payments: int = 0
    total_profit: float = Field(0.0, description="Sum of installment * duration - leasing amount per customer")
    corrected_profit: Optional[float] = Field(
        None, description="Session-scoped override set through update-profit; never part of the aggregates"
    )


# 8. Profit Override
class ProfitUpdateRequest(CamelModel):
    total_profit: float


class ProfitUpdateResponse(CamelModel):
    success: bool
    total_profit: float
