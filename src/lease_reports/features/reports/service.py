"""
Reports Service Module

This module turns the raw rows produced by ReportRepository into the report
responses served by the API. Derived metrics (profit, overdue flags, customer
status, remaining balances) are computed here and every numeric total
defaults to zero when nothing matches.

Two profit figures exist:
- the summary's total_profit is collected minus invested;
- the dashboard's totalProfit is the sum of each lease's schedule profit
  (installment * duration - leasing amount).
"""

import datetime
import logging
from typing import List, Optional

from fastapi import HTTPException, status

from ..customers.models import OUTSTANDING_STATUSES, PaymentStatus, schedule_profit
from .filters import CustomerFilter, PaymentFilter
from .overrides import ProfitOverrideStore
from .repository import ReportRepository
from .schemas import (
    CarBrandBucket,
    CustomerHistoryResponse,
    CustomerReportRow,
    DashboardStatsResponse,
    FilteredPaymentRow,
    MonthlyBucket,
    PaymentResponse,
    ProfitUpdateResponse,
    SummaryResponse,
)

logger = logging.getLogger(__name__)

OUTSTANDING_VALUES = {s.value for s in OUTSTANDING_STATUSES}


def _today(today: Optional[datetime.date]) -> datetime.date:
    return today or datetime.date.today()


def _as_date(value) -> Optional[datetime.date]:
    if value is None or isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


def is_overdue(payment_status: str, due_date, today: datetime.date) -> bool:
    """An outstanding payment whose due date is strictly before today."""
    return payment_status in OUTSTANDING_VALUES and _as_date(due_date) < today


async def generate_summary_report(
    repository: ReportRepository, today: Optional[datetime.date] = None
) -> SummaryResponse:
    """
    Generates the financial summary.

    Args:
        repository: Data access for the report queries
        today: Reference date for the overdue predicate (defaults to today)

    Returns:
        SummaryResponse: customer counts, invested/collected/pending totals and
        total_profit = total_collected - total_invested.
    """
    totals = await repository.summary_totals(_today(today))
    total_invested = float(totals.get("total_invested") or 0)
    total_collected = float(totals.get("total_collected") or 0)
    return SummaryResponse(
        total_customers=int(totals.get("total_customers") or 0),
        total_invested=total_invested,
        total_collected=total_collected,
        total_pending=float(totals.get("total_pending") or 0),
        overdue_customers=int(totals.get("overdue_customers") or 0),
        completed_customers=int(totals.get("completed_customers") or 0),
        total_profit=total_collected - total_invested,
    )


async def generate_monthly_report(
    repository: ReportRepository, today: Optional[datetime.date] = None
) -> List[MonthlyBucket]:
    """
    Groups payments by due-date month, newest period first.

    Each bucket's collected and pending amounts add up to the value of every
    payment due in that month.
    """
    rows = await repository.monthly_buckets(_today(today))
    return [MonthlyBucket(**row) for row in rows if row.get("period")]


async def generate_car_brand_report(repository: ReportRepository) -> List[CarBrandBucket]:
    rows = await repository.car_brand_buckets()
    return [CarBrandBucket(**row) for row in rows]


async def generate_customer_report(
    repository: ReportRepository,
    filters: CustomerFilter,
    today: Optional[datetime.date] = None,
) -> List[CustomerReportRow]:
    """
    Generates one row per customer matching the filters, newest customer first.

    Filters combine with AND. The status column is "completed" when the
    customer has no outstanding payments (including customers with no
    payments at all) and "active" otherwise.
    """
    rows = await repository.customer_rows(filters, _today(today))
    report = []
    for row in rows:
        outstanding = int(row["total_payments"]) - int(row["payments_made"])
        report.append(
            CustomerReportRow(
                **row,
                status="active" if outstanding > 0 else "completed",
            )
        )
    return report


async def generate_filtered_payments_report(
    repository: ReportRepository,
    filters: PaymentFilter,
    today: Optional[datetime.date] = None,
) -> List[FilteredPaymentRow]:
    today = _today(today)
    rows = await repository.filtered_payment_rows(filters, today)
    return [
        FilteredPaymentRow(**row, is_overdue=is_overdue(row["status"], row["due_date"], today))
        for row in rows
    ]


async def generate_customer_history(
    repository: ReportRepository, customer_public_id: str
) -> CustomerHistoryResponse:
    """
    Returns a customer's payments ordered by due date with amount totals.

    Raises:
        HTTPException: 404 when no customer has the given public id.
    """
    customer = await repository.get_customer(customer_public_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Customer {customer_public_id} not found",
        )
    payments = await repository.payments_for_customer(customer)

    total_amount = sum(p.amount for p in payments)
    paid_amount = sum(p.amount for p in payments if p.status == PaymentStatus.PAID)
    remaining_amount = sum(p.amount for p in payments if p.status in OUTSTANDING_STATUSES)

    return CustomerHistoryResponse(
        customer_public_id=customer.public_id,
        total_amount=float(total_amount),
        paid_amount=float(paid_amount),
        remaining_amount=float(remaining_amount),
        payments=[
            PaymentResponse(
                public_id=p.public_id,
                amount=p.amount,
                due_date=p.due_date,
                payment_date=p.payment_date,
                status=PaymentStatus(p.status).value,
            )
            for p in payments
        ],
    )


async def generate_dashboard_stats(
    repository: ReportRepository,
    today: Optional[datetime.date] = None,
    corrected_profit: Optional[float] = None,
) -> DashboardStatsResponse:
    """
    Generates the dashboard statistics.

    fullyPaidCustomers uses the same predicate as the summary's
    completed_customers, so customers without payments count as fully paid.
    totalProfit sums schedule profit per customer and is not the summary's
    collected-minus-invested figure. correctedProfit is only echoed back from
    the caller's session and is never part of any total.
    """
    totals = await repository.dashboard_totals(_today(today))
    total_profit = sum(
        schedule_profit(installment, duration, leasing)
        for installment, duration, leasing in totals["lease_terms"]
    )
    return DashboardStatsResponse(
        total_customers=totals["total_customers"],
        active_leases=totals["active_leases"],
        fully_paid_customers=totals["fully_paid_customers"],
        monthly_payments=float(totals.get("monthly_payments") or 0),
        total_invested=float(totals.get("total_invested") or 0),
        total_collected=float(totals.get("total_collected") or 0),
        total_unpaid=float(totals.get("total_unpaid") or 0),
        overdue_payments=totals["overdue_payments"],
        total_profit=float(total_profit),
        corrected_profit=corrected_profit,
    )


def update_profit_override(
    store: ProfitOverrideStore, session_key: str, total_profit: float
) -> ProfitUpdateResponse:
    """Remembers a corrected profit for the caller's session only and echoes it."""
    store.set(session_key, total_profit)
    logger.info("Stored session profit override")
    return ProfitUpdateResponse(success=True, total_profit=total_profit)
