"""
Repository for the reporting queries.

ReportRepository is the only place that talks to the data store for reports.
Grouped aggregates run as raw SQL built from the predicates in filters.py,
whose text matchers are then applied to the resulting rows. Row fetches that need related objects go through the Tortoise ORM. Callers
only see typed operations and do not need to know which path a report takes.

Any ORM or driver error is re-raised as QueryFailure naming the operation.
"""

import datetime
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from tortoise import connections
from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.exceptions import BaseORMException

from ...core.exceptions import QueryFailure
from ..customers.models import OUTSTANDING_STATUSES, Customer, Payment
from .filters import (
    OUTSTANDING_SQL,
    PAID_SQL,
    CustomerFilter,
    PaymentFilter,
    active_customer_clause,
    completed_customer_clause,
    overdue_customer_clause,
)

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = (
    "c.id, c.public_id, c.full_name, c.phone_number, c.car_brand, c.car_model, c.car_year, "
    "c.car_purchase_cost, c.leasing_amount, c.monthly_installment, c.lease_duration, "
    "c.lease_start_date, c.created_at"
)


@contextmanager
def query_guard(operation: str) -> Iterator[None]:
    try:
        yield
    except BaseORMException as e:
        logger.error(f"Query failed during {operation}: {e}", exc_info=True)
        raise QueryFailure(operation) from e


class ReportRepository:
    def __init__(self, connection_name: str = "default"):
        self.connection_name = connection_name

    def _connection(self) -> BaseDBAsyncClient:
        return connections.get(self.connection_name)

    async def _fetch_all(self, query: str, params: list) -> List[dict]:
        return await self._connection().execute_query_dict(query, params)

    async def _fetch_one(self, query: str, params: list) -> dict:
        rows = await self._fetch_all(query, params)
        return rows[0] if rows else {}

    async def _scalar(self, query: str, params: list):
        row = await self._fetch_one(query, params)
        return next(iter(row.values()), None) if row else None

    async def summary_totals(self, today: datetime.date) -> dict:
        overdue_sql, overdue_params = overdue_customer_clause(today)
        completed_sql, completed_params = completed_customer_clause()
        query = f"""
            SELECT
                (SELECT COUNT(*) FROM customers) AS total_customers,
                (SELECT COALESCE(SUM(leasing_amount), 0) FROM customers) AS total_invested,
                (SELECT COALESCE(SUM(amount), 0) FROM payments WHERE status = {PAID_SQL}) AS total_collected,
                (SELECT COALESCE(SUM(amount), 0) FROM payments WHERE status IN {OUTSTANDING_SQL}) AS total_pending,
                (SELECT COUNT(*) FROM customers c WHERE {overdue_sql}) AS overdue_customers,
                (SELECT COUNT(*) FROM customers c WHERE {completed_sql}) AS completed_customers
        """
        with query_guard("summary"):
            return await self._fetch_one(query, overdue_params + completed_params)

    async def monthly_buckets(self, today: datetime.date) -> List[dict]:
        # Monthly overdue counts payments due on or before today
        query = f"""
            SELECT
                strftime('%Y-%m', due_date) AS period,
                COUNT(*) AS total_payments,
                COALESCE(SUM(CASE WHEN status = {PAID_SQL} THEN amount ELSE 0 END), 0) AS collected_amount,
                COALESCE(SUM(CASE WHEN status IN {OUTSTANDING_SQL} THEN amount ELSE 0 END), 0) AS pending_amount,
                COALESCE(SUM(CASE WHEN status IN {OUTSTANDING_SQL} AND due_date <= ? THEN amount ELSE 0 END), 0)
                    AS overdue_amount,
                COUNT(CASE WHEN status IN {OUTSTANDING_SQL} AND due_date <= ? THEN 1 END) AS overdue_payments,
                COUNT(CASE WHEN status = {PAID_SQL} THEN 1 END) AS completed_payments
            FROM payments
            GROUP BY strftime('%Y-%m', due_date)
            ORDER BY period DESC
        """
        with query_guard("monthly report"):
            return await self._fetch_all(query, [today.isoformat(), today.isoformat()])

    async def car_brand_buckets(self) -> List[dict]:
        query = """
            SELECT
                car_brand,
                COUNT(*) AS total_cars,
                COALESCE(SUM(leasing_amount), 0) AS total_leasing_amount,
                COALESCE(AVG(monthly_installment), 0) AS avg_monthly_installment
            FROM customers
            WHERE car_brand IS NOT NULL
            GROUP BY car_brand
            ORDER BY total_cars DESC, car_brand ASC
        """
        with query_guard("car-brand report"):
            return await self._fetch_all(query, [])

    async def customer_rows(self, filters: CustomerFilter, today: datetime.date) -> List[dict]:
        predicate = filters.build(today)
        query = f"""
            SELECT
                {CUSTOMER_COLUMNS},
                COUNT(p.id) AS total_payments,
                COUNT(CASE WHEN p.status = {PAID_SQL} THEN 1 END) AS payments_made,
                COALESCE(SUM(CASE WHEN p.status = {PAID_SQL} THEN p.amount ELSE 0 END), 0) AS total_paid,
                COALESCE(SUM(CASE WHEN p.status IN {OUTSTANDING_SQL} THEN p.amount ELSE 0 END), 0)
                    AS remaining_amount,
                MAX(CASE WHEN p.status = {PAID_SQL} THEN p.payment_date END) AS last_payment_date,
                MIN(CASE WHEN p.status IN {OUTSTANDING_SQL} THEN p.due_date END) AS next_due_date
            FROM customers c
            LEFT JOIN payments p ON p.customer_id = c.id
            WHERE {predicate.sql}
            GROUP BY c.id
            ORDER BY c.created_at DESC, c.id DESC
        """
        with query_guard("customer report"):
            rows = await self._fetch_all(query, predicate.params)
        return [row for row in rows if predicate.matches(row)]

    async def filtered_payment_rows(self, filters: PaymentFilter, today: datetime.date) -> List[dict]:
        predicate = filters.build(today)
        query = f"""
            SELECT
                p.id, p.public_id, p.amount, p.due_date, p.payment_date, p.status,
                c.public_id AS customer_public_id, c.full_name, c.phone_number, c.car_brand, c.car_model
            FROM payments p
            JOIN customers c ON c.id = p.customer_id
            WHERE {predicate.sql}
            ORDER BY p.due_date ASC, p.id ASC
        """
        with query_guard("filtered payments"):
            rows = await self._fetch_all(query, predicate.params)
        return [row for row in rows if predicate.matches(row)]

    async def count_customers(self, clause: tuple[str, list], operation: str) -> int:
        clause_sql, params = clause
        with query_guard(operation):
            return int(await self._scalar(f"SELECT COUNT(*) FROM customers c WHERE {clause_sql}", params) or 0)

    async def dashboard_totals(self, today: datetime.date) -> dict:
        """Counts and sums behind the dashboard; every value defaults to zero."""
        with query_guard("dashboard"):
            total_customers = await Customer.all().count()
            overdue_payments = await Payment.filter(
                status__in=list(OUTSTANDING_STATUSES), due_date__lt=today
            ).count()
            sums = await self._fetch_one(
                f"""
                SELECT
                    (SELECT COALESCE(SUM(monthly_installment), 0) FROM customers) AS monthly_payments,
                    (SELECT COALESCE(SUM(leasing_amount), 0) FROM customers) AS total_invested,
                    (SELECT COALESCE(SUM(amount), 0) FROM payments WHERE status = {PAID_SQL}) AS total_collected,
                    (SELECT COALESCE(SUM(amount), 0) FROM payments WHERE status IN {OUTSTANDING_SQL})
                        AS total_unpaid
                """,
                [],
            )
            lease_terms = await Customer.all().values_list(
                "monthly_installment", "lease_duration", "leasing_amount"
            )
        active_leases = await self.count_customers(active_customer_clause(), "dashboard")
        fully_paid = await self.count_customers(completed_customer_clause(), "dashboard")
        return {
            "total_customers": total_customers,
            "active_leases": active_leases,
            "fully_paid_customers": fully_paid,
            "overdue_payments": overdue_payments,
            "lease_terms": list(lease_terms),
            **sums,
        }

    async def get_customer(self, public_id: str) -> Optional[Customer]:
        with query_guard("customer history"):
            return await Customer.get_or_none(public_id=public_id)

    async def payments_for_customer(self, customer: Customer) -> List[Payment]:
        with query_guard("customer history"):
            return await Payment.filter(customer_id=customer.id).order_by("due_date", "id")

    async def customers_for_export(self) -> List[Customer]:
        with query_guard("customer export"):
            return await Customer.all().prefetch_related("payments").order_by("-created_at", "-id")

    async def payments_for_export(self) -> List[Payment]:
        with query_guard("payment export"):
            return await Payment.all().prefetch_related("customer").order_by("due_date", "id")


def get_report_repository() -> ReportRepository:
    return ReportRepository()
