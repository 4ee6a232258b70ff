"""Helpers for creating leases together with their monthly payment schedule."""

import calendar
import datetime
import logging
from typing import Optional

from tortoise.transactions import in_transaction

from .models import Customer, Payment, PaymentStatus

logger = logging.getLogger(__name__)


def add_months(start: datetime.date, months: int) -> datetime.date:
    """Returns start shifted by whole months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def build_payment_schedule(
    lease_start_date: datetime.date,
    lease_duration: int,
    monthly_installment: float,
    paid_installments: int = 0,
) -> list[dict]:
    """
    Builds the monthly installment schedule for a lease.

    The first installment is due one month after the lease starts. The first
    `paid_installments` entries are marked paid on their due date.

    Returns:
        A list of dicts with amount, due_date, payment_date and status keys,
        ordered by due date.
    """
    schedule = []
    for index in range(lease_duration):
        due_date = add_months(lease_start_date, index + 1)
        paid = index < paid_installments
        schedule.append(
            {
                "amount": monthly_installment,
                "due_date": due_date,
                "payment_date": due_date if paid else None,
                "status": PaymentStatus.PAID if paid else PaymentStatus.PENDING,
            }
        )
    return schedule


async def create_customer_with_schedule(
    customer_data: dict, paid_installments: int = 0, created_at: Optional[datetime.datetime] = None
) -> Customer:
    """Creates a customer and its full payment schedule in one transaction."""
    async with in_transaction():
        if created_at is not None:
            customer_data = {**customer_data, "created_at": created_at}
        customer = await Customer.create(**customer_data)
        schedule = build_payment_schedule(
            lease_start_date=customer.lease_start_date,
            lease_duration=customer.lease_duration,
            monthly_installment=customer.monthly_installment,
            paid_installments=paid_installments,
        )
        await Payment.bulk_create([Payment(customer=customer, **entry) for entry in schedule])
    logger.info(f"Created customer {customer.public_id} with {len(schedule)} scheduled payments")
    return customer
