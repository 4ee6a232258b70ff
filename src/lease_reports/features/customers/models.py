"""Data models for leased-vehicle customers and their scheduled payments."""

from enum import Enum
from typing import Optional

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    # Stored "overdue" is treated exactly like "pending"; lateness is derived from due_date
    OVERDUE = "overdue"


OUTSTANDING_STATUSES = (PaymentStatus.PENDING, PaymentStatus.OVERDUE)


def schedule_profit(
    monthly_installment: Optional[float],
    lease_duration: Optional[int],
    leasing_amount: Optional[float],
) -> float:
    """Profit a lease earns over its full schedule: installment * duration - leasing amount.

    Missing values count as zero so the result is always a number.
    """
    return float(monthly_installment or 0) * int(lease_duration or 0) - float(leasing_amount or 0)


class Customer(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    full_name = fields.CharField(max_length=255)
    phone_number = fields.CharField(max_length=50)

    car_brand = fields.CharField(max_length=100, null=True, db_index=True)
    car_model = fields.CharField(max_length=100, null=True)
    car_year = fields.IntField(null=True)
    car_purchase_cost = fields.FloatField(default=0.0)

    leasing_amount = fields.FloatField(default=0.0)
    monthly_installment = fields.FloatField(default=0.0)
    lease_duration = fields.IntField(default=0, description="Lease duration in months")
    lease_start_date = fields.DateField(null=True)

    payments: fields.ReverseRelation["Payment"]

    @property
    def car_details(self) -> str:
        return f"{self.car_brand} {self.car_model} ({self.car_year})"

    @property
    def schedule_profit(self) -> float:
        return schedule_profit(self.monthly_installment, self.lease_duration, self.leasing_amount)

    # The properties below require payments to be prefetched
    @property
    def total_paid(self) -> float:
        return float(sum(p.amount for p in self.payments if p.status == PaymentStatus.PAID))

    @property
    def status(self) -> str:
        if any(p.status in OUTSTANDING_STATUSES for p in self.payments):
            return "active"
        return "completed"

    def __str__(self):
        return f"{self.full_name} ({self.car_details})"

    class Meta:
        table = "customers"
        ordering = ["-created_at"]


class Payment(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    customer: fields.ForeignKeyRelation[Customer] = fields.ForeignKeyField(
        "models.Customer", related_name="payments", on_delete=fields.CASCADE
    )

    amount = fields.FloatField()
    due_date = fields.DateField(db_index=True)
    payment_date = fields.DateField(null=True)
    status = fields.CharEnumField(PaymentStatus, max_length=20, default=PaymentStatus.PENDING)

    @property
    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_STATUSES

    def __str__(self):
        return f"Payment {self.public_id} of {self.amount:.2f} due {self.due_date} ({PaymentStatus(self.status).value})"

    class Meta:
        table = "payments"
        ordering = ["due_date"]
