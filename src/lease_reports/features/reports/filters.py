"""
SQL predicate construction for the report queries.

Filters build a Predicate: `sql` is a string of AND-joined clauses using "?"
placeholders and `params` holds the values to bind, in placeholder order.
With no filters the predicate is "1=1".

Text searches are not part of the SQL. SQLite's LIKE only folds ASCII case,
so "əli" would miss "Əli". They become `matchers` that casefold both sides
and are applied to the fetched rows by the repository.

The customer alias is "c" and the payment alias is "p" in all predicates.
"today" is always passed in explicitly so results do not depend on the
database clock.
"""

import datetime
from dataclasses import dataclass, field
from typing import Callable, Optional

from ...core.exceptions import InvalidFilter
from ..customers.models import OUTSTANDING_STATUSES, PaymentStatus

# Literal SQL list of the statuses that count as "not yet paid"
OUTSTANDING_SQL = "(" + ", ".join(f"'{s.value}'" for s in OUTSTANDING_STATUSES) + ")"
PAID_SQL = f"'{PaymentStatus.PAID.value}'"

CUSTOMER_STATUSES = ("overdue", "completed")
PAYMENT_STATUSES = tuple(s.value for s in PaymentStatus)


RowMatcher = Callable[[dict], bool]


@dataclass
class Predicate:
    clauses: list[str] = field(default_factory=list)
    params: list = field(default_factory=list)
    matchers: list[RowMatcher] = field(default_factory=list)

    def add(self, clause: str, *params) -> "Predicate":
        self.clauses.append(clause)
        self.params.extend(params)
        return self

    def require(self, matcher: RowMatcher) -> "Predicate":
        self.matchers.append(matcher)
        return self

    @property
    def sql(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "1=1"

    def matches(self, row: dict) -> bool:
        return all(matcher(row) for matcher in self.matchers)


def contains_text(text: str, *columns: str) -> RowMatcher:
    """Case-insensitive substring match of text against any of the row columns."""
    needle = text.casefold()

    def matcher(row: dict) -> bool:
        return any(needle in str(row.get(column) or "").casefold() for column in columns)

    return matcher


def parse_date(field_name: str, value: Optional[str]) -> Optional[datetime.date]:
    if value is None or value == "":
        return None
    try:
        if "T" in value:
            return datetime.datetime.fromisoformat(value).date()
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise InvalidFilter(field_name, value, "expected a YYYY-MM-DD date")


def overdue_customer_clause(today: datetime.date) -> tuple[str, list]:
    """Customer has at least one outstanding payment due strictly before today."""
    return (
        f"EXISTS (SELECT 1 FROM payments p2 WHERE p2.customer_id = c.id "
        f"AND p2.status IN {OUTSTANDING_SQL} AND p2.due_date < ?)",
        [today.isoformat()],
    )


def completed_customer_clause() -> tuple[str, list]:
    """
    Customer has no outstanding payments.

    This is not the complement of the overdue clause: a customer without any
    payments is completed and not overdue.
    """
    return (
        f"NOT EXISTS (SELECT 1 FROM payments p2 WHERE p2.customer_id = c.id "
        f"AND p2.status IN {OUTSTANDING_SQL})",
        [],
    )


def active_customer_clause() -> tuple[str, list]:
    """Customer has at least one outstanding payment."""
    return (
        f"EXISTS (SELECT 1 FROM payments p2 WHERE p2.customer_id = c.id "
        f"AND p2.status IN {OUTSTANDING_SQL})",
        [],
    )


@dataclass
class CustomerFilter:
    """Filters accepted by the customer report."""

    status: Optional[str] = None
    search: Optional[str] = None
    car_brand: Optional[str] = None

    def __post_init__(self):
        if self.status == "":
            self.status = None
        if self.status is not None and self.status not in CUSTOMER_STATUSES:
            raise InvalidFilter("status", self.status, f"expected one of {', '.join(CUSTOMER_STATUSES)}")

    def build(self, today: datetime.date) -> Predicate:
        predicate = Predicate()
        if self.status == "overdue":
            clause, params = overdue_customer_clause(today)
            predicate.add(clause, *params)
        elif self.status == "completed":
            clause, params = completed_customer_clause()
            predicate.add(clause, *params)

        if self.search:
            predicate.require(contains_text(self.search, "full_name", "phone_number"))

        if self.car_brand:
            predicate.add("c.car_brand = ?", self.car_brand)

        return predicate


@dataclass
class PaymentFilter:
    """Filters accepted by the filtered payments report."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    customer_name: Optional[str] = None
    car_brand: Optional[str] = None
    payment_status: Optional[str] = None
    start: Optional[datetime.date] = field(init=False, default=None)
    end: Optional[datetime.date] = field(init=False, default=None)

    def __post_init__(self):
        self.start = parse_date("startDate", self.start_date)
        self.end = parse_date("endDate", self.end_date)
        if self.start and self.end and self.start > self.end:
            raise InvalidFilter("startDate", self.start_date, "startDate is after endDate")
        if self.payment_status == "":
            self.payment_status = None
        if self.payment_status is not None and self.payment_status not in PAYMENT_STATUSES:
            raise InvalidFilter(
                "paymentStatus", self.payment_status, f"expected one of {', '.join(PAYMENT_STATUSES)}"
            )

    def build(self, today: datetime.date) -> Predicate:
        predicate = Predicate()
        if self.start:
            predicate.add("p.due_date >= ?", self.start.isoformat())
        if self.end:
            predicate.add("p.due_date <= ?", self.end.isoformat())

        if self.customer_name:
            predicate.require(contains_text(self.customer_name, "full_name"))

        if self.car_brand:
            predicate.require(contains_text(self.car_brand, "car_brand"))

        if self.payment_status == PaymentStatus.PAID.value:
            predicate.add(f"p.status = {PAID_SQL}")
        elif self.payment_status == PaymentStatus.PENDING.value:
            predicate.add(f"p.status IN {OUTSTANDING_SQL}")
        elif self.payment_status == PaymentStatus.OVERDUE.value:
            predicate.add(f"p.status IN {OUTSTANDING_SQL} AND p.due_date < ?", today.isoformat())

        return predicate
