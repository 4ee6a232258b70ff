import datetime

import pytest
import pytest_asyncio
from fastapi import HTTPException

from lease_reports.core.exceptions import QueryFailure
from lease_reports.features.customers.models import PaymentStatus
from lease_reports.features.reports import service as report_service
from lease_reports.features.reports.filters import CustomerFilter, PaymentFilter
from lease_reports.features.reports.overrides import ProfitOverrideStore
from lease_reports.features.reports.repository import ReportRepository

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def dataset(make_customer, make_payment):
    """
    Three customers evaluated against 2024-06-15:
    - elvin: two paid installments and one pending installment due in the future (active)
    - leyla: one paid installment and one pending installment due 2024-05-01 (overdue)
    - nigar: no payments at all (completed, never overdue)
    """
    elvin = await make_customer(
        full_name="Elvin Mammadov",
        phone_number="+994501112233",
        car_brand="Toyota",
        leasing_amount=15000.0,
        monthly_installment=1000.0,
        lease_duration=18,
    )
    await make_payment(elvin, 1000.0, datetime.date(2024, 1, 10), PaymentStatus.PAID)
    await make_payment(elvin, 1000.0, datetime.date(2024, 2, 10), PaymentStatus.PAID)
    await make_payment(elvin, 1000.0, datetime.date(2024, 6, 20))

    leyla = await make_customer(
        full_name="Leyla Aliyeva",
        phone_number="+994552223344",
        car_brand="Hyundai",
        car_model="Tucson",
        leasing_amount=10000.0,
        monthly_installment=500.0,
        lease_duration=24,
    )
    await make_payment(leyla, 500.0, datetime.date(2024, 3, 10), PaymentStatus.PAID)
    await make_payment(leyla, 500.0, datetime.date(2024, 5, 1))

    nigar = await make_customer(
        full_name="Nigar Karimova",
        phone_number="+994774445566",
        car_brand="Toyota",
        car_model="Corolla",
        leasing_amount=5000.0,
        monthly_installment=300.0,
        lease_duration=20,
    )
    return {"elvin": elvin, "leyla": leyla, "nigar": nigar}


@pytest.fixture
def repository():
    return ReportRepository()


async def test_summary_report(dataset, repository, today):
    summary = await report_service.generate_summary_report(repository, today=today)

    assert summary.total_customers == 3
    assert summary.total_invested == pytest.approx(30000.0)
    assert summary.total_collected == pytest.approx(2500.0)
    assert summary.total_pending == pytest.approx(1500.0)
    assert summary.overdue_customers == 1
    assert summary.completed_customers == 1
    assert summary.total_profit == pytest.approx(2500.0 - 30000.0)


async def test_summary_and_dashboard_profit_use_different_formulas(dataset, repository, today):
    summary = await report_service.generate_summary_report(repository, today=today)
    dashboard = await report_service.generate_dashboard_stats(repository, today=today)

    # (1000*18 - 15000) + (500*24 - 10000) + (300*20 - 5000)
    assert dashboard.total_profit == pytest.approx(6000.0)
    assert summary.total_profit == pytest.approx(-27500.0)
    assert dashboard.total_profit != summary.total_profit


async def test_dashboard_stats(dataset, repository, today):
    stats = await report_service.generate_dashboard_stats(repository, today=today)

    assert stats.total_customers == 3
    assert stats.active_leases == 2
    assert stats.fully_paid_customers == 1
    assert stats.monthly_payments == pytest.approx(1800.0)
    assert stats.total_invested == pytest.approx(30000.0)
    assert stats.total_collected == pytest.approx(2500.0)
    assert stats.total_unpaid == pytest.approx(1500.0)
    assert stats.overdue_payments == 1
    assert stats.corrected_profit is None


async def test_customer_without_payments_is_completed_and_not_overdue(dataset, repository, today):
    completed = await report_service.generate_customer_report(
        repository, CustomerFilter(status="completed"), today=today
    )
    overdue = await report_service.generate_customer_report(
        repository, CustomerFilter(status="overdue"), today=today
    )

    assert [row.full_name for row in completed] == ["Nigar Karimova"]
    assert [row.full_name for row in overdue] == ["Leyla Aliyeva"]
    assert completed[0].total_payments == 0
    assert completed[0].total_paid == 0
    assert completed[0].remaining_amount == 0


async def test_customer_report_rows(dataset, repository, today):
    rows = await report_service.generate_customer_report(repository, CustomerFilter(), today=today)

    # Newest customer first
    assert [row.full_name for row in rows] == ["Nigar Karimova", "Leyla Aliyeva", "Elvin Mammadov"]
    elvin = rows[2]
    assert elvin.status == "active"
    assert elvin.total_payments == 3
    assert elvin.payments_made == 2
    assert elvin.last_payment_date == datetime.date(2024, 2, 10)
    assert elvin.next_due_date == datetime.date(2024, 6, 20)
    assert rows[0].status == "completed"

    scheduled = {"Elvin Mammadov": 3000.0, "Leyla Aliyeva": 1000.0, "Nigar Karimova": 0.0}
    for row in rows:
        assert row.total_paid + row.remaining_amount == pytest.approx(scheduled[row.full_name])


async def test_customer_filters_combine_with_and(dataset, repository, today):
    overdue_toyota = await report_service.generate_customer_report(
        repository, CustomerFilter(status="overdue", car_brand="Toyota"), today=today
    )
    overdue_hyundai = await report_service.generate_customer_report(
        repository, CustomerFilter(status="overdue", car_brand="Hyundai"), today=today
    )
    toyota = await report_service.generate_customer_report(
        repository, CustomerFilter(car_brand="Toyota"), today=today
    )

    assert overdue_toyota == []
    assert [row.full_name for row in overdue_hyundai] == ["Leyla Aliyeva"]
    assert [row.full_name for row in toyota] == ["Nigar Karimova", "Elvin Mammadov"]


@pytest.mark.parametrize("search", ["Aliyeva", "leyla", "55222"])
async def test_search_matches_name_or_phone(dataset, repository, today, search):
    rows = await report_service.generate_customer_report(
        repository, CustomerFilter(search=search), today=today
    )
    assert [row.full_name for row in rows] == ["Leyla Aliyeva"]


async def test_search_treats_wildcards_literally(dataset, repository, today):
    rows = await report_service.generate_customer_report(
        repository, CustomerFilter(search="%"), today=today
    )
    assert rows == []


async def test_search_ignores_case_of_non_ascii_letters(make_customer, make_payment, repository, today):
    customer = await make_customer(full_name="Əli Şahbazov", car_brand="Škoda")
    await make_payment(customer, 400.0, datetime.date(2024, 7, 1))
    await make_customer(full_name="Elvin Mammadov")

    customers = await report_service.generate_customer_report(
        repository, CustomerFilter(search="əli"), today=today
    )
    payments = await report_service.generate_filtered_payments_report(
        repository, PaymentFilter(customer_name="ŞAHBAZOV", car_brand="škoda"), today=today
    )

    assert [row.full_name for row in customers] == ["Əli Şahbazov"]
    assert [(row.full_name, row.amount) for row in payments] == [("Əli Şahbazov", 400.0)]


async def test_monthly_report_partitions_each_period(dataset, repository, today):
    buckets = await report_service.generate_monthly_report(repository, today=today)

    assert [b.period for b in buckets] == ["2024-06", "2024-05", "2024-03", "2024-02", "2024-01"]
    by_period = {b.period: b for b in buckets}
    assert by_period["2024-05"].overdue_amount == pytest.approx(500.0)
    assert by_period["2024-05"].overdue_payments == 1
    assert by_period["2024-06"].overdue_payments == 0
    assert by_period["2024-03"].completed_payments == 1

    expected_totals = {"2024-06": 1000.0, "2024-05": 500.0, "2024-03": 500.0, "2024-02": 1000.0, "2024-01": 1000.0}
    for bucket in buckets:
        assert bucket.collected_amount + bucket.pending_amount == pytest.approx(expected_totals[bucket.period])


async def test_monthly_overdue_includes_payments_due_today(make_customer, make_payment, repository, today):
    customer = await make_customer()
    await make_payment(customer, 250.0, today)

    buckets = await report_service.generate_monthly_report(repository, today=today)
    stats = await report_service.generate_dashboard_stats(repository, today=today)

    assert buckets[0].overdue_payments == 1
    assert stats.overdue_payments == 0


async def test_stored_overdue_status_counts_as_outstanding(make_customer, make_payment, repository, today):
    customer = await make_customer()
    await make_payment(customer, 400.0, datetime.date(2024, 7, 1), PaymentStatus.OVERDUE)

    summary = await report_service.generate_summary_report(repository, today=today)
    rows = await report_service.generate_filtered_payments_report(repository, PaymentFilter(), today=today)

    assert summary.total_pending == pytest.approx(400.0)
    assert summary.completed_customers == 0
    assert summary.overdue_customers == 0
    assert rows[0].is_overdue is False


async def test_car_brand_report(dataset, repository):
    buckets = await report_service.generate_car_brand_report(repository)

    assert [b.car_brand for b in buckets] == ["Toyota", "Hyundai"]
    assert buckets[0].total_cars == 2
    assert buckets[0].total_leasing_amount == pytest.approx(20000.0)
    assert buckets[0].avg_monthly_installment == pytest.approx(650.0)


async def test_car_brand_ties_are_ordered_by_name(make_customer, repository):
    await make_customer(car_brand="Kia")
    await make_customer(car_brand="Audi")
    await make_customer(car_brand=None)

    buckets = await report_service.generate_car_brand_report(repository)
    assert [b.car_brand for b in buckets] == ["Audi", "Kia"]


async def test_filtered_payments(dataset, repository, today):
    toyota = await report_service.generate_filtered_payments_report(
        repository, PaymentFilter(car_brand="yot"), today=today
    )
    overdue = await report_service.generate_filtered_payments_report(
        repository, PaymentFilter(payment_status="overdue"), today=today
    )
    pending = await report_service.generate_filtered_payments_report(
        repository, PaymentFilter(payment_status="pending"), today=today
    )
    in_range = await report_service.generate_filtered_payments_report(
        repository, PaymentFilter(start_date="2024-02-01", end_date="2024-03-31"), today=today
    )

    assert len(toyota) == 3
    assert {row.full_name for row in toyota} == {"Elvin Mammadov"}
    assert [(row.full_name, row.is_overdue) for row in overdue] == [("Leyla Aliyeva", True)]
    assert [row.due_date for row in pending] == [datetime.date(2024, 5, 1), datetime.date(2024, 6, 20)]
    assert [row.due_date for row in in_range] == [datetime.date(2024, 2, 10), datetime.date(2024, 3, 10)]


async def test_customer_history(dataset, repository):
    history = await report_service.generate_customer_history(repository, dataset["elvin"].public_id)

    assert history.total_amount == pytest.approx(3000.0)
    assert history.paid_amount == pytest.approx(2000.0)
    assert history.remaining_amount == pytest.approx(1000.0)
    assert history.paid_amount + history.remaining_amount == pytest.approx(history.total_amount)
    assert [p.due_date for p in history.payments] == sorted(p.due_date for p in history.payments)
    assert [p.status for p in history.payments] == ["paid", "paid", "pending"]


async def test_customer_history_for_unknown_customer(initialize_test_db, repository):
    with pytest.raises(HTTPException) as exc_info:
        await report_service.generate_customer_history(repository, "missing")
    assert exc_info.value.status_code == 404


async def test_empty_dataset_reports_zeros(initialize_test_db, repository, today):
    summary = await report_service.generate_summary_report(repository, today=today)
    stats = await report_service.generate_dashboard_stats(repository, today=today)

    assert summary.model_dump() == {
        "total_customers": 0,
        "total_invested": 0.0,
        "total_collected": 0.0,
        "total_pending": 0.0,
        "overdue_customers": 0,
        "completed_customers": 0,
        "total_profit": 0.0,
    }
    assert stats.total_profit == 0.0
    assert stats.active_leases == 0
    assert stats.fully_paid_customers == 0
    assert await report_service.generate_monthly_report(repository, today=today) == []
    assert await report_service.generate_car_brand_report(repository) == []
    assert await report_service.generate_customer_report(repository, CustomerFilter(), today=today) == []


async def test_profit_override_is_scoped_to_session(dataset, repository, today):
    store = ProfitOverrideStore()
    response = report_service.update_profit_override(store, "alice", 1234.5)

    assert response.success is True
    assert response.total_profit == 1234.5
    assert store.get("alice") == 1234.5
    assert store.get("bob") is None

    stats = await report_service.generate_dashboard_stats(
        repository, today=today, corrected_profit=store.get("alice")
    )
    assert stats.corrected_profit == 1234.5
    assert stats.total_profit == pytest.approx(6000.0)


async def test_store_errors_become_query_failures(initialize_test_db, repository, today):
    await repository._connection().execute_script("DROP TABLE payments")

    with pytest.raises(QueryFailure) as exc_info:
        await report_service.generate_summary_report(repository, today=today)
    assert exc_info.value.operation == "summary"
