"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

This setup uses a manual, async-native approach to database initialization
to ensure that each test runs against a fresh, isolated in-memory database,
which is the most reliable method for an async pytest environment.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend.
- `initialize_test_db`: Creates a fresh DB schema for each test that needs one.
- `today`: The fixed reference date every report test is evaluated against.
- `app_for_testing`: Provides the FastAPI application with `get_today` pinned
  to `today` and a clean profit override store.
- `client`: Provides a non-authenticated httpx AsyncClient.
- `auth_client`: Provides an httpx AsyncClient sending a bearer token.
- `make_customer` / `make_payment`: Factories for test data.
"""

import datetime
from typing import Any, AsyncGenerator, Generator, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from tortoise import Tortoise

from lease_reports.features.customers.models import Customer, Payment, PaymentStatus
from lease_reports.features.reports.router import get_today

# Import the app
from lease_reports.main import app as actual_app

TEST_TODAY = datetime.date(2024, 6, 15)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Specifies the asyncio backend for pytest-asyncio.
    """
    return "asyncio"


@pytest_asyncio.fixture(scope="function")
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Initializes the database for each test function.

    This async fixture creates a fresh in-memory database and schema
    for each test and tears it down afterwards.
    """
    test_db_config = {
        "connections": {"default": "sqlite://:memory:"},
        "apps": {
            "models": {
                "models": ["lease_reports.features.customers.models"],
                "default_connection": "default",
            }
        },
    }
    await Tortoise.init(config=test_db_config)
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


@pytest.fixture(scope="function")
def today() -> datetime.date:
    return TEST_TODAY


@pytest.fixture(scope="function")
def app_for_testing(initialize_test_db, today: datetime.date) -> Generator[FastAPI, Any, None]:
    """
    Provides the FastAPI application for testing.

    httpx's ASGITransport does not send lifespan events, so the production
    lifespan never runs and `initialize_test_db` owns the database connection.
    """
    actual_app.dependency_overrides[get_today] = lambda: today
    actual_app.state.profit_overrides.clear()

    yield actual_app

    actual_app.dependency_overrides.clear()
    actual_app.state.profit_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app_for_testing: FastAPI) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides a non-authenticated httpx AsyncClient.
    """
    transport = httpx.ASGITransport(app=app_for_testing)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def auth_client(app_for_testing: FastAPI) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides an httpx AsyncClient that sends a bearer token with every request.
    """
    transport = httpx.ASGITransport(app=app_for_testing)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"Authorization": "Bearer test-token"},
    ) as ac:
        yield ac


@pytest.fixture(scope="function")
def make_customer(initialize_test_db):
    """Returns a coroutine function creating a customer; keyword arguments override the defaults."""
    counter = {"n": 0}

    async def _make_customer(
        created_at: Optional[datetime.datetime] = None, **overrides
    ) -> Customer:
        counter["n"] += 1
        data = {
            "full_name": f"Customer {counter['n']}",
            "phone_number": f"+99450000{counter['n']:04d}",
            "car_brand": "Toyota",
            "car_model": "Camry",
            "car_year": 2021,
            "car_purchase_cost": 20000.0,
            "leasing_amount": 15000.0,
            "monthly_installment": 1000.0,
            "lease_duration": 18,
            "lease_start_date": datetime.date(2024, 1, 1),
            # Spread creation times so newest-first ordering is deterministic
            "created_at": created_at
            or datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
            + datetime.timedelta(hours=counter["n"]),
        }
        data.update(overrides)
        return await Customer.create(**data)

    return _make_customer


@pytest.fixture(scope="function")
def make_payment(initialize_test_db):
    """Returns a coroutine function creating a payment for a customer."""

    async def _make_payment(
        customer: Customer,
        amount: float,
        due_date: datetime.date,
        status: PaymentStatus = PaymentStatus.PENDING,
        payment_date: Optional[datetime.date] = None,
    ) -> Payment:
        if status == PaymentStatus.PAID and payment_date is None:
            payment_date = due_date
        return await Payment.create(
            customer=customer,
            amount=amount,
            due_date=due_date,
            status=status,
            payment_date=payment_date,
        )

    return _make_payment
