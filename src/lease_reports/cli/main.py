import asyncio
import datetime
import json
import logging
from pathlib import Path

import typer
from tortoise import Tortoise

from lease_reports.core.logging_config import configure_logging
from lease_reports.features.customers.models import Customer
from lease_reports.features.customers.service import add_months, create_customer_with_schedule
from lease_reports.features.exports import service as export_service
from lease_reports.features.reports import service as report_service
from lease_reports.features.reports.repository import ReportRepository
from lease_reports.main import TORTOISE_ORM_CONFIG

logger = logging.getLogger(__name__)

app = typer.Typer(name="lease-reports", help="CLI for the Lease Reports data and exports.")

# (full_name, phone_number, brand, model, year, purchase cost, leasing amount, installment, months, paid)
DEMO_CUSTOMERS = [
    ("Elvin Mammadov", "+994501112233", "Toyota", "Camry", 2021, 30000.0, 25000.0, 1200.0, 24, 24),
    ("Leyla Aliyeva", "+994552223344", "Hyundai", "Tucson", 2022, 28000.0, 22000.0, 1050.0, 24, 10),
    ("Rashad Huseynov", "+994703334455", "Toyota", "Corolla", 2020, 18000.0, 15000.0, 800.0, 24, 3),
    ("Nigar Karimova", "+994774445566", "Kia", "Sportage", 2023, 32000.0, 27000.0, 1300.0, 24, 0),
    ("Tural Ismayilov", "+994515556677", "Mercedes-Benz", "E 200", 2019, 45000.0, 38000.0, 1900.0, 24, 18),
]


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True)  # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


@app.callback()
def main():
    configure_logging()


@app.command("seed-demo")
def seed_demo_command(
    force: bool = typer.Option(False, "--force", help="Seed even when customers already exist."),
):
    """Creates a small demo dataset of customers with payment schedules."""
    asyncio.run(_seed_demo(force))


async def _seed_demo(force: bool):
    async with DBConnection():
        if not force and await Customer.all().exists():
            typer.secho("Customers already exist; use --force to seed anyway.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)

        today = datetime.date.today()
        for offset, (name, phone, brand, model, year, cost, leasing, installment, months, paid) in enumerate(
            DEMO_CUSTOMERS
        ):
            customer = await create_customer_with_schedule(
                {
                    "full_name": name,
                    "phone_number": phone,
                    "car_brand": brand,
                    "car_model": model,
                    "car_year": year,
                    "car_purchase_cost": cost,
                    "leasing_amount": leasing,
                    "monthly_installment": installment,
                    "lease_duration": months,
                    "lease_start_date": add_months(today, -(paid + 2 + offset)),
                },
                paid_installments=paid,
            )
            typer.echo(f"Created {customer}")
        typer.secho(f"Seeded {len(DEMO_CUSTOMERS)} demo customers.", fg=typer.colors.GREEN)


@app.command("summary")
def summary_command():
    """Prints the financial summary as JSON."""
    asyncio.run(_summary())


async def _summary():
    async with DBConnection():
        summary = await report_service.generate_summary_report(ReportRepository())
        typer.echo(json.dumps(summary.model_dump(), indent=2))


@app.command("dashboard")
def dashboard_command():
    """Prints the dashboard statistics as JSON."""
    asyncio.run(_dashboard())


async def _dashboard():
    async with DBConnection():
        stats = await report_service.generate_dashboard_stats(ReportRepository())
        typer.echo(json.dumps(stats.model_dump(by_alias=True, exclude_none=True), indent=2))


@app.command("export-excel")
def export_excel_command(
    path: Path = typer.Argument(Path("customers.xlsx"), help="Where to write the workbook."),
):
    """Writes the customer spreadsheet to PATH."""
    asyncio.run(_export_excel(path))


async def _export_excel(path: Path):
    async with DBConnection():
        content = await export_service.export_customers_excel(ReportRepository())
    path.write_bytes(content)
    typer.secho(f"Wrote {len(content)} bytes to {path}", fg=typer.colors.GREEN)


@app.command("export-pdf")
def export_pdf_command(
    path: Path = typer.Argument(Path("payment_report.pdf"), help="Where to write the PDF report."),
):
    """Writes the payment PDF report to PATH."""
    asyncio.run(_export_pdf(path))


async def _export_pdf(path: Path):
    async with DBConnection():
        rendered = await export_service.export_payments_pdf(ReportRepository())
    path.write_bytes(rendered.content)
    typer.secho(
        f"Wrote {rendered.page_count} page(s), {len(rendered.content)} bytes to {path}",
        fg=typer.colors.GREEN,
    )


if __name__ == "__main__":
    app()
