"""
Export Service Module

Loads customers or payments through the report repository, maps them onto
export rows and renders the document. Rendering is synchronous library code,
so it runs in Starlette's thread pool to keep the event loop free.
"""

import datetime
import logging
from typing import Iterator, Optional

from starlette.concurrency import run_in_threadpool

from ...core.exceptions import ExportFailure
from ..customers.models import Customer, Payment, PaymentStatus
from ..reports.repository import ReportRepository
from ..reports.service import is_overdue
from .excel import CustomerExportRow, build_customer_workbook
from .pdf import PaymentExportRow, PaymentReportPdf, RenderedPdf

logger = logging.getLogger(__name__)


def customer_export_row(customer: Customer) -> CustomerExportRow:
    """Maps a customer with prefetched payments onto a spreadsheet row."""
    return CustomerExportRow(
        id=customer.id,
        full_name=customer.full_name,
        phone_number=customer.phone_number,
        car_details=customer.car_details,
        car_purchase_cost=customer.car_purchase_cost,
        leasing_amount=customer.leasing_amount,
        monthly_installment=customer.monthly_installment,
        lease_duration=customer.lease_duration,
        lease_start_date=customer.lease_start_date,
        total_paid=customer.total_paid,
        profit=customer.schedule_profit,
        status=customer.status,
    )


def payment_export_row(payment: Payment, today: datetime.date) -> PaymentExportRow:
    """Maps a payment with its prefetched customer onto a PDF row, deriving overdue status."""
    payment_status = PaymentStatus(payment.status).value
    if is_overdue(payment_status, payment.due_date, today):
        payment_status = PaymentStatus.OVERDUE.value
    elif payment_status == PaymentStatus.OVERDUE.value:
        payment_status = PaymentStatus.PENDING.value
    return PaymentExportRow(
        customer_name=payment.customer.full_name if payment.customer else None,
        due_date=payment.due_date,
        amount=payment.amount,
        status=payment_status,
    )


async def export_customers_excel(repository: ReportRepository) -> bytes:
    customers = await repository.customers_for_export()
    rows = [customer_export_row(customer) for customer in customers]
    try:
        content = await run_in_threadpool(build_customer_workbook, rows)
    except Exception as e:
        logger.error(f"Rendering customers.xlsx failed: {e}", exc_info=True)
        raise ExportFailure("customers.xlsx") from e
    logger.info(f"Exported {len(rows)} customers to Excel ({len(content)} bytes)")
    return content


async def export_payments_pdf(
    repository: ReportRepository,
    today: Optional[datetime.date] = None,
    renderer: Optional[PaymentReportPdf] = None,
) -> RenderedPdf:
    today = today or datetime.date.today()
    payments = await repository.payments_for_export()
    rows = [payment_export_row(payment, today) for payment in payments]
    renderer = renderer or PaymentReportPdf()
    try:
        rendered = await run_in_threadpool(renderer.render, rows)
    except Exception as e:
        logger.error(f"Rendering payment_report.pdf failed: {e}", exc_info=True)
        raise ExportFailure("payment_report.pdf") from e
    logger.info(f"Exported {len(rows)} payments to PDF across {rendered.page_count} page(s)")
    return rendered


def iter_chunks(content: bytes, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yields content in fixed-size chunks so a closed connection stops the stream early."""
    for start in range(0, len(content), chunk_size):
        yield content[start:start + chunk_size]
