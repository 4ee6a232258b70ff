"""Customer spreadsheet export built with openpyxl."""

import datetime
import io
from dataclasses import dataclass
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, width) in column order
CUSTOMER_COLUMNS = [
    ("ID", 5),
    ("Full Name", 20),
    ("Phone Number", 15),
    ("Car Details", 25),
    ("Purchase Cost", 15),
    ("Leasing Amount", 15),
    ("Monthly Payment", 15),
    ("Lease Duration", 15),
    ("Start Date", 15),
    ("Total Paid", 15),
    ("Profit", 15),
    ("Status", 15),
]


@dataclass
class CustomerExportRow:
    id: int
    full_name: str
    phone_number: str
    car_details: str
    car_purchase_cost: float
    leasing_amount: float
    monthly_installment: float
    lease_duration: int
    lease_start_date: Optional[datetime.date]
    total_paid: float
    profit: float
    status: str


def format_date(value: Optional[datetime.date]) -> str:
    return value.strftime("%m/%d/%Y") if value else ""


def build_customer_workbook(rows: Sequence[CustomerExportRow]) -> bytes:
    """
    Renders customers into a single "Customers" worksheet.

    The first row holds the bold column headers; each customer adds exactly one
    row after it. An empty sequence yields a header-only workbook.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Customers"

    for col, (header, width) in enumerate(CUSTOMER_COLUMNS, start=1):
        ws.cell(row=1, column=col, value=header)
        ws.column_dimensions[ws.cell(row=1, column=col).column_letter].width = width

    for row in rows:
        ws.append(
            [
                row.id,
                row.full_name,
                row.phone_number,
                row.car_details,
                row.car_purchase_cost,
                row.leasing_amount,
                row.monthly_installment,
                row.lease_duration,
                format_date(row.lease_start_date),
                row.total_paid,
                row.profit,
                row.status,
            ]
        )

    for cell in ws[1]:
        cell.font = Font(bold=True)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
