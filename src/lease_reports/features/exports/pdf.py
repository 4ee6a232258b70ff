"""
Paginated payment report rendered with the reportlab canvas.

Layout positions are measured in points from the top-left corner of a letter
page and converted to reportlab's bottom-up coordinates only when drawing.
The table has four fixed columns. Whenever the cursor passes the page-break
line a new page is started and the column header is drawn again, so every
page opens with an identical header.

Text is set in a registered TrueType font (DejaVu Sans unless configured).
The base-14 Helvetica has no glyph for currency signs such as the manat.
"""

import datetime
import io
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Sequence

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from ...core.config import CURRENCY_SYMBOL, PDF_BOLD_FONT_PATH, PDF_FONT_PATH, PDF_PAGE_BREAK_Y

PDF_MEDIA_TYPE = "application/pdf"

PAGE_WIDTH, PAGE_HEIGHT = letter
TOP_MARGIN = 72
BOTTOM_MARGIN = 72
FONT = "ReportSans"
BOLD_FONT = "ReportSans-Bold"
FONT_DIR = Path(__file__).resolve().parent / "fonts"
FONT_SIZE = 12
TITLE_SIZE = 18
LINE_HEIGHT = FONT_SIZE * 1.2

# (label, x offset, width)
PAYMENT_COLUMNS = [
    ("Customer", 50, 150),
    ("Due Date", 200, 100),
    ("Amount", 300, 100),
    ("Status", 400, 100),
]
RULE_START_X = 50
RULE_END_X = 550


@dataclass
class PaymentExportRow:
    customer_name: Optional[str]
    due_date: datetime.date
    amount: float
    status: str


class RenderedPdf(NamedTuple):
    content: bytes
    page_count: int


def font_candidates(configured: str, bold: bool = False) -> list[str]:
    file_name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    return [
        configured,
        str(FONT_DIR / file_name),
        f"/usr/share/fonts/truetype/dejavu/{file_name}",
    ]


def register_report_fonts(font_path: str = PDF_FONT_PATH, bold_font_path: str = PDF_BOLD_FONT_PATH) -> None:
    """Registers FONT and BOLD_FONT with reportlab from the first existing candidate file."""
    registered = pdfmetrics.getRegisteredFontNames()
    for name, configured, bold in ((FONT, font_path, False), (BOLD_FONT, bold_font_path, True)):
        if name in registered:
            continue
        path = next((p for p in font_candidates(configured, bold) if p and Path(p).exists()), None)
        if path is None:
            raise FileNotFoundError(f"No TrueType font file found for {name}")
        pdfmetrics.registerFont(TTFont(name, path))


def format_money(amount: float, currency_symbol: str) -> str:
    return f"{currency_symbol}{amount:.2f}"


def fit_text(text: str, font: str, size: float, width: float) -> str:
    """Truncates text with an ellipsis so it fits within width points."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


class PaymentReportPdf:
    def __init__(
        self,
        currency_symbol: str = CURRENCY_SYMBOL,
        page_break_y: float = PDF_PAGE_BREAK_Y,
    ):
        register_report_fonts()
        self.currency_symbol = currency_symbol
        self.page_break_y = page_break_y

    def render(
        self, payments: Sequence[PaymentExportRow], generated_at: Optional[datetime.datetime] = None
    ) -> RenderedPdf:
        generated_at = generated_at or datetime.datetime.now()
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=letter)
        pdf.setTitle("Payment Report")
        page_count = 1

        y = TOP_MARGIN
        pdf.setFont(FONT, TITLE_SIZE)
        pdf.drawCentredString(PAGE_WIDTH / 2, self._baseline(y, TITLE_SIZE), "Payment Report")
        y += TITLE_SIZE * 1.2 + LINE_HEIGHT
        pdf.setFont(FONT, FONT_SIZE)
        pdf.drawCentredString(
            PAGE_WIDTH / 2,
            self._baseline(y, FONT_SIZE),
            f"Generated: {generated_at.strftime('%m/%d/%Y, %I:%M:%S %p')}",
        )
        y += LINE_HEIGHT * 3

        y = self._draw_header(pdf, y)
        for payment in payments:
            values = [
                payment.customer_name or "Unknown Customer",
                payment.due_date.strftime("%m/%d/%Y"),
                format_money(payment.amount, self.currency_symbol),
                payment.status,
            ]
            for (_, x, width), value in zip(PAYMENT_COLUMNS, values):
                pdf.drawString(x, self._baseline(y, FONT_SIZE), fit_text(value, FONT, FONT_SIZE, width))
            y += LINE_HEIGHT
            if y > self.page_break_y:
                pdf.showPage()
                page_count += 1
                y = self._draw_header(pdf, TOP_MARGIN)

        summary_lines = self._summary_lines(payments)
        y += LINE_HEIGHT * 2
        if y + LINE_HEIGHT * (len(summary_lines) + 2) > PAGE_HEIGHT - BOTTOM_MARGIN:
            pdf.showPage()
            page_count += 1
            y = TOP_MARGIN

        pdf.setFont(BOLD_FONT, FONT_SIZE)
        baseline = self._baseline(y, FONT_SIZE)
        pdf.drawString(RULE_START_X, baseline, "Summary")
        pdf.line(RULE_START_X, baseline - 2, RULE_START_X + stringWidth("Summary", BOLD_FONT, FONT_SIZE), baseline - 2)
        y += LINE_HEIGHT * 2

        pdf.setFont(FONT, FONT_SIZE)
        for line in summary_lines:
            if line:
                pdf.drawString(RULE_START_X, self._baseline(y, FONT_SIZE), line)
            y += LINE_HEIGHT

        pdf.save()
        return RenderedPdf(content=buffer.getvalue(), page_count=page_count)

    def _baseline(self, y: float, size: float) -> float:
        return PAGE_HEIGHT - y - size

    def _draw_header(self, pdf: canvas.Canvas, y: float) -> float:
        pdf.setFont(BOLD_FONT, FONT_SIZE)
        for label, x, _ in PAYMENT_COLUMNS:
            pdf.drawString(x, self._baseline(y, FONT_SIZE), label)
        y += LINE_HEIGHT
        rule_y = PAGE_HEIGHT - y
        pdf.line(RULE_START_X, rule_y, RULE_END_X, rule_y)
        y += LINE_HEIGHT
        pdf.setFont(FONT, FONT_SIZE)
        return y

    def _summary_lines(self, payments: Sequence[PaymentExportRow]) -> list[str]:
        paid = [p for p in payments if p.status == "paid"]
        overdue = [p for p in payments if p.status == "overdue"]
        pending = [p for p in payments if p.status in ("pending", "overdue")]
        total_amount = sum(float(p.amount) for p in payments)
        paid_amount = sum(float(p.amount) for p in paid)
        return [
            f"Total Payments: {len(payments)}",
            f"Paid Payments: {len(paid)}",
            f"Overdue Payments: {len(overdue)}",
            f"Pending Payments: {len(pending)}",
            "",
            f"Total Amount: {format_money(total_amount, self.currency_symbol)}",
            f"Paid Amount: {format_money(paid_amount, self.currency_symbol)}",
            f"Remaining Amount: {format_money(total_amount - paid_amount, self.currency_symbol)}",
        ]

