import logging
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..auth.security import get_current_principal
from ..reports.router import Repository, Today
from . import service as export_service
from .excel import XLSX_MEDIA_TYPE
from .pdf import PDF_MEDIA_TYPE

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports/export",
    tags=["Exports"],
    dependencies=[Depends(get_current_principal)],
    responses={401: {"description": "Not authenticated"}},
)


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f"attachment; filename={filename}"}


@router.get("/customers/excel", response_class=StreamingResponse)
async def export_customers_excel(repository: Repository):
    content = await export_service.export_customers_excel(repository)
    return StreamingResponse(
        export_service.iter_chunks(content),
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment("customers.xlsx"),
    )


@router.get("/payments/pdf", response_class=StreamingResponse)
async def export_payments_pdf(repository: Repository, today: Today):
    rendered = await export_service.export_payments_pdf(repository, today=today)
    return StreamingResponse(
        export_service.iter_chunks(rendered.content),
        media_type=PDF_MEDIA_TYPE,
        headers=_attachment("payment_report.pdf"),
    )
