"""Invoice API Routes

FastAPI routes for issuing, listing, updating and deleting invoices.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError
from src.api.schemas.invoice_request import IssueInvoiceRequestSchema, UpdateInvoiceRequestSchema
from src.app.repositories import InvoiceRepository, SequenceRepository
from src.app.services import NotificationService, PdfService
from src.app.use_cases.invoicing import (
    DeleteInvoice,
    GetInvoice,
    GetStats,
    IssueInvoice,
    ListInvoices,
    PeekNextNumber,
    RenderInvoicePdf,
    UpdatePaidStatus,
    ErrorCode,
    DeleteInvoiceResponseDTO,
    InvoiceLineCommandDTO,
    InvoiceResponseDTO,
    IssueInvoiceCommandDTO,
    IssueInvoiceResponseDTO,
    ListInvoicesResponseDTO,
    NextNumberResponseDTO,
    StatsResponseDTO,
)
from src.depends import (
    get_invoice_repository,
    get_notification_service,
    get_pdf_service,
    get_sequence_repository,
)

router = APIRouter(prefix="/invoices", tags=["Invoices"])

ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVOICE_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESERVATION_FAILED.value: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORAGE_ERROR.value: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.RENDER_TIMEOUT.value: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.BUILD_FAILED.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.RENDER_FAILED.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.PERSISTENCE_FAILED.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DUPLICATE_INVOICE_NUMBER.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise(error: Error):
    raise ClientError(error, status_code=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST))


NOT_FOUND_RESPONSE = {
    404: {
        "description": "Invoice not found",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "INVOICE_NOT_FOUND",
                        "message": "Invoice #42 not found"
                    }
                }
            }
        }
    }
}


@router.get(
    "/next-number",
    response_model=NextNumberResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def get_next_invoice_number(
    sequence_repo: SequenceRepository = Depends(get_sequence_repository),
):
    """
    Preview the number the next invoice will most likely get.

    The value is not reserved; a concurrent issuance may take it.
    """
    result = await PeekNextNumber(sequence_repo).execute()

    if result.is_err():
        _raise(result.error)

    return result.value


@router.post(
    "",
    response_model=IssueInvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Invalid invoice data",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "due_date cannot be before invoice_date"
                        }
                    }
                }
            }
        },
        503: {"description": "Invoice number could not be reserved"},
        504: {"description": "PDF rendering timed out"},
    }
)
async def issue_invoice(
    request: IssueInvoiceRequestSchema,
    sequence_repo: SequenceRepository = Depends(get_sequence_repository),
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    pdf_service: PdfService = Depends(get_pdf_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Issue a new invoice.

    Validates the data, assigns the next invoice number, renders the PDF,
    stores the invoice and e-mails it to `client_email` when `send_email`
    is set. Line totals are always computed by the server.

    **Returns:**
    - 201: Invoice stored (`status` tells whether delivery succeeded)
    - 400: Invalid invoice data, no number was used
    - 500: Rendering or storing failed, the number was released when possible
    - 503: Invoice number could not be reserved
    - 504: PDF rendering timed out
    """
    # Convert request schema to command DTO
    command = IssueInvoiceCommandDTO(
        buyer_name=request.buyer_name,
        client_address=request.client_address,
        reg_code=request.reg_code,
        client_email=request.client_email,
        invoice_date=request.invoice_date,
        due_date=request.due_date,
        is_paid=request.is_paid,
        send_email=request.send_email,
        lines=[InvoiceLineCommandDTO(**line.model_dump()) for line in request.lines],
    )

    # Execute use case
    use_case = IssueInvoice(
        sequence_repo,
        invoice_repo,
        pdf_service,
        notification_service,
        currency=ApplicationConfig.CURRENCY,
    )
    result = await use_case.execute(command)

    # Handle errors
    if result.is_err():
        _raise(result.error)

    return result.value


@router.get(
    "",
    response_model=ListInvoicesResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_invoices(
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
):
    """
    List all invoices, newest number first, with totals.
    """
    result = await ListInvoices(invoice_repo).execute()

    if result.is_err():
        _raise(result.error)

    return result.value


@router.get(
    "/stats",
    response_model=StatsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def get_invoice_stats(
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    sequence_repo: SequenceRepository = Depends(get_sequence_repository),
):
    """
    Counts and amounts over all stored invoices, plus the next invoice number.
    """
    result = await GetStats(invoice_repo, sequence_repo).execute()

    if result.is_err():
        _raise(result.error)

    return result.value


@router.get(
    "/{invoice_number}",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND_RESPONSE,
)
async def get_invoice(
    invoice_number: int,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
):
    """
    Retrieve an invoice by its number.
    """
    result = await GetInvoice(invoice_repo).execute(invoice_number)

    if result.is_err():
        _raise(result.error)

    return result.value


@router.get(
    "/{invoice_number}/pdf",
    responses={
        200: {
            "content": {"application/pdf": {}},
            "description": "PDF document"
        },
        **NOT_FOUND_RESPONSE,
    }
)
async def download_invoice_pdf(
    invoice_number: int,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    pdf_service: PdfService = Depends(get_pdf_service),
):
    """
    Download the invoice as a PDF file, rendered with its current payment status.
    """
    result = await RenderInvoicePdf(invoice_repo, pdf_service).execute(invoice_number)

    if result.is_err():
        _raise(result.error)

    return Response(
        content=result.value.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{result.value.filename}"'},
    )


@router.patch(
    "/{invoice_number}",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND_RESPONSE,
)
async def update_invoice(
    invoice_number: int,
    request: UpdateInvoiceRequestSchema,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
):
    """
    Mark an invoice as paid or unpaid.

    **Request body:**
    - `is_paid` (required): New payment status. No other field may be sent.
    """
    result = await UpdatePaidStatus(invoice_repo).execute(invoice_number, request.is_paid)

    if result.is_err():
        _raise(result.error)

    return result.value


@router.delete(
    "/{invoice_number}",
    response_model=DeleteInvoiceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND_RESPONSE,
)
async def delete_invoice(
    invoice_number: int,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
):
    """
    Delete an invoice. Its number is never reused.
    """
    result = await DeleteInvoice(invoice_repo).execute(invoice_number)

    if result.is_err():
        _raise(result.error)

    return result.value
