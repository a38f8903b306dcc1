import os
from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemySequenceRepository,
    SqlAlchemyInvoiceRepository,
    InMemorySequenceRepository,
    InMemoryInvoiceRepository,
    JsonFileSequenceRepository,
    JsonFileInvoiceRepository,
)
from src.adapter.repositories.json_file import SEQUENCE_FILE_NAME, INVOICES_FILE_NAME
from src.adapter.services import CompanyProfile, ReportLabPdfService, create_notification_service
from src.app.repositories import SequenceRepository, InvoiceRepository
from src.app.services import PdfService, NotificationService

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Repositories are process-wide so every request shares the same sequence lock.
@lru_cache
def _repositories():
    backend = ApplicationConfig.STORAGE_BACKEND
    starting_number = ApplicationConfig.INVOICE_STARTING_NUMBER

    if backend == "database":
        return (
            SqlAlchemySequenceRepository(AsyncSessionLocal, starting_number=starting_number),
            SqlAlchemyInvoiceRepository(AsyncSessionLocal),
        )
    if backend == "json_file":
        return (
            JsonFileSequenceRepository(
                os.path.join(ApplicationConfig.DATA_DIR, SEQUENCE_FILE_NAME),
                starting_number=starting_number,
            ),
            JsonFileInvoiceRepository(os.path.join(ApplicationConfig.DATA_DIR, INVOICES_FILE_NAME)),
        )
    if backend == "memory":
        return (
            InMemorySequenceRepository(starting_number=starting_number),
            InMemoryInvoiceRepository(),
        )
    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}' (expected database, json_file or memory)")


def get_sequence_repository() -> SequenceRepository:
    return _repositories()[0]


def get_invoice_repository() -> InvoiceRepository:
    return _repositories()[1]


@lru_cache
def get_pdf_service() -> PdfService:
    return ReportLabPdfService(
        CompanyProfile(
            name=ApplicationConfig.COMPANY_NAME,
            address=ApplicationConfig.COMPANY_ADDRESS,
            reg_code=ApplicationConfig.COMPANY_REG_CODE,
            phone=ApplicationConfig.COMPANY_PHONE,
            email=ApplicationConfig.COMPANY_EMAIL,
            bank=ApplicationConfig.COMPANY_BANK,
            vat_note=ApplicationConfig.VAT_NOTE,
            late_fee_note=ApplicationConfig.LATE_FEE_NOTE,
        )
    )


@lru_cache
def get_notification_service() -> NotificationService:
    return create_notification_service(
        smtp_host=ApplicationConfig.SMTP_HOST,
        smtp_port=ApplicationConfig.SMTP_PORT,
        smtp_user=ApplicationConfig.SMTP_USER,
        smtp_password=ApplicationConfig.SMTP_PASSWORD,
        smtp_use_tls=ApplicationConfig.SMTP_USE_TLS,
        email_from=ApplicationConfig.COMPANY_EMAIL or ApplicationConfig.SMTP_USER,
        email_from_name=ApplicationConfig.EMAIL_FROM_NAME,
        company_name=ApplicationConfig.COMPANY_NAME,
        redirect_to=ApplicationConfig.EMAIL_REDIRECT_TO,
        webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK,
    )


async def init_storage() -> None:
    """Create tables and seed the sequence counter (database backend only)"""
    if ApplicationConfig.STORAGE_BACKEND != "database":
        return

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    await get_sequence_repository().ensure_counter()
