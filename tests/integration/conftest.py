import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories import SqlAlchemyInvoiceRepository, SqlAlchemySequenceRepository
from src.adapter.services import CompanyProfile, LoggingNotificationService, ReportLabPdfService
from src.depends import (
    get_invoice_repository,
    get_notification_service,
    get_pdf_service,
    get_sequence_repository,
)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create test database engine on a fresh SQLite file"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'invoices_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def sequence_repo(session_factory):
    repo = SqlAlchemySequenceRepository(session_factory, starting_number=1)
    await repo.ensure_counter()
    return repo


@pytest_asyncio.fixture
async def invoice_repo(session_factory):
    return SqlAlchemyInvoiceRepository(session_factory)


@pytest.fixture
def pdf_service():
    return ReportLabPdfService(CompanyProfile(name="Test Company OÜ"))


@pytest_asyncio.fixture
async def client(sequence_repo, invoice_repo, pdf_service):
    """Create test client with repositories bound to the test database"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    app.dependency_overrides[get_sequence_repository] = lambda: sequence_repo
    app.dependency_overrides[get_invoice_repository] = lambda: invoice_repo
    app.dependency_overrides[get_pdf_service] = lambda: pdf_service
    app.dependency_overrides[get_notification_service] = lambda: LoggingNotificationService()

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
