"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; point them at a throwaway database first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

from decimal import Decimal
import uuid
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import jobline.models  # noqa: F401  registers every table
from jobline.core.security import create_access_token, get_password_hash
from jobline.db.session import get_session
from jobline.main import app
from jobline.models.application import ApplicationStatus
from jobline.models.candidate import Candidate
from jobline.models.client import Client
from jobline.models.company import Company
from jobline.models.document import DocumentTemplate, RequiredFrom
from jobline.models.fee_template import FeeTemplate
from jobline.models.user import User, UserRole
from jobline.services.lifecycle import ApplicationLifecycle
from jobline.services.tenant import TenantContext

PASSWORD = "correct horse battery staple"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database with the full schema for every test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def seed_agency(session: AsyncSession, name: str, slug: str, stage_documents) -> SimpleNamespace:
    company = Company(name=name)
    session.add(company)
    await session.flush()

    owner = User(
        email=f"owner@{slug}.test",
        full_name=f"{name} Owner",
        hashed_password=PASSWORD_HASH,
        role=UserRole.SUPER_ADMIN,
        company_id=company.id,
    )
    staff = User(
        email=f"staff@{slug}.test",
        full_name=f"{name} Staff",
        hashed_password=PASSWORD_HASH,
        role=UserRole.ADMIN,
        company_id=company.id,
    )
    candidate = Candidate(first_name="Amina", last_name="Bekele", nationality="Ethiopian", company_id=company.id)
    spare_candidate = Candidate(first_name="Grace", last_name="Otieno", nationality="Kenyan", company_id=company.id)
    client = Client(name="Haddad Household", phone="+961 1 234 567", company_id=company.id)
    other_client = Client(name="Khoury Family", company_id=company.id)
    fee_template = FeeTemplate(
        name="Standard Ethiopian",
        default_price=Decimal("1500.00"),
        min_price=Decimal("1200.00"),
        max_price=Decimal("2000.00"),
        nationality="Ethiopian",
        company_id=company.id,
    )
    session.add_all([owner, staff, candidate, spare_candidate, client, other_client, fee_template])

    for stage, document_name, required_from, required, sort_order in stage_documents:
        session.add(DocumentTemplate(
            stage=stage,
            name=document_name,
            required_from=required_from,
            required=required,
            sort_order=sort_order,
            company_id=company.id,
        ))

    await session.commit()
    # Plain ids only: a rollback expires ORM instances, and touching an expired
    # instance outside a greenlet fails under the async session
    return SimpleNamespace(
        company_id=company.id,
        owner_id=owner.id,
        staff_id=staff.id,
        candidate_id=candidate.id,
        spare_candidate_id=spare_candidate.id,
        client_id=client.id,
        other_client_id=other_client.id,
        fee_template_id=fee_template.id,
        owner_ctx=TenantContext(company_id=company.id, role=UserRole.SUPER_ADMIN, user_id=owner.id),
        staff_ctx=TenantContext(company_id=company.id, role=UserRole.ADMIN, user_id=staff.id),
    )


@pytest_asyncio.fixture
async def agency(session):
    """Agency with a document rule set covering the first stages of the pipeline."""
    return await seed_agency(session, "Cedar Recruitment", "cedar", [
        (ApplicationStatus.PENDING_MOL, "Passport Copy", RequiredFrom.OFFICE, True, 0),
        (ApplicationStatus.MOL_AUTH_RECEIVED, "MoL Pre-Authorization", RequiredFrom.OFFICE, True, 0),
        (ApplicationStatus.MOL_AUTH_RECEIVED, "Employer ID Copy", RequiredFrom.CLIENT, True, 1),
        (ApplicationStatus.VISA_PROCESSING, "Visa Application", RequiredFrom.OFFICE, True, 0),
        (ApplicationStatus.WORKER_ARRIVED, "Medical Certificate", RequiredFrom.OFFICE, True, 0),
        (ApplicationStatus.WORKER_ARRIVED, "Signed Employment Contract", RequiredFrom.CLIENT, False, 1),
    ])


@pytest_asyncio.fixture
async def rival(session):
    """A second, unrelated agency."""
    return await seed_agency(session, "Harbor Staffing", "harbor", [
        (ApplicationStatus.PENDING_MOL, "Police Clearance", RequiredFrom.OFFICE, True, 0),
    ])


@pytest_asyncio.fixture
async def api(session):
    """HTTP client bound to the app, sharing the test session."""
    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides = {}


@pytest.fixture
def auth_headers():
    def make(user_id: uuid.UUID) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return make


@pytest_asyncio.fixture
async def application(session, agency):
    """A freshly opened case at PENDING_MOL, priced on the agency's fee template."""
    return await ApplicationLifecycle(session).create(
        {
            "candidate_id": agency.candidate_id,
            "client_id": agency.client_id,
            "fee_template_id": agency.fee_template_id,
            "final_fee_amount": Decimal("1500.00"),
        },
        agency.staff_ctx,
    )


@pytest.fixture
def password():
    return PASSWORD
