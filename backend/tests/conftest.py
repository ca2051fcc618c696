"""Pytest configuration and fixtures."""

from typing import Any, AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import EnrichmentServiceError, LLMServiceError
from backend.app.core.security import create_access_token, hash_password
from backend.app.db.base import Database
from backend.app.main import create_app
from backend.app.models.user import User, UserRole
from backend.app.services.report_pipeline import ReportPipeline

TEST_PASSWORD = "password123"

SAMPLE_ENRICHMENT = {
    "person": {
        "name": "Jane Doe",
        "title": "VP Engineering",
        "email": "jane@acme.test",
        "linkedin_url": "https://linkedin.com/in/janedoe",
        "organization": {
            "name": "Acme Corp",
            "industry": "Software",
            "estimated_num_employees": 250,
            "city": "Austin",
            "state": "TX",
            "country": "United States",
            "website_url": "https://acme.test",
            "short_description": "Acme builds developer tools.",
        },
    }
}


class FakeEnrichment:
    """Enrichment client returning a canned person, or failing on demand."""

    def __init__(self, payload: dict[str, Any] | None = None):
        self.payload = payload if payload is not None else SAMPLE_ENRICHMENT
        self.error: str | None = None
        self.calls: list[str] = []

    async def fetch_person(self, email: str) -> dict[str, Any]:
        self.calls.append(email)
        if self.error:
            raise EnrichmentServiceError(self.error)
        return self.payload


class FakeNews:
    def __init__(self):
        self.calls: list[str | None] = []

    async def fetch_company_news(self, company_name: str | None) -> dict[str, Any]:
        self.calls.append(company_name)
        return {
            "articles": [{"title": f"{company_name} raises Series B", "url": "https://news.test/1"}],
            "totalResults": 1,
        }


class FakeLLM:
    """LLM stand-in: sections listed in ``failing`` raise, the rest succeed."""

    def __init__(self):
        self.failing: set[str] = set()
        self.report_error = False
        self.section_calls: list[str] = []

    async def generate_section(self, section, lead_data, enrichment_data=None):
        self.section_calls.append(section)
        if section in self.failing:
            raise LLMServiceError(f"section generation ({section})", RuntimeError("boom"))
        return {"summary": f"{section} insight for {lead_data.get('name', 'lead')}"}

    async def generate_lead_report(self, lead_data):
        if self.report_error:
            raise LLMServiceError("lead report generation", RuntimeError("down"))
        return f"# {lead_data.get('name')}\n\nNarrative report."


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """
    File-backed SQLite database with all tables created.

    A file is used rather than ``:memory:`` so background generation runs can
    open their own connections.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def test_db(database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database."""
    async with database.session() as session:
        yield session


@pytest.fixture
def fake_enrichment() -> FakeEnrichment:
    return FakeEnrichment()


@pytest.fixture
def fake_news() -> FakeNews:
    return FakeNews()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
async def pipeline(database, fake_enrichment, fake_news, fake_llm) -> AsyncGenerator[ReportPipeline, None]:
    report_pipeline = ReportPipeline(database, fake_enrichment, fake_news, fake_llm)
    yield report_pipeline
    await report_pipeline.shutdown()


@pytest.fixture
def app(database, pipeline, fake_llm):
    return create_app(database=database, pipeline=pipeline, llm_service=fake_llm)


@pytest.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app; lifespan does not run under ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def create_user(
    database: Database,
    email: str,
    role: str = UserRole.PROJECT_USER.value,
    assigned_projects: list[str] | None = None,
    password: str = TEST_PASSWORD,
) -> User:
    async with database.session() as session:
        user = User(
            email=email,
            password_hash=hash_password(password),
            role=role,
            assigned_projects=assigned_projects or [],
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role, user.assigned_projects or [])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_user(database) -> User:
    return await create_user(database, "admin@example.com", role=UserRole.ADMIN.value)


@pytest.fixture
async def acme_user(database) -> User:
    return await create_user(database, "acme@example.com", assigned_projects=["Acme"])


@pytest.fixture
async def other_user(database) -> User:
    return await create_user(database, "other@example.com", assigned_projects=["Other"])


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def acme_headers(acme_user) -> dict[str, str]:
    return auth_headers(acme_user)


@pytest.fixture
def other_headers(other_user) -> dict[str, str]:
    return auth_headers(other_user)


@pytest.fixture
def make_user(database):
    """Factory creating users on the test database."""
    async def _make_user(email: str, role: str = UserRole.PROJECT_USER.value, assigned_projects=None):
        return await create_user(database, email, role=role, assigned_projects=assigned_projects)
    return _make_user


@pytest.fixture
def headers_for():
    return auth_headers
