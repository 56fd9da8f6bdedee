from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.services.in_memory_change_notifier import InMemoryChangeNotifier
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import create_access_token
from src.depends import get_change_notifier, get_unit_of_work
from src.domain.entities import MembershipRole


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db", connect_args={"timeout": 30})
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def notifier():
    return InMemoryChangeNotifier()


@pytest_asyncio.fixture
async def client(db_session, notifier):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_change_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def org_id():
    return uuid4()


@pytest.fixture
def unit_id():
    return uuid4()


@pytest.fixture
def auth_headers(org_id):
    """Build Authorization headers for a member of the test organization"""

    def _headers(role: MembershipRole, unit_id=None, user_id=None, organization_id=None):
        token = create_access_token(
            user_id=user_id or uuid4(),
            tenant_id=organization_id or org_id,
            role=role.value,
            membership_id=uuid4(),
            unit_id=unit_id,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def resident_headers(auth_headers, unit_id):
    return auth_headers(MembershipRole.resident, unit_id=unit_id)


@pytest.fixture
def guard_headers(auth_headers):
    return auth_headers(MembershipRole.guard)


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers(MembershipRole.admin)


@pytest.fixture
def create_invitation(client, resident_headers):
    """Issue an invitation through the API as the test resident"""

    async def _create(**body):
        body.setdefault("visitor_name", "Maria Lopez")
        response = await client.post("/invitations", json=body, headers=resident_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
