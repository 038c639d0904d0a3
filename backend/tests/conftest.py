"""Test fixtures — in-memory SQLite registry, services and FastAPI test client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from filestore.api.deps import admin_gate_dep, registry_dep, view_model_dep
from filestore.main import create_app
from filestore.models.base import Base
from filestore.services.admin_gate import AdminGate
from filestore.services.file_registry import FileRegistryViewModel
from filestore.services.registry import SqlFileRegistry

TEST_PIN = "1234"
TEST_MAX_BYTES = 700_000


@pytest_asyncio.fixture
async def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def registry(session_factory):
    return SqlFileRegistry(session_factory, app_id="test-app")


@pytest.fixture
def admin_gate():
    return AdminGate(admin_secret=TEST_PIN)


@pytest_asyncio.fixture
async def view_model(registry):
    """View-model already mirroring the registry."""
    vm = FileRegistryViewModel(registry, max_upload_bytes=TEST_MAX_BYTES)
    handle = await vm.subscribe()
    yield vm
    handle.unsubscribe()


@pytest_asyncio.fixture
async def client(registry, view_model, admin_gate):
    """Async test client with services injected through dependency overrides."""
    app = create_app()
    app.dependency_overrides[registry_dep] = lambda: registry
    app.dependency_overrides[view_model_dep] = lambda: view_model
    app.dependency_overrides[admin_gate_dep] = lambda: admin_gate

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
