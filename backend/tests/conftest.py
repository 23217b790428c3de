"""
Pytest fixtures for backend testing.
Provides an in-memory materials catalog, mock database sessions and an
HTTP test client.
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import get_settings
from app.db.session import get_db_session
from app.main import create_application
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.materials.dependencies import get_catalog
from app.modules.materials.schemas import Material
from app.modules.materials.store import InMemoryMaterialStore


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def sample_materials() -> list[Material]:
    return [
        Material(
            id="mat_stainless",
            name="Stainless steel",
            aliases=["Inox", "AISI 316"],
            category="Metals",
            gwp_factor=3.5,
        ),
        Material(
            id="mat_mild_steel",
            name="Mild steel",
            aliases=["Carbon steel"],
            category="Metals",
            gwp_factor=1.85,
        ),
        Material(
            id="mat_grp",
            name="GRP",
            aliases=["Fiberglass", "Glass reinforced plastic"],
            category="Composites",
            gwp_factor=8.1,
        ),
        Material(
            id="mat_primary_al",
            name="Primary aluminium",
            aliases=["Aluminum"],
            category="Metals",
            gwp_factor=16.5,
        ),
        Material(
            id="mat_antifouling",
            name="Antifouling paint",
            aliases=["Antivegetativa"],
            category="Paints",
            gwp_factor=4.5,
        ),
    ]


@pytest.fixture
def memory_store(sample_materials: list[Material]) -> InMemoryMaterialStore:
    return InMemoryMaterialStore(sample_materials)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog(memory_store: InMemoryMaterialStore, fake_clock: FakeClock) -> MaterialsCatalog:
    return MaterialsCatalog(memory_store, ttl_seconds=300, clock=fake_clock)


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """AsyncSession stand-in; ``add`` is synchronous on the real session."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(
    catalog: MaterialsCatalog,
    mock_db_session: AsyncMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the in-memory catalog."""
    app = create_application()

    async def override_get_db_session():
        yield mock_db_session

    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
