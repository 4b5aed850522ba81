import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it (e.g., some GitHub
# Actions runners invoking pytest differently).
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import ConfigLoader
from services.config_service import ConfigService
from services.db.database import Database
from services.vac_registry import VacRegistry
from services.vac_service import VacService
from tests.factories import FakeVacGateway, make_config, make_config_loader


@pytest.fixture(autouse=True)
def reset_config_loader():
    """Keep the class-level config cache from leaking between tests."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def mock_bot() -> SimpleNamespace:
    """A minimal bot-like object for cog tests."""
    ns = SimpleNamespace()
    ns.guilds = []
    ns.services = None
    return ns


@pytest_asyncio.fixture()
async def temp_db(tmp_path):
    """Initialize Database to a temporary file for isolation across tests."""
    # Save original state
    orig_path = Database._db_path
    orig_initialized = Database._initialized

    # Reset and initialize with temp database
    Database._initialized = False
    Database._db_path = None
    db_file = tmp_path / "test.db"
    await Database.initialize(str(db_file))

    # Verify initialization worked
    assert Database._initialized is True
    assert Database._db_path == str(db_file)

    yield str(db_file)

    # Restore original state completely
    Database._db_path = orig_path
    Database._initialized = orig_initialized


@pytest_asyncio.fixture()
async def registry(temp_db):
    reg = VacRegistry(temp_db)
    await reg.initialize()
    yield reg
    await reg.shutdown()


@pytest_asyncio.fixture()
async def config_service():
    service = ConfigService(config_loader=make_config_loader(make_config()))
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
def gateway() -> FakeVacGateway:
    return FakeVacGateway()


@pytest_asyncio.fixture()
async def vac_service(config_service, registry, gateway):
    service = VacService(config_service, registry, gateway)
    await service.initialize()
    yield service
    await service.shutdown()
