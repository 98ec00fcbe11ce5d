import pytest

from bidcheck.cache.specialized import SchemaCache, TemplateCache, ValidationResultCache
from bidcheck.config import Settings
from bidcheck.context import ValidatorContext
from bidcheck.templates.manager import TemplateManager
from bidcheck.validation.schema import SchemaManager
from bidcheck.validation.service import ValidationService
from tests.factories import FakeClock


@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment from leaking into Settings."""
    for name in ("SCHEMA_DIR", "SCHEMA_VERSION", "VALIDATION_TIMEOUT_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Provide a temporary data directory for tests that touch the filesystem."""
    return tmp_path / "data"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_data_dir) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_data_dir)


@pytest.fixture
async def validation_cache(clock):
    cache = ValidationResultCache(clock=clock)
    yield cache
    cache.destroy()


@pytest.fixture
async def schema_cache(clock):
    cache = SchemaCache(clock=clock)
    yield cache
    cache.destroy()


@pytest.fixture
async def template_cache(clock):
    cache = TemplateCache(clock=clock)
    yield cache
    cache.destroy()


@pytest.fixture
def schema_manager(schema_cache) -> SchemaManager:
    return SchemaManager(schema_cache)


@pytest.fixture
def service(schema_manager, validation_cache) -> ValidationService:
    return ValidationService(schema_manager, validation_cache)


@pytest.fixture
def template_manager(template_cache) -> TemplateManager:
    return TemplateManager(template_cache)


@pytest.fixture
async def context(settings, clock):
    ctx = ValidatorContext.from_settings(settings, clock=clock)
    yield ctx
    ctx.destroy()
