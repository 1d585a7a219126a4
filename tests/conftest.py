"""
Mediator DI - Test Configuration

Pytest fixtures and configuration for all tests.
"""
import pytest
from hypothesis import HealthCheck, settings

from config import Config, ScanningConfig, reset_config
from di.container import Container
from observability.logging import LoggingConfig, setup_logging
from scanning.reflection import TypeCatalog
from scanning.registration import RecordingRegistry

FIXTURE_PACKAGE = "tests.fixtures.handlers"

# Autouse fixtures below are function scoped; they do not affect generated examples
settings.register_profile("mediator", suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile("mediator")


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep test output readable; warnings and errors still show."""
    setup_logging(LoggingConfig(level="WARNING", json_format=False), force=True)
    yield


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Each test sees configuration built from a clean environment."""
    for key in (
        "MEDIATOR_SCAN_MODULES",
        "MEDIATOR_SCAN_INCLUDE_PRIVATE",
        "MEDIATOR_SCAN_RECURSIVE",
        "MEDIATOR_REJECT_DUPLICATES",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "ENVIRONMENT",
        "DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fixture_package() -> str:
    """Dotted name of the scanned handler package."""
    return FIXTURE_PACKAGE


@pytest.fixture
def scan_config() -> Config:
    """Configuration scanning the fixture handler package."""
    return Config(scanning=ScanningConfig(modules=[FIXTURE_PACKAGE]))


@pytest.fixture
def catalog() -> TypeCatalog:
    return TypeCatalog()


@pytest.fixture
def registry() -> RecordingRegistry:
    return RecordingRegistry()


@pytest.fixture
def container() -> Container:
    return Container()
