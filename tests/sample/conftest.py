"""
Fixtures of the person/bankcard sample suite.

Every test gets a fresh SQLite database. Datasets are resolved next to the
test modules and exports are written to the test's temporary directory.
"""
from pathlib import Path

import pytest

from sample_services import BankcardService, PersonService, metadata
from sqlfixture.config.models import DatabaseConfig, DatabaseType, FixtureSettings, SQLFixtureConfig
from sqlfixture.fixtures.orchestrator import FixtureOrchestrator

SAMPLE_DIR = Path(__file__).parent


@pytest.fixture
def sqlfixture_orchestrator(tmp_path: Path):
    """Orchestrator over a per-test database collecting every difference."""
    config = SQLFixtureConfig(
        databases={
            "sample": DatabaseConfig(type=DatabaseType.SQLITE, path=str(tmp_path / "sample.db")),
        },
        fixture_settings=FixtureSettings(failure_handler="diff_collecting"),
    )
    orchestrator = FixtureOrchestrator.from_config(config, root_dir=SAMPLE_DIR, export_dir=tmp_path)
    metadata.create_all(orchestrator.provider.get_adapter().get_engine())
    yield orchestrator
    orchestrator.close()


@pytest.fixture
def person_service(sqlfixture_orchestrator) -> PersonService:
    return PersonService(sqlfixture_orchestrator.provider.get_adapter().get_engine())


@pytest.fixture
def bankcard_service(sqlfixture_orchestrator) -> BankcardService:
    return BankcardService(sqlfixture_orchestrator.provider.get_adapter().get_engine())
