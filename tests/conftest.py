"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Settings are pointed at a throwaway directory before any application module
is imported, because logging and the app are configured on import.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="pagepdf_test_"))

os.environ.setdefault("PAGE_PDF_ENVIRONMENT", "testing")
os.environ.setdefault("PAGE_PDF_LOG_LEVEL", "DEBUG")
os.environ.setdefault("PAGE_PDF_ARTIFACT_DIR", str(_TEST_ROOT / "public" / "pdfS"))
os.environ.setdefault("PAGE_PDF_INDEX_FILE", str(_TEST_ROOT / "cache.json"))
os.environ.setdefault("PAGE_PDF_RENDER_BASE_URL", "http://localhost:3000")

import pytest
from fastapi.testclient import TestClient

from pagepdf.config.settings import Settings
from pagepdf.core.coordinator import RenderCoordinator
from pagepdf.core.storage.artifacts import ArtifactStore
from pagepdf.core.storage.index import CacheIndex

from tests.utils.app import serve
from tests.utils.mocks import FakeRenderEngine


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings rooted in a per-test directory."""
    return Settings(
        environment="testing",
        artifact_dir=tmp_path / "public" / "pdfS",
        index_file=tmp_path / "cache.json",
        render_base_url="http://localhost:3000",
    )


@pytest.fixture
def artifact_store(test_settings: Settings) -> ArtifactStore:
    return ArtifactStore(test_settings.artifact_dir)


@pytest.fixture
def cache_index(test_settings: Settings) -> CacheIndex:
    return CacheIndex(test_settings.index_file)


@pytest.fixture
def fake_engine() -> FakeRenderEngine:
    return FakeRenderEngine()


@pytest.fixture
def coordinator(
    test_settings: Settings,
    fake_engine: FakeRenderEngine,
    artifact_store: ArtifactStore,
    cache_index: CacheIndex,
) -> RenderCoordinator:
    """Coordinator wired to the fake engine and per-test storage."""
    return RenderCoordinator(
        engine=fake_engine,  # type: ignore[arg-type]
        store=artifact_store,
        index=cache_index,
        settings=test_settings,
    )


@pytest.fixture
def client(
    test_settings: Settings, coordinator: RenderCoordinator
) -> Generator[TestClient, None, None]:
    """FastAPI test client whose static mount and coordinator share one directory."""
    with serve(test_settings, coordinator) as test_client:
        yield test_client


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file paths."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)
