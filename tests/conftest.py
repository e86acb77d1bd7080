"""Shared test fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from posreport.api import create_app
from posreport.catalog import seed_catalog
from posreport.config import StoreConfig
from posreport.dependencies import AppResources
from posreport.repositories.memory import InMemorySalesRepository
from posreport.services.sales_service import SalesService


@pytest.fixture
def memory_repository() -> InMemorySalesRepository:
    """Provide an in-memory store holding the sample catalog."""
    repository = InMemorySalesRepository()
    seed_catalog(repository)
    return repository


@pytest.fixture
def sales_service(memory_repository: InMemorySalesRepository) -> SalesService:
    return SalesService(memory_repository)


@pytest.fixture
def api_test_config() -> StoreConfig:
    """Provide a test-owned API config instance."""
    return StoreConfig(
        _env_file=None,
        storage_backend="memory",
        seed_catalog=True,
        allowed_origins="http://localhost:5173",
    )


@pytest.fixture
def api_test_app(api_test_config: StoreConfig) -> Any:
    """Create a fresh FastAPI app backed by an empty in-memory store."""
    repository = InMemorySalesRepository()
    resources = AppResources(
        config=api_test_config,
        repository=repository,
        sales_service=SalesService(repository),
    )
    return create_app(resources=resources)


@pytest.fixture
def api_test_client(api_test_app: Any) -> Generator[TestClient, None, None]:
    """Create a TestClient for the API app (runs lifespan)."""
    with TestClient(api_test_app) as client:
        yield client
