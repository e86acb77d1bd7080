"""Shared FastAPI app resource container and provider dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import cast

from fastapi import Depends, HTTPException, Request, status

from posreport.config import StoreConfig
from posreport.repositories.base import SalesRepository
from posreport.repositories.memory import InMemorySalesRepository
from posreport.repositories.sql import SqlSalesRepository
from posreport.services.sales_service import SalesService


@dataclass
class AppResources:
    """App-scoped resources initialized during FastAPI lifespan."""

    config: StoreConfig
    repository: SalesRepository
    sales_service: SalesService


def build_repository(config: StoreConfig) -> SalesRepository:
    """Create the record store selected by configuration."""
    if config.storage_backend == "memory":
        return InMemorySalesRepository()
    return SqlSalesRepository(
        config.database_url, drop_tables_on_start=config.drop_tables_on_start
    )


def build_resources(config: StoreConfig) -> AppResources:
    repository = build_repository(config)
    return AppResources(
        config=config,
        repository=repository,
        sales_service=SalesService(repository),
    )


def get_app_resources(request: Request) -> AppResources:
    """Return initialized app resources from state."""
    resources = getattr(request.app.state, "posreport_resources", None)
    if resources is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Application resources are not initialized",
        )
    return cast(AppResources, resources)


def get_sales_service(
    resources: AppResources = Depends(get_app_resources),
) -> SalesService:
    """Get app-scoped sales service."""
    return resources.sales_service
