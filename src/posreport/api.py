"""FastAPI application for sale ingestion and daily reports."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from posreport.catalog import seed_catalog
from posreport.config import StoreConfig, get_config, get_config_unvalidated
from posreport.dependencies import AppResources, build_resources, get_sales_service
from posreport.exceptions import ContractError
from posreport.models import ProductOut, SaleCreate, SaleCreated, SalesReport
from posreport.services.sales_service import SalesService, validation_details

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "service": "posreport",
        "version": "0.1.0",
    }


@router.get(
    "/reports/{date}",
    response_model=SalesReport,
    responses={
        400: {"description": "Date is not in dd-mm-yyyy format"},
        500: {"description": "Sales could not be read from the store"},
    },
)
async def get_report(
    date: str,
    sales_service: SalesService = Depends(get_sales_service),
) -> SalesReport:
    """Revenue, cost, profit and product frequencies for one day."""
    return await run_in_threadpool(sales_service.get_report, date)


async def create_sale(
    request: Request,
    payload: SaleCreate,
    sales_service: SalesService = Depends(get_sales_service),
) -> SaleCreated:
    """Record a sale and return its id."""
    sale_id = await run_in_threadpool(sales_service.record_sale, payload)
    return SaleCreated(id=sale_id)


@router.get("/products", response_model=list[ProductOut])
async def list_products(
    sales_service: SalesService = Depends(get_sales_service),
) -> list[ProductOut]:
    """List the product catalog."""
    products = await run_in_threadpool(sales_service.list_products)
    return [
        ProductOut(name=p.name, price=p.price, production_cost=p.production_cost)
        for p in products
    ]


@router.get("/create_sale", include_in_schema=False)
async def create_sale_page() -> FileResponse:
    return FileResponse(STATIC_DIR / "create_sale.html")


@router.get("/get_report", include_in_schema=False)
async def get_report_page() -> FileResponse:
    return FileResponse(STATIC_DIR / "get_report.html")


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Rate limit exceeded handler."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


async def contract_error_handler(request: Request, exc: ContractError) -> JSONResponse:
    """Map domain contract errors to stable API error payload."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
            }
        },
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and failed field checks are client errors."""
    return await contract_error_handler(
        request,
        ContractError(
            "invalid_request",
            "serialization error.",
            details=validation_details(exc.errors()),
        ),
    )


def create_app(
    config: Optional[StoreConfig] = None,
    resources: Optional[AppResources] = None,
) -> FastAPI:
    """Build the API app.

    The record store is opened on startup and closed on shutdown. Passing
    ``resources`` skips building the store from configuration.
    """
    effective_config = resources.config if resources else (config or get_config_unvalidated())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if resources is None:
            effective_config.validate_config()
        app_resources = resources or build_resources(effective_config)
        app_resources.repository.initialize()
        if app_resources.config.seed_catalog:
            seed_catalog(app_resources.repository)
        app.state.posreport_resources = app_resources
        try:
            yield
        finally:
            app_resources.repository.close()
            app.state.posreport_resources = None

    app = FastAPI(
        title="POS Sales Report Service",
        description="Record point-of-sale transactions and build daily reports",
        version="0.1.0",
        lifespan=lifespan,
    )
    limiter = Limiter(key_func=get_remote_address, swallow_errors=True)
    app.state.limiter = limiter

    allowed_origins = effective_config.get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ContractError, contract_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, request_validation_error_handler  # type: ignore[arg-type]
    )
    app.include_router(router)
    app.add_api_route(
        "/sales",
        limiter.limit(effective_config.sales_rate_limit)(create_sale),
        methods=["POST"],
        response_model=SaleCreated,
        status_code=status.HTTP_200_OK,
        responses={
            400: {"description": "Malformed payload or failed validation"},
            429: {"description": "Rate limit exceeded"},
            500: {"description": "Sale could not be persisted"},
        },
    )
    return app


app = create_app()


def main() -> None:
    """Run API server."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "posreport.api:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
