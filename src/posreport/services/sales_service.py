"""Sale ingestion and daily report orchestration."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from posreport.exceptions import ContractError, PersistenceError
from posreport.models import SaleCreate, SalesReport, is_valid_date
from posreport.report import build_sales_report
from posreport.repositories.base import ProductRecord, SalesRepository

logger = logging.getLogger(__name__)


def validation_details(errors: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Flatten pydantic errors into the API error details shape."""
    return {
        "errors": [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in errors
        ]
    }


def parse_sale(payload: Mapping[str, Any]) -> SaleCreate:
    """Build a sale candidate, rejecting malformed fields before persistence."""
    try:
        return SaleCreate.model_validate(payload)
    except ValidationError as e:
        raise ContractError(
            "invalid_sale",
            "Sale payload failed validation",
            details=validation_details(e.errors()),
        ) from e


class SalesService:
    """Coordinates sale writes and report reads against a record store."""

    def __init__(self, repository: SalesRepository) -> None:
        self.repository = repository

    def record_sale(self, sale: Union[SaleCreate, Mapping[str, Any]]) -> int:
        """Persist a sale and return its id."""
        if not isinstance(sale, SaleCreate):
            sale = parse_sale(sale)

        try:
            sale_id = self.repository.insert_sale(
                date=sale.date,
                payment_method=sale.payment_method,
                quantity=sale.quantity,
                related_product_name=sale.related_product_name,
            )
        except PersistenceError as e:
            logger.warning("Sale insert rejected: %s", e)
            raise ContractError(
                "sale_insert_failed",
                "error inserting sale in the database",
                status_code=500,
                details={"related_product_name": sale.related_product_name},
            ) from e

        logger.info(
            "Sale recorded: id=%d date=%s product=%r method=%s quantity=%d",
            sale_id,
            sale.date,
            sale.related_product_name,
            sale.payment_method.value,
            sale.quantity,
        )
        return sale_id

    def get_report(self, date: str) -> SalesReport:
        """Build the report for one day.

        The date shape is checked before the store is queried, and all rows
        are read before the fold starts.
        """
        if not is_valid_date(date):
            raise ContractError(
                "invalid_date",
                f"Date in wrong format: {date}",
                details={"date": date, "expected_format": "dd-mm-yyyy"},
            )

        try:
            rows = self.repository.find_sales_joined_by_date(date)
        except PersistenceError as e:
            logger.exception("Report retrieval failed for %s", date)
            raise ContractError(
                "report_failed",
                "error creating the report.",
                status_code=500,
                details={"date": date},
            ) from e

        report = build_sales_report(date, rows)
        logger.info("Report built: date=%s rows=%d total=%d", date, len(rows), report.total)
        return report

    def list_products(self) -> list[ProductRecord]:
        try:
            return self.repository.list_products()
        except PersistenceError as e:
            logger.exception("Catalog listing failed")
            raise ContractError(
                "catalog_failed", "error listing products.", status_code=500
            ) from e
