"""Pydantic data models for sales and reports."""

import re
from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

ONE_CENT = 1
ONE_REAL = 100 * ONE_CENT

DATE_FORMAT = "dd-MM-yyyy"
DATE_PATTERN = re.compile(r"^[0-9]{2}-[0-9]{2}-[0-9]{4}$")


def is_valid_date(value: object) -> bool:
    """Check the fixed-width dd-mm-yyyy shape (no calendar check)."""
    return isinstance(value, str) and DATE_PATTERN.fullmatch(value) is not None


class PaymentMethod(str, Enum):
    """Payment channel of a sale."""

    CASH = "Cash"
    PIX = "Pix"
    DEBIT = "Debit"


class SaleCreate(BaseModel):
    """Candidate sale received from a client."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(..., description=f"Sale date ({DATE_FORMAT})")
    payment_method: PaymentMethod = Field(
        PaymentMethod.CASH, alias="paymentMethod", description="Payment channel"
    )
    quantity: StrictInt = Field(1, description="Units sold, at least 1")
    related_product_name: str = Field(
        ..., alias="relatedProductName", description="Name of the sold product"
    )

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        if not is_valid_date(v):
            raise ValueError(f"Date in wrong format: [{v}]")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Invalid quantity: [{v}].")
        return v

    @field_validator("related_product_name")
    @classmethod
    def validate_product_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Empty related product name.")
        return v


class SaleCreated(BaseModel):
    """Identifier assigned to a persisted sale."""

    id: int


class ProductOut(BaseModel):
    """Catalog entry, prices in minor currency units."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    price: int
    production_cost: int = Field(..., alias="productionCost")


class SalesReport(BaseModel):
    """Per-day revenue, cost, profit and product frequencies.

    All monetary fields are integers in minor currency units.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date: str
    total_cash: int = Field(0, alias="totalCash")
    total_pix: int = Field(0, alias="totalPix")
    total_debit: int = Field(0, alias="totalDebit")
    total: int = 0
    total_cost: int = Field(0, alias="totalCost")
    profit: int = 0
    frequencies: Dict[str, int] = Field(default_factory=dict)
