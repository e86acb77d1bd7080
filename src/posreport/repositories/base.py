"""Repository interfaces for sales persistence."""

from dataclasses import dataclass
from typing import Protocol

from posreport.models import PaymentMethod


@dataclass(frozen=True)
class ProductRecord:
    """Persisted catalog entry."""

    name: str
    price: int
    production_cost: int


@dataclass(frozen=True)
class SaleRecord:
    """Persisted sale."""

    sale_id: int
    date: str
    payment_method: PaymentMethod
    quantity: int
    related_product_name: str


@dataclass(frozen=True)
class JoinedSaleRow:
    """Sale joined with its product, as consumed by the report fold."""

    quantity: int
    payment_method: PaymentMethod
    product_price: int
    product_cost: int
    product_name: str


class SalesRepository(Protocol):
    """Persistence operations required by the sales service."""

    def initialize(self) -> None:
        ...

    def close(self) -> None:
        ...

    def insert_product(self, *, name: str, price: int, production_cost: int) -> ProductRecord:
        ...

    def list_products(self) -> list[ProductRecord]:
        ...

    def insert_sale(
        self,
        *,
        date: str,
        payment_method: PaymentMethod,
        quantity: int,
        related_product_name: str,
    ) -> int:
        ...

    def find_sales_joined_by_date(self, date: str) -> list[JoinedSaleRow]:
        ...
