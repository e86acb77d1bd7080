"""In-memory record store for tests and ephemeral runs."""

from __future__ import annotations

import threading

from posreport.exceptions import PersistenceError
from posreport.models import PaymentMethod
from posreport.repositories.base import (
    JoinedSaleRow,
    ProductRecord,
    SaleRecord,
    SalesRepository,
)


class InMemorySalesRepository(SalesRepository):
    """Thread-safe in-memory storage."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        """Reset all in-memory state (used by tests)."""
        with self._lock:
            self._products: dict[str, ProductRecord] = {}
            self._sales: dict[int, SaleRecord] = {}
            self._sale_seq = 1

    def initialize(self) -> None:
        return None

    def close(self) -> None:
        return None

    def insert_product(self, *, name: str, price: int, production_cost: int) -> ProductRecord:
        with self._lock:
            if name in self._products:
                raise PersistenceError(f"Product already exists: {name}")
            product = ProductRecord(name=name, price=price, production_cost=production_cost)
            self._products[name] = product
            return product

    def list_products(self) -> list[ProductRecord]:
        with self._lock:
            return list(self._products.values())

    def insert_sale(
        self,
        *,
        date: str,
        payment_method: PaymentMethod,
        quantity: int,
        related_product_name: str,
    ) -> int:
        with self._lock:
            if related_product_name not in self._products:
                raise PersistenceError(f"Unknown product: {related_product_name}")

            sale_id = self._sale_seq
            self._sale_seq += 1
            self._sales[sale_id] = SaleRecord(
                sale_id=sale_id,
                date=date,
                payment_method=payment_method,
                quantity=quantity,
                related_product_name=related_product_name,
            )
            return sale_id

    def find_sales_joined_by_date(self, date: str) -> list[JoinedSaleRow]:
        with self._lock:
            rows = []
            for sale in self._sales.values():
                if sale.date != date:
                    continue
                product = self._products[sale.related_product_name]
                rows.append(
                    JoinedSaleRow(
                        quantity=sale.quantity,
                        payment_method=sale.payment_method,
                        product_price=product.price,
                        product_cost=product.production_cost,
                        product_name=product.name,
                    )
                )
            return rows
