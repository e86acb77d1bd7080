"""Sample product catalog inserted at startup."""

import logging

from posreport.exceptions import PersistenceError
from posreport.models import ONE_REAL
from posreport.repositories.base import ProductRecord, SalesRepository

logger = logging.getLogger(__name__)

DEFAULT_CATALOG = (
    ProductRecord(name="product 1", price=20 * ONE_REAL, production_cost=15 * ONE_REAL),
    ProductRecord(name="product 2", price=30 * ONE_REAL, production_cost=10 * ONE_REAL),
)


def seed_catalog(
    repository: SalesRepository, products: tuple[ProductRecord, ...] = DEFAULT_CATALOG
) -> int:
    """Insert catalog products, skipping names that already exist.

    Returns the number of products inserted.
    """
    inserted = 0
    for product in products:
        try:
            repository.insert_product(
                name=product.name,
                price=product.price,
                production_cost=product.production_cost,
            )
        except PersistenceError as e:
            logger.info("Catalog seed skipped %r: %s", product.name, e)
            continue
        inserted += 1

    logger.info("Catalog seeded: %d of %d products inserted", inserted, len(products))
    return inserted
