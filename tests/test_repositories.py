"""Record store contract tests for the memory and SQL implementations."""

from pathlib import Path
from threading import Thread

import pytest

from posreport.catalog import DEFAULT_CATALOG, seed_catalog
from posreport.exceptions import PersistenceError
from posreport.models import PaymentMethod
from posreport.repositories.base import JoinedSaleRow, ProductRecord
from posreport.repositories.memory import InMemorySalesRepository
from posreport.repositories.sql import SqlSalesRepository, is_sqlite_memory_url


@pytest.fixture(params=["memory", "sql"])
def repository(request: pytest.FixtureRequest, tmp_path: Path):
    """Each store, initialized and holding the sample catalog."""
    if request.param == "memory":
        repo = InMemorySalesRepository()
    else:
        repo = SqlSalesRepository(f"sqlite:///{tmp_path / 'store.db'}")
    repo.initialize()
    seed_catalog(repo)
    yield repo
    repo.close()


def test_list_products_returns_catalog(repository):
    assert repository.list_products() == list(DEFAULT_CATALOG)


def test_insert_product_rejects_duplicate_name(repository):
    with pytest.raises(PersistenceError):
        repository.insert_product(name="product 1", price=1, production_cost=1)


def test_insert_product_returns_record(repository):
    record = repository.insert_product(name="product 3", price=500, production_cost=250)
    assert record == ProductRecord(name="product 3", price=500, production_cost=250)
    assert record in repository.list_products()


def test_insert_sale_returns_monotonic_ids(repository):
    ids = [
        repository.insert_sale(
            date="01-03-2024",
            payment_method=PaymentMethod.CASH,
            quantity=1,
            related_product_name="product 1",
        )
        for _ in range(3)
    ]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_insert_sale_rejects_unknown_product(repository):
    with pytest.raises(PersistenceError):
        repository.insert_sale(
            date="01-03-2024",
            payment_method=PaymentMethod.PIX,
            quantity=1,
            related_product_name="no such product",
        )
    assert repository.find_sales_joined_by_date("01-03-2024") == []


def test_find_sales_joined_by_date_filters_and_joins(repository):
    repository.insert_sale(
        date="01-03-2024",
        payment_method=PaymentMethod.CASH,
        quantity=2,
        related_product_name="product 1",
    )
    repository.insert_sale(
        date="02-03-2024",
        payment_method=PaymentMethod.DEBIT,
        quantity=1,
        related_product_name="product 1",
    )
    repository.insert_sale(
        date="01-03-2024",
        payment_method=PaymentMethod.PIX,
        quantity=1,
        related_product_name="product 2",
    )

    rows = repository.find_sales_joined_by_date("01-03-2024")

    assert rows == [
        JoinedSaleRow(
            quantity=2,
            payment_method=PaymentMethod.CASH,
            product_price=2000,
            product_cost=1500,
            product_name="product 1",
        ),
        JoinedSaleRow(
            quantity=1,
            payment_method=PaymentMethod.PIX,
            product_price=3000,
            product_cost=1000,
            product_name="product 2",
        ),
    ]


def test_find_sales_for_day_without_sales(repository):
    assert repository.find_sales_joined_by_date("31-12-1999") == []


def test_concurrent_inserts_keep_every_sale(repository):
    def worker() -> None:
        for _ in range(10):
            repository.insert_sale(
                date="05-03-2024",
                payment_method=PaymentMethod.CASH,
                quantity=1,
                related_product_name="product 2",
            )

    threads = [Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(repository.find_sales_joined_by_date("05-03-2024")) == 40


def test_seed_catalog_is_idempotent(repository):
    assert seed_catalog(repository) == 0
    assert len(repository.list_products()) == len(DEFAULT_CATALOG)


def test_sql_store_keeps_data_across_instances(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'persist.db'}"
    first = SqlSalesRepository(url)
    first.initialize()
    seed_catalog(first)
    first.insert_sale(
        date="06-03-2024",
        payment_method=PaymentMethod.DEBIT,
        quantity=1,
        related_product_name="product 2",
    )
    first.close()

    second = SqlSalesRepository(url)
    second.initialize()
    try:
        rows = second.find_sales_joined_by_date("06-03-2024")
        assert [r.payment_method for r in rows] == [PaymentMethod.DEBIT]
    finally:
        second.close()


def test_sql_store_drop_tables_on_start(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'drop.db'}"
    first = SqlSalesRepository(url)
    first.initialize()
    seed_catalog(first)
    first.close()

    second = SqlSalesRepository(url, drop_tables_on_start=True)
    second.initialize()
    try:
        assert second.list_products() == []
    finally:
        second.close()


def test_memory_store_reset():
    repo = InMemorySalesRepository()
    seed_catalog(repo)
    repo.reset()
    assert repo.list_products() == []


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_sql_in_memory_store_shared_across_threads(url):
    repo = SqlSalesRepository(url)
    repo.initialize()
    seed_catalog(repo)
    results: list[object] = []

    def worker() -> None:
        try:
            results.append(
                repo.insert_sale(
                    date="07-03-2024",
                    payment_method=PaymentMethod.PIX,
                    quantity=1,
                    related_product_name="product 1",
                )
            )
        except PersistenceError as e:
            results.append(e)

    try:
        threads = [Thread(target=worker) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(isinstance(r, int) for r in results)
        assert len(repo.find_sales_joined_by_date("07-03-2024")) == 3
    finally:
        repo.close()


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite://", True),
        ("sqlite:///:memory:", True),
        ("sqlite:///./posreport.db", False),
        ("postgresql+psycopg2://u:p@db:5432/pos", False),
    ],
)
def test_is_sqlite_memory_url(url, expected):
    assert is_sqlite_memory_url(url) is expected
