"""SQLAlchemy record store with a real products/sales foreign key."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator

from sqlalchemy import (
    Column,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from posreport.exceptions import PersistenceError
from posreport.models import DATE_FORMAT, PaymentMethod
from posreport.repositories.base import (
    JoinedSaleRow,
    ProductRecord,
    SalesRepository,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True)
    name = Column(Text, unique=True, nullable=False)
    price = Column(Integer, nullable=False, default=0)  # in cents
    production_cost = Column(Integer, nullable=False, default=0)  # in cents


class Sale(Base):
    __tablename__ = "sales"
    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(len(DATE_FORMAT)), index=True, nullable=False)
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    related_product_name = Column(Text, ForeignKey("products.name"), nullable=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def is_sqlite_memory_url(database_url: str) -> bool:
    """True for SQLite URLs whose database lives inside one connection."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return False
    database = url.database or ""
    return database in ("", ":memory:") or url.query.get("mode") == "memory"


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections get foreign keys enforced.

    In-memory SQLite shares one connection across threads, otherwise every
    pooled connection would open its own empty database.
    """
    is_sqlite = make_url(database_url).get_backend_name() == "sqlite"
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine_kwargs = {}
    if is_sqlite_memory_url(database_url):
        engine_kwargs["poolclass"] = StaticPool
    engine = create_engine(
        database_url, connect_args=connect_args, future=True, **engine_kwargs
    )
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class SqlSalesRepository(SalesRepository):
    """Record store backed by a SQL database."""

    def __init__(self, database_url: str, *, drop_tables_on_start: bool = False) -> None:
        self.database_url = database_url
        self.drop_tables_on_start = drop_tables_on_start
        self._engine = build_engine(database_url)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        # one shared connection: sessions must not interleave
        self._shared_connection_lock = (
            threading.Lock() if is_sqlite_memory_url(database_url) else None
        )

    def initialize(self) -> None:
        """Create missing tables (dropping them first if configured)."""
        if self.drop_tables_on_start:
            Base.metadata.drop_all(self._engine)
        Base.metadata.create_all(self._engine)
        logger.info("Record store ready: %s", self._engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        guard = self._shared_connection_lock or nullcontext()
        with guard, self._session_factory() as session:
            yield session

    def insert_product(self, *, name: str, price: int, production_cost: int) -> ProductRecord:
        try:
            with self._session() as session, session.begin():
                session.add(Product(name=name, price=price, production_cost=production_cost))
        except IntegrityError as e:
            raise PersistenceError(f"Product already exists: {name}") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not insert product: {name}") from e
        return ProductRecord(name=name, price=price, production_cost=production_cost)

    def list_products(self) -> list[ProductRecord]:
        try:
            with self._session() as session:
                products = session.scalars(select(Product).order_by(Product.id)).all()
                return [
                    ProductRecord(
                        name=p.name, price=p.price, production_cost=p.production_cost
                    )
                    for p in products
                ]
        except SQLAlchemyError as e:
            raise PersistenceError("Could not list products") from e

    def insert_sale(
        self,
        *,
        date: str,
        payment_method: PaymentMethod,
        quantity: int,
        related_product_name: str,
    ) -> int:
        sale = Sale(
            date=date,
            payment_method=payment_method,
            quantity=quantity,
            related_product_name=related_product_name,
        )
        try:
            with self._session() as session, session.begin():
                session.add(sale)
                session.flush()
                sale_id = sale.id
        except IntegrityError as e:
            raise PersistenceError(f"Unknown product: {related_product_name}") from e
        except SQLAlchemyError as e:
            raise PersistenceError("Could not insert sale") from e
        return sale_id

    def find_sales_joined_by_date(self, date: str) -> list[JoinedSaleRow]:
        stmt = (
            select(
                Sale.quantity,
                Sale.payment_method,
                Product.price,
                Product.production_cost,
                Product.name,
            )
            .join(Product, Sale.related_product_name == Product.name)
            .where(Sale.date == date)
            .order_by(Sale.id)
        )
        try:
            with self._session() as session:
                return [
                    JoinedSaleRow(
                        quantity=r.quantity,
                        payment_method=r.payment_method,
                        product_price=r.price,
                        product_cost=r.production_cost,
                        product_name=r.name,
                    )
                    for r in session.execute(stmt).all()
                ]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read sales for {date}") from e
