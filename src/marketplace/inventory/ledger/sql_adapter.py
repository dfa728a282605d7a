"""SQL stock ledger backed by SQLAlchemy Core.

The decrement is one conditional ``UPDATE`` so the database serializes
concurrent writers on the row:

    UPDATE product_stock
       SET stock = CASE WHEN stock >= :q THEN stock - :q ELSE 0 END
     WHERE product_id = :id
 RETURNING stock

Decrements made for an order also insert a ``stock_decrements`` row keyed by
(order_id, product_id) in the same transaction. A repeated decrement finds
that row and returns it; a racing one fails the primary key and rolls back
its update.
"""

import structlog
from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    case,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from marketplace.errors import StockReadError
from marketplace.inventory.ledger.port import StockChange, StockLedger, StockLevel

logger = structlog.get_logger(__name__)

metadata = MetaData()

product_stock = Table(
    "product_stock",
    metadata,
    Column("product_id", String(255), primary_key=True),
    Column("stock", Integer, nullable=False, default=0),
    Column("unit_price", Float, nullable=False, default=0.0),
    Column("supplier_id", String(255)),
    CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
)

stock_decrements = Table(
    "stock_decrements",
    metadata,
    Column("order_id", String(255), primary_key=True),
    Column("product_id", String(255), primary_key=True),
    Column("requested", Integer, nullable=False),
    Column("previous_stock", Integer, nullable=False),
    Column("new_stock", Integer, nullable=False),
)


def _change_from_row(row) -> StockChange:
    return StockChange(
        product_id=row.product_id,
        requested=row.requested,
        previous_stock=row.previous_stock,
        new_stock=row.new_stock,
    )


class SQLStockLedger(StockLedger):
    """Stock ledger stored in ``product_stock`` and ``stock_decrements`` tables."""

    def __init__(self, database_uri: str, **engine_options) -> None:
        self.engine = create_engine(database_uri, **engine_options)

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def get(self, product_id: str) -> StockLevel:
        product_id = str(product_id)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(product_stock).where(product_stock.c.product_id == product_id)).first()
        except SQLAlchemyError as exc:
            raise StockReadError(product_id, str(exc)) from exc

        if row is None:
            raise StockReadError(product_id, "product not found")
        return StockLevel(
            product_id=row.product_id,
            stock=row.stock,
            unit_price=row.unit_price,
            supplier_id=row.supplier_id,
        )

    def set_stock(
        self,
        product_id: str,
        stock: int,
        unit_price: float = 0.0,
        supplier_id: str | None = None,
    ) -> StockLevel:
        if stock < 0:
            raise ValueError("stock cannot be negative")
        product_id = str(product_id)
        values = {"stock": stock, "unit_price": unit_price, "supplier_id": supplier_id}
        with self.engine.begin() as conn:
            updated = conn.execute(
                update(product_stock).where(product_stock.c.product_id == product_id).values(**values)
            )
            if updated.rowcount == 0:
                conn.execute(insert(product_stock).values(product_id=product_id, **values))
        return StockLevel(product_id=product_id, **values)

    def _recorded(self, conn, order_id: str, product_id: str):
        return conn.execute(
            select(stock_decrements).where(
                stock_decrements.c.order_id == order_id,
                stock_decrements.c.product_id == product_id,
            )
        ).first()

    def decrement(self, product_id: str, quantity: int, order_id: str | None = None) -> StockChange:
        product_id = str(product_id)
        order_id = str(order_id) if order_id is not None else None
        try:
            with self.engine.begin() as conn:
                if order_id is not None:
                    recorded = self._recorded(conn, order_id, product_id)
                    if recorded is not None:
                        return _change_from_row(recorded)

                previous = conn.execute(
                    select(product_stock.c.stock)
                    .where(product_stock.c.product_id == product_id)
                    .with_for_update()
                ).scalar()
                if previous is None:
                    raise StockReadError(product_id, "product not found")

                new_stock = conn.execute(
                    update(product_stock)
                    .where(product_stock.c.product_id == product_id)
                    .values(
                        stock=case(
                            (product_stock.c.stock >= quantity, product_stock.c.stock - quantity),
                            else_=0,
                        )
                    )
                    .returning(product_stock.c.stock)
                ).scalar_one()

                if order_id is not None:
                    conn.execute(
                        insert(stock_decrements).values(
                            order_id=order_id,
                            product_id=product_id,
                            requested=quantity,
                            previous_stock=previous,
                            new_stock=new_stock,
                        )
                    )
        except IntegrityError as exc:
            # Another writer recorded this order's decrement first
            recorded = None
            if order_id is not None:
                with self.engine.connect() as conn:
                    recorded = self._recorded(conn, order_id, product_id)
            if recorded is None:
                logger.error("Stock decrement failed", product_id=product_id, error=str(exc))
                raise StockReadError(product_id, str(exc)) from exc
            return _change_from_row(recorded)
        except SQLAlchemyError as exc:
            logger.error("Stock decrement failed", product_id=product_id, error=str(exc))
            raise StockReadError(product_id, str(exc)) from exc

        return StockChange(
            product_id=product_id,
            requested=quantity,
            previous_stock=previous,
            new_stock=new_stock,
        )

    def clear(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(stock_decrements))
            conn.execute(delete(product_stock))
