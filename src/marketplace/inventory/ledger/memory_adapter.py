"""In-process stock ledger for development and testing."""

import threading

from marketplace.errors import StockReadError
from marketplace.inventory.ledger.port import StockChange, StockLedger, StockLevel


class MemoryStockLedger(StockLedger):
    """Dictionary-backed ledger; every read-modify-write happens under one lock."""

    def __init__(self) -> None:
        self._rows: dict[str, StockLevel] = {}
        self._applied: dict[tuple[str, str], StockChange] = {}
        self._lock = threading.Lock()

    def get(self, product_id: str) -> StockLevel:
        with self._lock:
            row = self._rows.get(str(product_id))
        if row is None:
            raise StockReadError(str(product_id), "product not found")
        return row

    def set_stock(
        self,
        product_id: str,
        stock: int,
        unit_price: float = 0.0,
        supplier_id: str | None = None,
    ) -> StockLevel:
        if stock < 0:
            raise ValueError("stock cannot be negative")
        row = StockLevel(
            product_id=str(product_id),
            stock=stock,
            unit_price=unit_price,
            supplier_id=supplier_id,
        )
        with self._lock:
            self._rows[row.product_id] = row
        return row

    def decrement(self, product_id: str, quantity: int, order_id: str | None = None) -> StockChange:
        product_id = str(product_id)
        key = (str(order_id), product_id) if order_id is not None else None
        with self._lock:
            if key in self._applied:
                return self._applied[key]

            row = self._rows.get(product_id)
            if row is None:
                raise StockReadError(product_id, "product not found")
            new_stock = max(0, row.stock - quantity)
            self._rows[product_id] = StockLevel(
                product_id=product_id,
                stock=new_stock,
                unit_price=row.unit_price,
                supplier_id=row.supplier_id,
            )
            change = StockChange(
                product_id=product_id,
                requested=quantity,
                previous_stock=row.stock,
                new_stock=new_stock,
            )
            if key is not None:
                self._applied[key] = change
        return change

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
            self._applied.clear()
