"""Stock ledger port (abstract interface).

The ledger holds the current stock figure per product. Decrements are a
single atomic conditional update per product: the stock never goes below
zero and two concurrent checkouts never overwrite each other's decrement.
A decrement made on behalf of an order happens once per product, however
many times the order's adjustment is retried.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StockLevel:
    """A product's row in the ledger."""

    product_id: str
    stock: int
    unit_price: float = 0.0
    supplier_id: str | None = None


@dataclass(frozen=True)
class StockChange:
    """Outcome of one decrement."""

    product_id: str
    requested: int
    previous_stock: int
    new_stock: int

    @property
    def shortfall(self) -> int:
        """Units ordered beyond what was in stock."""
        return max(0, self.requested - self.previous_stock)


class StockLedger(ABC):
    """Abstract stock ledger interface."""

    @abstractmethod
    def get(self, product_id: str) -> StockLevel:
        """Read a product's stock. Raises StockReadError if it cannot."""
        ...

    @abstractmethod
    def set_stock(
        self,
        product_id: str,
        stock: int,
        unit_price: float = 0.0,
        supplier_id: str | None = None,
    ) -> StockLevel:
        """Create or overwrite a product's row."""
        ...

    @abstractmethod
    def decrement(self, product_id: str, quantity: int, order_id: str | None = None) -> StockChange:
        """Atomically apply ``stock = max(0, stock - quantity)``.

        With an ``order_id`` the decrement is recorded against (order, product)
        and applied at most once; repeating it returns the recorded change.
        """
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every row."""
        ...
