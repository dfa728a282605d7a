"""Stock ledger factory.

Provides get_stock_ledger() / set_stock_ledger() to swap implementations:
- MemoryStockLedger for development and testing (STOCK_LEDGER_URI=memory)
- SQLStockLedger for any SQLAlchemy database URI
"""

from marketplace.inventory.ledger.memory_adapter import MemoryStockLedger
from marketplace.inventory.ledger.port import StockLedger

_current_ledger: StockLedger | None = None


def _build_ledger() -> StockLedger:
    from marketplace.utils import settings

    if settings.STOCK_LEDGER_URI == "memory":
        return MemoryStockLedger()

    from marketplace.inventory.ledger.sql_adapter import SQLStockLedger

    return SQLStockLedger(settings.STOCK_LEDGER_URI)


def get_stock_ledger() -> StockLedger:
    """Return the current stock ledger. Defaults to MemoryStockLedger."""
    global _current_ledger
    if _current_ledger is None:
        _current_ledger = _build_ledger()
    return _current_ledger


def set_stock_ledger(ledger: StockLedger) -> None:
    """Override the active stock ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_stock_ledger() -> None:
    """Reset to default ledger."""
    global _current_ledger
    _current_ledger = None
