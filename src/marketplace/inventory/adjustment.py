"""StockAdjustment aggregate (CQRS) — what an order did to product stock.

One record per order. Each line says whether the product's stock was
decremented (with before/after figures) or skipped because the stock could
not be read. Skipped lines never block the order.

The ledger records each decrement against the order, so re-running the
adjustment after the record failed to save reports the original figures
instead of taking the stock down twice.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import handle
from protean.fields import DateTime, HasMany, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import StockReadError
from marketplace.inventory.events import StockAdjustmentSkipped, StockChanged
from marketplace.inventory.ledger import get_stock_ledger
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


class AdjustmentOutcome(Enum):
    APPLIED = "Applied"
    SKIPPED = "Skipped"


@marketplace.entity(part_of="StockAdjustment")
class StockAdjustmentLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    outcome = String(choices=AdjustmentOutcome, required=True)
    previous_stock = Integer()
    new_stock = Integer(min_value=0)
    reason = String(max_length=500)


@marketplace.aggregate
class StockAdjustment:
    order_id = Identifier(required=True, unique=True)
    lines = HasMany(StockAdjustmentLine)
    created_at = DateTime()

    @classmethod
    def create(cls, order_id):
        return cls(order_id=order_id, created_at=datetime.now(UTC))

    def record_applied(self, product_id, quantity, previous_stock, new_stock):
        now = datetime.now(UTC)
        self.add_lines(
            StockAdjustmentLine(
                product_id=product_id,
                quantity=quantity,
                outcome=AdjustmentOutcome.APPLIED.value,
                previous_stock=previous_stock,
                new_stock=new_stock,
            )
        )
        self.raise_(
            StockChanged(
                adjustment_id=str(self.id),
                order_id=str(self.order_id),
                product_id=str(product_id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=new_stock,
                changed_at=now,
            )
        )

    def record_skipped(self, product_id, quantity, reason):
        now = datetime.now(UTC)
        self.add_lines(
            StockAdjustmentLine(
                product_id=product_id,
                quantity=quantity,
                outcome=AdjustmentOutcome.SKIPPED.value,
                reason=reason,
            )
        )
        self.raise_(
            StockAdjustmentSkipped(
                adjustment_id=str(self.id),
                order_id=str(self.order_id),
                product_id=str(product_id),
                quantity=quantity,
                reason=reason,
                skipped_at=now,
            )
        )

    @property
    def skipped_lines(self):
        return [line for line in self.lines if line.outcome == AdjustmentOutcome.SKIPPED.value]


@marketplace.repository(part_of=StockAdjustment)
class StockAdjustmentRepository:
    def find_for_order(self, order_id) -> StockAdjustment | None:
        results = self._dao.query.filter(order_id=str(order_id)).all()
        return results.first if results.items else None


@marketplace.command(part_of="StockAdjustment")
class AdjustStockForOrder:
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=StockAdjustment)
class StockAdjustmentHandler:
    @handle(AdjustStockForOrder)
    def adjust_stock_for_order(self, command):
        repo = current_domain.repository_for(StockAdjustment)

        existing = repo.find_for_order(command.order_id)
        if existing is not None:
            logger.info("Stock already adjusted for order", order_id=str(command.order_id))
            return str(existing.id)

        order = current_domain.repository_for(Order).get(command.order_id)
        ledger = get_stock_ledger()
        adjustment = StockAdjustment.create(order_id=str(order.id))

        for item in order.items:
            try:
                change = ledger.decrement(str(item.product_id), item.quantity, order_id=str(order.id))
            except StockReadError as exc:
                logger.warning(
                    "Skipping stock adjustment",
                    order_id=str(order.id),
                    product_id=str(item.product_id),
                    reason=exc.reason,
                )
                adjustment.record_skipped(item.product_id, item.quantity, exc.reason)
                continue

            if change.shortfall:
                logger.warning(
                    "Ordered more than in stock",
                    order_id=str(order.id),
                    product_id=change.product_id,
                    shortfall=change.shortfall,
                )
            adjustment.record_applied(item.product_id, item.quantity, change.previous_stock, change.new_stock)

        repo.add(adjustment)
        return str(adjustment.id)
