"""Shopping Cart aggregate (CQRS) — the buyer's basket before checkout.

Each item remembers the price it was added at and the supplier selling it,
which is everything checkout needs to build the order and split it by
supplier later.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from marketplace.domain import marketplace


@marketplace.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@marketplace.aggregate
class ShoppingCart:
    buyer_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)  # For guest cart identification
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, buyer_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            buyer_id=buyer_id,
            session_id=session_id,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.items

    def subtotal(self) -> float:
        return round(sum(item.unit_price * item.quantity for item in self.items), 2)

    def line_items(self) -> list[dict]:
        """Snapshot of the items in the shape order placement expects."""
        return [
            {
                "product_id": str(item.product_id),
                "supplier_id": str(item.supplier_id),
                "unit_price": item.unit_price,
                "quantity": item.quantity,
            }
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, supplier_id, unit_price, quantity):
        """Add an item to the cart (or increase quantity if already present)."""
        existing = next((i for i in self.items if str(i.product_id) == str(product_id)), None)

        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                supplier_id=supplier_id,
                unit_price=unit_price,
                quantity=quantity,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                supplier_id=str(supplier_id),
                quantity=quantity,
                unit_price=unit_price,
            )
        )

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def update_item_quantity(self, item_id, new_quantity):
        """Update the quantity of an existing cart item."""
        item = self._find_item(item_id)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        """Remove an item from the cart."""
        item = self._find_item(item_id)

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
            )
        )

    def clear(self, order_id=None):
        """Empty the cart."""
        items_removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed=items_removed,
                order_id=str(order_id) if order_id else None,
            )
        )
