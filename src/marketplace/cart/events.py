"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """A cart item's quantity was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartCleared:
    """Every item was removed, usually because the cart became an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
    order_id = Identifier()
