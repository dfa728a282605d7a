"""Cart lifecycle — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.domain import marketplace


@marketplace.command(part_of="ShoppingCart")
class CreateCart:
    buyer_id = Identifier()
    session_id = String(max_length=255)


@marketplace.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)
    order_id = Identifier()


@marketplace.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = ShoppingCart.create(
            buyer_id=command.buyer_id,
            session_id=command.session_id,
        )
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear(order_id=command.order_id)
        repo.add(cart)
