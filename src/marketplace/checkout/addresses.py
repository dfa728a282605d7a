"""SavedAddress aggregate (CQRS) — a buyer's default shipping address.

Written after a successful checkout when the buyer ticked "save as default",
and used to prefill the next checkout.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


@marketplace.aggregate
class SavedAddress:
    buyer_id = Identifier(required=True, unique=True)
    name = String(required=True, max_length=255)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=30)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    region = String(required=True, max_length=50)
    postal_code = String(max_length=20)
    updated_at = DateTime()

    def replace(self, address: dict) -> None:
        for name in (
            "name",
            "email",
            "phone",
            "address_line1",
            "address_line2",
            "city",
            "region",
            "postal_code",
        ):
            setattr(self, name, address.get(name))
        self.updated_at = datetime.now(UTC)


@marketplace.repository(part_of=SavedAddress)
class SavedAddressRepository:
    def find_for_buyer(self, buyer_id) -> SavedAddress | None:
        results = self._dao.query.filter(buyer_id=str(buyer_id)).all()
        return results.first if results.items else None


@marketplace.command(part_of="SavedAddress")
class SaveDefaultAddress:
    buyer_id = Identifier(required=True)
    address = Text(required=True)  # JSON: address dict


@marketplace.command_handler(part_of=SavedAddress)
class SavedAddressHandler:
    @handle(SaveDefaultAddress)
    def save_default_address(self, command):
        address = json.loads(command.address) if isinstance(command.address, str) else command.address
        repo = current_domain.repository_for(SavedAddress)

        saved = repo.find_for_buyer(command.buyer_id)
        if saved is None:
            saved = SavedAddress(buyer_id=command.buyer_id, updated_at=datetime.now(UTC), **address)
        else:
            saved.replace(address)
        repo.add(saved)
        return str(saved.id)
