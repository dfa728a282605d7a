"""Application tests for the buyer's saved default address."""

import json

from marketplace.checkout.addresses import SavedAddress, SaveDefaultAddress
from protean import current_domain

ADDRESS = {
    "name": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "0241234567",
    "address_line1": "12 Oxford Street",
    "address_line2": None,
    "city": "Accra",
    "region": "greater-accra",
    "postal_code": None,
}


def _save(address):
    return current_domain.process(
        SaveDefaultAddress(buyer_id="buyer-001", address=json.dumps(address)),
        asynchronous=False,
    )


class TestSaveDefaultAddress:
    def test_first_save_creates_address(self):
        _save(ADDRESS)
        saved = current_domain.repository_for(SavedAddress).find_for_buyer("buyer-001")
        assert saved.city == "Accra"

    def test_second_save_replaces_it(self):
        first = _save(ADDRESS)
        second = _save({**ADDRESS, "city": "Tema"})

        assert first == second
        saved = current_domain.repository_for(SavedAddress).find_for_buyer("buyer-001")
        assert saved.city == "Tema"

    def test_unknown_buyer(self):
        assert current_domain.repository_for(SavedAddress).find_for_buyer("buyer-999") is None
