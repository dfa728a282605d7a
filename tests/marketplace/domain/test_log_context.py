"""Tests for binding checkout and order ids onto log lines."""

import structlog
from marketplace.utils.logging import log_context


class TestLogContext:
    def test_binds_ids_inside_the_block(self):
        with log_context(checkout_id="chk-001", cart_id="cart-001"):
            assert structlog.contextvars.get_contextvars() == {
                "checkout_id": "chk-001",
                "cart_id": "cart-001",
            }
        assert structlog.contextvars.get_contextvars() == {}

    def test_missing_ids_are_left_out(self):
        with log_context(order_id="ord-001", supplier_id=None):
            assert structlog.contextvars.get_contextvars() == {"order_id": "ord-001"}

    def test_nested_blocks_restore_the_outer_ids(self):
        with log_context(order_id="ord-001"):
            with log_context(supplier_id="farmer-a"):
                assert structlog.contextvars.get_contextvars() == {
                    "order_id": "ord-001",
                    "supplier_id": "farmer-a",
                }
            assert structlog.contextvars.get_contextvars() == {"order_id": "ord-001"}
