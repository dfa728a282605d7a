"""Application settings read from the environment.

Domain infrastructure (databases, brokers, event store) is configured in
``domain.toml``; these are the knobs that sit outside Protean's config.
"""

import os

CURRENCY = os.getenv("MARKETPLACE_CURRENCY", "GHS")

# Which payment gateway adapter get_gateway() builds: "fake" or "paystack"
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "fake")
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL", "")

# Seconds to wait for the buyer to finish the processor's popup. Unset means
# wait indefinitely.
_timeout = os.getenv("PAYMENT_ATTEMPT_TIMEOUT_SECONDS")
PAYMENT_ATTEMPT_TIMEOUT_SECONDS = float(_timeout) if _timeout else None

# Stock ledger backend: "memory" or a SQLAlchemy database URI
STOCK_LEDGER_URI = os.getenv("STOCK_LEDGER_URI", "memory")
