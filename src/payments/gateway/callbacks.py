"""Pending payment attempts awaiting the processor's callback.

The processor completes card and mobile-money payments out of band: the
buyer finishes (or closes) the hosted popup and the processor then calls our
webhook. ``attempt()`` parks a future here keyed by the transaction
reference, and the webhook/cancel routes resolve it.
"""

import asyncio
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


class CallbackOutcome:
    SUCCESS = "success"
    CANCELLED = "cancelled"
    DECLINED = "declined"


@dataclass
class PendingAttempt:
    reference: str
    authorization_url: str
    future: asyncio.Future


class CallbackRegistry:
    """In-process registry of payment attempts waiting on a callback."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingAttempt] = {}

    def register(self, reference: str, authorization_url: str) -> PendingAttempt:
        loop = asyncio.get_running_loop()
        pending = PendingAttempt(
            reference=reference,
            authorization_url=authorization_url,
            future=loop.create_future(),
        )
        self._pending[reference] = pending
        return pending

    def get(self, reference: str) -> PendingAttempt | None:
        return self._pending.get(reference)

    def discard(self, reference: str) -> None:
        self._pending.pop(reference, None)

    def resolve(self, reference: str, outcome: str, message: str = "") -> bool:
        """Complete the attempt for ``reference``.

        Returns False when nothing is waiting on that reference (unknown,
        already resolved, or the waiting request has gone away).
        """
        pending = self._pending.pop(reference, None)
        if pending is None:
            logger.warning("No pending payment attempt for callback", reference=reference, outcome=outcome)
            return False

        future = pending.future
        if future.done():
            return False

        # Webhooks may arrive on a different thread than the waiting request
        future.get_loop().call_soon_threadsafe(_set_result, future, (outcome, message))
        logger.info("Payment attempt resolved", reference=reference, outcome=outcome)
        return True

    def pending_references(self) -> list[str]:
        return list(self._pending)


def _set_result(future: asyncio.Future, result: tuple[str, str]) -> None:
    if not future.done():
        future.set_result(result)


callback_registry = CallbackRegistry()
