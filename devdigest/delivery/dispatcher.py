"""
Dispatcher - deliver one digest to every recipient.

Each recipient runs its own retry state machine (see DeliveryState):
attempts are strictly sequential per recipient, with exponential backoff
between them, and exhaustion is recorded as a terminal failure for this cycle
only. Recipients are independent: one recipient exhausting its retries never
stops delivery to the others. Different recipients overlap up to the
concurrency cap so the relay is not hammered into rate limiting.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from devdigest.config import (
    DELIVERY_ATTEMPT_TIMEOUT,
    DELIVERY_BASE_DELAY,
    DELIVERY_CONCURRENCY,
    DELIVERY_MAX_ATTEMPTS,
    DELIVERY_MAX_DELAY,
)
from devdigest.delivery.models import (
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryState,
    DispatchReport,
)
from devdigest.delivery.smtp import DeliveryTransport
from devdigest.digest.models import Digest
from devdigest.errors import DeliveryError
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter, log_event, time_block
from devdigest.utils.redaction import redact_email

logger = get_logger(__name__)


@dataclass
class RetryPolicy:
    """Bounded retry with exponential backoff: delay = base_delay * 2**attempt."""

    max_attempts: int = DELIVERY_MAX_ATTEMPTS
    base_delay: float = DELIVERY_BASE_DELAY
    max_delay: float = DELIVERY_MAX_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, failed_attempt: int) -> float:
        """
        Backoff before the next attempt.

        Args:
            failed_attempt: 0-based index of the attempt that just failed
        """
        return min(self.base_delay * (2**failed_attempt), self.max_delay)


class Dispatcher:
    """Delivers a Digest to a recipient snapshot with isolated per-recipient retries."""

    def __init__(
        self,
        transport: DeliveryTransport,
        policy: RetryPolicy | None = None,
        concurrency: int = DELIVERY_CONCURRENCY,
        attempt_timeout: float | None = DELIVERY_ATTEMPT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self.concurrency = concurrency
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep

    async def dispatch(self, digest: Digest, recipients: Iterable[str]) -> DispatchReport:
        """
        Deliver ``digest`` to every recipient.

        Returns:
            DispatchReport with one outcome per distinct recipient, in input order

        Side Effects:
            - One transport call per attempt
            - Logs delivered and failed outcomes
        """
        unique = list(dict.fromkeys(recipients))
        if not unique:
            return DispatchReport()

        logger.info("Sending newsletter to %d subscribers...", len(unique))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(recipient: str) -> DeliveryOutcome:
            async with semaphore:
                return await self.deliver(digest, recipient)

        with time_block("dispatch.latency"):
            outcomes = await asyncio.gather(*(_bounded(r) for r in unique))

        report = DispatchReport(outcomes=tuple(outcomes))
        log_event("dispatch.completed", delivered=report.delivered, failed=report.failed)
        logger.info(
            "Newsletter delivery process completed: %d delivered, %d failed",
            report.delivered,
            report.failed,
        )
        return report

    async def deliver(self, digest: Digest, recipient: str) -> DeliveryOutcome:
        """Run one recipient's state machine to a terminal state. Never raises."""
        attempt = DeliveryAttempt(recipient=recipient)

        while True:
            attempt.transition(DeliveryState.ATTEMPTING)
            try:
                await self._attempt(digest, recipient)
            except Exception as e:
                attempt.last_error = str(e) or type(e).__name__
                counter("delivery.attempt_failed")

                if attempt.attempts >= self.policy.max_attempts:
                    attempt.transition(DeliveryState.EXHAUSTED)
                    counter("delivery.exhausted")
                    logger.error(
                        "Error sending to %s after %d attempts: %s",
                        redact_email(recipient),
                        attempt.attempts,
                        attempt.last_error,
                    )
                    log_event(
                        "delivery.exhausted",
                        recipient=redact_email(recipient),
                        attempts=attempt.attempts,
                        error=attempt.last_error,
                    )
                    return attempt.outcome()

                delay = self.policy.delay_for(attempt.attempts - 1)
                attempt.transition(DeliveryState.BACKOFF)
                attempt.delays.append(delay)
                logger.warning(
                    "Delivery to %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    redact_email(recipient),
                    attempt.attempts,
                    self.policy.max_attempts,
                    delay,
                    attempt.last_error,
                )
                await self._sleep(delay)
                continue

            attempt.transition(DeliveryState.DELIVERED)
            counter("delivery.delivered")
            log_event(
                "delivery.delivered",
                recipient=redact_email(recipient),
                attempts=attempt.attempts,
            )
            return attempt.outcome()

    async def _attempt(self, digest: Digest, recipient: str) -> None:
        send = self.transport.send(recipient, digest.subject, digest.html, digest.text)
        if self.attempt_timeout is not None:
            result = await asyncio.wait_for(send, timeout=self.attempt_timeout)
        else:
            result = await send
        if result is False:
            raise DeliveryError("transport reported failure")
