"""
Mock Notification Service

Simulates email sending for development.
No actual messages are sent - just logged and kept in ``sent``.
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from takeaway.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):
    """
    Mock notification service for development.

    Args:
        failure_rate: Probability of a simulated send failure (0.0-1.0)
        min_latency: Minimum simulated latency in seconds
        max_latency: Maximum simulated latency in seconds
    """

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.3,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.sent: list[dict[str, Optional[str]]] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"to": to_email, "subject": subject, "text": body_text})
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
