"""Tests for order confirmation emails."""

from unittest.mock import MagicMock, patch

import pytest

from takeaway.core.config import get_settings
from takeaway.services.notifications import (
    MockNotificationService,
    RealNotificationService,
    format_pence,
    render_order_confirmation,
)

ITEMS = [
    {"name": "Vegetable Spring Rolls (4)", "qty": 2, "unit_price_pence": 450},
    {"name": "Salt & Pepper Ribs", "qty": 1, "unit_price_pence": 650},
]


class TestRendering:
    """Tests for the message bodies."""

    def test_format_pence(self):
        assert format_pence(1234) == "£12.34"
        assert format_pence(5) == "£0.05"
        assert format_pence(900, "€") == "€9.00"

    def test_delivery_confirmation(self):
        subject, html, text = render_order_confirmation(
            restaurant_name="China Palace",
            order_id="ORDAB12CD34",
            customer_name="Sam",
            items=ITEMS,
            subtotal_pence=1550,
            delivery_fee_pence=230,
            total_pence=1780,
            mode="delivery",
            comment="Ring the bell",
        )
        assert subject == "Order Confirmation - ORDAB12CD34"
        assert "2 x Vegetable Spring Rolls (4) @ £4.50 = £9.00" in text
        assert "Sub-Total: £15.50" in text
        assert "Delivery Fee: £2.30" in text
        assert "Total: £17.80" in text
        assert "Mode: Delivery" in text
        assert "Comment: Ring the bell" in text
        assert "Salt &amp; Pepper Ribs" in html

    def test_collection_omits_delivery_fee(self):
        _, _, text = render_order_confirmation(
            restaurant_name="China Palace",
            order_id="ORD1",
            customer_name="Sam",
            items=ITEMS[:1],
            subtotal_pence=900,
            delivery_fee_pence=0,
            total_pence=900,
            mode="collection",
        )
        assert "Delivery Fee" not in text
        assert "Mode: Collection" in text
        assert "Comment" not in text


class TestMockNotificationService:
    """Tests for MockNotificationService."""

    async def test_send_order_confirmation(self, mock_notifications):
        result = await mock_notifications.send_order_confirmation(
            order_id="ORD1",
            customer_name="Sam",
            customer_email="sam@example.com",
            items=ITEMS,
            subtotal_pence=1550,
            delivery_fee_pence=0,
            total_pence=1550,
            mode="collection",
        )
        assert result.success is True
        assert result.provider == "mock"
        assert result.message_id.startswith("email_mock_")
        assert mock_notifications.sent[0]["to"] == "sam@example.com"
        assert mock_notifications.sent[0]["subject"] == "Order Confirmation - ORD1"

    async def test_simulated_failure(self):
        service = MockNotificationService(failure_rate=1.0, max_latency=0.0)
        result = await service.send_email("sam@example.com", "Hi", "<p>Hi</p>")
        assert result.success is False
        assert service.sent == []


class TestRealNotificationService:
    """Tests for RealNotificationService with SendGrid mocked."""

    @pytest.fixture
    def sendgrid_env(self, monkeypatch):
        monkeypatch.setenv("SENDGRID_API_KEY", "SG.test")
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    async def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
        get_settings.cache_clear()
        try:
            service = RealNotificationService()
        finally:
            get_settings.cache_clear()

        result = await service.send_email("sam@example.com", "Hi", "<p>Hi</p>")
        assert result.success is False
        assert result.error_message == "SendGrid not configured"
        assert await service.health_check() is False

    async def test_send_email(self, sendgrid_env):
        with patch("takeaway.services.notifications.real.SendGridAPIClient") as client_cls:
            client_cls.return_value.send.return_value = MagicMock(
                status_code=202, headers={"X-Message-Id": "abc123"}
            )
            service = RealNotificationService()
            result = await service.send_email("sam@example.com", "Hi", "<p>Hi</p>", "Hi")

        assert result.success is True
        assert result.message_id == "abc123"
        assert result.provider == "sendgrid"

    async def test_send_error_absorbed(self, sendgrid_env):
        with patch("takeaway.services.notifications.real.SendGridAPIClient") as client_cls:
            client_cls.return_value.send.side_effect = RuntimeError("HTTP Error 403")
            result = await RealNotificationService().send_email("sam@example.com", "Hi", "<p>Hi</p>")

        assert result.success is False
        assert result.error_message == "HTTP Error 403"
