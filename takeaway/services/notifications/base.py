"""
Notification Service Abstract Base Class

Defines the interface for customer emails (order confirmations). Supports
both Mock (development) and Real (SendGrid) implementations; both render
the same message bodies from this module.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from html import escape
from typing import Any, Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def format_pence(pence: int, symbol: str = "£") -> str:
    """Render integer pence as a currency string (e.g. 1234 -> £12.34)."""
    return f"{symbol}{pence / 100:.2f}"


def render_order_confirmation(
    restaurant_name: str,
    order_id: str,
    customer_name: str,
    items: list[dict[str, Any]],
    subtotal_pence: int,
    delivery_fee_pence: int,
    total_pence: int,
    mode: str,
    comment: Optional[str] = None,
    currency_symbol: str = "£",
) -> tuple[str, str, str]:
    """
    Build the confirmation email.

    Args:
        items: Order lines with ``name``, ``qty`` and ``unit_price_pence``

    Returns:
        (subject, html_body, text_body)
    """
    mode_label = "Delivery" if mode == "delivery" else "Collection"
    subject = f"Order Confirmation - {order_id}"

    lines_text = []
    rows_html = []
    for item in items:
        unit = item["unit_price_pence"]
        qty = item["qty"]
        lines_text.append(
            f"  {qty} x {item['name']} @ {format_pence(unit, currency_symbol)}"
            f" = {format_pence(unit * qty, currency_symbol)}"
        )
        rows_html.append(
            f"<tr><td>{escape(item['name'])}</td><td>{qty}</td>"
            f"<td>{format_pence(unit, currency_symbol)}</td>"
            f"<td>{format_pence(unit * qty, currency_symbol)}</td></tr>"
        )

    totals_text = [f"Sub-Total: {format_pence(subtotal_pence, currency_symbol)}"]
    if delivery_fee_pence > 0:
        totals_text.append(f"Delivery Fee: {format_pence(delivery_fee_pence, currency_symbol)}")
    totals_text.append(f"Total: {format_pence(total_pence, currency_symbol)}")

    text_body = "\n".join([
        f"Dear {customer_name},",
        f"Thank you for your order! Your order number is: {order_id}",
        "",
        *lines_text,
        "",
        *totals_text,
        f"Mode: {mode_label}",
        *([f"Comment: {comment}"] if comment else []),
        "",
        f"We'll notify you when your order is ready for {mode_label.lower()}.",
        f"Best regards, {restaurant_name} Team",
    ])

    html_body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Order Confirmation - {escape(restaurant_name)}</h2>
        <p>Dear {escape(customer_name)},</p>
        <p>Thank you for your order! Your order number is: <strong>{order_id}</strong></p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            <tr><th>Item</th><th>Qty</th><th>Price</th><th>Total</th></tr>
            {"".join(rows_html)}
        </table>
        <div style="text-align: right; margin: 20px 0;">
            {"".join(f"<p><strong>{escape(t)}</strong></p>" for t in totals_text)}
        </div>
        <p><strong>Mode: {mode_label}</strong></p>
        {f"<p><strong>Comment:</strong> {escape(comment)}</p>" if comment else ""}
        <p>Best regards,<br>{escape(restaurant_name)} Team</p>
    </div>
    """
    return subject, html_body, text_body


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    async def send_order_confirmation(
        self,
        order_id: str,
        customer_name: str,
        customer_email: str,
        items: list[dict[str, Any]],
        subtotal_pence: int,
        delivery_fee_pence: int,
        total_pence: int,
        mode: str,
        comment: Optional[str] = None,
        restaurant_name: str = "China Palace",
        currency_symbol: str = "£",
    ) -> NotificationResult:
        """Email an itemised order confirmation."""
        subject, body_html, body_text = render_order_confirmation(
            restaurant_name=restaurant_name,
            order_id=order_id,
            customer_name=customer_name,
            items=items,
            subtotal_pence=subtotal_pence,
            delivery_fee_pence=delivery_fee_pence,
            total_pence=total_pence,
            mode=mode,
            comment=comment,
            currency_symbol=currency_symbol,
        )
        return await self.send_email(customer_email, subject, body_html, body_text)

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
