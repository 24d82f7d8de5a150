import logging

from ..domain.repositories import Notifier
from ..domain.services import OrderRef

logger = logging.getLogger(__name__)


def reminder_message(order: OrderRef) -> str:
    return (
        f"Reminder: order #{order.order_number} for {order.party_size} guests "
        f"is scheduled at {order.scheduled_at:%Y-%m-%d %H:%M}"
    )


def invoice_message(order: OrderRef) -> str:
    seated = f" since {order.seated_at:%H:%M}" if order.seated_at else ""
    return f"Invoice: order #{order.order_number} ({order.party_size} guests) seated{seated}; the bill is ready"


class LoggingNotifier(Notifier):
    """Stands in for SMS/e-mail delivery by writing the messages to the log."""

    async def send_reminder(self, order: OrderRef) -> None:
        logger.info("sending reminder to %s: %s", order.phone or order.email or "-", reminder_message(order))

    async def send_invoice(self, order: OrderRef) -> None:
        logger.info("sending invoice to %s: %s", order.phone or order.email or "-", invoice_message(order))
