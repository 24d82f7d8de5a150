import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable

from ..domain.repositories import LifecycleRepository, Notifier
from ..domain.services import OrderRef
from ..models import OrderStatus
from ..utils.audit_log import AuditAction, emit_audit_log

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    cancelled: list[OrderRef] = field(default_factory=list)
    reminded: list[OrderRef] = field(default_factory=list)
    invoiced: list[OrderRef] = field(default_factory=list)
    # Order numbers whose notification raised; the rest of the sweep still went out.
    undelivered: list[int] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def cancelled_count(self) -> int:
        return len(self.cancelled)


@dataclass
class Delivery:
    sent: list[OrderRef] = field(default_factory=list)
    undelivered: list[int] = field(default_factory=list)


async def cancel_late_orders(
    repo: LifecycleRepository,
    *,
    now: datetime,
    grace_minutes: int,
) -> list[OrderRef]:
    cancelled = await repo.cancel_late_orders(grace_minutes=grace_minutes, now=now)
    if cancelled:
        logger.info("%d late orders were automatically cancelled", len(cancelled))
    for order in cancelled:
        emit_audit_log(
            action="order.autocancelled",
            initiator="system",
            order_number=order.order_number,
            party_size=order.party_size,
            scheduled_at=order.scheduled_at,
            status_from=OrderStatus.PENDING,
            status_to=OrderStatus.CANCELLED,
        )
    return cancelled


async def _deliver(
    orders: list[OrderRef],
    send: Callable[[OrderRef], Awaitable[None]],
    action: AuditAction,
) -> Delivery:
    """Send to each order on its own; a failure for one order does not hold back the others."""
    delivery = Delivery()
    for order in orders:
        try:
            await send(order)
        except Exception:
            logger.exception("%s failed for order #%d", action, order.order_number)
            delivery.undelivered.append(order.order_number)
            continue
        emit_audit_log(
            action=action,
            initiator="system",
            order_number=order.order_number,
            party_size=order.party_size,
            scheduled_at=order.scheduled_at,
        )
        delivery.sent.append(order)
    return delivery


async def send_reminders(
    repo: LifecycleRepository,
    notifier: Notifier,
    *,
    now: datetime,
    lead_hours: int,
) -> Delivery:
    due = await repo.find_orders_due_for_reminder(lead_hours=lead_hours, now=now)
    return await _deliver(due, notifier.send_reminder, "order.reminder_sent")


async def send_invoices(
    repo: LifecycleRepository,
    notifier: Notifier,
    *,
    now: datetime,
    seated_hours: int,
) -> Delivery:
    due = await repo.find_orders_due_for_invoice(seated_hours=seated_hours, now=now)
    return await _deliver(due, notifier.send_invoice, "order.invoice_sent")


async def run_lifecycle_sweeps(
    repo: LifecycleRepository,
    notifier: Notifier,
    *,
    now: datetime,
    grace_minutes: int = 15,
    reminder_lead_hours: int = 2,
    invoice_after_hours: int = 2,
) -> SweepReport:
    """
    One scheduler tick: auto-cancel, then reminders, then invoices.
    A sweep that raises is logged and recorded in the report; the others still run.
    Orders whose notification raised are listed in `undelivered`.
    """
    report = SweepReport()

    async def _cancel() -> None:
        report.cancelled = await cancel_late_orders(repo, now=now, grace_minutes=grace_minutes)

    async def _remind() -> None:
        delivery = await send_reminders(repo, notifier, now=now, lead_hours=reminder_lead_hours)
        report.reminded = delivery.sent
        report.undelivered.extend(delivery.undelivered)

    async def _invoice() -> None:
        delivery = await send_invoices(repo, notifier, now=now, seated_hours=invoice_after_hours)
        report.invoiced = delivery.sent
        report.undelivered.extend(delivery.undelivered)

    sweeps: list[tuple[str, Callable[[], Awaitable[None]]]] = [
        ("auto_cancel", _cancel),
        ("reminder", _remind),
        ("invoice", _invoice),
    ]
    for name, sweep in sweeps:
        try:
            await sweep()
        except Exception:
            logger.exception("lifecycle sweep %r failed", name)
            report.failed.append(name)
    return report
