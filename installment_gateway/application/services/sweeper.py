"""Reconciliation sweeper - periodic overdue detection and reminders."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List

import structlog

from installment_gateway.application.dto import SweepReport
from installment_gateway.application.services.events import DomainEventBus
from installment_gateway.application.services.notifier import OutboxNotifier
from installment_gateway.core.metrics import (
    record_order_conflict,
    record_sweep_notification,
    record_sweep_order,
    track_sweep_duration,
)
from installment_gateway.domain.entities import (
    NotificationType,
    Order,
    OrderStatus,
    OverdueTranchesDetected,
    Tranche,
    TrancheStatus,
)
from installment_gateway.domain.exceptions import ConcurrentModificationException
from installment_gateway.domain.interfaces import OrderRepository
from installment_gateway.domain.lifecycle import transition_order, transition_tranche
from installment_gateway.service.installments import (
    InstallmentSettings,
    installment_settings,
    utcnow,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _TrancheNotice:
    kind: str  # "overdue" or "reminder"
    index: int
    tranche: Tranche


class ReconciliationSweeper:
    """
    Visits every confirmed, active or overdue installment order.

    Per order: flag tranches whose due date passed, remind the buyer of
    tranches due within the horizon, recompute the aggregates, derive
    the order status from the overdue count and persist only if
    something changed. Stamps make each notice fire once per tranche.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        notifier: OutboxNotifier,
        event_bus: DomainEventBus,
        settings: InstallmentSettings = installment_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._order_repo = order_repository
        self._notifier = notifier
        self._event_bus = event_bus
        self._settings = settings
        self._clock = clock

    async def run(self, triggered_by: str = "scheduler") -> SweepReport:
        """Run one reconciliation pass on behalf of ``triggered_by``."""
        report = SweepReport()
        now = self._clock()

        with track_sweep_duration():
            orders = await self._order_repo.list_sweepable()
            for order in orders:
                await self._process_order(order, now, report)

        logger.info(
            "sweep_completed",
            triggered_by=triggered_by,
            processed_orders=report.processed_orders,
            reminders_sent=report.reminders_sent,
            overdue_warnings_sent=report.overdue_warnings_sent,
            suspended_products=report.suspended_products,
            conflicts=report.conflicts,
        )
        return report

    async def _process_order(self, order: Order, now: datetime, report: SweepReport) -> None:
        report.processed_orders += 1
        record_sweep_order()

        outcome = self._reconcile(order, now)
        if outcome is None:
            return

        changed, notices = outcome
        if changed:
            try:
                await self._order_repo.update(order)
            except ConcurrentModificationException:
                report.conflicts += 1
                report.conflicted_order_ids.append(str(order.id))
                record_order_conflict("sweeper")
                logger.warning(
                    "sweep_order_conflict",
                    order_id=str(order.id),
                    version=order.version,
                )
                return

        for notice in notices:
            await self._send_notice(order, notice)
            if notice.kind == "overdue":
                report.overdue_warnings_sent += 1
            else:
                report.reminders_sent += 1
            record_sweep_notification(notice.kind)

        plan = order.installment_plan
        if plan.overdue_count > 0 and order.primary_product_id is not None:
            results = await self._event_bus.publish(
                OverdueTranchesDetected(
                    order_id=order.id,
                    product_id=order.primary_product_id,
                    seller_id=order.seller_id,
                    customer_id=order.customer_id,
                    overdue_count=plan.overdue_count,
                    occurred_at=now,
                )
            )
            report.suspended_products += sum(1 for result in results if result is True)

    def _reconcile(self, order: Order, now: datetime):
        """
        Apply the per-tranche pass to ``order`` in memory.

        Returns:
            ``(changed, notices)``, or None when the order has no plan
        """
        plan = order.installment_plan
        if plan is None or not plan.schedule:
            return None

        before = (order.status, plan.to_dict())
        horizon = now + timedelta(days=self._settings.reminder_horizon_days)
        notices: List[_TrancheNotice] = []

        for index, tranche in enumerate(plan.schedule):
            # A proof under review does not stop the tranche going overdue; it stays attached
            if not tranche.is_open:
                continue

            if tranche.due_date <= now:
                if tranche.status != TrancheStatus.OVERDUE:
                    transition_tranche(tranche, index, TrancheStatus.OVERDUE)
                if tranche.overdue_notified_at is None:
                    tranche.overdue_notified_at = now
                    notices.append(_TrancheNotice("overdue", index, tranche))
            elif tranche.due_date <= horizon and tranche.reminder_sent_at is None:
                tranche.reminder_sent_at = now
                notices.append(_TrancheNotice("reminder", index, tranche))

        order.sync_amounts()
        if plan.overdue_count > 0:
            transition_order(order, OrderStatus.OVERDUE_INSTALLMENT)
        else:
            transition_order(order, OrderStatus.INSTALLMENT_ACTIVE)

        changed = before != (order.status, plan.to_dict())
        return changed, notices

    async def _send_notice(self, order: Order, notice: _TrancheNotice) -> None:
        seller_id = order.seller_id
        metadata = {
            "order_id": str(order.id),
            "status": order.status.value,
            "tranche_index": notice.index,
            "amount_cents": notice.tranche.amount_cents,
            "due_date": notice.tranche.due_date.isoformat(),
        }

        if notice.kind == "reminder":
            await self._notifier.notify(
                recipient_id=order.customer_id,
                actor_id=seller_id or order.customer_id,
                type=NotificationType.DUE_REMINDER,
                product_id=order.primary_product_id,
                metadata=metadata,
            )
            return

        await self._notifier.notify(
            recipient_id=order.customer_id,
            actor_id=seller_id or order.customer_id,
            type=NotificationType.OVERDUE_WARNING,
            product_id=order.primary_product_id,
            metadata=metadata,
        )
        if seller_id:
            await self._notifier.notify(
                recipient_id=seller_id,
                actor_id=order.customer_id,
                type=NotificationType.OVERDUE_WARNING,
                product_id=order.primary_product_id,
                metadata=metadata,
            )
