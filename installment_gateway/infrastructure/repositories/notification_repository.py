"""SQL implementation of NotificationRepository (the outbox)."""

from typing import List
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from installment_gateway.domain.entities import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from installment_gateway.domain.interfaces import NotificationRepository
from installment_gateway.infrastructure.database.models import NotificationModel
from installment_gateway.service.installments import ensure_utc


class SqlNotificationRepository(NotificationRepository):
    """
    SQLAlchemy implementation of the notification outbox.

    Inserts run inside a SAVEPOINT so a failed insert can be caught by
    the caller without poisoning the surrounding transaction.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, notification: Notification) -> Notification:
        """Persist a notification to the outbox."""
        model = NotificationModel(
            id=str(notification.id),
            recipient_id=notification.recipient_id,
            actor_id=notification.actor_id,
            product_id=str(notification.product_id) if notification.product_id else None,
            type=notification.type.value,
            payload=notification.metadata,
            status=notification.status.value,
            attempts=notification.attempts,
            last_attempt_at=notification.last_attempt_at,
            created_at=notification.created_at,
        )

        async with self._session.begin_nested():
            self._session.add(model)
            await self._session.flush()

        return notification

    async def update(self, notification: Notification) -> Notification:
        """Update the delivery state of an outbox record."""
        stmt = select(NotificationModel).where(
            NotificationModel.id == str(notification.id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            raise ValueError(f"Notification {notification.id} not found")

        model.status = notification.status.value
        model.attempts = notification.attempts
        model.last_attempt_at = notification.last_attempt_at

        await self._session.flush()

        return notification

    async def get_pending(self, limit: int = 100) -> List[Notification]:
        """Retrieve pending notifications for delivery, oldest first."""
        stmt = (
            select(NotificationModel)
            .where(
                or_(
                    NotificationModel.status == NotificationStatus.PENDING.value,
                    NotificationModel.status == NotificationStatus.RETRYING.value,
                )
            )
            .order_by(NotificationModel.created_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: NotificationModel) -> Notification:
        """Convert database model to domain entity."""
        return Notification(
            id=UUID(str(model.id)),
            recipient_id=model.recipient_id,
            actor_id=model.actor_id,
            product_id=UUID(str(model.product_id)) if model.product_id else None,
            type=NotificationType(model.type),
            metadata=dict(model.payload or {}),
            status=NotificationStatus(model.status),
            attempts=model.attempts,
            last_attempt_at=ensure_utc(model.last_attempt_at),
            created_at=ensure_utc(model.created_at),
        )
