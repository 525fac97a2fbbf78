"""Application services - use case orchestration."""

from .analytics_service import AnalyticsService
from .eligibility_service import EligibilityService
from .events import DomainEventBus
from .notification_relay import NotificationRelay
from .notifier import OutboxNotifier
from .plan_service import PlanLifecycleService
from .product_config_service import ProductConfigService
from .suspension_handler import ProductSuspensionHandler
from .sweeper import ReconciliationSweeper

__all__ = [
    "AnalyticsService",
    "EligibilityService",
    "DomainEventBus",
    "NotificationRelay",
    "OutboxNotifier",
    "PlanLifecycleService",
    "ProductConfigService",
    "ProductSuspensionHandler",
    "ReconciliationSweeper",
]
