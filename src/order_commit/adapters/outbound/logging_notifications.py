from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import structlog
from returns.result import Failure, Result, Success

from order_commit.core.domain.model.errors import CheckoutError, NotificationError
from order_commit.core.ports.outbound.notifications import (
    Notification,
    NotificationSink,
    OrderCancelled,
    OrderPlaced,
    SubOrderStatusChanged,
)

logger = structlog.get_logger(__name__)


@dataclass
class LoggingNotificationSink(NotificationSink):
    """Emits notifications as structured log events.

    With `record` set, delivered events are also kept in `sent`.
    """

    fail: bool = False
    record: bool = False
    sent: List[Notification] = field(default_factory=list)

    def notify(self, event: Notification) -> Result[None, CheckoutError]:
        if self.fail:
            return Failure(NotificationError(message="notification sink is down"))

        if isinstance(event, OrderPlaced):
            logger.info(
                "order_placed",
                order_number=event.order_number.value,
                vendors=[v.value for v in event.vendor_ids],
                total=str(event.total.amount),
            )
        elif isinstance(event, SubOrderStatusChanged):
            logger.info(
                "sub_order_status_changed",
                order_number=event.order_number.value,
                vendor_id=event.vendor_id.value,
                status=event.status.value,
                order_status=event.order_status.value,
            )
        elif isinstance(event, OrderCancelled):
            logger.info(
                "order_cancelled",
                order_number=event.order_number.value,
                reason=event.reason,
            )
        if self.record:
            self.sent.append(event)
        return Success(None)
