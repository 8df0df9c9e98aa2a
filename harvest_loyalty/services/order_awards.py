"""
Order Award Processor.

Consumes order-completed events from the order service and awards points.
Delivery is at-least-once; the ledger's per-order idempotency is what
keeps a re-delivered event from paying out twice.

An order qualifies when it is completed, or confirmed and paid.

A bonus-points reward multiplies an order only if checkout confirmation
linked it to that order id before the order is awarded. A confirmed+paid
event that arrives first is awarded at the base rate and the late
confirmation is logged by CheckoutService.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..utils.exceptions import LoyaltyError
from .card_service import CardService
from .points_service import PointsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderCompleted:
    user_id: str
    order_id: str
    order_total: Any
    status: str
    payment_status: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> 'OrderCompleted':
        """
        Build from a JSON payload. Accepts snake_case or camelCase keys.

        Raises:
            LoyaltyError: the payload is not an object or a required field is missing
        """
        if not isinstance(data, Mapping):
            raise LoyaltyError('order event must be a JSON object', 'INVALID_REQUEST')

        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        event = cls(
            user_id=pick('user_id', 'userId'),
            order_id=pick('order_id', 'orderId'),
            order_total=pick('order_total', 'orderTotal', 'total'),
            status=str(pick('status') or '').lower(),
            payment_status=(str(pick('payment_status', 'paymentStatus') or '').lower() or None),
        )
        for field in ('user_id', 'order_id', 'order_total'):
            if getattr(event, field) in (None, ''):
                raise LoyaltyError(f'{field} is required', 'MISSING_FIELD')
        return event

    @property
    def qualifies(self) -> bool:
        if self.status == 'completed':
            return True
        return self.status == 'confirmed' and self.payment_status == 'paid'


class OrderAwardProcessor:
    """
    Usage:
        processor = OrderAwardProcessor()
        outcome = processor.process(OrderCompleted.from_payload(request.json))
    """

    def __init__(self, points_service: PointsService = None, card_service: CardService = None):
        self.points_service = points_service or PointsService()
        self.card_service = card_service or CardService()

    def process(self, event: OrderCompleted, now: datetime = None) -> Dict[str, Any]:
        if not event.qualifies:
            logger.info(
                'Order %s not qualifying for points (status=%s, payment=%s)',
                event.order_id, event.status, event.payment_status
            )
            return {'qualified': False, 'awarded': False, 'order_id': str(event.order_id)}

        result = self.points_service.award_for_order(
            event.user_id, event.order_id, event.order_total, now=now
        )

        card = None
        if result.awarded:
            card = self.card_service.refresh_card(event.user_id, now=now)

        return {
            'qualified': True,
            'order_id': str(event.order_id),
            **result.to_dict(),
            'card': card,
        }
