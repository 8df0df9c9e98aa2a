"""
Order event webhook.

The order service posts an event here when an order changes state:

    POST /webhooks/orders/completed
    {
        "user_id": "64f1...",
        "order_id": "6501...",
        "order_total": "1250.00",
        "status": "completed",            # or "confirmed"
        "payment_status": "paid"
    }

When ORDER_WEBHOOK_SECRET is set, the body must be signed:
X-Loyalty-Hmac-Sha256 = base64(HMAC-SHA256(secret, raw body)).
Production sets REQUIRE_WEBHOOK_SIGNATURE, so an unset secret there
rejects every event instead of accepting unsigned ones.

Deliveries may repeat; awarding is idempotent per order, so the handler
answers 200 for duplicates too.
"""
import base64
import hashlib
import hmac

from flask import Blueprint, current_app, jsonify, request

from ..services.order_awards import OrderAwardProcessor, OrderCompleted
from ..utils.errors import ErrorCode, bad_request, error_response

order_events_bp = Blueprint('order_events', __name__, url_prefix='/webhooks/orders')

SIGNATURE_HEADER = 'X-Loyalty-Hmac-Sha256'


def verify_webhook_signature(data: bytes, signature: str, secret: str) -> bool:
    """
    Verify an HMAC-SHA256 webhook signature.

    Args:
        data: Raw request body
        signature: Base64 signature from the request header
        secret: Shared webhook secret

    Returns:
        True if valid, False otherwise
    """
    if not secret or not signature:
        return False

    computed = base64.b64encode(
        hmac.new(secret.encode('utf-8'), data, hashlib.sha256).digest()
    ).decode()

    return hmac.compare_digest(computed, signature)


@order_events_bp.route('/completed', methods=['POST'])
def handle_order_completed():
    """
    Award points for a qualifying order.

    Flow:
    1. Verify signature (when a secret is configured; required in production)
    2. Parse the event (must be a JSON object)
    3. Skip orders that are not completed / confirmed+paid
    4. Award points (no-op for an already-awarded order)
    5. Refresh the member's digital card
    """
    secret = current_app.config.get('ORDER_WEBHOOK_SECRET')
    if not secret and current_app.config.get('REQUIRE_WEBHOOK_SIGNATURE'):
        current_app.logger.error('Order webhook rejected: ORDER_WEBHOOK_SECRET is not configured')
        return error_response('Webhook signing is not configured', ErrorCode.INVALID_SIGNATURE, 401, log_error=False)
    if secret:
        if not verify_webhook_signature(request.get_data(), request.headers.get(SIGNATURE_HEADER, ''), secret):
            current_app.logger.warning('Order webhook rejected: invalid signature')
            return error_response('Invalid signature', ErrorCode.INVALID_SIGNATURE, 401, log_error=False)

    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return bad_request('JSON object body is required')

    event = OrderCompleted.from_payload(data)
    outcome = OrderAwardProcessor().process(event)

    return jsonify({'success': True, **outcome})
