"""
Checkout discount endpoints.

POST /api/checkout/discount is a preview and may be called as often as
the cart changes; removing a promo or reward is just leaving it out of
the next call. POST /api/checkout/confirm is called by the order flow
once the order has been placed and paid, and is what consumes the reward.
"""
from flask import Blueprint, g, jsonify, request

from ..middleware import require_user
from ..services.checkout_service import CheckoutService
from ..utils.errors import ErrorCode, bad_request

checkout_bp = Blueprint('checkout', __name__, url_prefix='/api/checkout')


def _reward_id(data):
    raw = data.get('reward_id', data.get('rewardId'))
    if raw in (None, ''):
        return None
    return int(raw)


@checkout_bp.route('/discount', methods=['POST'])
@require_user
def compose_checkout_discount():
    """
    Compose the checkout discount.

    JSON body:
        subtotal: Cart subtotal (required)
        promo_code: Promo code to apply (optional)
        reward_id: Usable reward id to apply (optional)

    Returns:
        discount_amount, free_shipping, net_total, applied sources and,
        for a rejected promo, promo_rejected_reason
    """
    data = request.get_json(silent=True) or {}
    if data.get('subtotal') is None:
        return bad_request('subtotal is required', ErrorCode.MISSING_FIELD)

    try:
        reward_id = _reward_id(data)
    except (TypeError, ValueError):
        return bad_request('reward_id must be an integer')

    discount = CheckoutService().compose_for_user(
        g.user_id,
        data['subtotal'],
        promo_code=data.get('promo_code') or data.get('promoCode'),
        reward_id=reward_id,
    )
    return jsonify({'success': True, 'discount': discount.to_dict()})


@checkout_bp.route('/confirm', methods=['POST'])
@require_user
def confirm_checkout():
    """
    Mark the applied reward consumed after the order is placed.

    JSON body:
        reward_id: Usable reward used on the order (optional)
        order_id: Order id (optional, links bonus rewards to the order)
        promo_code: Promo code used on the order (optional)
    """
    data = request.get_json(silent=True) or {}
    try:
        reward_id = _reward_id(data)
    except (TypeError, ValueError):
        return bad_request('reward_id must be an integer')

    result = CheckoutService().confirm_checkout(
        g.user_id,
        reward_id=reward_id,
        order_id=data.get('order_id') or data.get('orderId'),
        promo_code=data.get('promo_code') or data.get('promoCode'),
    )
    return jsonify({'success': True, **result})
