"""
Loyalty API endpoints for the storefront.

Handles:
- Loyalty status and points history
- Digital loyalty card
- Rewards catalog, available and usable rewards
- Reward redemption

All member endpoints identify the caller by the X-User-Id header.
Service errors (NotFound, InsufficientPoints, ...) are turned into
error responses by the app-level handler.
"""
from flask import Blueprint, g, jsonify, request

from ..middleware import require_user
from ..services.card_service import CardService
from ..services.points_service import PointsService
from ..services.redemption_service import RedemptionService
from ..services.rewards_catalog import get_catalog
from ..utils.errors import ErrorCode, bad_request

loyalty_bp = Blueprint('loyalty', __name__, url_prefix='/api/loyalty')

MAX_HISTORY_PAGE = 200


@loyalty_bp.route('/status', methods=['GET'])
@require_user
def get_loyalty_status():
    """
    Loyalty status for the current user.

    Returns:
        points, purchase_count, total_spent, tier, is_eligible, card_issued
        plus this month's spend and the next tier target
    """
    status = PointsService().get_status(g.user_id)
    return jsonify({'success': True, 'loyalty': status})


@loyalty_bp.route('/card', methods=['GET'])
@require_user
def get_digital_card():
    """
    Digital loyalty card, issued on first view once the user has a tier.

    Users without a tier get an inactive preview card.
    """
    card = CardService().get_or_issue_card(g.user_id, member_since=g.user_created_at)
    return jsonify({'success': True, 'card': card})


@loyalty_bp.route('/history', methods=['GET'])
@require_user
def get_points_history():
    """
    Points history, newest first.

    Query params:
        limit: Page size (default 50, max 200)
        offset: Entries to skip (default 0)
    """
    try:
        limit = min(int(request.args.get('limit', 50)), MAX_HISTORY_PAGE)
        offset = int(request.args.get('offset', 0))
    except ValueError:
        return bad_request('limit and offset must be integers')
    if limit < 1 or offset < 0:
        return bad_request('limit must be positive and offset non-negative')

    history = PointsService().get_history(g.user_id, limit=limit, offset=offset)
    return jsonify({'success': True, **history, 'limit': limit, 'offset': offset})


# ==============================================================================
# REWARDS
# ==============================================================================

@loyalty_bp.route('/rewards/catalog', methods=['GET'])
def list_catalog():
    """Full rewards catalog. Public."""
    catalog = get_catalog()
    return jsonify({
        'rewards': [reward.to_dict() for reward in catalog],
        'count': len(catalog),
    })


@loyalty_bp.route('/rewards/available', methods=['GET'])
@require_user
def list_available_rewards():
    """
    Catalog annotated with affordability for the current user.

    Query params:
        affordable_only: Only rewards the user can redeem now (default false)
    """
    affordable_only = request.args.get('affordable_only', 'false').lower() == 'true'
    result = RedemptionService().list_available_rewards(g.user_id, affordable_only=affordable_only)
    return jsonify({'success': True, **result, 'count': len(result['rewards'])})


@loyalty_bp.route('/rewards/usable', methods=['GET'])
@require_user
def list_usable_rewards():
    """Redeemed rewards that have not been used on an order yet."""
    rewards = RedemptionService().list_usable_rewards(g.user_id)
    return jsonify({
        'success': True,
        'rewards': [reward.to_dict() for reward in rewards],
        'count': len(rewards),
    })


@loyalty_bp.route('/rewards/redeem', methods=['POST'])
@require_user
def redeem_reward():
    """
    Redeem points for a catalog reward.

    JSON body:
        reward_name: Catalog reward name (required)

    Returns:
        The new usable reward and the remaining balance
    """
    data = request.get_json(silent=True) or {}
    reward_name = data.get('reward_name') or data.get('rewardName')
    if not reward_name:
        return bad_request('reward_name is required', ErrorCode.MISSING_FIELD)

    usable = RedemptionService().redeem(g.user_id, reward_name)
    status = PointsService().get_status(g.user_id)

    return jsonify({
        'success': True,
        'message': f'Redeemed {usable.reward_name}',
        'reward': usable.to_dict(),
        'points': status['points'],
    }), 201
