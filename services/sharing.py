"""
Sharing Service

Public visibility with share tokens, and per-email view/edit grants.
"""

import logging
import secrets

from constants import EMAIL_RE, MAX_LENGTHS, SHARE_TOKEN_ALPHABET, SHARE_TOKEN_LENGTH, VALID_PERMISSIONS
from models import MealPlan, PlanShare
from .errors import NotFound, UniqueViolation, ValidationError
from .meal_plans import load_plan_days
from .plans import get_owned_plan

logger = logging.getLogger(__name__)

SHARED_PLAN_MISSING = 'This plan does not exist or is no longer public'


def generate_share_token(length=SHARE_TOKEN_LENGTH):
    """
    Random alphanumeric token. 62**12 values; collisions are not retried,
    the unique index on share_token would reject one.
    """
    return ''.join(secrets.choice(SHARE_TOKEN_ALPHABET) for _ in range(length))


def toggle_public(storage, user, plan_id):
    """
    Flip a plan between public and private. The first time it goes public
    it gets a share token; the token is kept when it goes private again
    so republishing reuses the same link.
    """
    plan = get_owned_plan(storage, user, plan_id)
    is_public = not plan.is_public
    share_token = plan.share_token
    if is_public and not share_token:
        share_token = generate_share_token()

    storage.update(MealPlan, {'id': plan.id}, {'is_public': is_public, 'share_token': share_token})
    logger.info("Plan %s is now %s", plan.id, 'public' if is_public else 'private')
    return {'is_public': is_public, 'share_token': share_token}


def list_shares(storage, user, plan_id):
    plan = get_owned_plan(storage, user, plan_id)
    return storage.query(PlanShare, order_by=['created_at', 'id'], descending=True, plan_id=plan.id)


def add_share(storage, user, plan_id, email, permission='view'):
    """Grant ``email`` access to an owned plan. Each email can be granted once."""
    plan = get_owned_plan(storage, user, plan_id)
    email = (email or '').strip().lower()
    if not email or len(email) > MAX_LENGTHS['email'] or not EMAIL_RE.match(email):
        raise ValidationError('Please enter a valid email address')
    if permission not in VALID_PERMISSIONS:
        raise ValidationError('Permission must be view or edit')

    try:
        share = storage.insert(PlanShare, plan_id=plan.id, shared_with_email=email, permission=permission)
    except UniqueViolation:
        raise ValidationError('This plan is already shared with this email')
    logger.info("Plan %s shared with %s (%s)", plan.id, email, permission)
    return share


def remove_share(storage, user, share_id):
    share = storage.first(PlanShare, id=share_id)
    if share is None:
        raise NotFound('Share not found')
    get_owned_plan(storage, user, share.plan_id)
    storage.delete(PlanShare, id=share_id)


def share_to_dict(share):
    return {
        'id': share.id,
        'plan_id': share.plan_id,
        'shared_with_email': share.shared_with_email,
        'permission': share.permission,
        'created_at': share.created_at.isoformat() if share.created_at else None,
    }


def load_shared_plan(storage, token):
    """Read-only view of a public plan by share token; only active days are included."""
    if not token:
        raise NotFound(SHARED_PLAN_MISSING)
    plan = storage.first(MealPlan, share_token=token, is_public=True)
    if plan is None:
        raise NotFound(SHARED_PLAN_MISSING)

    days = load_plan_days(storage, plan.id, active_only=True)
    return {
        'id': plan.id,
        'name': plan.name,
        'subtitle': plan.subtitle,
        'days': [day.to_dict() for day in days],
    }
