"""
Plan Management Service

Creating, deleting and choosing the default plan, plus the list of plans
a user can switch between.
"""

import logging

from flask import current_app

from constants import DEFAULT_DAY_NAMES, MAX_LENGTHS
from models import MealPlan, MealPlanDay, PlanShare, UserPreferences
from .errors import AuthorizationError, NotFound, ValidationError
from .meal_plans import find_share

logger = logging.getLogger(__name__)

DEFAULT_MAX_PLANS = 3


def _max_plans():
    try:
        return current_app.config.get('MAX_PLANS_PER_USER', DEFAULT_MAX_PLANS)
    except RuntimeError:
        return DEFAULT_MAX_PLANS


def _require_user(user):
    if user is None:
        raise AuthorizationError('You must be signed in')


def owned_plans(storage, user):
    return storage.query(MealPlan, order_by=['created_at', 'id'], user_id=user.id)


def seed_default_days(storage, plan_id, user_id):
    """Insert Monday..Sunday as active days numbered from 0."""
    rows = [
        {
            'plan_id': plan_id,
            'user_id': user_id,
            'day_name': name,
            'order_index': idx,
            'is_active': True,
        }
        for idx, name in enumerate(DEFAULT_DAY_NAMES)
    ]
    return storage.insert_many(MealPlanDay, rows)


def create_plan(storage, user, name, seed_days=True):
    """
    Create a plan for ``user``. The first plan a user creates becomes
    their default.
    """
    _require_user(user)
    name = (name or '').strip()
    if not name:
        raise ValidationError('Plan name is required')
    if len(name) > MAX_LENGTHS['plan_name']:
        raise ValidationError(f"Plan name must be {MAX_LENGTHS['plan_name']} characters or fewer")

    existing = owned_plans(storage, user)
    limit = _max_plans()
    if len(existing) >= limit:
        raise ValidationError(f'You can only create up to {limit} meal plans')

    with storage.atomic():
        plan = storage.insert(MealPlan, user_id=user.id, name=name)
        if seed_days:
            seed_default_days(storage, plan.id, user.id)
    logger.info("User %s created plan %s", user.id, plan.id)

    if not existing:
        set_default_plan(storage, user, plan.id)
    return plan


def get_owned_plan(storage, user, plan_id):
    _require_user(user)
    plan = storage.first(MealPlan, id=plan_id)
    if plan is None or plan.user_id != user.id:
        raise NotFound('Plan not found')
    return plan


def delete_plan(storage, user, plan_id):
    """Delete an owned plan. A user's only plan cannot be deleted."""
    plan = get_owned_plan(storage, user, plan_id)
    plans = owned_plans(storage, user)
    if len(plans) <= 1:
        raise ValidationError('You must have at least one meal plan')

    remaining_ids = [p.id for p in plans if p.id != plan.id]
    default_id = get_default_plan_id(storage, user)
    storage.delete(MealPlan, id=plan.id)
    logger.info("User %s deleted plan %s", user.id, plan_id)

    if default_id == plan_id or default_id is None:
        set_default_plan(storage, user, remaining_ids[0])


def get_default_plan_id(storage, user):
    if user is None:
        return None
    prefs = storage.first(UserPreferences, user_id=user.id)
    return prefs.default_plan_id if prefs else None


def set_default_plan(storage, user, plan_id):
    """Make ``plan_id`` load when the user opens the planner without an id."""
    _require_user(user)
    plan = storage.first(MealPlan, id=plan_id)
    if plan is None:
        raise NotFound('Plan not found')
    if plan.user_id != user.id and find_share(storage, plan.id, user) is None:
        raise NotFound('Plan not found')

    storage.upsert(
        UserPreferences,
        {'user_id': user.id, 'default_plan_id': plan.id},
        conflict_keys=('user_id',),
    )
    return plan.id


def shared_plans_for(storage, user):
    """Plans shared with the user's email, with the granted permission."""
    if user is None or not user.email:
        return []
    shares = storage.query(PlanShare, shared_with_email=user.email.lower())
    plans = {p.id: p for p in storage.query(MealPlan, id={s.plan_id for s in shares})}
    return [
        {'id': s.plan_id, 'name': plans[s.plan_id].name, 'permission': s.permission, 'share_id': s.id}
        for s in shares
        if s.plan_id in plans
    ]


def list_plans(storage, user):
    """Owned plans, shared plans and the default plan id, for the plan switcher."""
    _require_user(user)
    return {
        'owned': [
            {
                'id': p.id,
                'name': p.name,
                'subtitle': p.subtitle,
                'is_public': p.is_public,
                'share_token': p.share_token,
            }
            for p in owned_plans(storage, user)
        ],
        'shared': shared_plans_for(storage, user),
        'default_plan_id': get_default_plan_id(storage, user),
    }
