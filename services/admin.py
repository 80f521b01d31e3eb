"""
Admin Moderation Service

Moderation of meals and users and the choice of featured public plan.
"""

import logging

from flask import current_app

from constants import FEATURED_PLAN_SETTING
from models import Meal, MealPlan, PlanShare, Settings, User
from .errors import NotFound, ValidationError
from .meal_plans import get_featured_plan_id

logger = logging.getLogger(__name__)


def is_admin(email):
    if not email:
        return False
    try:
        admins = current_app.config.get('ADMIN_EMAILS', set())
    except RuntimeError:
        return False
    return email.strip().lower() in admins


def require_admin(user):
    if user is None or not is_admin(user.email):
        # Hide the moderation surface entirely from everyone else
        raise NotFound()


def list_all_meals(storage):
    """Every meal, newest first, with the owner's email."""
    meals = storage.query(Meal, order_by=['created_at', 'id'], descending=True)
    emails = {u.id: u.email for u in storage.query(User, id={m.user_id for m in meals})}
    return [
        {
            'id': meal.id,
            'name': meal.name,
            'cuisine_type': meal.cuisine_type,
            'video_url': meal.video_url,
            'is_private': meal.is_private,
            'user_id': meal.user_id,
            'user_email': emails.get(meal.user_id),
            'created_at': meal.created_at.isoformat() if meal.created_at else None,
        }
        for meal in meals
    ]


def list_users(storage):
    """Every user with a count of the meals they own."""
    users = storage.query(User, order_by='created_at')
    counts = {}
    for meal in storage.query(Meal):
        counts[meal.user_id] = counts.get(meal.user_id, 0) + 1
    return [
        {
            'id': user.id,
            'email': user.email,
            'created_at': user.created_at.isoformat() if user.created_at else None,
            'meal_count': counts.get(user.id, 0),
        }
        for user in users
    ]


def delete_meal(storage, meal_id):
    storage.get(Meal, 'Meal not found', id=meal_id)
    storage.delete(Meal, id=meal_id)
    logger.info("Admin deleted meal %s", meal_id)


def make_meal_private(storage, meal_id):
    storage.get(Meal, 'Meal not found', id=meal_id)
    storage.update(Meal, {'id': meal_id}, {'is_private': True})
    logger.info("Admin made meal %s private", meal_id)


def delete_user(storage, user_id):
    """
    Delete a user and everything they own: meals (and their day
    placements), plans with their days, shares and checklist, and
    preferences. Shares granted to the user's email go too.
    """
    user = storage.get(User, 'User not found', id=user_id)
    email = user.email
    with storage.atomic():
        storage.delete(User, id=user_id)
        storage.delete(PlanShare, shared_with_email=email)
    logger.info("Admin deleted user %s", user_id)


def set_featured_plan(storage, plan_id):
    """Choose the public plan shown to signed-out visitors; None clears it."""
    if plan_id is not None:
        plan = storage.first(MealPlan, id=plan_id)
        if plan is None:
            raise NotFound('Plan not found')
        if not plan.is_public:
            raise ValidationError('Only public plans can be featured')
    value = str(plan_id) if plan_id is not None else None
    storage.upsert(Settings, {'key': FEATURED_PLAN_SETTING, 'value': value}, conflict_keys=('key',))
    logger.info("Featured plan set to %s", plan_id)
    return plan_id
