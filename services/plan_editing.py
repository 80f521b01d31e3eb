"""
Plan Editing Service

Day and day-meal mutations against a loaded MealPlanStore. Each one
checks edit permission, writes to storage and refetches the store.
Local optimistic changes are rolled back exactly when a write fails.

Concurrent editors are last-write-wins; there is no conflict detection.
"""

import logging

from constants import DEFAULT_PLAN_TITLE, MAX_LENGTHS
from models import DayMeal, Meal, MealPlan, MealPlanDay
from .errors import AuthorizationError, NotFound, StorageError, UniqueViolation, ValidationError
from .meal_plans import PlannedMeal, move_item, renumbered

logger = logging.getLogger(__name__)

DUPLICATE_MEAL_MESSAGE = 'This meal is already in this day'


def require_edit(store):
    if store.plan_id is None:
        raise NotFound(store.error or 'Plan not found')
    if not store.can_edit:
        raise AuthorizationError('You do not have permission to edit this plan')


def _require_day(store, day_id):
    require_edit(store)
    day = store.find_day(day_id)
    if day is None:
        raise NotFound('Day not found')
    return day


def _clean_day_name(day_name):
    day_name = (day_name or '').strip()
    if not day_name:
        raise ValidationError('Day name cannot be empty')
    if len(day_name) > MAX_LENGTHS['day_name']:
        raise ValidationError(f"Day name must be {MAX_LENGTHS['day_name']} characters or fewer")
    return day_name


def next_order_index(rows):
    """One past the highest order_index, or 0 when there are no rows."""
    if not rows:
        return 0
    return max(row.order_index for row in rows) + 1


# ============================================
# PLAN DETAILS
# ============================================

def update_plan_details(store, name, subtitle=None):
    """Rename the plan. A blank name falls back to the default title."""
    require_edit(store)
    name = (name or '').strip() or DEFAULT_PLAN_TITLE
    subtitle = (subtitle or '').strip() or None
    if len(name) > MAX_LENGTHS['plan_name']:
        raise ValidationError(f"Plan name must be {MAX_LENGTHS['plan_name']} characters or fewer")
    if subtitle and len(subtitle) > MAX_LENGTHS['plan_subtitle']:
        raise ValidationError(f"Subtitle must be {MAX_LENGTHS['plan_subtitle']} characters or fewer")

    store.storage.update(MealPlan, {'id': store.plan_id}, {'name': name, 'subtitle': subtitle})
    return store.refetch()


# ============================================
# DAYS
# ============================================

def add_day(store, day_name):
    require_edit(store)
    day_name = _clean_day_name(day_name)
    existing = store.storage.query(MealPlanDay, plan_id=store.plan_id)
    user_id = store.user.id if store.user else None
    day = store.storage.insert(
        MealPlanDay,
        plan_id=store.plan_id,
        user_id=user_id,
        day_name=day_name,
        order_index=next_order_index(existing),
        is_active=True,
    )
    store.refetch()
    return day.id


def rename_day(store, day_id, day_name):
    _require_day(store, day_id)
    day_name = _clean_day_name(day_name)
    store.storage.update(MealPlanDay, {'id': day_id}, {'day_name': day_name})
    return store.refetch()


def set_day_active(store, day_id, is_active):
    """Show or hide a day in the main plan view. Hidden days keep their meals."""
    _require_day(store, day_id)
    store.storage.update(MealPlanDay, {'id': day_id}, {'is_active': bool(is_active)})
    return store.refetch()


def delete_day(store, day_id):
    _require_day(store, day_id)
    store.storage.delete(MealPlanDay, id=day_id)
    return store.refetch()


# ============================================
# MEALS WITHIN A DAY
# ============================================

def _visible_meal(store, meal_id):
    meal = store.storage.first(Meal, id=meal_id)
    if meal is None:
        raise NotFound('Meal not found')
    user_id = store.user.id if store.user else None
    if meal.is_private and meal.user_id != user_id:
        raise NotFound('Meal not found')
    return meal


def _check_not_in_day(day, meal_id):
    # Fast path only; the (day, meal) unique constraint is authoritative
    if any(meal.id == meal_id for meal in day.meals):
        raise ValidationError(DUPLICATE_MEAL_MESSAGE)


def _insert_day_meal(store, day_id, meal_id, order_index):
    try:
        return store.storage.insert(DayMeal, day_id=day_id, meal_id=meal_id, order_index=order_index)
    except UniqueViolation:
        raise ValidationError(DUPLICATE_MEAL_MESSAGE)


def add_meal_to_day(store, day_id, meal_id):
    """Append a meal to the end of a day."""
    day = _require_day(store, day_id)
    _check_not_in_day(day, meal_id)
    _visible_meal(store, meal_id)

    row = _insert_day_meal(store, day_id, meal_id, next_order_index(day.meals))
    store.refetch()
    return row.id


def drop_meal_on_day(store, day_id, meal_id):
    """
    Append a meal to a day, showing it locally before the insert lands.
    The placeholder has no junction id until the refetch replaces it.
    """
    day = _require_day(store, day_id)
    _check_not_in_day(day, meal_id)
    meal = _visible_meal(store, meal_id)

    order_index = next_order_index(day.meals)
    placeholder = PlannedMeal(
        day_meal_id=None,
        order_index=order_index,
        id=meal.id,
        user_id=meal.user_id,
        name=meal.name,
        ingredients=meal.ingredients,
        instructions=meal.instructions,
        video_url=meal.video_url,
        cuisine_type=meal.cuisine_type,
        is_private=meal.is_private,
    )

    try:
        with store.optimistic(day_id, lambda meals: meals + [placeholder]):
            row = _insert_day_meal(store, day_id, meal_id, order_index)
    except StorageError:
        logger.exception("Error adding meal %s to day %s", meal_id, day_id)
        raise
    store.refetch()
    return row.id


def remove_meal_from_day(store, day_meal_id):
    """Remove one assignment. Remaining meals keep their order_index values."""
    require_edit(store)
    day, _meal = store.find_day_meal(day_meal_id)
    if day is None:
        raise NotFound('Meal is not in this plan')
    store.storage.delete(DayMeal, id=day_meal_id)
    return store.refetch()


def reorder_day_meals(store, day_id, old_index, new_index):
    """
    Move the meal at ``old_index`` to ``new_index`` within a day.

    The new order shows locally first, then every row of the day is
    rewritten to its position in a single transaction. On failure the
    local list goes back to exactly what it was and the error propagates.
    """
    day = _require_day(store, day_id)
    count = len(day.meals)
    if not (0 <= old_index < count and 0 <= new_index < count):
        raise ValidationError('Invalid position')
    if old_index == new_index:
        return store

    try:
        with store.optimistic(day_id, lambda meals: renumbered(move_item(meals, old_index, new_index))) as change:
            with store.storage.atomic():
                for meal in change.current:
                    store.storage.update(DayMeal, {'id': meal.day_meal_id}, {'order_index': meal.order_index})
    except StorageError:
        logger.exception("Error reordering meals in day %s", day_id)
        raise
    return store.refetch()
