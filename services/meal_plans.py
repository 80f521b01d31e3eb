"""
Meal Plan Store

Resolves which plan a caller sees, loads its days and meals in batched
queries, works out whether the caller may edit it, and applies local
optimistic changes to a day's meal list.
"""

import logging
import threading
from dataclasses import dataclass, field, replace

from constants import FEATURED_PLAN_SETTING
from models import DayMeal, Meal, MealPlan, MealPlanDay, PlanShare, Settings, UserPreferences
from .auth import get_current_user, session_scope, user_signed_in, user_signed_out
from .errors import MealPlannerError, NotFound, error_for_code
from .optimistic import Optimistic

logger = logging.getLogger(__name__)

IDLE = 'idle'
LOADING = 'loading'
READY = 'ready'
ERROR = 'error'

NO_PLAN_MESSAGE = 'No meal plan found'
PLAN_NOT_FOUND_MESSAGE = 'Plan not found'


@dataclass
class PlannedMeal:
    """A meal as placed on a day: the meal's fields plus its junction row."""
    day_meal_id: int
    order_index: int
    id: int
    user_id: int
    name: str
    ingredients: str = None
    instructions: str = None
    video_url: str = None
    cuisine_type: str = None
    is_private: bool = False

    @classmethod
    def from_rows(cls, day_meal, meal):
        return cls(
            day_meal_id=day_meal.id,
            order_index=day_meal.order_index,
            id=meal.id,
            user_id=meal.user_id,
            name=meal.name,
            ingredients=meal.ingredients,
            instructions=meal.instructions,
            video_url=meal.video_url,
            cuisine_type=meal.cuisine_type,
            is_private=meal.is_private,
        )

    def to_dict(self):
        return {
            'day_meal_id': self.day_meal_id,
            'order_index': self.order_index,
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'ingredients': self.ingredients,
            'instructions': self.instructions,
            'video_url': self.video_url,
            'cuisine_type': self.cuisine_type,
            'is_private': self.is_private,
        }


@dataclass
class PlanDay:
    id: int
    plan_id: int
    day_name: str
    order_index: int
    is_active: bool
    meals: list = field(default_factory=list)

    def to_dict(self):
        return {
            'id': self.id,
            'plan_id': self.plan_id,
            'day_name': self.day_name,
            'order_index': self.order_index,
            'is_active': self.is_active,
            'meals': [meal.to_dict() for meal in self.meals],
        }


def load_plan_days(storage, plan_id, active_only=False):
    """
    Load a plan's days with their meals using three batched queries:
    days, then every junction row for those days, then every meal they
    reference. Junction rows whose meal no longer exists are skipped.
    """
    filters = {'plan_id': plan_id}
    if active_only:
        filters['is_active'] = True
    day_rows = storage.query(MealPlanDay, order_by=['order_index', 'id'], **filters)

    day_ids = [day.id for day in day_rows]
    day_meal_rows = storage.query(DayMeal, order_by=['order_index', 'id'], day_id=day_ids)

    meal_ids = {dm.meal_id for dm in day_meal_rows}
    meals_by_id = {meal.id: meal for meal in storage.query(Meal, id=meal_ids)}

    meals_by_day = {day_id: [] for day_id in day_ids}
    for dm in day_meal_rows:
        meal = meals_by_id.get(dm.meal_id)
        if meal is None:
            continue
        meals_by_day[dm.day_id].append(PlannedMeal.from_rows(dm, meal))

    return [
        PlanDay(
            id=day.id,
            plan_id=day.plan_id,
            day_name=day.day_name,
            order_index=day.order_index,
            is_active=day.is_active,
            meals=meals_by_day[day.id],
        )
        for day in day_rows
    ]


def get_featured_plan_id(storage):
    setting = storage.first(Settings, key=FEATURED_PLAN_SETTING)
    if setting is None or not setting.value:
        return None
    try:
        return int(setting.value)
    except ValueError:
        logger.warning("Ignoring malformed featured plan setting %r", setting.value)
        return None


def resolve_plan_id(storage, user, requested_plan_id=None):
    """
    Pick the plan to show, in priority order: the requested id, the
    user's default plan, the user's earliest plan, and for anonymous
    callers the featured public plan. Returns None when nothing applies.
    """
    if requested_plan_id:
        return requested_plan_id

    if user is not None:
        prefs = storage.first(UserPreferences, user_id=user.id)
        if prefs is not None and prefs.default_plan_id:
            return prefs.default_plan_id
        first_plan = storage.first(MealPlan, order_by=['created_at', 'id'], user_id=user.id)
        return first_plan.id if first_plan else None

    featured_id = get_featured_plan_id(storage)
    if featured_id is None:
        return None
    # A featured plan that was deleted or made private means no plan at all
    featured = storage.first(MealPlan, id=featured_id, is_public=True)
    return featured.id if featured else None


def find_share(storage, plan_id, user):
    if user is None or not user.email:
        return None
    return storage.first(PlanShare, plan_id=plan_id, shared_with_email=user.email.lower())


def authorize_plan(storage, plan_id, user):
    """
    Return ``(plan, can_edit)`` for a caller, raising NotFound when the
    plan is missing or hidden from them. Owners and edit-share holders
    can edit; public plans and view-share holders can read.
    """
    plan = storage.first(MealPlan, id=plan_id)
    if plan is None:
        raise NotFound(PLAN_NOT_FOUND_MESSAGE)

    if user is not None and plan.user_id == user.id:
        return plan, True

    share = find_share(storage, plan.id, user)
    if share is not None:
        return plan, share.permission == 'edit'

    if plan.is_public:
        return plan, False

    # Same message as a missing plan so private plans stay hidden
    raise NotFound(PLAN_NOT_FOUND_MESSAGE)


class MealPlanStore:
    """
    State for one view of one plan.

    ``load``/``refetch`` walk ``idle -> loading -> ready | error``. Each
    load is tagged with a sequence number and only the most recently
    started load may write its result. After ``close`` no load writes
    anything.
    """

    def __init__(self, storage, requested_plan_id=None, get_user=get_current_user, scope=None):
        self.storage = storage
        self.requested_plan_id = requested_plan_id
        self.get_user = get_user
        # Only identity changes from this browser session reload the store
        self.scope = scope if scope is not None else session_scope()

        self.state = IDLE
        self.error = None
        self.error_code = None
        self.user = None
        self.days = []
        self.plan_id = None
        self.plan_name = None
        self.plan_subtitle = None
        self.plan_owner_id = None
        self.is_public = False
        self.share_token = None
        self.can_edit = False

        self._lock = threading.RLock()
        self._seq = 0
        self._alive = True

        user_signed_in.connect(self._on_identity_change)
        user_signed_out.connect(self._on_identity_change)

    @property
    def is_loading(self):
        return self.state == LOADING

    @property
    def active_days(self):
        return [day for day in self.days if day.is_active]

    @property
    def inactive_days(self):
        return [day for day in self.days if not day.is_active]

    def raise_for_error(self):
        """Raise the error that ended the last load, if there was one."""
        if self.state == ERROR:
            raise error_for_code(self.error_code, self.error)
        return self

    def find_day(self, day_id):
        for day in self.days:
            if day.id == day_id:
                return day
        return None

    def find_day_meal(self, day_meal_id):
        for day in self.days:
            for meal in day.meals:
                if meal.day_meal_id == day_meal_id:
                    return day, meal
        return None, None

    # ---- loading -------------------------------------------------------

    def load(self, show_loading=True):
        with self._lock:
            if not self._alive:
                return self
            self._seq += 1
            seq = self._seq
            if show_loading or self.state in (IDLE, ERROR):
                self.state = LOADING
            self.error = None

        try:
            result = self._fetch()
        except MealPlannerError as exc:
            if isinstance(exc, NotFound):
                logger.info("Meal plan unavailable: %s", exc.message)
            else:
                logger.exception("Error fetching meal plan")
            self._apply(seq, error=exc.message, error_code=exc.code)
        else:
            self._apply(seq, result=result)
        return self

    def refetch(self):
        """Reload from storage, keeping the current view visible meanwhile."""
        return self.load(show_loading=False)

    def _fetch(self):
        user = self.get_user()
        plan_id = resolve_plan_id(self.storage, user, self.requested_plan_id)
        if not plan_id:
            raise NotFound(NO_PLAN_MESSAGE)

        plan, can_edit = authorize_plan(self.storage, plan_id, user)
        days = load_plan_days(self.storage, plan.id)
        return {
            'user': user,
            'days': days,
            'plan_id': plan.id,
            'plan_name': plan.name,
            'plan_subtitle': plan.subtitle,
            'plan_owner_id': plan.user_id,
            'is_public': plan.is_public,
            'share_token': plan.share_token,
            'can_edit': can_edit,
        }

    def _apply(self, seq, result=None, error=None, error_code=None):
        with self._lock:
            if not self._alive:
                return False
            if seq != self._seq:
                logger.debug("Discarding stale plan load %s (latest is %s)", seq, self._seq)
                return False

            if error is not None:
                self.state = ERROR
                self.error = error
                self.error_code = error_code
                self.days = []
                self.plan_id = None
                self.plan_name = None
                self.plan_subtitle = None
                self.plan_owner_id = None
                self.is_public = False
                self.share_token = None
                self.can_edit = False
                return True

            for name, value in result.items():
                setattr(self, name, value)
            self.state = READY
            self.error = None
            self.error_code = None
            return True

    def _on_identity_change(self, sender, scope=None, **extra):
        if scope != self.scope:
            return
        if self._alive and self.state != IDLE:
            self.refetch()

    def close(self):
        """Stop accepting load results and stop listening for sign-in changes."""
        with self._lock:
            self._alive = False
        user_signed_in.disconnect(self._on_identity_change)
        user_signed_out.disconnect(self._on_identity_change)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ---- local updates -------------------------------------------------

    def update_day_meals(self, day_id, update_fn):
        """Replace one day's meal list with ``update_fn(meals)``; storage is untouched."""
        with self._lock:
            day = self.find_day(day_id)
            if day is None:
                return None
            day.meals = list(update_fn(list(day.meals)))
            return day.meals

    def optimistic(self, day_id, transform):
        """Apply ``transform`` to a day's meals now, with an exact rollback."""
        def read():
            day = self.find_day(day_id)
            return list(day.meals) if day else []

        return Optimistic(read, lambda meals: self.update_day_meals(day_id, lambda _: meals), transform)

    def to_dict(self):
        return {
            'state': self.state,
            'is_loading': self.is_loading,
            'error': self.error,
            'plan_id': self.plan_id,
            'plan_name': self.plan_name,
            'plan_subtitle': self.plan_subtitle,
            'is_public': self.is_public,
            'share_token': self.share_token if self.can_edit else None,
            'can_edit': self.can_edit,
            'days': [day.to_dict() for day in self.days],
        }


def renumbered(meals):
    """Copies of ``meals`` with order_index rewritten to their positions."""
    return [replace(meal, order_index=idx) for idx, meal in enumerate(meals)]


def move_item(items, old_index, new_index):
    items = list(items)
    item = items.pop(old_index)
    items.insert(new_index, item)
    return items
