"""
Services Package

Business logic modules for the meal planner.
"""

from .errors import (
    MealPlannerError,
    NotFound,
    ValidationError,
    AuthorizationError,
    StorageError,
    UniqueViolation,
    TransientStorageError,
)

from .storage import Storage

from .optimistic import Optimistic

from .matching import (
    normalize_ingredient,
    split_ingredients,
    fuzzy_match,
)

from .shopping import (
    ShoppingEntry,
    generate_shopping_list,
)

from .ingredient_status import IngredientStatusStore

from .meal_plans import (
    MealPlanStore,
    PlanDay,
    PlannedMeal,
    load_plan_days,
    resolve_plan_id,
    authorize_plan,
)

__all__ = [
    # Errors
    'MealPlannerError',
    'NotFound',
    'ValidationError',
    'AuthorizationError',
    'StorageError',
    'UniqueViolation',
    'TransientStorageError',
    # Storage
    'Storage',
    'Optimistic',
    # Matching
    'normalize_ingredient',
    'split_ingredients',
    'fuzzy_match',
    # Shopping
    'ShoppingEntry',
    'generate_shopping_list',
    'IngredientStatusStore',
    # Plans
    'MealPlanStore',
    'PlanDay',
    'PlannedMeal',
    'load_plan_days',
    'resolve_plan_id',
    'authorize_plan',
]
