"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .user import User, UserPreferences
from .meal import Meal
from .mealplan import MealPlan, MealPlanDay, DayMeal
from .sharing import PlanShare
from .ingredient import IngredientStatus
from .settings import Settings

__all__ = [
    'db',
    'User',
    'UserPreferences',
    'Meal',
    'MealPlan',
    'MealPlanDay',
    'DayMeal',
    'PlanShare',
    'IngredientStatus',
    'Settings',
]
