"""
Meal Plan Models

Contains MealPlan, its ordered MealPlanDay slots and the DayMeal
junction rows assigning meals to days.
"""

from .base import db, utcnow


class MealPlan(db.Model):
    """Named collection of days, optionally published through a share token."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)
    subtitle = db.Column(db.String(100), nullable=True)
    is_public = db.Column(db.Boolean, default=False, nullable=False)
    # Assigned the first time the plan goes public and never regenerated
    share_token = db.Column(db.String(32), unique=True, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    days = db.relationship('MealPlanDay', backref='plan', lazy=True, cascade='all, delete-orphan')
    shares = db.relationship('PlanShare', backref='plan', lazy=True, cascade='all, delete-orphan')
    ingredient_statuses = db.relationship('IngredientStatus', backref='plan', lazy=True, cascade='all, delete-orphan')


class MealPlanDay(db.Model):
    """Slot within a plan. Inactive days are kept but hidden from the main view."""
    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    day_name = db.Column(db.String(100), nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)  # gaps allowed
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    meals = db.relationship('DayMeal', backref='day', lazy=True, cascade='all, delete-orphan')


class DayMeal(db.Model):
    """Assignment of one meal to one day, with its own display order."""
    __table_args__ = (
        db.UniqueConstraint('day_id', 'meal_id', name='uq_day_meal_day_meal'),
    )

    id = db.Column(db.Integer, primary_key=True)
    day_id = db.Column(db.Integer, db.ForeignKey('meal_plan_day.id', ondelete='CASCADE'), nullable=False, index=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    order_index = db.Column(db.Integer, nullable=False, default=0)
