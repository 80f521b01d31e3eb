"""
Ingredient Status Model

Contains IngredientStatus: the per-plan "have it" checklist behind the
shopping list.
"""

from .base import db, utcnow


class IngredientStatus(db.Model):
    """Checkbox state for one normalized ingredient key within a plan."""
    __table_args__ = (
        db.UniqueConstraint('plan_id', 'ingredient', name='uq_ingredient_status_plan_ingredient'),
    )

    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    ingredient = db.Column(db.String(500), nullable=False)  # normalized key
    has_item = db.Column(db.Boolean, default=False, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
