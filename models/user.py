"""
User Models

Contains the User account and the per-user UserPreferences singleton.
"""

from .base import db, utcnow


class User(db.Model):
    """Signed-up account. Deleting a user removes everything they own."""
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    meals = db.relationship('Meal', backref='owner', lazy=True, cascade='all, delete-orphan')
    plans = db.relationship('MealPlan', backref='owner', lazy=True, cascade='all, delete-orphan')
    preferences = db.relationship('UserPreferences', backref='user', uselist=False, cascade='all, delete-orphan')


class UserPreferences(db.Model):
    """Per-user settings; currently only which plan loads by default."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), unique=True, nullable=False)
    default_plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id', ondelete='SET NULL'), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
