"""
Meal Model

Contains the Meal model: a recipe in the shared library that can be
placed on any number of plan days.
"""

from .base import db, utcnow


class Meal(db.Model):
    """Recipe owned by one user; public meals are browsable by everyone."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    ingredients = db.Column(db.Text, nullable=True)  # newline-delimited lines
    instructions = db.Column(db.Text, nullable=True)
    video_url = db.Column(db.String(500), nullable=True)  # YouTube or TikTok
    cuisine_type = db.Column(db.String(20), nullable=True, index=True)
    is_private = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    # Removing a meal removes it from every day it was planned on
    day_entries = db.relationship('DayMeal', backref='meal', lazy=True, cascade='all, delete-orphan')
