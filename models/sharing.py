"""
Sharing Model

Contains PlanShare: a per-email grant of view or edit access to a plan.
"""

from .base import db, utcnow


class PlanShare(db.Model):
    """Access grant keyed by email, resolved against the signed-in user's email."""
    __table_args__ = (
        db.UniqueConstraint('plan_id', 'shared_with_email', name='uq_plan_share_plan_email'),
    )

    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    shared_with_email = db.Column(db.String(255), nullable=False, index=True)
    permission = db.Column(db.String(10), nullable=False, default='view')  # 'view' or 'edit'
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
