"""
Membership model: the plans a gym sells.
"""
from gymsubs import db

from .base import BaseModel


class Membership(BaseModel):
    """
    A membership plan that can be purchased into a subscription.

    Purchased items copy these values, so editing or deleting a plan never
    changes what existing subscribers hold.

    Attributes:
        name (str): Plan name (e.g., "Monthly Unlimited")
        description (str): Plan description
        cost (Decimal): Price of the plan
        max_classes_assistance (int): Class visits included
        max_gym_assistance (int): Gym visits included
        duration_months (int): Length of one period in months
        is_active (bool): Whether the plan is on sale
    """
    __tablename__ = 'memberships'

    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    description = db.Column(db.String(255), nullable=True)
    cost = db.Column(db.Numeric(10, 2), nullable=False)
    max_classes_assistance = db.Column(db.Integer, nullable=False, default=0)
    max_gym_assistance = db.Column(db.Integer, nullable=False, default=0)
    duration_months = db.Column(db.Integer, nullable=False, default=1)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        db.CheckConstraint('cost >= 0', name='ck_membership_cost'),
        db.CheckConstraint('max_classes_assistance >= 0', name='ck_membership_classes'),
        db.CheckConstraint('max_gym_assistance >= 0', name='ck_membership_gym'),
        db.CheckConstraint('duration_months > 0', name='ck_membership_duration'),
    )

    def __init__(self, name, cost, duration_months=1, max_classes_assistance=0,
                 max_gym_assistance=0, description=None, is_active=True):
        self.name = name
        self.cost = cost
        self.duration_months = duration_months
        self.max_classes_assistance = max_classes_assistance
        self.max_gym_assistance = max_gym_assistance
        self.description = description
        self.is_active = is_active

    def __repr__(self):
        """String representation of the Membership model."""
        return f"<Membership {self.name} - {self.duration_months}m - ${self.cost}>"
