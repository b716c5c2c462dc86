"""
Subscription and SubscriptionItem models.

A user owns at most one subscription; the subscription owns the queue of
purchased membership periods (items). Status bookkeeping for the queue lives
in ``gymsubs.entitlements``; these models only persist the result.
"""
from sqlalchemy import Index

from gymsubs import db
from gymsubs.entitlements import ItemStatus, current_benefits, days_remaining
from gymsubs.utils.dates import utcnow

from .base import BaseModel


class Subscription(BaseModel):
    """
    Subscription container owned by exactly one user.

    Attributes:
        user_id (int): Owning user (unique)
        is_active (bool): Staff-controlled flag, independent of item status
    """
    __tablename__ = 'subscriptions'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship('User', back_populates='subscription')
    items = db.relationship(
        'SubscriptionItem',
        back_populates='subscription',
        cascade='all, delete-orphan',
        order_by='SubscriptionItem.id',
    )

    def __init__(self, user_id, is_active=True):
        self.user_id = user_id
        self.is_active = is_active

    def benefits(self):
        """Benefit snapshot of the stored statuses (no sweep)."""
        return current_benefits(self.items)

    def days_remaining(self, now):
        return days_remaining(self.items, now)

    def __repr__(self):
        """String representation of the Subscription model."""
        return f"<Subscription User:{self.user_id} Items:{len(self.items)}>"


class SubscriptionItem(BaseModel):
    """
    One purchased membership period inside a subscription.

    The plan attributes are copied at purchase time and never change after.

    Attributes:
        subscription_id (int): Owning subscription
        membership_id (int): Plan it was bought from (null once the plan is deleted)
        name (str): Plan name at purchase time
        cost (Decimal): Price paid
        max_classes_assistance (int): Class visits granted
        max_gym_assistance (int): Gym visits granted
        duration_months (int): Length in months
        purchase_date (datetime): When it was bought
        start_date (datetime): Start of the validity window
        end_date (datetime): End of the validity window
        status (str): pending, active, expired or cancelled
        cancelled_at (datetime): When it was cancelled
    """
    __tablename__ = 'subscription_items'

    subscription_id = db.Column(db.Integer, db.ForeignKey('subscriptions.id', ondelete='CASCADE'),
                                nullable=False)
    membership_id = db.Column(db.Integer, db.ForeignKey('memberships.id', ondelete='SET NULL'),
                              nullable=True)
    name = db.Column(db.String(100), nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=False)
    max_classes_assistance = db.Column(db.Integer, nullable=False, default=0)
    max_gym_assistance = db.Column(db.Integer, nullable=False, default=0)
    duration_months = db.Column(db.Integer, nullable=False)
    purchase_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ItemStatus.PENDING.value)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    subscription = db.relationship('Subscription', back_populates='items')
    membership = db.relationship('Membership')

    __table_args__ = (
        Index('idx_subscription_item_subscription', 'subscription_id'),
        Index('idx_subscription_item_status', 'subscription_id', 'status'),
        Index('idx_subscription_item_end_date', 'end_date'),
        db.CheckConstraint('end_date > start_date', name='ck_subscription_item_window'),
    )

    def __init__(self, subscription_id, name, cost, duration_months, start_date, end_date,
                 max_classes_assistance=0, max_gym_assistance=0, membership_id=None,
                 purchase_date=None, status=ItemStatus.PENDING.value):
        self.subscription_id = subscription_id
        self.membership_id = membership_id
        self.name = name
        self.cost = cost
        self.duration_months = duration_months
        self.max_classes_assistance = max_classes_assistance
        self.max_gym_assistance = max_gym_assistance
        self.purchase_date = purchase_date or utcnow()
        self.start_date = start_date
        self.end_date = end_date
        self.status = ItemStatus(status).value

    @classmethod
    def from_membership(cls, subscription_id, membership, start_date, end_date, status, purchase_date):
        """
        Create an item holding a copy of the membership's current terms.

        Args:
            subscription_id (int): Owning subscription
            membership (Membership): Plan being bought
            start_date (datetime): Start of the validity window
            end_date (datetime): End of the validity window
            status (ItemStatus): Initial status
            purchase_date (datetime): Purchase instant

        Returns:
            SubscriptionItem: The new, unsaved item
        """
        return cls(
            subscription_id=subscription_id,
            membership_id=membership.id,
            name=membership.name,
            cost=membership.cost,
            duration_months=membership.duration_months,
            max_classes_assistance=membership.max_classes_assistance,
            max_gym_assistance=membership.max_gym_assistance,
            purchase_date=purchase_date,
            start_date=start_date,
            end_date=end_date,
            status=status,
        )

    @property
    def status_enum(self):
        return ItemStatus(self.status)

    def cancel(self, now):
        """
        Cancel a pending or active item.

        Args:
            now (datetime): Cancellation instant

        Returns:
            SubscriptionItem: The item instance

        Raises:
            ValueError: If the item is already expired or cancelled
        """
        if self.status_enum not in (ItemStatus.PENDING, ItemStatus.ACTIVE):
            raise ValueError(f"Cannot cancel an item that is {self.status}")
        self.status = ItemStatus.CANCELLED.value
        self.cancelled_at = now
        return self

    def __repr__(self):
        """String representation of the SubscriptionItem model."""
        return f"<SubscriptionItem {self.id} {self.name} Status:{self.status}>"
