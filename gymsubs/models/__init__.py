"""
Models package for SQLAlchemy database models.
"""
from .base import BaseModel
from .user import Role, User
from .membership import Membership
from .subscription import Subscription, SubscriptionItem
from .revoked_token import RevokedToken

__all__ = [
    'BaseModel',
    'Role',
    'User',
    'Membership',
    'Subscription',
    'SubscriptionItem',
    'RevokedToken',
]
