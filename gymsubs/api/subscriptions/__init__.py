"""
Subscriptions namespace for user subscriptions and their membership queue.
"""
from flask_restx import Namespace

subscription_ns = Namespace(
    'subscriptions',
    description='User subscriptions, purchased memberships and entitlements'
)

from . import routes
