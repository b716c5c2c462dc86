"""
Memberships namespace for managing the plans the gym sells.
"""
from flask_restx import Namespace

membership_ns = Namespace(
    'memberships',
    description='Membership plan operations'
)

from . import routes
