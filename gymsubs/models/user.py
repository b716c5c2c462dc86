"""
User model for authentication and user management.
"""
from enum import Enum

from werkzeug.security import check_password_hash, generate_password_hash

from gymsubs import db

from .base import BaseModel


class Role(Enum):
    """Enum for user roles."""
    ADMIN = "admin"
    COACH = "coach"
    RECEPTIONIST = "receptionist"
    CLIENT = "client"

    @classmethod
    def parse(cls, value):
        """
        Look up a role by value, case-insensitively.

        Raises:
            ValueError: If the value is not a known role
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    def can(self, capability):
        """Check whether this role holds a capability."""
        return capability in ROLE_CAPABILITIES[self]

    @property
    def is_staff(self):
        return self is not Role.CLIENT


class Capability(Enum):
    """Enum for actions guarded by role."""
    MANAGE_MEMBERSHIPS = "manage_memberships"
    VIEW_ANY_SUBSCRIPTION = "view_any_subscription"
    MODIFY_ANY_SUBSCRIPTION = "modify_any_subscription"
    VIEW_EXPIRING = "view_expiring"


# Every role must appear here
ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset(Capability),
    Role.RECEPTIONIST: frozenset({
        Capability.VIEW_ANY_SUBSCRIPTION,
        Capability.MODIFY_ANY_SUBSCRIPTION,
        Capability.VIEW_EXPIRING,
    }),
    Role.COACH: frozenset({
        Capability.VIEW_ANY_SUBSCRIPTION,
    }),
    Role.CLIENT: frozenset(),
}


class User(BaseModel):
    """
    User model for authentication and user management.

    Attributes:
        username (str): Unique username for user identification
        email (str): User's email address (unique)
        password_hash (str): Hashed password
        role (str): One of the Role values
        is_active (bool): Whether the account may log in
    """
    __tablename__ = 'users'

    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.CLIENT.value)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    subscription = db.relationship(
        'Subscription', back_populates='user', uselist=False, cascade='all, delete-orphan'
    )

    def __init__(self, username, email, password, role=Role.CLIENT, is_active=True):
        """
        Initialize a new User instance.

        Args:
            username (str): User's username
            email (str): User's email
            password (str): User's password (will be hashed)
            role (Role or str, optional): User's role, client by default
            is_active (bool, optional): Whether the account is enabled
        """
        self.username = username
        self.email = email
        self.password_hash = generate_password_hash(password)
        self.role = Role.parse(role).value
        self.is_active = is_active

    @property
    def role_enum(self):
        return Role.parse(self.role)

    def check_password(self, password):
        """
        Verify a password against the stored hash.

        Args:
            password (str): Password to check

        Returns:
            bool: True if password matches, False otherwise
        """
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        """String representation of the User model."""
        return f"<User {self.username} ({self.role})>"
