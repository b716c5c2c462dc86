"""
Authentication utilities and decorators.
"""
from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity

from gymsubs.models.user import Role


def current_user_id():
    """Identity of the token's user as an int."""
    return int(get_jwt_identity())


def current_role():
    """
    Role carried in the token's claims.

    Tokens without a (valid) role claim are treated as clients.
    """
    try:
        return Role.parse(get_jwt().get('role', Role.CLIENT.value))
    except ValueError:
        return Role.CLIENT


def capability_required(capability):
    """
    Decorator to check that the current user's role grants a capability.
    Must be used after jwt_required() decorator.

    Args:
        capability (Capability): Capability the endpoint needs

    Returns:
        function: Decorator function
    """
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            if not current_role().can(capability):
                return {"message": f"Role not allowed to {capability.value.replace('_', ' ')}"}, 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def admin_required():
    """
    Decorator to check if the current user has admin privileges.
    Must be used after jwt_required() decorator.
    """
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            if current_role() is not Role.ADMIN:
                return {"message": "Admin privileges required"}, 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper
