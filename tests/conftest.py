"""
Pytest configuration and fixtures.
"""
import os
from datetime import datetime
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from gymsubs import create_app
from gymsubs.entitlements import ItemSnapshot


@pytest.fixture(scope="session")
def app():
    """
    Create a Flask application configured for testing.

    Returns:
        Flask: The Flask application instance.
    """
    os.environ["FLASK_ENV"] = "testing"
    app = create_app("testing")

    # Keep one app context for the whole run; the test client reuses it,
    # so tests and requests share the same session.
    with app.app_context():
        yield app


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for the Flask application.

    Returns:
        FlaskClient: A test client for the Flask application.
    """
    return app.test_client()


@pytest.fixture(scope="function", autouse=True)
def db_session(app):
    """
    Give every test an empty database.

    Yields:
        SQLAlchemy session: The scoped session used by the app.
    """
    from gymsubs import db

    db.create_all()
    yield db.session
    db.session.rollback()
    db.session.remove()
    db.drop_all()


@pytest.fixture(scope="function")
def db(app):
    """
    Fixture for the SQLAlchemy database object.

    Returns:
        SQLAlchemy db: The database object for testing.
    """
    from gymsubs import db as _db
    return _db


@pytest.fixture
def make_user(db):
    """Factory creating a committed user with a given role."""
    from gymsubs.models.user import Role, User

    counter = {"n": 0}

    def _make(role=Role.CLIENT, username=None, password="password123"):
        counter["n"] += 1
        name = username or f"{Role.parse(role).value}{counter['n']}"
        user = User(username=name, email=f"{name}@example.com", password=password, role=role)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user, with the role claim set."""
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_membership(db):
    """Factory creating a committed membership plan."""
    from gymsubs.models.membership import Membership

    counter = {"n": 0}

    def _make(name=None, cost="49.99", duration_months=1, classes=12, gym=30, is_active=True):
        counter["n"] += 1
        membership = Membership(
            name=name or f"Plan {counter['n']}",
            cost=Decimal(cost),
            duration_months=duration_months,
            max_classes_assistance=classes,
            max_gym_assistance=gym,
            is_active=is_active,
        )
        db.session.add(membership)
        db.session.commit()
        return membership

    return _make


@pytest.fixture
def snapshot():
    """Factory for in-memory items; dates are (year, month, day) tuples."""
    def _make(id, status, start, end, purchase=None, cost="10.00", classes=0, gym=0,
              duration_months=1, name=None):
        return ItemSnapshot(
            id=id,
            name=name or f"Item {id}",
            cost=cost,
            max_classes_assistance=classes,
            max_gym_assistance=gym,
            duration_months=duration_months,
            purchase_date=datetime(*(purchase or start)),
            start_date=datetime(*start),
            end_date=datetime(*end),
            status=status,
        )

    return _make
