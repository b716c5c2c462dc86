"""
Authentication routes.
"""

from flask import request
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    get_jwt,
    get_jwt_identity,
    jwt_required,
)
from flask_restx import Resource, fields
from sqlalchemy.exc import IntegrityError

from gymsubs import db
from gymsubs.models.revoked_token import RevokedToken
from gymsubs.models.user import Role, User
from gymsubs.utils.auth import admin_required, current_user_id

from . import auth_ns

register_model = auth_ns.model('UserRegistration', {
    'username': fields.String(required=True, description='User username'),
    'email': fields.String(required=True, description='User email address'),
    'password': fields.String(required=True, description='User password')
})

login_model = auth_ns.model('UserLogin', {
    'username': fields.String(required=True, description='User username or email'),
    'password': fields.String(required=True, description='User password')
})

token_model = auth_ns.model('TokenResponse', {
    'access_token': fields.String(description='JWT access token'),
    'refresh_token': fields.String(description='JWT refresh token'),
    'user_id': fields.Integer(description='User identifier'),
    'username': fields.String(description='User username'),
    'role': fields.String(description='User role', enum=[r.value for r in Role]),
})

user_model = auth_ns.model('User', {
    'id': fields.Integer(description='User identifier'),
    'username': fields.String(description='User username'),
    'email': fields.String(description='User email address'),
    'role': fields.String(description='User role', enum=[r.value for r in Role]),
    'is_active': fields.Boolean(description='Whether the account is enabled'),
    'created_at': fields.DateTime(description='Creation timestamp'),
    'updated_at': fields.DateTime(description='Last update timestamp')
})

role_input_model = auth_ns.model('RoleInput', {
    'role': fields.String(required=True, description='New role', enum=[r.value for r in Role]),
})

user_list_model = auth_ns.model('UserList', {
    'users': fields.List(fields.Nested(user_model)),
    'total': fields.Integer(description='Total number of users'),
    'page': fields.Integer(description='Current page number'),
    'per_page': fields.Integer(description='Items per page'),
    'pages': fields.Integer(description='Total number of pages')
})

user_status_input_model = auth_ns.model('UserStatusInput', {
    'is_active': fields.Boolean(required=True, description='Whether the account is enabled'),
})

refresh_token_model = auth_ns.model('RefreshToken', {
    'access_token': fields.String(description='New JWT access token')
})


def _issue_access_token(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


@auth_ns.route('/register')
class UserRegistration(Resource):
    """
    User registration endpoint.
    """
    @auth_ns.doc('register_user')
    @auth_ns.expect(register_model)
    @auth_ns.response(201, 'User successfully created', user_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(409, 'User already exists')
    def post(self):
        """
        Register a new client account.
        """
        data = request.json or {}

        if not all(k in data for k in ('username', 'email', 'password')):
            return {'message': 'Missing required fields'}, 400

        if '@' not in data['email']:
            return {'message': 'Invalid email format'}, 400

        if len(data['password']) < 6:
            return {'message': 'Password must be at least 6 characters long'}, 400

        user = User(
            username=data['username'],
            email=data['email'],
            password=data['password']
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return {'message': 'Username or email already exists'}, 409

        return {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'role': user.role,
            'is_active': user.is_active,
            'created_at': user.created_at.isoformat(),
            'updated_at': user.updated_at.isoformat()
        }, 201


@auth_ns.route('/login')
class UserLogin(Resource):
    """
    User login endpoint.
    """
    @auth_ns.doc('login_user')
    @auth_ns.expect(login_model)
    @auth_ns.response(200, 'Login successful', token_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(401, 'Invalid credentials')
    def post(self):
        """
        Authenticate a user and generate JWT tokens carrying the user's role.
        """
        data = request.json or {}

        if not all(k in data for k in ('username', 'password')):
            return {'message': 'Missing required fields'}, 400

        user = User.query.filter(
            (User.username == data['username']) | (User.email == data['username'])
        ).first()

        if not user or not user.check_password(data['password']):
            return {'message': 'Invalid username/email or password'}, 401

        if not user.is_active:
            return {'message': 'Account is disabled'}, 401

        return {
            'access_token': _issue_access_token(user),
            'refresh_token': create_refresh_token(identity=str(user.id)),
            'user_id': user.id,
            'username': user.username,
            'role': user.role,
        }, 200


@auth_ns.route('/refresh')
class TokenRefresh(Resource):
    """
    Token refresh endpoint.
    """
    @auth_ns.doc('refresh_token')
    @jwt_required(refresh=True)
    @auth_ns.response(200, 'Token refresh successful', refresh_token_model)
    @auth_ns.response(401, 'Invalid refresh token')
    def post(self):
        """
        Generate a new access token using a refresh token.

        The role is read again from the database so role changes apply on refresh.
        """
        user = db.session.get(User, int(get_jwt_identity()))
        if user is None or not user.is_active:
            return {'message': 'Account is disabled'}, 401

        return {
            'access_token': _issue_access_token(user)
        }, 200


@auth_ns.route('/logout')
class UserLogout(Resource):
    """
    Logout endpoint: revokes the token used to call it.
    """
    @auth_ns.doc('logout_user')
    @jwt_required(verify_type=False)
    @auth_ns.response(200, 'Token revoked')
    def post(self):
        """Revoke the current access or refresh token."""
        RevokedToken.revoke(get_jwt(), current_user_id())
        return {'message': 'Token revoked'}, 200


@auth_ns.route('/me')
class CurrentUser(Resource):
    """Current user endpoint."""

    @auth_ns.doc('current_user')
    @auth_ns.marshal_with(user_model)
    @jwt_required()
    def get(self):
        """Get the authenticated user's profile."""
        user = db.session.get(User, current_user_id())
        if user is None:
            auth_ns.abort(404, "User not found")
        return user


@auth_ns.route('/users/<int:user_id>/role')
@auth_ns.param('user_id', 'The user identifier')
class UserRole(Resource):
    """Role assignment endpoint."""

    @auth_ns.doc('set_user_role')
    @auth_ns.expect(role_input_model)
    @jwt_required()
    @admin_required()
    @auth_ns.marshal_with(user_model)
    def put(self, user_id):
        """Change a user's role (admin only)"""
        user = db.session.get(User, user_id)
        if user is None:
            auth_ns.abort(404, "User not found")
        try:
            role = Role.parse((request.json or {}).get('role'))
        except ValueError:
            auth_ns.abort(400, f"Role must be one of: {', '.join(r.value for r in Role)}")
        user.role = role.value
        db.session.commit()
        return user


@auth_ns.route('/users')
class UserList(Resource):
    """User listing endpoint."""

    @auth_ns.doc('list_users', params={
        'page': {'type': 'integer', 'default': 1, 'description': 'Page number'},
        'per_page': {'type': 'integer', 'default': 10, 'description': 'Items per page'},
        'role': {'type': 'string', 'enum': [r.value for r in Role], 'description': 'Filter by role'},
        'is_active': {'type': 'boolean', 'description': 'Filter by account status'},
    })
    @jwt_required()
    @admin_required()
    @auth_ns.marshal_with(user_list_model)
    def get(self):
        """List users (admin only)"""
        page = request.args.get('page', 1, type=int)
        per_page = request.args.get('per_page', 10, type=int)
        role = request.args.get('role')
        is_active = request.args.get('is_active')

        query = User.query
        if role is not None:
            try:
                query = query.filter(User.role == Role.parse(role).value)
            except ValueError:
                auth_ns.abort(400, f"Role must be one of: {', '.join(r.value for r in Role)}")
        if is_active is not None:
            if is_active.lower() not in ('true', 'false'):
                auth_ns.abort(400, "is_active must be true or false")
            query = query.filter(User.is_active.is_(is_active.lower() == 'true'))

        pagination = query.order_by(User.id).paginate(
            page=page, per_page=per_page, error_out=False
        )

        return {
            'users': pagination.items,
            'total': pagination.total,
            'page': pagination.page,
            'per_page': pagination.per_page,
            'pages': pagination.pages
        }


@auth_ns.route('/users/<int:user_id>/status')
@auth_ns.param('user_id', 'The user identifier')
class UserStatus(Resource):
    """Account status endpoint."""

    @auth_ns.doc('set_user_status')
    @auth_ns.expect(user_status_input_model)
    @auth_ns.response(400, 'Missing flag, or an admin disabling their own account')
    @auth_ns.response(404, 'User not found')
    @jwt_required()
    @admin_required()
    @auth_ns.marshal_with(user_model)
    def patch(self, user_id):
        """
        Enable or disable an account (admin only)

        Tokens already issued to a disabled account stop working on their
        next request.
        """
        data = request.json or {}
        if 'is_active' not in data:
            auth_ns.abort(400, "is_active is required")
        user = db.session.get(User, user_id)
        if user is None:
            auth_ns.abort(404, "User not found")
        if user.id == current_user_id() and not data['is_active']:
            auth_ns.abort(400, "Admins cannot disable their own account")
        user.is_active = bool(data['is_active'])
        db.session.commit()
        return user
