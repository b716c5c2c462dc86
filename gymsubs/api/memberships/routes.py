"""
Routes for membership plans.
"""
from decimal import Decimal, InvalidOperation

from flask import request
from flask_jwt_extended import jwt_required, verify_jwt_in_request
from flask_restx import Resource, fields

from gymsubs import db
from gymsubs.models.membership import Membership
from gymsubs.models.subscription import SubscriptionItem
from gymsubs.models.user import Capability
from gymsubs.utils.auth import capability_required, current_role

from . import membership_ns

membership_model = membership_ns.model('Membership', {
    'id': fields.Integer(description='Membership ID'),
    'name': fields.String(required=True, description='Membership name'),
    'description': fields.String(description='Membership description'),
    'cost': fields.Float(required=True, description='Price',
                         attribute=lambda x: float(x.cost) if x.cost is not None else None),
    'max_classes_assistance': fields.Integer(description='Class visits included', default=0),
    'max_gym_assistance': fields.Integer(description='Gym visits included', default=0),
    'duration_months': fields.Integer(description='Duration in months', default=1),
    'is_active': fields.Boolean(description='Whether the plan is on sale', default=True),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

membership_list_model = membership_ns.model('MembershipList', {
    'memberships': fields.List(fields.Nested(membership_model)),
    'total': fields.Integer(description='Total number of memberships'),
    'page': fields.Integer(description='Current page number'),
    'per_page': fields.Integer(description='Items per page'),
    'pages': fields.Integer(description='Total number of pages')
})

membership_input_model = membership_ns.model('MembershipInput', {
    'name': fields.String(required=True, description='Membership name'),
    'description': fields.String(description='Membership description'),
    'cost': fields.Float(required=True, description='Price'),
    'max_classes_assistance': fields.Integer(description='Class visits included', default=0),
    'max_gym_assistance': fields.Integer(description='Gym visits included', default=0),
    'duration_months': fields.Integer(required=True, description='Duration in months'),
    'is_active': fields.Boolean(description='Whether the plan is on sale', default=True),
})

status_input_model = membership_ns.model('MembershipStatusInput', {
    'is_active': fields.Boolean(required=True, description='Whether the plan is on sale'),
})

INTEGER_FIELDS = {
    'max_classes_assistance': 0,
    'max_gym_assistance': 0,
    'duration_months': 1,
}


def validate_membership_input(data, partial=False):
    """
    Validate and normalise a membership payload.

    Args:
        data (dict): Request body
        partial (bool): Allow missing fields (updates)

    Returns:
        tuple: (clean values, list of error messages)
    """
    errors = []
    clean = {}

    if 'name' in data:
        if not str(data['name'] or '').strip():
            errors.append("Name is required.")
        else:
            clean['name'] = str(data['name']).strip()
    elif not partial:
        errors.append("Name is required.")

    if 'cost' in data:
        try:
            cost = Decimal(str(data['cost']))
            if not cost.is_finite() or cost < 0:
                raise InvalidOperation
            clean['cost'] = cost
        except InvalidOperation:
            errors.append("Cost must be a non-negative number.")
    elif not partial:
        errors.append("Cost is required.")

    for key, minimum in INTEGER_FIELDS.items():
        if key not in data:
            if key == 'duration_months' and not partial:
                errors.append("Duration in months is required.")
            continue
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            errors.append(f"{key} must be an integer >= {minimum}.")
        else:
            clean[key] = value

    if 'description' in data:
        clean['description'] = data['description']
    if 'is_active' in data:
        clean['is_active'] = bool(data['is_active'])

    return clean, errors


@membership_ns.route('/')
class MembershipList(Resource):
    """Resource for listing and creating membership plans"""

    @membership_ns.doc('list_memberships', params={
        'page': {'type': 'integer', 'default': 1, 'description': 'Page number'},
        'per_page': {'type': 'integer', 'default': 10, 'description': 'Items per page'},
        'include_inactive': {'type': 'boolean', 'default': 'false',
                             'description': 'Include plans not on sale (staff only)'},
    })
    @membership_ns.marshal_with(membership_list_model)
    def get(self):
        """List membership plans"""
        page = request.args.get('page', 1, type=int)
        per_page = request.args.get('per_page', 10, type=int)
        include_inactive = request.args.get('include_inactive', 'false').lower() == 'true'

        query = Membership.query
        if include_inactive:
            verify_jwt_in_request(optional=True)
            include_inactive = current_role().is_staff
        if not include_inactive:
            query = query.filter(Membership.is_active.is_(True))

        pagination = query.order_by(Membership.cost, Membership.id).paginate(
            page=page, per_page=per_page, error_out=False
        )

        return {
            'memberships': pagination.items,
            'total': pagination.total,
            'page': pagination.page,
            'per_page': pagination.per_page,
            'pages': pagination.pages
        }

    @membership_ns.doc('create_membership')
    @membership_ns.expect(membership_input_model)
    @membership_ns.response(400, 'Validation error')
    @membership_ns.response(409, 'Name already in use')
    @jwt_required()
    @capability_required(Capability.MANAGE_MEMBERSHIPS)
    @membership_ns.marshal_with(membership_model, code=201)
    def post(self):
        """Create a membership plan (admin only)"""
        clean, errors = validate_membership_input(request.json or {})
        if errors:
            membership_ns.abort(400, "Invalid membership", errors=errors)

        if Membership.query.filter_by(name=clean['name']).first():
            membership_ns.abort(409, f"Membership {clean['name']!r} already exists")

        membership = Membership(**clean)
        db.session.add(membership)
        db.session.commit()
        return membership, 201


@membership_ns.route('/<int:id>')
@membership_ns.param('id', 'The membership identifier')
class MembershipResource(Resource):
    """Resource for individual membership plan operations"""

    @membership_ns.doc('get_membership')
    @membership_ns.marshal_with(membership_model)
    def get(self, id):
        """Get a membership plan"""
        return Membership.query.get_or_404(id)

    @membership_ns.doc('update_membership')
    @membership_ns.expect(membership_input_model)
    @membership_ns.response(409, 'Name already in use')
    @jwt_required()
    @capability_required(Capability.MANAGE_MEMBERSHIPS)
    @membership_ns.marshal_with(membership_model)
    def put(self, id):
        """
        Update a membership plan (admin only)

        Subscribers who already bought the plan keep the terms they bought.
        """
        membership = Membership.query.get_or_404(id)
        clean, errors = validate_membership_input(request.json or {}, partial=True)
        if errors:
            membership_ns.abort(400, "Invalid membership", errors=errors)

        if 'name' in clean and Membership.query.filter(
                Membership.name == clean['name'], Membership.id != membership.id).first():
            membership_ns.abort(409, f"Membership {clean['name']!r} already exists")

        for key, value in clean.items():
            setattr(membership, key, value)
        db.session.commit()
        return membership

    @membership_ns.doc('delete_membership')
    @membership_ns.response(204, 'Membership deleted')
    @jwt_required()
    @capability_required(Capability.MANAGE_MEMBERSHIPS)
    def delete(self, id):
        """Delete a membership plan (admin only); purchased items are kept"""
        membership = Membership.query.get_or_404(id)
        SubscriptionItem.query.filter_by(membership_id=membership.id).update(
            {'membership_id': None}, synchronize_session=False
        )
        db.session.delete(membership)
        db.session.commit()
        return '', 204


@membership_ns.route('/<int:id>/status')
@membership_ns.param('id', 'The membership identifier')
class MembershipStatus(Resource):
    """Resource for putting a plan on or off sale"""

    @membership_ns.doc('set_membership_status')
    @membership_ns.expect(status_input_model)
    @jwt_required()
    @capability_required(Capability.MANAGE_MEMBERSHIPS)
    @membership_ns.marshal_with(membership_model)
    def patch(self, id):
        """Activate or deactivate a membership plan (admin only)"""
        membership = Membership.query.get_or_404(id)
        data = request.json or {}
        if 'is_active' not in data:
            membership_ns.abort(400, "is_active is required")
        membership.is_active = bool(data['is_active'])
        db.session.commit()
        return membership
