"""
Routes for user subscriptions and their membership queue.

Every read sweeps the queue at request time before classifying items, so
responses never show an item as active after its end date.
"""
from flask import current_app, request
from flask_jwt_extended import jwt_required
from flask_restx import Resource, fields

from gymsubs.entitlements import ItemStatus, days_remaining, project
from gymsubs.models.subscription import Subscription, SubscriptionItem
from gymsubs.models.user import Capability
from gymsubs.services.exceptions import SubscriptionNotFound
from gymsubs.services.subscription_store import SubscriptionStore
from gymsubs.utils.auth import capability_required, current_role, current_user_id
from gymsubs.utils.dates import utcnow

from . import subscription_ns

item_model = subscription_ns.model('SubscriptionItem', {
    'id': fields.Integer(description='Item ID'),
    'membership_id': fields.Integer(description='Plan it was bought from'),
    'name': fields.String(description='Membership name at purchase time'),
    'cost': fields.Float(description='Price paid',
                         attribute=lambda x: float(x.cost) if x.cost is not None else None),
    'max_classes_assistance': fields.Integer(description='Class visits granted'),
    'max_gym_assistance': fields.Integer(description='Gym visits granted'),
    'duration_months': fields.Integer(description='Duration in months'),
    'purchase_date': fields.DateTime(description='Purchase date'),
    'start_date': fields.DateTime(description='Start of validity'),
    'end_date': fields.DateTime(description='End of validity'),
    'status': fields.String(description='Item status', enum=[s.value for s in ItemStatus]),
    'cancelled_at': fields.DateTime(description='Cancellation date'),
})

benefits_model = subscription_ns.model('Benefits', {
    'cost': fields.Float(description='Price of the active item, 0 without one'),
    'classes': fields.Integer(description='Class visits allowed'),
    'gym': fields.Integer(description='Gym visits allowed'),
    'duration_months': fields.Integer(description='Duration of the active item'),
    'valid_until': fields.DateTime(description='End of the active item, null without one'),
    'name': fields.String(description='Active membership name, null without one'),
})

subscription_model = subscription_ns.model('Subscription', {
    'id': fields.Integer(description='Subscription ID'),
    'user_id': fields.Integer(description='Owning user'),
    'is_active': fields.Boolean(description='Staff-controlled flag'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

subscription_list_model = subscription_ns.model('SubscriptionList', {
    'subscriptions': fields.List(fields.Nested(subscription_model)),
    'total': fields.Integer(description='Total number of subscriptions'),
    'page': fields.Integer(description='Current page number'),
    'per_page': fields.Integer(description='Items per page'),
    'pages': fields.Integer(description='Total number of pages')
})

subscription_view_model = subscription_ns.inherit('SubscriptionView', subscription_model, {
    'has_entitlement': fields.Boolean(description='Whether an item is active'),
    'benefits': fields.Nested(benefits_model),
    'days_remaining': fields.Integer(description='Days left on the active item'),
    'active_item': fields.Nested(item_model, allow_null=True),
    'pending': fields.List(fields.Nested(item_model), description='Queue, next to activate first'),
    'expired': fields.List(fields.Nested(item_model), description='History, most recent first'),
    'cancelled': fields.List(fields.Nested(item_model)),
    'transitions_applied': fields.Integer(description='Status changes made by this request'),
})

create_input_model = subscription_ns.model('SubscriptionInput', {
    'user_id': fields.Integer(description='Owner; defaults to the caller (staff only for others)'),
})

add_memberships_input_model = subscription_ns.model('AddMembershipsInput', {
    'membership_ids': fields.List(fields.Integer, required=True,
                                  description='Plans to buy, in purchase order'),
})

added_items_model = subscription_ns.model('AddedItems', {
    'subscription_id': fields.Integer(description='Subscription ID'),
    'items': fields.List(fields.Nested(item_model)),
})

status_input_model = subscription_ns.model('SubscriptionStatusInput', {
    'is_active': fields.Boolean(required=True, description='Staff-controlled flag'),
})

expiring_model = subscription_ns.model('ExpiringSubscription', {
    'subscription_id': fields.Integer(description='Subscription ID'),
    'user_id': fields.Integer(description='Owning user'),
    'username': fields.String(description='Owner username'),
    'membership': fields.String(description='Active membership name'),
    'valid_until': fields.DateTime(description='End of the active item'),
    'days_remaining': fields.Integer(description='Days left'),
})


def _require_access(owner_id, capability):
    """Allow the owner, or a role holding ``capability``."""
    if owner_id != current_user_id() and not current_role().can(capability):
        subscription_ns.abort(403, "Not allowed to access this subscription")


def _view(store, subscription, now):
    transitions = store.sweep(subscription, now)
    view = project(subscription.items, now)
    return {
        'id': subscription.id,
        'user_id': subscription.user_id,
        'is_active': subscription.is_active,
        'created_at': subscription.created_at,
        'updated_at': subscription.updated_at,
        'has_entitlement': view.active is not None,
        'benefits': view.benefits.as_dict(),
        'days_remaining': view.days_remaining,
        'active_item': view.active,
        'pending': view.pending,
        'expired': view.expired,
        'cancelled': view.cancelled,
        'transitions_applied': len(transitions),
    }


@subscription_ns.route('/')
class SubscriptionList(Resource):
    """Resource for listing and creating subscriptions"""

    @subscription_ns.doc('list_subscriptions', params={
        'page': {'type': 'integer', 'default': 1, 'description': 'Page number'},
        'per_page': {'type': 'integer', 'default': 10, 'description': 'Items per page'},
        'user_id': {'type': 'integer', 'description': 'Only this user\'s subscription'},
        'is_active': {'type': 'boolean', 'description': 'Filter on the staff-controlled flag'},
        'status': {'type': 'string', 'enum': [s.value for s in ItemStatus],
                   'description': 'Only subscriptions holding an item in this status'},
    })
    @subscription_ns.response(400, 'Invalid filter')
    @jwt_required()
    @capability_required(Capability.VIEW_ANY_SUBSCRIPTION)
    @subscription_ns.marshal_with(subscription_list_model)
    def get(self):
        """
        List subscriptions (staff only)

        The status filter reads stored item statuses, which the scheduled
        sweep keeps current.
        """
        page = request.args.get('page', 1, type=int)
        per_page = request.args.get('per_page', 10, type=int)
        user_id = request.args.get('user_id', type=int)
        is_active = request.args.get('is_active')
        status = request.args.get('status')

        query = Subscription.query
        if user_id is not None:
            query = query.filter(Subscription.user_id == user_id)
        if is_active is not None:
            if is_active.lower() not in ('true', 'false'):
                subscription_ns.abort(400, "is_active must be true or false")
            query = query.filter(Subscription.is_active.is_(is_active.lower() == 'true'))
        if status is not None:
            try:
                status = ItemStatus(status.lower())
            except ValueError:
                subscription_ns.abort(
                    400, f"status must be one of: {', '.join(s.value for s in ItemStatus)}")
            query = query.filter(Subscription.items.any(SubscriptionItem.status == status.value))

        pagination = query.order_by(Subscription.id).paginate(
            page=page, per_page=per_page, error_out=False
        )

        return {
            'subscriptions': pagination.items,
            'total': pagination.total,
            'page': pagination.page,
            'per_page': pagination.per_page,
            'pages': pagination.pages
        }

    @subscription_ns.doc('create_subscription')
    @subscription_ns.expect(create_input_model)
    @subscription_ns.response(200, 'Subscription already existed')
    @subscription_ns.response(201, 'Subscription created')
    @subscription_ns.response(404, 'User not found')
    @jwt_required()
    @subscription_ns.marshal_with(subscription_model)
    def post(self):
        """Create a subscription for the caller, or for any user (staff)"""
        data = request.json or {}
        user_id = data.get('user_id')
        if user_id is None:
            user_id = current_user_id()
        elif isinstance(user_id, bool) or not isinstance(user_id, int):
            subscription_ns.abort(400, "user_id must be an integer")
        _require_access(user_id, Capability.MODIFY_ANY_SUBSCRIPTION)

        store = SubscriptionStore()
        try:
            return store.fetch_subscription(user_id), 200
        except SubscriptionNotFound:
            return store.create_subscription(user_id), 201


@subscription_ns.route('/me')
class MySubscription(Resource):
    """Resource for the caller's own subscription"""

    @subscription_ns.doc('get_my_subscription')
    @subscription_ns.response(404, 'No subscription yet')
    @jwt_required()
    @subscription_ns.marshal_with(subscription_view_model)
    def get(self):
        """Get the caller's subscription, queue and current benefits"""
        store = SubscriptionStore()
        subscription = store.fetch_subscription(current_user_id())
        return _view(store, subscription, utcnow())


@subscription_ns.route('/user/<int:user_id>')
@subscription_ns.param('user_id', 'The user identifier')
class UserSubscription(Resource):
    """Resource for a given user's subscription"""

    @subscription_ns.doc('get_user_subscription')
    @subscription_ns.response(403, 'Not allowed')
    @subscription_ns.response(404, 'No subscription yet')
    @jwt_required()
    @subscription_ns.marshal_with(subscription_view_model)
    def get(self, user_id):
        """Get a user's subscription, queue and current benefits"""
        _require_access(user_id, Capability.VIEW_ANY_SUBSCRIPTION)
        store = SubscriptionStore()
        subscription = store.fetch_subscription(user_id)
        return _view(store, subscription, utcnow())


@subscription_ns.route('/<int:id>/memberships')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionMemberships(Resource):
    """Resource for buying memberships into a subscription"""

    @subscription_ns.doc('add_memberships')
    @subscription_ns.expect(add_memberships_input_model)
    @subscription_ns.response(400, 'Invalid input or plan not on sale')
    @subscription_ns.response(404, 'Subscription or plan not found')
    @subscription_ns.response(409, 'Batch stopped part way; added_item_ids lists what was kept')
    @jwt_required()
    @subscription_ns.marshal_with(added_items_model, code=201)
    def post(self, id):
        """Add memberships to the subscription queue, in order"""
        data = request.json or {}
        membership_ids = data.get('membership_ids')
        if membership_ids is None and 'membership_id' in data:
            membership_ids = [data['membership_id']]
        if (not isinstance(membership_ids, list) or not membership_ids
                or not all(isinstance(m, int) and not isinstance(m, bool) for m in membership_ids)):
            subscription_ns.abort(400, "membership_ids must be a non-empty list of integers")

        max_items = current_app.config.get('MAX_BATCH_ITEMS', 12)
        if len(membership_ids) > max_items:
            subscription_ns.abort(400, f"At most {max_items} memberships per request")

        store = SubscriptionStore()
        subscription = store.get_subscription(id)
        _require_access(subscription.user_id, Capability.MODIFY_ANY_SUBSCRIPTION)

        items = store.add_items(subscription.id, membership_ids, utcnow())
        return {'subscription_id': subscription.id, 'items': items}, 201


@subscription_ns.route('/<int:id>/items/<int:item_id>/cancel')
@subscription_ns.param('id', 'The subscription identifier')
@subscription_ns.param('item_id', 'The item identifier')
class SubscriptionItemCancel(Resource):
    """Resource for cancelling a purchased membership"""

    @subscription_ns.doc('cancel_item')
    @subscription_ns.response(400, 'Item already expired or cancelled')
    @subscription_ns.response(404, 'Subscription or item not found')
    @jwt_required()
    @subscription_ns.marshal_with(item_model)
    def patch(self, id, item_id):
        """Cancel a pending or active item; the next pending item takes over"""
        store = SubscriptionStore()
        subscription = store.get_subscription(id)
        _require_access(subscription.user_id, Capability.MODIFY_ANY_SUBSCRIPTION)
        return store.cancel_item(subscription.id, item_id, utcnow())


@subscription_ns.route('/<int:id>/status')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionStatus(Resource):
    """Resource for the staff-controlled subscription flag"""

    @subscription_ns.doc('set_subscription_status')
    @subscription_ns.expect(status_input_model)
    @jwt_required()
    @capability_required(Capability.MODIFY_ANY_SUBSCRIPTION)
    @subscription_ns.marshal_with(subscription_model)
    def patch(self, id):
        """Activate or deactivate a subscription (staff only)"""
        data = request.json or {}
        if 'is_active' not in data:
            subscription_ns.abort(400, "is_active is required")
        return SubscriptionStore().set_active(id, data['is_active'])


@subscription_ns.route('/expiring')
class ExpiringSubscriptions(Resource):
    """Resource for subscriptions about to run out"""

    @subscription_ns.doc('list_expiring', params={
        'days': {'type': 'integer', 'description': 'Look-ahead window in days (default from config)'},
    })
    @jwt_required()
    @capability_required(Capability.VIEW_EXPIRING)
    @subscription_ns.marshal_list_with(expiring_model)
    def get(self):
        """List active subscriptions whose membership ends within the window (staff only)"""
        days = request.args.get('days', current_app.config.get('EXPIRING_SOON_DAYS', 7), type=int)
        if days < 1:
            subscription_ns.abort(400, "days must be at least 1")

        now = utcnow()
        results = []
        for subscription in SubscriptionStore().expiring_subscriptions(now, days):
            benefits = subscription.benefits()
            results.append({
                'subscription_id': subscription.id,
                'user_id': subscription.user_id,
                'username': subscription.user.username if subscription.user else None,
                'membership': benefits.name,
                'valid_until': benefits.valid_until,
                'days_remaining': days_remaining(subscription.items, now),
            })
        return results
