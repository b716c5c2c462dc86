"""
Mapping of domain and store exceptions to HTTP responses.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from gymsubs import db
from gymsubs.entitlements import InvariantViolation
from gymsubs.services.exceptions import (
    BatchCancelled,
    ItemNotCancellable,
    ItemNotFound,
    MembershipNotFound,
    MembershipUnavailable,
    PartialBatchError,
    SubscriptionNotFound,
    UserNotFound,
)

logger = logging.getLogger(__name__)


def register_error_handlers(api):
    """
    Register error handlers on a flask-restx Api.

    Args:
        api (Api): The API instance
    """

    @api.errorhandler(InvariantViolation)
    def handle_invariant_violation(error):
        """A subscription's stored data breaks an entitlement rule."""
        db.session.rollback()
        return error.to_dict(), 409

    @api.errorhandler(SubscriptionNotFound)
    @api.errorhandler(MembershipNotFound)
    @api.errorhandler(ItemNotFound)
    @api.errorhandler(UserNotFound)
    def handle_not_found(error):
        return {'error': 'not_found', 'message': str(error)}, 404

    @api.errorhandler(MembershipUnavailable)
    @api.errorhandler(ItemNotCancellable)
    def handle_bad_request(error):
        return {'error': 'bad_request', 'message': str(error)}, 400

    @api.errorhandler(PartialBatchError)
    def handle_partial_batch(error):
        """Some items were added before the batch failed."""
        return {
            'error': 'partial_batch',
            'message': str(error),
            'added_item_ids': [item.id for item in error.added],
            'failed_membership_id': error.failed_membership_id,
        }, 409

    @api.errorhandler(BatchCancelled)
    def handle_batch_cancelled(error):
        return {
            'error': 'batch_cancelled',
            'message': str(error),
            'added_item_ids': [item.id for item in error.added],
        }, 409

    @api.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logger.exception("Database error")
        return {'error': 'database_error', 'message': 'Database error'}, 500
