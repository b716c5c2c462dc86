"""
Exceptions raised by the entitlement core.
"""


class EntitlementError(Exception):
    """Base exception for entitlement computations."""

    pass


class InvariantViolation(EntitlementError):
    """
    Raised when a subscription's items break a data-integrity rule.

    Examples are two items marked active at the same time, or a cost that
    cannot be read as a number. This is never used for "no entitlement".

    Attributes:
        item_ids (list): Identifiers of the offending items
        subscription_id: Owning subscription, when known
    """

    def __init__(self, message, item_ids=None, subscription_id=None):
        super().__init__(message)
        self.message = message
        self.item_ids = list(item_ids or [])
        self.subscription_id = subscription_id

    def to_dict(self):
        return {
            'error': 'invariant_violation',
            'message': self.message,
            'item_ids': self.item_ids,
            'subscription_id': self.subscription_id,
        }
