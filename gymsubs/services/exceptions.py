"""Exceptions raised by the subscription store."""


class StoreError(Exception):
    """Base exception for all store-related errors."""

    pass


class SubscriptionNotFound(StoreError):
    """The user or id has no subscription yet."""

    pass


class MembershipNotFound(StoreError):
    """The requested membership plan does not exist."""

    pass


class MembershipUnavailable(StoreError):
    """The membership plan exists but is not on sale."""

    pass


class ItemNotFound(StoreError):
    """The item does not belong to the subscription."""

    pass


class ItemNotCancellable(StoreError):
    """The item is already expired or cancelled."""

    pass


class PartialBatchError(StoreError):
    """
    A multi-item add stopped on its first failure.

    Items added before the failure stay committed; callers re-fetch the
    subscription to reconcile.
    """

    def __init__(self, added, failed_membership_id, cause):
        super().__init__(
            f"Adding membership {failed_membership_id} failed after "
            f"{len(added)} item(s) were added: {cause}"
        )
        self.added = list(added)
        self.failed_membership_id = failed_membership_id
        self.cause = cause


class BatchCancelled(StoreError):
    """A multi-item add was cancelled by the caller before it finished."""

    def __init__(self, added):
        super().__init__(f"Batch cancelled after {len(added)} item(s) were added")
        self.added = list(added)


class UserNotFound(StoreError):
    """The user does not exist."""

    pass
