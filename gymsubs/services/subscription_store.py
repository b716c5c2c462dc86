"""
Subscription store: persistence for subscriptions and their item queues.

Every mutating method sweeps the queue at the caller-supplied ``now`` before
deciding anything, and commits its own work. Concurrency note: the store
reads the subscription, decides the new item's status and window, then
writes. Two writers adding to the same subscription at once can both see a
stale queue. Callers that add several items must either send them through
one ``add_items`` call from a single worker or hold a per-subscription lock
for the whole sequence.
"""
import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from gymsubs import db
from gymsubs.entitlements import (
    EntitlementError,
    InvariantViolation,
    ItemStatus,
    advance_queue,
    expires_within,
    initial_status,
    next_window,
)
from gymsubs.models import Membership, Subscription, SubscriptionItem, User

from .exceptions import (
    BatchCancelled,
    ItemNotCancellable,
    ItemNotFound,
    MembershipNotFound,
    MembershipUnavailable,
    PartialBatchError,
    StoreError,
    SubscriptionNotFound,
    UserNotFound,
)

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """
    Flask-SQLAlchemy backed store for subscriptions.

    Args:
        session: SQLAlchemy session, ``db.session`` by default
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _get_subscription(self, subscription_id):
        subscription = self.session.get(Subscription, subscription_id)
        if subscription is None:
            raise SubscriptionNotFound(f"Subscription {subscription_id} not found")
        return subscription

    def _advance(self, subscription, now):
        try:
            return advance_queue(subscription.items, now)
        except InvariantViolation as e:
            e.subscription_id = subscription.id
            logger.error("Subscription %s: %s", subscription.id, e.message)
            raise

    def fetch_subscription(self, user_id):
        """
        Get the subscription owned by a user.

        Raises:
            SubscriptionNotFound: If the user has no subscription yet
        """
        subscription = self.session.query(Subscription).filter_by(user_id=user_id).first()
        if subscription is None:
            raise SubscriptionNotFound(f"User {user_id} has no subscription")
        return subscription

    def get_subscription(self, subscription_id):
        return self._get_subscription(subscription_id)

    def create_subscription(self, user_id):
        """
        Create the user's subscription, or return the one that exists.

        Raises:
            UserNotFound: If the user does not exist
        """
        if self.session.get(User, user_id) is None:
            raise UserNotFound(f"User {user_id} not found")

        existing = self.session.query(Subscription).filter_by(user_id=user_id).first()
        if existing is not None:
            return existing

        subscription = Subscription(user_id=user_id)
        self.session.add(subscription)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created it first
            self.session.rollback()
            return self.fetch_subscription(user_id)
        logger.info("Created subscription %s for user %s", subscription.id, user_id)
        return subscription

    def sweep(self, subscription, now):
        """
        Advance the subscription's queue to ``now`` and persist any change.

        Returns:
            list: Transitions applied
        """
        transitions = self._advance(subscription, now)
        if transitions:
            self._commit()
        return transitions

    def add_item(self, subscription_id, membership_id, now):
        """
        Buy one membership into the subscription.

        The item copies the plan's current terms. Its window starts where the
        queue ends and its status is active only when nothing else is active
        or waiting.

        Args:
            subscription_id (int): Target subscription
            membership_id (int): Plan to buy
            now (datetime): Purchase instant

        Returns:
            SubscriptionItem: The committed item

        Raises:
            SubscriptionNotFound: If the subscription does not exist
            MembershipNotFound: If the plan does not exist
            MembershipUnavailable: If the plan is not on sale
            InvariantViolation: If the stored queue is corrupt
        """
        subscription = self._get_subscription(subscription_id)
        membership = self.session.get(Membership, membership_id)
        if membership is None:
            raise MembershipNotFound(f"Membership {membership_id} not found")
        if not membership.is_active:
            raise MembershipUnavailable(f"Membership {membership.name!r} is not available")

        self._advance(subscription, now)
        status = initial_status(subscription.items)
        start_date, end_date = next_window(subscription.items, now, membership.duration_months)

        item = SubscriptionItem.from_membership(
            subscription_id=subscription.id,
            membership=membership,
            start_date=start_date,
            end_date=end_date,
            status=status,
            purchase_date=now,
        )
        subscription.items.append(item)
        self._commit()
        logger.info(
            "Subscription %s: added item %s (%s) as %s, %s -> %s",
            subscription.id, item.id, item.name, item.status, start_date, end_date,
        )
        return item

    def add_items(self, subscription_id, membership_ids, now, cancel_event=None):
        """
        Buy several memberships one after another.

        Each item is committed on its own. The batch stops at the first
        failure; items already added are kept, not rolled back. Not safe
        against another writer on the same subscription (see module notes).

        Args:
            subscription_id (int): Target subscription
            membership_ids (list): Plans to buy, in purchase order
            now (datetime): Purchase instant
            cancel_event (threading.Event, optional): Set to stop before the
                next item is applied

        Returns:
            list: The committed items

        Raises:
            PartialBatchError: On the first failing item
            BatchCancelled: If ``cancel_event`` was set
        """
        added = []
        for membership_id in membership_ids:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "Subscription %s: batch cancelled after %d item(s)", subscription_id, len(added)
                )
                raise BatchCancelled(added)
            try:
                added.append(self.add_item(subscription_id, membership_id, now))
            except (StoreError, EntitlementError, SQLAlchemyError) as e:
                logger.warning(
                    "Subscription %s: batch stopped at membership %s after %d item(s): %s",
                    subscription_id, membership_id, len(added), e,
                )
                raise PartialBatchError(added, membership_id, e) from e
        return added

    def cancel_item(self, subscription_id, item_id, now):
        """
        Cancel a pending or active item, then move the queue forward.

        Raises:
            ItemNotFound: If the item is not part of the subscription
            ItemNotCancellable: If the item is expired or already cancelled
        """
        subscription = self._get_subscription(subscription_id)
        item = next((i for i in subscription.items if i.id == item_id), None)
        if item is None:
            raise ItemNotFound(f"Item {item_id} not found in subscription {subscription_id}")

        self._advance(subscription, now)
        try:
            item.cancel(now)
        except ValueError as e:
            self.session.rollback()
            raise ItemNotCancellable(str(e)) from e
        self._advance(subscription, now)
        self._commit()
        logger.info("Subscription %s: cancelled item %s", subscription.id, item.id)
        return item

    def set_active(self, subscription_id, is_active):
        """Set the staff-controlled subscription flag."""
        subscription = self._get_subscription(subscription_id)
        subscription.is_active = bool(is_active)
        self._commit()
        logger.info("Subscription %s: is_active=%s", subscription.id, subscription.is_active)
        return subscription

    def expiring_subscriptions(self, now, days=7):
        """
        Active subscriptions whose current item runs out within ``days`` days.

        Candidate queues are swept first so stale statuses do not hide or
        invent an expiry.
        """
        horizon = now + timedelta(days=days)
        candidates = (
            self.session.query(Subscription)
            .join(SubscriptionItem)
            .filter(
                Subscription.is_active.is_(True),
                SubscriptionItem.status.in_([ItemStatus.ACTIVE.value, ItemStatus.PENDING.value]),
                SubscriptionItem.start_date <= horizon,
            )
            .distinct()
            .order_by(Subscription.id)
            .all()
        )
        expiring = []
        for subscription in candidates:
            self._advance(subscription, now)
            if expires_within(subscription.items, now, days):
                expiring.append(subscription)
        self._commit()
        return expiring

    def sweep_all(self, now, batch_size=500):
        """
        Sweep every subscription, committing once per batch.

        Batches are keyed on the subscription id and load their items in one
        extra query, so no cursor stays open across commits. A subscription
        with a corrupt queue is reported in ``failed`` and left unchanged.

        Returns:
            dict: ``swept``, ``transitions`` and ``failed`` (subscription ids)
        """
        report = {'swept': 0, 'transitions': 0, 'failed': []}
        last_id = 0
        while True:
            batch = (
                self.session.query(Subscription)
                .options(selectinload(Subscription.items))
                .filter(Subscription.id > last_id)
                .order_by(Subscription.id)
                .limit(batch_size)
                .all()
            )
            if not batch:
                break
            last_id = batch[-1].id
            for subscription in batch:
                try:
                    report['transitions'] += len(self._advance(subscription, now))
                except InvariantViolation:
                    report['failed'].append(subscription.id)
                    continue
                report['swept'] += 1
            self._commit()
            logger.debug("Swept subscriptions up to id %s", last_id)
        return report
