"""
Unit tests for the entitlement queue: classification, ordering and the sweep.
"""
import copy
import random
from datetime import datetime, timedelta

import pytest

from gymsubs.entitlements import (
    InvariantViolation,
    ItemSnapshot,
    ItemStatus,
    active_item,
    advance_queue,
    cancelled_items,
    expired_items,
    initial_status,
    next_window,
    pending_items,
)


def random_items(rng, count):
    """Random item set with at most one active item."""
    base = datetime(2024, 1, 1)
    items = []
    active_used = False
    for i in range(count):
        choices = [ItemStatus.PENDING, ItemStatus.EXPIRED, ItemStatus.CANCELLED]
        if not active_used:
            choices.append(ItemStatus.ACTIVE)
        status = rng.choice(choices)
        active_used = active_used or status is ItemStatus.ACTIVE
        start = base + timedelta(days=rng.randint(0, 60))
        items.append(ItemSnapshot(
            id=i + 1,
            name=f"Item {i + 1}",
            cost="10.00",
            max_classes_assistance=0,
            max_gym_assistance=0,
            duration_months=1,
            purchase_date=start - timedelta(days=rng.randint(0, 3)),
            start_date=start,
            end_date=start + timedelta(days=rng.randint(1, 40)),
            status=status.value,
        ))
    rng.shuffle(items)
    return items


class TestClassification:
    """Tests for active_item, pending_items and expired_items."""

    @pytest.mark.parametrize("seed", range(25))
    def test_classification_properties(self, seed):
        """Each view holds exactly the items of its status, in its order."""
        rng = random.Random(seed)
        items = random_items(rng, rng.randint(0, 8))

        active = active_item(items)
        assert active is None or active.status == ItemStatus.ACTIVE.value
        assert (active is not None) == any(i.status == "active" for i in items)

        pending = pending_items(items)
        assert {i.id for i in pending} == {i.id for i in items if i.status == "pending"}
        assert all(a.start_date <= b.start_date for a, b in zip(pending, pending[1:]))

        expired = expired_items(items)
        assert {i.id for i in expired} == {i.id for i in items if i.status == "expired"}
        assert all(a.end_date >= b.end_date for a, b in zip(expired, expired[1:]))

    def test_empty_item_set(self):
        """No items means no active item and empty queues."""
        assert active_item([]) is None
        assert pending_items([]) == []
        assert expired_items([]) == []
        assert cancelled_items([]) == []

    def test_two_active_items_is_invariant_violation(self, snapshot):
        """Two active items raise instead of picking one."""
        items = [
            snapshot(1, "active", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "active", (2024, 2, 1), (2024, 3, 1)),
        ]
        with pytest.raises(InvariantViolation) as excinfo:
            active_item(items)
        assert sorted(excinfo.value.item_ids) == [1, 2]

    def test_unknown_status_is_invariant_violation(self, snapshot):
        item = snapshot(1, "pending", (2024, 1, 1), (2024, 2, 1))
        item.status = "paused"
        with pytest.raises(InvariantViolation):
            pending_items([item])

    def test_pending_tie_break_by_purchase_date_then_id(self, snapshot):
        """Equal start dates go first purchased first, then lowest id."""
        items = [
            snapshot(3, "pending", (2024, 3, 1), (2024, 4, 1), purchase=(2024, 1, 5)),
            snapshot(2, "pending", (2024, 3, 1), (2024, 4, 1), purchase=(2024, 1, 2)),
            snapshot(1, "pending", (2024, 3, 1), (2024, 4, 1), purchase=(2024, 1, 5)),
            snapshot(4, "pending", (2024, 2, 1), (2024, 3, 1), purchase=(2024, 1, 9)),
        ]
        assert [i.id for i in pending_items(items)] == [4, 2, 1, 3]

    def test_expired_most_recent_first(self, snapshot):
        items = [
            snapshot(1, "expired", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "expired", (2024, 3, 1), (2024, 4, 1)),
            snapshot(3, "expired", (2024, 2, 1), (2024, 3, 1)),
            snapshot(4, "active", (2024, 4, 1), (2024, 5, 1)),
        ]
        assert [i.id for i in expired_items(items)] == [2, 3, 1]

    def test_cancelled_items_listed_separately(self, snapshot):
        items = [
            snapshot(1, "cancelled", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "pending", (2024, 2, 1), (2024, 3, 1)),
        ]
        assert [i.id for i in cancelled_items(items)] == [1]
        assert [i.id for i in pending_items(items)] == [2]


class TestAdvanceQueue:
    """Tests for the transition sweep."""

    def test_active_item_before_end_is_kept(self, snapshot):
        items = [
            snapshot(1, "pending", (2024, 5, 1), (2024, 8, 1)),
            snapshot(2, "active", (2024, 1, 1), (2024, 4, 1)),
        ]
        assert advance_queue(items, datetime(2024, 2, 1)) == []
        assert items[1].status == "active"
        assert items[0].status == "pending"

    def test_lapsed_active_item_hands_over_to_next_pending(self, snapshot):
        """The expired item is retired and the queue head takes over."""
        items = [
            snapshot(1, "pending", (2024, 5, 1), (2024, 8, 1)),
            snapshot(2, "active", (2024, 1, 1), (2024, 4, 1)),
        ]
        transitions = advance_queue(items, datetime(2024, 4, 15))

        assert items[1].status == "expired"
        assert items[0].status == "active"
        # dates are fixed at purchase time
        assert items[0].start_date == datetime(2024, 5, 1)
        assert items[0].end_date == datetime(2024, 8, 1)
        assert [(t.item_id, t.previous, t.current) for t in transitions] == [
            (2, ItemStatus.ACTIVE, ItemStatus.EXPIRED),
            (1, ItemStatus.PENDING, ItemStatus.ACTIVE),
        ]

    def test_end_date_reached_exactly_expires(self, snapshot):
        items = [snapshot(1, "active", (2024, 1, 1), (2024, 2, 1))]
        advance_queue(items, datetime(2024, 2, 1))
        assert items[0].status == "expired"

    def test_several_lapsed_periods_in_one_call(self, snapshot):
        """A long absence walks through every period that ended."""
        items = [
            snapshot(1, "active", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "pending", (2024, 2, 1), (2024, 3, 1)),
            snapshot(3, "pending", (2024, 3, 1), (2024, 4, 1)),
        ]
        transitions = advance_queue(items, datetime(2024, 3, 15))

        assert [i.status for i in items] == ["expired", "expired", "active"]
        assert len(transitions) == 4

    def test_everything_lapsed_leaves_no_active_item(self, snapshot):
        """Zero active items is a valid end state, not an error."""
        items = [
            snapshot(1, "active", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "pending", (2024, 2, 1), (2024, 3, 1)),
        ]
        advance_queue(items, datetime(2024, 6, 1))
        assert [i.status for i in items] == ["expired", "expired"]
        assert active_item(items) is None

    def test_pending_item_promoted_when_nothing_active(self, snapshot):
        items = [
            snapshot(1, "expired", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "pending", (2024, 3, 1), (2024, 4, 1)),
        ]
        advance_queue(items, datetime(2024, 2, 10))
        assert items[1].status == "active"

    def test_cancelled_items_are_not_touched(self, snapshot):
        items = [
            snapshot(1, "cancelled", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "active", (2024, 2, 1), (2024, 3, 1)),
        ]
        advance_queue(items, datetime(2024, 3, 10))
        assert items[0].status == "cancelled"
        assert items[1].status == "expired"

    def test_duplicate_active_raises_without_changes(self, snapshot):
        items = [
            snapshot(1, "active", (2024, 1, 1), (2024, 2, 1)),
            snapshot(2, "active", (2024, 2, 1), (2024, 3, 1)),
            snapshot(3, "pending", (2024, 3, 1), (2024, 4, 1)),
        ]
        with pytest.raises(InvariantViolation):
            advance_queue(items, datetime(2024, 6, 1))
        assert [i.status for i in items] == ["active", "active", "pending"]

    @pytest.mark.parametrize("seed", range(25))
    def test_sweep_is_idempotent(self, seed):
        """A second sweep at the same instant changes nothing."""
        rng = random.Random(seed)
        items = random_items(rng, rng.randint(0, 8))
        now = datetime(2024, 1, 1) + timedelta(days=rng.randint(0, 120))

        advance_queue(items, now)
        once = copy.deepcopy([(i.id, i.status) for i in items])

        assert advance_queue(items, now) == []
        assert [(i.id, i.status) for i in items] == once
        assert len([i for i in items if i.status == "active"]) <= 1


class TestPurchaseHelpers:
    """Tests for initial_status and next_window."""

    def test_initial_status_empty_queue_is_active(self, snapshot):
        assert initial_status([]) is ItemStatus.ACTIVE
        expired_only = [snapshot(1, "expired", (2024, 1, 1), (2024, 2, 1))]
        assert initial_status(expired_only) is ItemStatus.ACTIVE

    def test_initial_status_behind_others_is_pending(self, snapshot):
        active = [snapshot(1, "active", (2024, 1, 1), (2024, 2, 1))]
        waiting = [snapshot(1, "pending", (2024, 1, 1), (2024, 2, 1))]
        assert initial_status(active) is ItemStatus.PENDING
        assert initial_status(waiting) is ItemStatus.PENDING

    def test_next_window_empty_queue_starts_now(self):
        now = datetime(2024, 1, 31, 10, 30)
        start, end = next_window([], now, 1)
        assert start == now
        assert end == datetime(2024, 2, 29, 10, 30)

    def test_next_window_starts_at_queue_tail(self, snapshot):
        items = [
            snapshot(1, "active", (2024, 1, 1), (2024, 3, 1)),
            snapshot(2, "pending", (2024, 3, 1), (2024, 6, 1)),
            snapshot(3, "expired", (2023, 1, 1), (2023, 2, 1)),
        ]
        start, end = next_window(items, datetime(2024, 2, 1), 3)
        assert start == datetime(2024, 6, 1)
        assert end == datetime(2024, 9, 1)

    def test_next_window_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            next_window([], datetime(2024, 1, 1), 0)


class TestItemSnapshot:
    """Tests for the in-memory item."""

    def test_from_dict_accepts_camel_case_json(self):
        item = ItemSnapshot.from_dict({
            "id": "a1",
            "name": "Monthly",
            "cost": "99.99",
            "maxClassesAssistance": 20,
            "maxGymAssistance": 30,
            "durationMonths": 3,
            "purchaseDate": "2023-12-20T08:00:00Z",
            "startDate": "2024-01-01",
            "endDate": "2024-04-01",
            "status": "ACTIVE",
        })
        assert item.status == "active"
        assert item.start_date == datetime(2024, 1, 1)
        assert item.purchase_date == datetime(2023, 12, 20, 8, 0)
        assert item.max_classes_assistance == 20
        assert item.duration_months == 3

    @staticmethod
    def payload(**overrides):
        data = {
            "id": 9,
            "name": "Monthly",
            "cost": "49.99",
            "maxClassesAssistance": 20,
            "maxGymAssistance": 30,
            "durationMonths": 1,
            "startDate": "2024-01-01",
            "endDate": "2024-02-01",
            "status": "active",
        }
        data.update(overrides)
        return {k: v for k, v in data.items() if v is not None}

    def test_missing_cost_is_not_zero(self):
        """A cost that is absent is reported, never read as free."""
        with pytest.raises(InvariantViolation) as excinfo:
            ItemSnapshot.from_dict(self.payload(cost=None))
        assert excinfo.value.item_ids == [9]

    def test_non_numeric_cost_rejected(self):
        with pytest.raises(InvariantViolation):
            ItemSnapshot.from_dict(self.payload(cost="n/a"))

    @pytest.mark.parametrize("field, value", [
        ("maxClassesAssistance", "twenty"),
        ("maxGymAssistance", 2.5),
        ("durationMonths", True),
        ("maxClassesAssistance", None),
    ])
    def test_bad_counts_rejected(self, field, value):
        with pytest.raises(InvariantViolation):
            ItemSnapshot.from_dict(self.payload(**{field: value}))

    @pytest.mark.parametrize("field, value", [
        ("endDate", None),
        ("startDate", None),
        ("endDate", "next month"),
        ("purchaseDate", "yesterday"),
    ])
    def test_bad_dates_rejected(self, field, value):
        with pytest.raises(InvariantViolation):
            ItemSnapshot.from_dict(self.payload(**{field: value}))

    def test_reversed_window_rejected(self):
        with pytest.raises(InvariantViolation):
            ItemSnapshot.from_dict(self.payload(startDate="2024-03-01"))

    def test_numeric_strings_accepted(self):
        item = ItemSnapshot.from_dict(self.payload(maxGymAssistance="30", cost=49.99))
        assert item.max_gym_assistance == 30
        assert item.purchase_date == item.start_date

    def test_end_must_follow_start(self, snapshot):
        with pytest.raises(ValueError):
            snapshot(1, "pending", (2024, 2, 1), (2024, 2, 1))
