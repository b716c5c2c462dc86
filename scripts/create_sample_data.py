#!/usr/bin/env python
"""
Script to seed membership plans and demo clients with subscription queues:
- one plan per entry in SAMPLE_MEMBERSHIPS
- CLIENT_COUNT clients, each with a subscription
- a mix of expired, active and queued items per client
"""
import random
from datetime import timedelta
from decimal import Decimal

from faker import Faker

from gymsubs import create_app, db
from gymsubs.models import Membership, User
from gymsubs.services.subscription_store import SubscriptionStore
from gymsubs.utils.dates import utcnow

fake = Faker()

CLIENT_COUNT = 50

SAMPLE_MEMBERSHIPS = [
    {"name": "Monthly Gym", "cost": Decimal("29.99"), "duration_months": 1,
     "max_gym_assistance": 30, "max_classes_assistance": 0,
     "description": "Gym floor access for one month"},
    {"name": "Monthly Full", "cost": Decimal("49.99"), "duration_months": 1,
     "max_gym_assistance": 30, "max_classes_assistance": 12,
     "description": "Gym floor and group classes for one month"},
    {"name": "Quarterly Full", "cost": Decimal("129.99"), "duration_months": 3,
     "max_gym_assistance": 90, "max_classes_assistance": 36,
     "description": "Gym floor and group classes for three months"},
    {"name": "Annual Full", "cost": Decimal("449.00"), "duration_months": 12,
     "max_gym_assistance": 365, "max_classes_assistance": 150,
     "description": "Gym floor and group classes for a year"},
]


def create_memberships():
    """Create the sample plans that do not exist yet."""
    plans = []
    for data in SAMPLE_MEMBERSHIPS:
        plan = Membership.query.filter_by(name=data["name"]).first()
        if plan is None:
            plan = Membership(**data)
            db.session.add(plan)
        plans.append(plan)
    db.session.commit()
    print(f"{len(plans)} membership plans available")
    return plans


def create_clients(plans):
    """Create demo clients, each buying a few memberships back to back."""
    store = SubscriptionStore()
    now = utcnow()
    for _ in range(CLIENT_COUNT):
        user = User(
            username=fake.unique.user_name(),
            email=fake.unique.email(),
            password="password123",
        )
        db.session.add(user)
        db.session.commit()

        subscription = store.create_subscription(user.id)
        # first purchase somewhere in the last year, so part of the queue has already run
        purchased_at = now - timedelta(days=random.randint(0, 365))
        plan_ids = [random.choice(plans).id for _ in range(random.randint(1, 4))]
        store.add_items(subscription.id, plan_ids, purchased_at)
        store.sweep(subscription, now)
    print(f"Created {CLIENT_COUNT} clients with subscriptions")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        create_clients(create_memberships())
