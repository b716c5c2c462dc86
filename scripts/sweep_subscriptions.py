#!/usr/bin/env python
"""
Scheduled job: move every subscription's membership queue forward to now
and drop revoked-token rows whose tokens have expired.

Reads already sweep on access; this keeps stored statuses current for
subscriptions nobody looks at (reports, exports, direct SQL).
"""
import logging
import sys

from gymsubs import create_app
from gymsubs.models import RevokedToken
from gymsubs.services.subscription_store import SubscriptionStore
from gymsubs.utils.dates import utcnow

logger = logging.getLogger("gymsubs.scripts.sweep")


def main():
    app = create_app()
    with app.app_context():
        now = utcnow()
        report = SubscriptionStore().sweep_all(now)
        logger.info(
            "Swept %d subscription(s) at %s, %d transition(s)",
            report['swept'], now.isoformat(), report['transitions'],
        )
        purged = RevokedToken.purge_expired(now)
        logger.info("Purged %d expired revoked token(s)", purged)
        if report['failed']:
            logger.error("Subscriptions with corrupt queues: %s", report['failed'])
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
