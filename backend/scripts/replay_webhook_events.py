#!/usr/bin/env python3
"""
Re-run Stripe webhook events from the audit trail.

Releases the idempotency ledger entry and dispatches the stored payload
again. Side effects run again, so only replay events that failed or were
never finalized.

Usage:
    # Replay one event
    python replay_webhook_events.py --event-id evt_123

    # Replay events received over 15 minutes ago and never marked processed
    python replay_webhook_events.py --unprocessed

    # Only consider events older than an hour
    python replay_webhook_events.py --unprocessed --min-age-minutes 60
"""

import argparse
import sys
import os
from datetime import timedelta

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from billing.core.logging import setup_logging
from billing.db.helpers import utc_now
from billing.db.session import SessionLocal
from billing.repositories.webhook_events import WebhookAuditStore
from billing.services.webhook_service import replay_webhook_event


def replay(event_ids, db) -> bool:
    """Replay each event id in order. Returns True if all succeeded."""
    success = True
    for event_id in event_ids:
        try:
            outcome = replay_webhook_event(event_id, db)
        except LookupError as e:
            print(f"❌ {e}")
            success = False
            continue

        if outcome.failed:
            print(f"❌ {event_id} ({outcome.event_type}) failed: {outcome.error.message}")
            success = False
        else:
            print(f"✅ {event_id} ({outcome.event_type}) {outcome.status}")
    return success


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Replay Stripe webhook events from the audit trail',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--event-id', help='Stripe event id (evt_...) to replay')
    group.add_argument('--unprocessed', action='store_true', help='Replay all events never marked processed')
    parser.add_argument('--limit', type=int, default=100, help='Max events to replay with --unprocessed')
    parser.add_argument(
        '--min-age-minutes',
        type=int,
        default=15,
        help='With --unprocessed, skip events received more recently than this (may still be in flight)'
    )
    args = parser.parse_args(argv)

    setup_logging()
    db = SessionLocal()
    try:
        if args.event_id:
            event_ids = [args.event_id]
        else:
            received_before = utc_now() - timedelta(minutes=args.min_age_minutes)
            event_ids = [
                event.id for event in WebhookAuditStore(db).list_unprocessed(
                    limit=args.limit, received_before=received_before
                )
            ]
            if not event_ids:
                print("ℹ️  No unprocessed events")
                return 0
            print(f"🔄 Replaying {len(event_ids)} unprocessed event(s)")

        return 0 if replay(event_ids, db) else 1
    finally:
        db.close()


if __name__ == '__main__':
    sys.exit(main())
