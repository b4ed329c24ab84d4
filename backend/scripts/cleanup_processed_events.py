#!/usr/bin/env python3
"""
Delete old rows from the webhook idempotency ledger.

Usage:
    # Use PROCESSED_EVENT_RETENTION_HOURS (default 24)
    python cleanup_processed_events.py

    # Keep one week of ledger entries
    python cleanup_processed_events.py --max-age-hours 168
"""

import argparse
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from billing.core.config import settings
from billing.core.logging import setup_logging
from billing.db.session import SessionLocal
from billing.repositories.idempotency import IdempotencyLedger


def cleanup(max_age_hours: int) -> int:
    """Delete ledger rows older than max_age_hours. Returns the number deleted."""
    db = SessionLocal()
    try:
        return IdempotencyLedger(db).cleanup(max_age_hours=max_age_hours)
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Delete old webhook idempotency ledger entries')
    parser.add_argument(
        '--max-age-hours',
        type=int,
        default=settings.PROCESSED_EVENT_RETENTION_HOURS,
        help='Delete entries older than this many hours'
    )
    args = parser.parse_args(argv)

    if args.max_age_hours < 0:
        print("❌ Error: --max-age-hours must be >= 0")
        return 1

    setup_logging()
    deleted = cleanup(args.max_age_hours)
    print(f"✅ Deleted {deleted} ledger entries older than {args.max_age_hours}h")
    return 0


if __name__ == '__main__':
    sys.exit(main())
