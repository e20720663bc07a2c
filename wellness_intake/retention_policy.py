"""
Data Retention Policy Module

Deletes questionnaire drafts that can no longer be loaded.

A draft older than the freshness window is already treated as absent by
the form state store; this module removes those rows so abandoned answers
do not accumulate in the database.
"""

from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from wellness_intake import db
from wellness_intake.form_store import SNAPSHOT_TTL_MS
from wellness_intake.models import FormSnapshot


SNAPSHOT_RETENTION = timedelta(milliseconds=SNAPSHOT_TTL_MS)


def calculate_retention_date(now: Optional[datetime] = None) -> datetime:
    """
    Calculate the cutoff date for draft retention.

    Args:
        now: Reference time (defaults to current UTC time)

    Returns:
        Datetime before which drafts should be deleted
    """
    if now is None:
        now = datetime.utcnow()
    return now - SNAPSHOT_RETENTION


def find_stale_snapshots(now: Optional[datetime] = None):
    """Query drafts last updated before the retention cutoff."""
    cutoff = calculate_retention_date(now)
    return FormSnapshot.query.filter(FormSnapshot.updated_at < cutoff)


def purge_stale_snapshots(now: Optional[datetime] = None, dry_run: bool = False) -> int:
    """
    Delete stale drafts.

    Args:
        now: Reference time (defaults to current UTC time)
        dry_run: If True, only count

    Returns:
        Number of drafts deleted (or that would be deleted)
    """
    try:
        query = find_stale_snapshots(now)
        count = query.count()
        if dry_run or count == 0:
            return count

        query.delete(synchronize_session=False)
        db.session.commit()
        current_app.logger.info(f'Purged {count} stale questionnaire drafts')
        return count

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Failed to purge stale drafts: {str(e)}')
        return 0
