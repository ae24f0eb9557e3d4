"""Models module for the app.

This module contains the common database models for the application.
It includes a TimestampMixin class that provides created_at and updated_at
fields for records, a UTC clock truncated to millisecond precision, and a
utility function for generating KSUIDs (K-Sortable Unique IDentifiers)
which are time-ordered UUIDs."""

import datetime

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid():
    """Generate a K-Sortable Unique IDentifier (KSUID).

    KSUIDs are time-ordered UUIDs that are suitable for distributed systems
    and provide better performance characteristics than traditional UUIDs.
    They are URL-safe, timestamp prefixed, and sortable chronologically.

    Returns:
        str: A string representation of the generated KSUID.
    """
    return str(ksuid.Ksuid())


def utc_now() -> datetime.datetime:
    """Current UTC time, truncated to milliseconds.

    MongoDB keeps only millisecond precision, so both backends stamp with
    this clock to read back identical timestamps.
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class TimestampMixin(models.Model):
    # Stamped explicitly by the backend adapters instead of auto_now, so an
    # imported record can keep its original timestamps.
    created_at = fields.DatetimeField(default=utc_now)
    updated_at = fields.DatetimeField(default=utc_now)

    class Meta:
        abstract = True
