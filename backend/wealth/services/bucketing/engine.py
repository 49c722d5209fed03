# backend/wealth/services/bucketing/engine.py
"""
Temporal bucketing engine.

Groups dated monetary events into calendar buckets after applying the
exclusion-tag and month filters:

- MONTH:    "YYYY-MM" of the event date
- WEEK:     Thursday-anchored week number (1-53), labelled with the month
            of the first contributing event
- WEEKDAY:  0 = Sunday .. 6 = Saturday, all seven always present
- DAY:      "YYYY-MM-DD" for every day of one selected month
- CATEGORY: category tag name, "Unknown" for a missing tag

Every function is pure over an explicit snapshot; callers decide whether
to cache results.

Usage:
    from wealth.services.bucketing import bucket, BucketRequest, Granularity

    weekdays = bucket(events, BucketRequest(Granularity.WEEKDAY))
    weekdays[0]  # Sunday total
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from wealth.services.bucketing.types import (
    UNKNOWN_CATEGORY,
    ZERO,
    BucketFilter,
    BucketMap,
    BucketRequest,
    DatedEvent,
    Granularity,
)
from wealth.services.exceptions import ValidationError
from wealth.utils.date_utils import month_dates, sunday_based_weekday, week_of_year

logger = logging.getLogger(__name__)


# =============================================================================
# FILTERING
# =============================================================================

def apply_filter(events: Iterable[DatedEvent], flt: BucketFilter) -> list[DatedEvent]:
    """Events surviving the exclusion-tag and month filters, input order kept."""
    return [event for event in events if flt.accepts(event)]


# =============================================================================
# BUCKETS
# =============================================================================

def bucket_by_month(events: Iterable[DatedEvent]) -> BucketMap[str]:
    sums: dict[str, Decimal] = {}
    for event in sorted(events, key=lambda e: e.date):
        key = f"{event.date.year:04d}-{event.date.month:02d}"
        sums[key] = sums.get(key, ZERO) + event.amount
    return BucketMap(sums)


def bucket_by_week(events: Iterable[DatedEvent]) -> BucketMap[int]:
    """
    Sum per Thursday-anchored week number.

    The week's label is the month of the first event (in input order) that
    landed in it, so a week spanning two months shows under one of them.
    """
    sums: dict[int, Decimal] = {}
    labels: dict[int, str] = {}
    for event in events:
        week = week_of_year(event.date)
        if week not in sums:
            sums[week] = ZERO
            labels[week] = calendar.month_abbr[event.date.month]
        sums[week] += event.amount
    ordered = sorted(sums)
    return BucketMap({w: sums[w] for w in ordered}, {w: labels[w] for w in ordered})


def bucket_by_weekday(events: Iterable[DatedEvent]) -> BucketMap[int]:
    """Sum per weekday across the whole set; 0 = Sunday, all seven keys present."""
    sums = {weekday: ZERO for weekday in range(7)}
    for event in events:
        sums[sunday_based_weekday(event.date)] += event.amount
    labels = {i: name for i, name in enumerate(("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"))}
    return BucketMap(sums, labels)


def bucket_by_day(events: Iterable[DatedEvent], year: int, month: int) -> BucketMap[str]:
    """
    Sum per day of one month, zero-filled for the month's full length.

    Events outside the month are ignored.
    """
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month}", field="month")

    sums = {d.isoformat(): ZERO for d in month_dates(year, month)}
    for event in events:
        if event.date.year == year and event.date.month == month:
            sums[event.date.isoformat()] += event.amount
    return BucketMap(sums)


def bucket_by_category(
        events: Iterable[DatedEvent],
        tag_names: Mapping[int, str],
) -> BucketMap[str]:
    sums: dict[str, Decimal] = {}
    for event in events:
        name = tag_names.get(event.category_tag_id, UNKNOWN_CATEGORY)
        sums[name] = sums.get(name, ZERO) + event.amount
    return BucketMap(sums)


# =============================================================================
# DISPATCH
# =============================================================================

def bucket(events: Iterable[DatedEvent], request: BucketRequest) -> BucketMap:
    """
    Filter then bucket a snapshot of events.

    Raises:
        ValidationError: DAY granularity without year and month
    """
    filtered = apply_filter(events, request.filter)
    logger.debug(f"Bucketing {len(filtered)} events by {request.granularity.value}")

    if request.granularity == Granularity.MONTH:
        return bucket_by_month(filtered)
    if request.granularity == Granularity.WEEK:
        return bucket_by_week(filtered)
    if request.granularity == Granularity.WEEKDAY:
        return bucket_by_weekday(filtered)
    if request.granularity == Granularity.DAY:
        if request.year is None or request.month is None:
            raise ValidationError("Day buckets need both year and month", field="month")
        return bucket_by_day(filtered, request.year, request.month)
    if request.granularity == Granularity.CATEGORY:
        return bucket_by_category(filtered, request.tag_names)

    raise ValidationError(f"Unsupported granularity: {request.granularity}", field="granularity")
