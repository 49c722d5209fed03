# backend/wealth/services/bucketing/types.py
"""
Internal data types for the temporal bucketing engine.

Design Principles:
- Immutable inputs (frozen=True) so a snapshot can be reused across views
- Decimal sums; a missing bucket reads as 0 rather than raising KeyError
- No database types: the expense service converts ORM rows to DatedEvent
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)

ZERO = Decimal("0")
UNKNOWN_CATEGORY = "Unknown"


class Granularity(str, enum.Enum):
    MONTH = "month"
    WEEK = "week"
    WEEKDAY = "weekday"
    DAY = "day"
    CATEGORY = "category"


@dataclass(frozen=True)
class DatedEvent:
    """
    One dated monetary event (an expense).

    Attributes:
        amount: Positive amount
        date: Calendar date of the event
        category_tag_id: Category tag, None when untagged
        exclusion_tag_ids: Exclusion tags attached to the event
        event_id: Source row id, when there is one
    """
    amount: Decimal
    date: date
    category_tag_id: int | None = None
    exclusion_tag_ids: frozenset[int] = frozenset()
    event_id: int | None = None


@dataclass(frozen=True)
class BucketFilter:
    """
    Pre-aggregation filters.

    Attributes:
        exclusion_tag_ids: Drop an event if it carries ANY of these tags
        months: Keep only events in these calendar months (1-12);
                empty means no month restriction
    """
    exclusion_tag_ids: frozenset[int] = frozenset()
    months: frozenset[int] = frozenset()

    def accepts(self, event: DatedEvent) -> bool:
        if self.exclusion_tag_ids and not self.exclusion_tag_ids.isdisjoint(event.exclusion_tag_ids):
            return False
        if self.months and event.date.month not in self.months:
            return False
        return True


class BucketMap(Mapping, Generic[K]):
    """
    Read-only bucket key -> sum mapping.

    Iteration yields the keys that were materialised (zero-filled ranges
    included) in insertion order. Looking up any other key returns 0.

    Attributes:
        labels: Optional display label per key (week -> month of first event)
    """

    def __init__(
            self,
            values: Mapping[K, Decimal] | None = None,
            labels: Mapping[K, str] | None = None,
    ) -> None:
        self._values: dict[K, Decimal] = dict(values or {})
        self.labels: dict[K, str] = dict(labels or {})

    def __getitem__(self, key: K) -> Decimal:
        return self._values.get(key, ZERO)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[K]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"BucketMap({self._values!r})"

    @property
    def total(self) -> Decimal:
        return sum(self._values.values(), ZERO)

    @property
    def max_value(self) -> Decimal:
        return max(self._values.values(), default=ZERO)

    def non_zero(self) -> "BucketMap[K]":
        """Copy without zero-valued buckets (chart-ready series)."""
        return BucketMap(
            {k: v for k, v in self._values.items() if v > ZERO},
            {k: v for k, v in self.labels.items() if self._values.get(k, ZERO) > ZERO},
        )


@dataclass(frozen=True)
class HeatmapCell:
    """
    One bucket rendered for an intensity map.

    Attributes:
        key: Bucket key
        value: Bucket sum
        intensity: value / max across the view (None when there is no data)
        band: 0-5 quantized intensity (None when there is no data)
        color: Fixed color for the band, or the no-data color
    """
    key: Hashable
    value: Decimal
    intensity: Decimal | None
    band: int | None
    color: str


@dataclass
class YearlyAggregate:
    """Spent vs budget for one month of a year."""
    year: int
    month: int
    spent: Decimal = ZERO
    budget: Decimal = ZERO

    @property
    def over_budget(self) -> bool:
        return self.budget > ZERO and self.spent > self.budget


@dataclass
class BucketRequest:
    """
    Everything needed to produce one bucketed view.

    Attributes:
        granularity: Bucket kind
        filter: Exclusion and month filters
        year: Required for DAY granularity
        month: Required for DAY granularity
        tag_names: Category tag id -> name, for CATEGORY granularity
    """
    granularity: Granularity
    filter: BucketFilter = field(default_factory=BucketFilter)
    year: int | None = None
    month: int | None = None
    tag_names: Mapping[int, str] = field(default_factory=dict)
