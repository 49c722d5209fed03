# backend/wealth/services/bucketing/__init__.py
"""
Temporal bucketing package.

Architecture:
    bucketing/
    ├── __init__.py   # This file - public exports
    ├── types.py      # DatedEvent, BucketFilter, BucketMap, HeatmapCell
    ├── engine.py     # Filtering and the five bucket kinds
    └── heatmap.py    # Intensity bands for calendar views
"""

from wealth.services.bucketing.engine import (
    apply_filter,
    bucket,
    bucket_by_category,
    bucket_by_day,
    bucket_by_month,
    bucket_by_week,
    bucket_by_weekday,
)
from wealth.services.bucketing.heatmap import (
    BAND_COLORS,
    NO_DATA_COLOR,
    build_heatmap,
    intensity_band,
)
from wealth.services.bucketing.types import (
    UNKNOWN_CATEGORY,
    BucketFilter,
    BucketMap,
    BucketRequest,
    DatedEvent,
    Granularity,
    HeatmapCell,
    YearlyAggregate,
)

__all__ = [
    "apply_filter",
    "bucket",
    "bucket_by_category",
    "bucket_by_day",
    "bucket_by_month",
    "bucket_by_week",
    "bucket_by_weekday",
    "build_heatmap",
    "intensity_band",
    "BAND_COLORS",
    "NO_DATA_COLOR",
    "UNKNOWN_CATEGORY",
    "BucketFilter",
    "BucketMap",
    "BucketRequest",
    "DatedEvent",
    "Granularity",
    "HeatmapCell",
    "YearlyAggregate",
]
