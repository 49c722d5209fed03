# backend/wealth/services/bucketing/heatmap.py
"""
Intensity mapping for calendar heatmaps.

intensity = value / max(value across the view), quantized into bands:

    band 0: intensity == 0
    band 1: < 0.2
    band 2: < 0.4
    band 3: < 0.6
    band 4: < 0.8
    band 5: >= 0.8

When every bucket in the view is zero there is nothing to scale against;
each cell gets the no-data color and no band.
"""

from __future__ import annotations

from decimal import Decimal

from wealth.services.bucketing.types import ZERO, BucketMap, HeatmapCell

BAND_THRESHOLDS: tuple[Decimal, ...] = (
    Decimal("0.2"),
    Decimal("0.4"),
    Decimal("0.6"),
    Decimal("0.8"),
)

BAND_COLORS: tuple[str, ...] = (
    "#1e293b",  # 0: nothing spent
    "#14532d",
    "#166534",
    "#15803d",
    "#22c55e",
    "#86efac",  # 5: at or near the peak
)

NO_DATA_COLOR = "#334155"

INTENSITY_PRECISION = Decimal("0.0001")


def intensity_band(value: Decimal, max_value: Decimal) -> tuple[Decimal | None, int | None]:
    """
    Scale a bucket against the view's maximum.

    Returns:
        (intensity, band), or (None, None) when max_value is 0
    """
    if max_value <= ZERO:
        return None, None

    # Bands come from the exact ratio; only the reported intensity is rounded.
    ratio = value / max_value
    intensity = ratio.quantize(INTENSITY_PRECISION)
    if ratio <= ZERO:
        return intensity, 0

    for band, threshold in enumerate(BAND_THRESHOLDS, start=1):
        if ratio < threshold:
            return intensity, band
    return intensity, len(BAND_THRESHOLDS) + 1


def build_heatmap(buckets: BucketMap) -> list[HeatmapCell]:
    """One cell per materialised bucket, in bucket order."""
    max_value = buckets.max_value
    cells = []
    for key in buckets:
        value = buckets[key]
        intensity, band = intensity_band(value, max_value)
        cells.append(HeatmapCell(
            key=key,
            value=value,
            intensity=intensity,
            band=band,
            color=NO_DATA_COLOR if band is None else BAND_COLORS[band],
        ))
    return cells
