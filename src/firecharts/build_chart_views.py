"""Per-chart aggregations over the normalized fire dataset."""
from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

MONTH_NAMES = {6: 'June', 7: 'July', 8: 'August', 9: 'September'}
HUMIDITY_DOMAIN = (0.0, 100.0)

Extent = Optional[Tuple[float, float]]


def _clean_value(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _clean_key(value):
    if value is None or (isinstance(value, (float, np.floating)) and math.isnan(value)):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    if isinstance(value, np.generic):
        return value.item()
    return value


def _extent(series: pd.Series) -> Extent:
    values = series.dropna()
    if values.empty:
        return None
    return float(values.min()), float(values.max())


def compute_extents(df: pd.DataFrame, x_field: str = 'Temperature', y_field: str = 'FWI') -> Dict:
    return {
        'x_field': x_field,
        'y_field': y_field,
        'x': _extent(df[x_field]),
        'y': _extent(df[y_field]),
    }


def compute_humidity_bins(
    df: pd.DataFrame,
    bins: int = 10,
    domain: Tuple[float, float] = HUMIDITY_DOMAIN,
    field: str = 'RH',
) -> List[Dict]:
    """Equal-width bins over ``domain``; the last bin includes its upper edge.

    Values outside the domain are not counted.
    """
    if bins < 1:
        raise ValueError(f"Histogram needs at least one bin, got {bins}")
    values = df[field].dropna()
    if values.empty:
        return []
    counts, edges = np.histogram(values.to_numpy(dtype=float), bins=bins, range=domain)
    return [
        {'x0': float(edges[idx]), 'x1': float(edges[idx + 1]), 'count': int(count)}
        for idx, count in enumerate(counts)
    ]


def _count_by(df: pd.DataFrame, field: str) -> Dict:
    if df.empty:
        return {}
    counts = df.groupby(field, sort=False, dropna=False).size()
    return {_clean_key(key): int(count) for key, count in counts.items()}


def count_by_month(df: pd.DataFrame, class_label: str = 'fire') -> Dict:
    """Records of ``class_label`` per month, months in first-seen order."""
    return _count_by(df[df['Classes'] == class_label], 'month')


def count_by_class(df: pd.DataFrame) -> Dict:
    return _count_by(df, 'Classes')


def compute_pie_slices(counts: Dict) -> List[Dict]:
    """Angular slices for ``counts``, returned in input order.

    Angles run clockwise from 12 o'clock in radians. Larger slices are laid
    out first; equal counts keep their input order.
    """
    items = list(counts.items())
    total = sum(count for _, count in items)
    if total <= 0:
        return []
    layout = sorted(range(len(items)), key=lambda idx: -items[idx][1])
    angles: Dict[int, Tuple[float, float]] = {}
    start = 0.0
    for idx in layout:
        end = start + items[idx][1] / total * 2 * math.pi
        angles[idx] = (start, end)
        start = end
    slices = []
    for idx, (label, count) in enumerate(items):
        percent = count / total * 100
        slices.append(
            {
                'label': label,
                'count': count,
                'percent': percent,
                'start_angle': angles[idx][0],
                'end_angle': angles[idx][1],
                'text': f"{label} ({percent:.1f}%)",
            }
        )
    return slices


def month_label(month):
    return MONTH_NAMES.get(month, month)


def mean_temperature_by_month(df: pd.DataFrame, field: str = 'Temperature') -> List[Dict]:
    if df.empty:
        return []
    means = df.groupby('month', sort=False, dropna=False)[field].mean()
    points = []
    for month, mean in means.items():
        key = _clean_key(month)
        points.append({'month': key, 'label': month_label(key), 'temp': _clean_value(mean)})
    return points


def tooltip_text(point: Dict) -> str:
    temp = point['temp']
    temp_text = 'NaN' if temp is None else f"{temp:.2f}"
    return f"Month: {point['label']}, Avg Temp: {temp_text}°C"
