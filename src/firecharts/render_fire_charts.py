"""Draw the aggregated chart views as fixed-size SVG documents."""
from __future__ import annotations

import io
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib

matplotlib.use('Agg')
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
from matplotlib.patches import Wedge  # noqa: E402

from firecharts.build_chart_views import HUMIDITY_DOMAIN, tooltip_text  # noqa: E402

CHART_WIDTH = 400
CHART_HEIGHT = 400
MARGIN = {'top': 20, 'right': 30, 'bottom': 60, 'left': 60}
LINE_MARGIN = {'top': 40, 'right': 30, 'bottom': 60, 'left': 60}
PIE_LABEL_RATIO = 0.7
CATEGORY10 = matplotlib.colormaps['tab10'].colors

# Figure inches at 72 pt/in make the SVG viewBox one unit per pixel.
SVG_RC = {
    'svg.fonttype': 'none',
    'svg.hashsalt': 'firecharts',
    'font.size': 10,
}


@dataclass
class ChartRender:
    chart_id: str
    title: str
    svg: str
    marks: int
    tooltips: List[Dict] = field(default_factory=list)

    @property
    def inline_svg(self) -> str:
        start = self.svg.find('<svg')
        return self.svg[start:] if start >= 0 else self.svg


def _new_figure(margin: Optional[Dict[str, int]] = None):
    fig = plt.figure(figsize=(CHART_WIDTH / 72, CHART_HEIGHT / 72))
    if margin is None:
        ax = fig.add_axes([0, 0, 1, 1])
        return fig, ax
    ax = fig.add_axes(
        [
            margin['left'] / CHART_WIDTH,
            margin['bottom'] / CHART_HEIGHT,
            (CHART_WIDTH - margin['left'] - margin['right']) / CHART_WIDTH,
            (CHART_HEIGHT - margin['top'] - margin['bottom']) / CHART_HEIGHT,
        ]
    )
    ax.spines[['top', 'right']].set_visible(False)
    return fig, ax


def _decorate(fig, ax, title: str, x_label: str, y_label: str, title_size: int = 11) -> None:
    ax.set_xlabel(x_label)
    ax.set_ylabel(y_label)
    fig.text(0.5, 1 - 4 / CHART_HEIGHT, title, ha='center', va='top', fontsize=title_size)


def _fix_svg_size(svg: str) -> str:
    svg = re.sub(r'width="[\d.]+pt"', f'width="{CHART_WIDTH}px"', svg, count=1)
    return re.sub(r'height="[\d.]+pt"', f'height="{CHART_HEIGHT}px"', svg, count=1)


def _to_svg(fig) -> str:
    buffer = io.StringIO()
    with plt.rc_context(SVG_RC):
        fig.savefig(buffer, format='svg', metadata={'Date': None})
    plt.close(fig)
    return _fix_svg_size(buffer.getvalue())


def render_scatter(df: pd.DataFrame, extents: Dict) -> ChartRender:
    title = 'Temperature vs FWI'
    with plt.rc_context(SVG_RC):
        fig, ax = _new_figure(MARGIN)
        x_field, y_field = extents['x_field'], extents['y_field']
        marks = 0
        if not df.empty:
            ax.scatter(df[x_field], df[y_field], s=36, c='steelblue', clip_on=False)
            marks = int((np.isfinite(df[x_field]) & np.isfinite(df[y_field])).sum())
        if extents['x'] is not None:
            ax.set_xlim(*extents['x'])
        if extents['y'] is not None:
            ax.set_ylim(*extents['y'])
        _decorate(fig, ax, title, x_field, y_field)
        svg = _to_svg(fig)
    return ChartRender('scatter-plot', title, svg, marks)


def render_histogram(bins: Sequence[Dict], domain: Tuple[float, float] = HUMIDITY_DOMAIN) -> ChartRender:
    title = 'Humidity Distribution'
    with plt.rc_context(SVG_RC):
        fig, ax = _new_figure(MARGIN)
        plot_width = CHART_WIDTH - MARGIN['left'] - MARGIN['right']
        gap = (domain[1] - domain[0]) / plot_width
        for entry in bins:
            ax.bar(
                entry['x0'],
                entry['count'],
                width=max(entry['x1'] - entry['x0'] - gap, 0),
                align='edge',
                color='green',
            )
        ax.set_xlim(*domain)
        top = max((entry['count'] for entry in bins), default=0)
        if top > 0:
            ax.set_ylim(0, top)
        _decorate(fig, ax, title, 'Relative Humidity', 'Frequency')
        svg = _to_svg(fig)
    return ChartRender('humidity-histogram', title, svg, len(bins))


def render_bar(counts: Dict) -> ChartRender:
    title = 'Monthly Fire Incidents'
    with plt.rc_context(SVG_RC):
        fig, ax = _new_figure(MARGIN)
        months = list(counts.keys())
        for position, month in enumerate(months):
            ax.bar(position, counts[month], width=0.9, color='orange')
        ax.set_xticks(range(len(months)))
        ax.set_xticklabels([f"Month {month}" for month in months], parse_math=False)
        ax.set_xlim(-0.55, len(months) - 0.45)
        top = max(counts.values(), default=0)
        if top > 0:
            ax.set_ylim(0, top)
        _decorate(fig, ax, title, 'Month', 'Number of Fires')
        svg = _to_svg(fig)
    return ChartRender('monthly-bar-chart', title, svg, len(months))


def render_pie(slices: Sequence[Dict]) -> ChartRender:
    title = 'Fire Incident Distribution'
    radius = min(CHART_WIDTH, CHART_HEIGHT) / 2 - 40
    with plt.rc_context(SVG_RC):
        fig, ax = _new_figure()
        ax.set_xlim(-CHART_WIDTH / 2, CHART_WIDTH / 2)
        ax.set_ylim(-CHART_HEIGHT / 2, CHART_HEIGHT / 2)
        ax.set_aspect('equal')
        ax.axis('off')
        for idx, entry in enumerate(slices):
            # Slice angles run clockwise from 12 o'clock; Wedge wants CCW degrees from 3 o'clock.
            theta1 = 90 - math.degrees(entry['end_angle'])
            theta2 = 90 - math.degrees(entry['start_angle'])
            ax.add_patch(Wedge((0, 0), radius, theta1, theta2, facecolor=CATEGORY10[idx % len(CATEGORY10)]))
            middle = (entry['start_angle'] + entry['end_angle']) / 2
            ax.text(
                radius * PIE_LABEL_RATIO * math.sin(middle),
                radius * PIE_LABEL_RATIO * math.cos(middle),
                entry['text'],
                ha='center',
                va='center',
                fontsize=12,
                parse_math=False,
            )
        ax.text(0, radius + 20, title, ha='center', va='bottom', fontsize=16, fontweight='bold')
        svg = _to_svg(fig)
    return ChartRender('fire-class-pie-chart', title, svg, len(slices))


def _monotone_curve(xs: Sequence[float], ys: Sequence[float], samples: int = 24) -> Tuple[np.ndarray, np.ndarray]:
    """Monotone cubic interpolation in x, sampled ``samples`` times per segment."""
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    count = len(xs)
    if count < 3:
        return xs, ys
    widths = np.diff(xs)
    secants = np.diff(ys) / widths
    tangents = np.zeros(count)
    for idx in range(1, count - 1):
        s0, s1 = secants[idx - 1], secants[idx]
        h0, h1 = widths[idx - 1], widths[idx]
        p = (s0 * h1 + s1 * h0) / (h0 + h1)
        tangents[idx] = (np.sign(s0) + np.sign(s1)) * min(abs(s0), abs(s1), 0.5 * abs(p))
    tangents[0] = (3 * secants[0] - tangents[1]) / 2
    tangents[-1] = (3 * secants[-1] - tangents[-2]) / 2

    t = np.linspace(0, 1, samples + 1)[1:]
    h00 = 2 * t**3 - 3 * t**2 + 1
    h10 = t**3 - 2 * t**2 + t
    h01 = -2 * t**3 + 3 * t**2
    h11 = t**3 - t**2
    curve_x = [xs[:1]]
    curve_y = [ys[:1]]
    for idx in range(count - 1):
        dx = widths[idx]
        curve_x.append(xs[idx] + t * dx)
        curve_y.append(
            h00 * ys[idx] + h10 * dx * tangents[idx] + h01 * ys[idx + 1] + h11 * dx * tangents[idx + 1]
        )
    return np.concatenate(curve_x), np.concatenate(curve_y)


def render_line(points: Sequence[Dict]) -> ChartRender:
    title = 'Average Temperature by Month'
    tooltips: List[Dict] = []
    with plt.rc_context(SVG_RC):
        fig, ax = _new_figure(LINE_MARGIN)
        drawn = [(idx, entry) for idx, entry in enumerate(points) if entry['temp'] is not None]
        if drawn:
            curve_x, curve_y = _monotone_curve([idx for idx, _ in drawn], [entry['temp'] for _, entry in drawn])
            ax.plot(curve_x, curve_y, color='red', linewidth=2)
        for idx, entry in drawn:
            gid = f"temperature-point-{idx}"
            ax.plot([idx], [entry['temp']], marker='o', markersize=8, color='red', linestyle='none', gid=gid)
            tooltips.append({'id': gid, 'text': tooltip_text(entry)})
        ax.set_xticks(range(len(points)))
        ax.set_xticklabels([str(entry['label']) for entry in points], parse_math=False)
        if points:
            ax.set_xlim(-0.5, len(points) - 0.5)
        # y starts at 0 only when some mean is positive; otherwise matplotlib autoscales
        top = max((entry['temp'] for _, entry in drawn), default=0)
        if top > 0:
            ax.set_ylim(0, top)
        _decorate(fig, ax, title, 'Month', 'Average Temperature (°C)', title_size=16)
        svg = _to_svg(fig)
    return ChartRender('temperature-line-chart', title, svg, len(drawn), tooltips)
