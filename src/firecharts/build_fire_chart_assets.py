#!/usr/bin/env python3
"""Generate the forest-fire chart page (HTML + SVG + data) from the cleaned CSV."""
from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from firecharts.build_chart_views import (
    compute_extents,
    compute_humidity_bins,
    compute_pie_slices,
    count_by_class,
    count_by_month,
    mean_temperature_by_month,
)
from firecharts.build_fire_dataset import LoadedDataset, RowIssue, load_fire_dataset
from firecharts.render_fire_charts import (
    ChartRender,
    render_bar,
    render_histogram,
    render_line,
    render_pie,
    render_scatter,
)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


DATASET_CSV = os.environ.get('FF_DATASET_CSV', str(Path.cwd() / 'Algerian_forest_fires_dataset_CLEANED.csv'))
OUTPUT_DIR = Path(os.environ.get('FF_CHARTS_OUTPUT', Path.cwd() / 'fire_charts'))
FIRE_CLASS = os.environ.get('FF_FIRE_CLASS', 'fire')
HUMIDITY_BINS = _env_int('FF_HUMIDITY_BINS', 10)
ISSUE_EXAMPLES = 5


@dataclass
class ChartSettings:
    fire_class: str = FIRE_CLASS
    humidity_bins: int = HUMIDITY_BINS


ChartBuilder = Callable[[pd.DataFrame, ChartSettings], Tuple[object, ChartRender]]


def _build_scatter(df: pd.DataFrame, settings: ChartSettings) -> Tuple[object, ChartRender]:
    extents = compute_extents(df, 'Temperature', 'FWI')
    return extents, render_scatter(df, extents)


def _build_histogram(df: pd.DataFrame, settings: ChartSettings) -> Tuple[object, ChartRender]:
    bins = compute_humidity_bins(df, bins=settings.humidity_bins)
    return bins, render_histogram(bins)


def _build_bar(df: pd.DataFrame, settings: ChartSettings) -> Tuple[object, ChartRender]:
    counts = count_by_month(df, class_label=settings.fire_class)
    view = [{'month': month, 'count': count} for month, count in counts.items()]
    return view, render_bar(counts)


def _build_pie(df: pd.DataFrame, settings: ChartSettings) -> Tuple[object, ChartRender]:
    slices = compute_pie_slices(count_by_class(df))
    return slices, render_pie(slices)


def _build_line(df: pd.DataFrame, settings: ChartSettings) -> Tuple[object, ChartRender]:
    points = mean_temperature_by_month(df)
    return points, render_line(points)


# -----------------------------------------------------------------------------------------------
# Chart registry, in page order

CHARTS: Dict[str, ChartBuilder] = {
    'scatter-plot': _build_scatter,
    'humidity-histogram': _build_histogram,
    'monthly-bar-chart': _build_bar,
    'fire-class-pie-chart': _build_pie,
    'temperature-line-chart': _build_line,
}


def build_chart(key: str, dataset: LoadedDataset, settings: Optional[ChartSettings] = None) -> Dict:
    builder = CHARTS[key]
    view, render = builder(dataset.frame, settings or ChartSettings())
    return {'view': view, 'render': render}


def build_chart_assets(
    dataset: LoadedDataset,
    settings: Optional[ChartSettings] = None,
    chart_ids: Optional[Sequence[str]] = None,
) -> Dict[str, Dict]:
    settings = settings or ChartSettings()
    keys = list(chart_ids) if chart_ids else list(CHARTS)
    return {key: build_chart(key, dataset, settings) for key in CHARTS if key in keys}


def _display_path(path: Path) -> Path:
    try:
        return path.relative_to(Path.cwd())
    except ValueError:
        return path


def _report_issues(issues: List[RowIssue], dropped: bool) -> None:
    if not issues:
        return
    rows = len({issue.row for issue in issues})
    action = 'dropped' if dropped else 'kept'
    print(f"⚠️  {len(issues)} malformed value(s) across {rows} row(s) ({action})")
    for issue in issues[:ISSUE_EXAMPLES]:
        print(f"    row {issue.row} {issue.column}: {issue.raw!r} ({issue.reason})")


def build_payload(charts: Dict[str, Dict], dataset: LoadedDataset) -> Dict:
    tooltips: List[Dict] = []
    for chart in charts.values():
        tooltips.extend(chart['render'].tooltips)
    return {
        'recordCount': len(dataset),
        'charts': {key: chart['view'] for key, chart in charts.items()},
        'tooltips': tooltips,
        'issues': [issue.as_dict() for issue in dataset.issues],
    }


def _write_data_js(payload: Dict, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    data_js = output_dir / 'fire_chart_data.js'
    data_js.write_text(f"window.FIRE_CHART_DATA = {json.dumps(payload)};\n", encoding='utf-8')
    print(f"✔️  Wrote {_display_path(data_js)}")
    return data_js


def _write_svg_files(charts: Dict[str, Dict], output_dir: Path) -> List[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for key, chart in charts.items():
        svg_path = output_dir / f"{key}.svg"
        svg_path.write_text(chart['render'].svg, encoding='utf-8')
        print(f"✔️  Wrote {_display_path(svg_path)}")
        written.append(svg_path)
    return written


def _chart_containers(charts: Dict[str, Dict]) -> str:
    sections = []
    for key in CHARTS:
        chart = charts.get(key)
        body = chart['render'].inline_svg if chart else ''
        title = chart['render'].title if chart else key
        sections.append(
            f"  <section class='card'>\n"
            f"    <h2>{title}</h2>\n"
            f"    <div id='{key}' class='chart'>{body}</div>\n"
            f"  </section>"
        )
    return '\n'.join(sections)


def _write_page_html(charts: Dict[str, Dict], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    html_path = output_dir / 'fire_charts.html'
    html_template = """<!DOCTYPE html>
<html lang='en'>
<head>
  <meta charset='utf-8' />
  <title>Algerian Forest Fires · Charts</title>
  <meta name='viewport' content='width=device-width, initial-scale=1' />
  <style>
    * { box-sizing: border-box; }
    body { margin: 0; font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: #f8fafc; color: #0f172a; }
    header { padding: 32px 48px 8px; max-width: 1320px; margin: 0 auto; }
    h1 { font-size: 2rem; margin-bottom: 0.4rem; }
    p.lead { color: #475569; max-width: 760px; }
    main { display: grid; grid-template-columns: repeat(auto-fill, minmax(420px, 1fr)); gap: 24px; padding: 16px 48px 48px; max-width: 1320px; margin: 0 auto; }
    .card { background: #fff; border: 1px solid #e2e8f0; border-radius: 16px; padding: 10px; }
    .card h2 { font-size: 0.95rem; margin: 4px 8px 8px; color: #334155; }
    .chart { width: 400px; height: 400px; }
  </style>
</head>
<body>
<header>
  <h1>Algerian forest fires</h1>
  <p class='lead'>Temperature, fire weather index, humidity and fire classes from the cleaned observation dataset. Hover the line-chart points for monthly averages.</p>
</header>
<main>
__CHART_CONTAINERS__
</main>
<script src="fire_chart_data.js"></script>
<script>
  (function bindTooltips() {
    const data = window.FIRE_CHART_DATA || {};
    const tooltip = document.createElement('div');
    Object.assign(tooltip.style, {
      position: 'absolute',
      background: '#fff',
      border: '1px solid #ccc',
      padding: '5px',
      visibility: 'hidden',
    });
    document.body.appendChild(tooltip);

    (data.tooltips || []).forEach((entry) => {
      const point = document.getElementById(entry.id);
      if (!point) return;
      point.addEventListener('mouseover', () => {
        tooltip.style.visibility = 'visible';
        tooltip.textContent = entry.text;
      });
      point.addEventListener('mousemove', (event) => {
        tooltip.style.top = `${event.pageY - 10}px`;
        tooltip.style.left = `${event.pageX + 10}px`;
      });
      point.addEventListener('mouseout', () => {
        tooltip.style.visibility = 'hidden';
      });
    });
  })();
</script>
</body>
</html>
"""
    html_path.write_text(html_template.replace('__CHART_CONTAINERS__', _chart_containers(charts)), encoding='utf-8')
    print(f"✔️  Wrote {_display_path(html_path)}")
    return html_path


def write_chart_assets(charts: Dict[str, Dict], dataset: LoadedDataset, output_dir: Path = OUTPUT_DIR) -> Dict[str, object]:
    return {
        'data': _write_data_js(build_payload(charts, dataset), output_dir),
        'svg': _write_svg_files(charts, output_dir),
        'html': _write_page_html(charts, output_dir),
    }


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Render the forest-fire charts into static HTML/SVG assets.')
    parser.add_argument('chart', nargs='*', help='Optional chart ids (default: all)')
    parser.add_argument('--source', default=DATASET_CSV, help='CSV path or http(s) URL')
    parser.add_argument('--output', type=Path, default=OUTPUT_DIR, help='Directory for the generated assets')
    parser.add_argument('--fire-class', default=FIRE_CLASS, help='Class label counted by the monthly bar chart')
    parser.add_argument('--bins', type=int, default=HUMIDITY_BINS, help='Humidity histogram bin count')
    parser.add_argument('--drop-invalid', action='store_true', help='Drop rows with malformed values')
    args = parser.parse_args(argv)

    if args.bins < 1:
        parser.error('--bins must be at least 1')

    keys = []
    for key in args.chart:
        if key not in CHARTS:
            print(f"Unknown chart '{key}'. Available: {', '.join(CHARTS)}", file=sys.stderr)
            continue
        keys.append(key)
    if args.chart and not keys:
        return

    dataset = load_fire_dataset(args.source, drop_invalid=args.drop_invalid)
    _report_issues(dataset.issues, dropped=args.drop_invalid)
    settings = ChartSettings(fire_class=args.fire_class, humidity_bins=args.bins)
    charts = build_chart_assets(dataset, settings, chart_ids=keys or None)
    write_chart_assets(charts, dataset, args.output)


if __name__ == '__main__':
    main()
