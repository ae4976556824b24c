import math

import pandas as pd
import pytest

from firecharts import build_chart_views as views
from firecharts.build_fire_dataset import REQUIRED_COLUMNS, normalize_records


def _frame(**columns):
    size = len(next(iter(columns.values())))
    data = {
        'Temperature': [25.0] * size,
        'FWI': [1.0] * size,
        'RH': [50.0] * size,
        'month': [6.0] * size,
        'Classes': ['fire'] * size,
    }
    data.update(columns)
    return pd.DataFrame(data)


def _empty_frame():
    return normalize_records(pd.DataFrame({column: [] for column in REQUIRED_COLUMNS})).frame


def test_extents_cover_min_and_max_ignoring_missing():
    df = _frame(Temperature=[30.0, 22.0, float('nan'), 35.0], FWI=[0.5, 12.0, 3.0, 7.5])

    extents = views.compute_extents(df, 'Temperature', 'FWI')

    assert extents['x'] == (22.0, 35.0)
    assert extents['y'] == (0.5, 12.0)


def test_distinct_humidity_values_fall_into_distinct_bins():
    df = _frame(RH=[10.0, 50.0, 90.0])

    bins = views.compute_humidity_bins(df, bins=10)

    assert len(bins) == 10
    assert all(entry['x1'] - entry['x0'] == pytest.approx(10.0) for entry in bins)
    assert [entry['count'] for entry in bins] == [0, 1, 0, 0, 0, 1, 0, 0, 0, 1]


def test_bin_counts_sum_to_non_missing_humidity_values():
    df = _frame(RH=[0.0, 100.0, 33.0, 67.5, float('nan'), 99.9, 45.0])

    bins = views.compute_humidity_bins(df)

    assert sum(entry['count'] for entry in bins) == 6
    # upper edge of the domain lands in the last bin
    assert bins[-1]['count'] == 2
    assert bins[0]['count'] == 1


def test_histogram_rejects_zero_bins():
    with pytest.raises(ValueError):
        views.compute_humidity_bins(_frame(RH=[10.0]), bins=0)


def test_monthly_counts_only_include_months_with_fires():
    df = _frame(
        month=[7.0, 6.0, 7.0, 8.0, 9.0, 7.0],
        Classes=['fire', 'fire', 'not fire', 'not fire', 'fire', 'fire'],
    )

    counts = views.count_by_month(df, class_label='fire')

    assert counts == {7: 2, 6: 1, 9: 1}
    assert list(counts) == [7, 6, 9]
    assert 8 not in counts
    assert sum(counts.values()) == int((df['Classes'] == 'fire').sum())


def test_class_counts_total_every_record():
    df = _frame(Classes=['fire', 'not fire', 'fire', 'not fire', 'not fire'])

    counts = views.count_by_class(df)

    assert counts == {'fire': 2, 'not fire': 3}
    assert sum(counts.values()) == len(df)


def test_pie_percentages_sum_to_hundred_and_label_one_decimal():
    slices = views.compute_pie_slices({'fire': 137, 'not fire': 106, 'unknown': 1})

    assert sum(entry['percent'] for entry in slices) == pytest.approx(100.0)
    assert slices[0]['text'] == 'fire (56.1%)'
    assert slices[1]['text'] == 'not fire (43.4%)'
    assert slices[2]['text'] == 'unknown (0.4%)'


def test_pie_angles_lay_out_largest_slice_first():
    slices = views.compute_pie_slices({'not fire': 1, 'fire': 3})

    by_label = {entry['label']: entry for entry in slices}
    assert by_label['fire']['start_angle'] == pytest.approx(0.0)
    assert by_label['fire']['end_angle'] == pytest.approx(1.5 * math.pi)
    assert by_label['not fire']['start_angle'] == pytest.approx(1.5 * math.pi)
    assert by_label['not fire']['end_angle'] == pytest.approx(2 * math.pi)


def test_mean_of_single_month():
    df = _frame(month=[8.0, 8.0, 8.0], Temperature=[20.0, 22.0, 24.0])

    points = views.mean_temperature_by_month(df)

    assert points == [{'month': 8, 'label': 'August', 'temp': pytest.approx(22.0)}]


def test_line_points_follow_grouping_order_and_names():
    df = _frame(month=[6.0, 6.0, 7.0], Temperature=[20.0, 22.0, 30.0])

    points = views.mean_temperature_by_month(df)

    assert [(entry['label'], entry['temp']) for entry in points] == [('June', 21.0), ('July', 30.0)]


def test_unmapped_month_passes_through():
    df = _frame(month=[5.0, 6.0], Temperature=[18.0, 26.0])

    points = views.mean_temperature_by_month(df)

    assert [entry['label'] for entry in points] == [5, 'June']


def test_tooltip_text_rounds_to_two_decimals():
    assert views.tooltip_text({'label': 'July', 'temp': 31.456}) == 'Month: July, Avg Temp: 31.46°C'
    assert views.tooltip_text({'label': 'July', 'temp': None}) == 'Month: July, Avg Temp: NaN°C'


def test_empty_dataset_yields_empty_aggregates():
    df = _empty_frame()

    extents = views.compute_extents(df)

    assert extents['x'] is None and extents['y'] is None
    assert views.compute_humidity_bins(df) == []
    assert views.count_by_month(df) == {}
    assert views.count_by_class(df) == {}
    assert views.compute_pie_slices({}) == []
    assert views.mean_temperature_by_month(df) == []


def test_aggregations_do_not_mutate_dataset():
    df = _frame(month=[6.0, 7.0, 7.0], Temperature=[20.0, 30.0, 32.0], RH=[10.0, 20.0, 30.0])
    snapshot = df.copy()

    views.compute_extents(df)
    views.compute_humidity_bins(df)
    views.count_by_month(df)
    views.compute_pie_slices(views.count_by_class(df))
    views.mean_temperature_by_month(df)

    pd.testing.assert_frame_equal(df, snapshot)
