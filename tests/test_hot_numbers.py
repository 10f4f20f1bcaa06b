from datetime import date

from taicai.hot_numbers import filter_timeline, hot_number_panels, hot_numbers
from taicai.records import DrawRecord


def test_most_frequent_number_ranks_first(record):
    window = [
        record("今彩539", 3, date(2024, 1, 3), [7, 1, 2]),
        record("今彩539", 2, date(2024, 1, 2), [7, 3, 4]),
        record("今彩539", 1, date(2024, 1, 1), [9, 5, 6]),
    ]
    ranked = hot_numbers(window)
    assert ranked[0] == (7, 2)
    values = [n for n, _ in ranked]
    assert values.index(7) < (values.index(9) if 9 in values else len(values))
    assert len(ranked) == 5


def test_ties_fall_back_to_ascending_value(record):
    window = [record("今彩539", 1, date(2024, 1, 1), [30, 10, 20, 5, 1, 2])]
    assert hot_numbers(window) == [(1, 1), (2, 1), (5, 1), (10, 1), (20, 1)]


def test_counts_as_drawn_numbers_not_sorted_copy():
    rec = DrawRecord(game="今彩539", period=1, date=date(2024, 1, 1), numbers=(3,), numbers_size=(4,))
    assert hot_numbers([rec]) == [(3, 1)]


def test_empty_window_is_no_data():
    assert hot_numbers([]) is None


def test_panels_use_prefix_windows(record):
    timeline = [record("今彩539", 40 - i, date(2024, 1, 1), [1] if i < 10 else [2]) for i in range(40)]
    panels = hot_number_panels(timeline)
    assert panels["recent10"] == [{"n": 1, "c": 10}]
    assert panels["recent30"][0] == {"n": 2, "c": 20}
    assert panels["all"][0] == {"n": 2, "c": 30}
    assert hot_number_panels([])["all"] == {"error": "No data available"}


def test_filter_timeline(record):
    timeline = [
        record("今彩539", "113000120", date(2024, 5, 2), [1]),
        record("今彩539", "113000030", date(2024, 2, 2), [1]),
        record("今彩539", "112000300", date(2023, 12, 30), [1]),
    ]
    assert [r.period for r in filter_timeline(timeline, period="3000030")] == ["113000030"]
    assert len(filter_timeline(timeline, year=2024)) == 2
    assert [r.period for r in filter_timeline(timeline, year=2024, month=2)] == ["113000030"]
    assert filter_timeline(timeline) == timeline
