import pytest

from pagecraft.errors import InvalidPageRange
from pagecraft.ranges import SelectionList, resolve, validate_range
from pagecraft.types import PageRange, QuickSelector


@pytest.mark.parametrize(
    'start,end,total,reason',
    [
        (0, 2, 5, 'start_below_minimum'),
        (-3, 1, 5, 'start_below_minimum'),
        (1, 6, 5, 'end_above_total'),
        (4, 2, 5, 'start_after_end'),
        # start check wins over end check
        (0, 9, 5, 'start_below_minimum'),
    ],
)
def test_validate_range_rejects(start, end, total, reason):
    with pytest.raises(InvalidPageRange) as excinfo:
        validate_range(start, end, total)
    assert excinfo.value.reason == reason
    assert excinfo.value.total_pages == total


def test_validate_range_messages():
    with pytest.raises(InvalidPageRange, match='Start page must be between 1 and 5'):
        validate_range(0, 1, 5)
    with pytest.raises(InvalidPageRange, match='End page must be between 1 and 5'):
        validate_range(1, 8, 5)
    with pytest.raises(InvalidPageRange, match='Start page cannot be greater than end page'):
        validate_range(3, 2, 5)


def test_validate_range_accepts_bounds():
    assert validate_range(1, 5, 5) == PageRange(start=1, end=5)
    assert validate_range(3, 3, 5).page_numbers() == [3]


def test_resolve_quick_selectors_on_six_pages():
    assert resolve(QuickSelector.all, 6) == [1, 2, 3, 4, 5, 6]
    assert resolve(QuickSelector.first, 6) == [1, 2, 3, 4, 5]
    assert resolve(QuickSelector.last, 6) == [2, 3, 4, 5, 6]
    assert resolve(QuickSelector.odd, 6) == [1, 3, 5]
    assert resolve(QuickSelector.even, 6) == [2, 4, 6]


def test_resolve_quick_selectors_on_short_document():
    assert resolve('first', 3) == [1, 2, 3]
    assert resolve('LAST', 3) == [1, 2, 3]
    assert resolve('odd', 1) == [1]


def test_resolve_custom_range():
    assert resolve((2, 4), 6) == [2, 3, 4]
    assert resolve(PageRange(start=6, end=6), 6) == [6]
    with pytest.raises(InvalidPageRange):
        resolve((5, 7), 6)


def test_resolve_empty_selection():
    with pytest.raises(InvalidPageRange) as excinfo:
        resolve(QuickSelector.even, 1)
    assert excinfo.value.reason == 'empty_selection'
    with pytest.raises(InvalidPageRange):
        resolve(QuickSelector.all, 0)


def test_quick_window_comes_from_settings(monkeypatch):
    from pagecraft.config import get_settings

    monkeypatch.setenv('PAGECRAFT_QUICK_SELECT_COUNT', '2')
    get_settings.cache_clear()
    assert resolve('first', 6) == [1, 2]
    assert resolve('last', 6) == [5, 6]


def test_selection_list_labels_and_details():
    selections = SelectionList(total_pages=10)
    single = selections.add_range(3, 3)
    span = selections.add_range(2, 4)
    everything = selections.add_quick('all')
    first = selections.add_quick(QuickSelector.first)
    last = selections.add_quick('last')
    odd = selections.add_quick('odd')
    even = selections.add_quick('even')

    assert single.label == 'Page 3'
    assert single.detail == '1 page'
    assert span.label == 'Pages 2-4'
    assert span.detail == '3 pages'
    assert everything.label == 'All Pages'
    assert first.label == 'First 5 Pages'
    assert last.label == 'Last 5 Pages'
    assert odd.label == 'Odd Pages'
    assert odd.detail == 'Pages: 1, 3, 5...'
    assert even.label == 'Even Pages'
    assert even.detail == 'Pages: 2, 4, 6...'
    assert len(selections) == 7


def test_selection_list_counts_overlaps():
    selections = SelectionList(total_pages=6)
    selections.add_range(1, 3)
    selections.add_range(2, 4)
    selections.add_quick('odd')
    assert selections.total_selected_pages == 3 + 3 + 3
    assert selections.page_groups() == [[1, 2, 3], [2, 3, 4], [1, 3, 5]]


def test_selection_list_removes_by_identity():
    selections = SelectionList(total_pages=6)
    first = selections.add_range(1, 2)
    second = selections.add_range(1, 2)
    assert first.id != second.id

    assert selections.remove(second) is True
    assert selections.entries == [first]
    assert selections.remove(second) is False

    assert selections.remove_id(first.id) is True
    assert len(selections) == 0


def test_selection_list_rejects_invalid_range_and_clears():
    selections = SelectionList(total_pages=4)
    with pytest.raises(InvalidPageRange):
        selections.add_range(3, 5)
    assert len(selections) == 0

    selections.add_quick('even')
    selections.clear()
    assert list(selections) == []


@pytest.mark.parametrize(
    'selector,reason',
    [
        ('middle', 'unknown_selector'),
        ((1, 2, 3), 'malformed_range'),
        (('a', 2), 'malformed_range'),
        (7, 'malformed_range'),
    ],
)
def test_resolve_reports_bad_input_as_range_error(selector, reason):
    with pytest.raises(InvalidPageRange) as excinfo:
        resolve(selector, 6)
    assert excinfo.value.reason == reason
    assert excinfo.value.__cause__ is not None


def test_selection_list_rejects_unknown_selector():
    selections = SelectionList(total_pages=3)
    with pytest.raises(InvalidPageRange) as excinfo:
        selections.add_quick('middle')
    assert excinfo.value.reason == 'unknown_selector'
    assert len(selections) == 0
