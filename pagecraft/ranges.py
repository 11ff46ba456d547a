from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator
from uuid import uuid4

from pydantic import ValidationError

from .config import get_settings
from .errors import InvalidPageRange
from .types import PageRange, QuickSelector


def validate_range(start: int, end: int, total_pages: int) -> PageRange:
    if start < 1:
        raise InvalidPageRange(
            f'Start page must be between 1 and {total_pages}',
            reason='start_below_minimum',
            start=start,
            end=end,
            total_pages=total_pages,
        )
    if end > total_pages:
        raise InvalidPageRange(
            f'End page must be between 1 and {total_pages}',
            reason='end_above_total',
            start=start,
            end=end,
            total_pages=total_pages,
        )
    if start > end:
        raise InvalidPageRange(
            'Start page cannot be greater than end page',
            reason='start_after_end',
            start=start,
            end=end,
            total_pages=total_pages,
        )
    return PageRange(start=start, end=end)


def parse_selector(value: Any) -> QuickSelector:
    if isinstance(value, QuickSelector):
        return value
    try:
        return QuickSelector(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidPageRange(f'unknown page selector: {value!r}', reason='unknown_selector') from exc


def coerce_range(value: Any) -> PageRange:
    try:
        return PageRange.coerce(value)
    except (TypeError, ValidationError) as exc:
        raise InvalidPageRange(f'malformed page range: {value!r}', reason='malformed_range') from exc


def _quick_pages(selector: QuickSelector, total_pages: int) -> list[int]:
    window = max(1, get_settings().quick_select_count)
    if selector is QuickSelector.all:
        return list(range(1, total_pages + 1))
    if selector is QuickSelector.first:
        return list(range(1, min(window, total_pages) + 1))
    if selector is QuickSelector.last:
        return list(range(max(1, total_pages - window + 1), total_pages + 1))
    if selector is QuickSelector.odd:
        return list(range(1, total_pages + 1, 2))
    if selector is QuickSelector.even:
        return list(range(2, total_pages + 1, 2))
    raise ValueError(f'unknown quick selector: {selector!r}')


def resolve(selector: Any, total_pages: int) -> list[int]:
    """Expand a quick selector or a custom range into 1-based page numbers."""
    if isinstance(selector, str):
        selector = parse_selector(selector)

    if isinstance(selector, QuickSelector):
        pages = _quick_pages(selector, total_pages)
        if not pages:
            raise InvalidPageRange(
                f'{selector.value!r} selects no pages in a {total_pages}-page document',
                reason='empty_selection',
                total_pages=total_pages,
            )
        return pages

    page_range = coerce_range(selector)
    return validate_range(page_range.start, page_range.end, total_pages).page_numbers()


def _quick_label(selector: QuickSelector, pages: list[int]) -> str:
    if selector is QuickSelector.all:
        return 'All Pages'
    if selector is QuickSelector.first:
        return f'First {len(pages)} Pages'
    if selector is QuickSelector.last:
        return f'Last {len(pages)} Pages'
    if selector is QuickSelector.odd:
        return 'Odd Pages'
    return 'Even Pages'


@dataclass(eq=False)
class PageSelection:
    label: str
    pages: list[int]
    selector: QuickSelector | None = None
    id: str = field(default_factory=lambda: uuid4().hex[:9])

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def detail(self) -> str:
        if self.selector is QuickSelector.odd:
            return 'Pages: 1, 3, 5...'
        if self.selector is QuickSelector.even:
            return 'Pages: 2, 4, 6...'
        count = self.page_count
        return f'{count} page{"s" if count > 1 else ""}'


class SelectionList:
    """Ordered page selections for one document.

    Entries are compared by identity, so adding the same range twice yields
    two entries that can be removed independently.
    """

    def __init__(self, total_pages: int):
        self.total_pages = total_pages
        self._entries: list[PageSelection] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PageSelection]:
        return iter(list(self._entries))

    @property
    def entries(self) -> list[PageSelection]:
        return list(self._entries)

    @property
    def total_selected_pages(self) -> int:
        return sum(entry.page_count for entry in self._entries)

    def add_range(self, start: int, end: int) -> PageSelection:
        page_range = validate_range(start, end, self.total_pages)
        entry = PageSelection(label=page_range.label, pages=page_range.page_numbers())
        self._entries.append(entry)
        return entry

    def add_quick(self, selector: QuickSelector | str) -> PageSelection:
        selector = parse_selector(selector)
        pages = resolve(selector, self.total_pages)
        entry = PageSelection(label=_quick_label(selector, pages), pages=pages, selector=selector)
        self._entries.append(entry)
        return entry

    def remove(self, entry: PageSelection) -> bool:
        for index, existing in enumerate(self._entries):
            if existing is entry:
                del self._entries[index]
                return True
        return False

    def remove_id(self, entry_id: str) -> bool:
        for index, existing in enumerate(self._entries):
            if existing.id == entry_id:
                del self._entries[index]
                return True
        return False

    def clear(self) -> None:
        self._entries.clear()

    def page_groups(self) -> list[list[int]]:
        return [list(entry.pages) for entry in self._entries]
