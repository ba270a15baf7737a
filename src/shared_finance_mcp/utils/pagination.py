"""
Client-side pagination of already-filtered lists.
"""

import math
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

T = TypeVar("T")

ELLIPSIS = "..."
DEFAULT_PAGE_SIZE = 10
VISIBLE_PAGE_BUTTONS = 5

PageButton = Union[int, str]


class Page(BaseModel, Generic[T]):
    """One window of a list."""

    items: List[T]
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    start_index: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def count_pages(count: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"Page size must be positive, got {page_size}")
    return math.ceil(count / page_size)


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """
    Slice out one page.

    Pages are 1-based: page `p` covers `[(p - 1) * page_size, p * page_size)`.
    A page past the end is empty.

    Raises:
        ValueError: If page_size is not positive or page is below 1
    """
    pages = count_pages(len(items), page_size)
    if page < 1:
        raise ValueError(f"Page must be 1 or greater, got {page}")

    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        current_page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=pages,
        start_index=start,
    )


def page_buttons(
    current_page: int, pages: int, window: int = VISIBLE_PAGE_BUTTONS
) -> List[PageButton]:
    """
    Page numbers to show in a pager.

    Up to `window` consecutive pages centered on the current page, clamped
    to the first and last page. The first and last page are always shown,
    with an ellipsis when they are not adjacent to the window.

    Example: page 6 of 12 -> [1, "...", 4, 5, 6, 7, 8, "...", 12]
    """
    if pages <= 0:
        return []

    current_page = min(max(current_page, 1), pages)
    start = max(1, current_page - window // 2)
    end = min(pages, start + window - 1)
    start = max(1, end - window + 1)

    buttons: List[PageButton] = []
    if start > 1:
        buttons.append(1)
        if start > 2:
            buttons.append(ELLIPSIS)

    buttons.extend(range(start, end + 1))

    if end < pages:
        if end < pages - 1:
            buttons.append(ELLIPSIS)
        buttons.append(pages)

    return buttons


class Paginator(Generic[T]):
    """
    Pagination state for a filterable list.

    Changing any filter sends the view back to page 1 so it never lands on
    a page that no longer exists.

    Filters on `text_keys` match case-insensitive substrings; every other
    filter (ids, types) must match exactly.
    """

    def __init__(
        self,
        items: Sequence[T],
        page_size: int = DEFAULT_PAGE_SIZE,
        text_keys: Iterable[str] = (),
    ):
        count_pages(0, page_size)  # validates page_size
        self._items = list(items)
        self.page_size = page_size
        self.text_keys = frozenset(text_keys)
        self.current_page = 1
        self.filters: Dict[str, Any] = {}

    @property
    def filtered_items(self) -> List[T]:
        result = self._items
        for key, value in self.filters.items():
            contains = key in self.text_keys
            result = [item for item in result if _matches(item, key, value, contains)]
        return result

    @property
    def total_pages(self) -> int:
        return count_pages(len(self.filtered_items), self.page_size)

    def set_filter(self, key: str, value: Optional[Any]) -> None:
        """Set (or clear, with None) one filter and go back to page 1."""
        if value is None:
            self.filters.pop(key, None)
        else:
            self.filters[key] = value
        self.current_page = 1

    def go_to(self, page: int) -> Page[T]:
        self.current_page = min(max(page, 1), max(self.total_pages, 1))
        return self.page()

    def page(self) -> Page[T]:
        return paginate(self.filtered_items, self.current_page, self.page_size)

    def buttons(self) -> List[PageButton]:
        return page_buttons(self.current_page, self.total_pages)


def _matches(item: Any, key: str, value: Any, contains: bool = False) -> bool:
    actual = item.get(key) if isinstance(item, dict) else getattr(item, key, None)
    if contains and isinstance(value, str) and isinstance(actual, str):
        return value.lower() in actual.lower()
    return actual == value
