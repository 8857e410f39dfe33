"""Full-collection retrieval over paged endpoints"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Page(Protocol):
    """A page response exposing its records and an optional cursor"""
    next_page: Any

    @property
    def records(self) -> Sequence[Any]:
        ...


class PaginationStrategy(Protocol):
    """Decides where to continue after a page, or None to stop"""

    def next_page(self, page_index: int, page: Page) -> Optional[int]:
        ...


def _as_cursor(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class CursorPagination:
    """Follow the server's next_page pointer while it moves forward"""

    def next_page(self, page_index: int, page: Page) -> Optional[int]:
        if not page.records:
            return None
        cursor = _as_cursor(page.next_page)
        if cursor is None or cursor <= page_index:
            return None
        return cursor

    def __repr__(self) -> str:
        return "CursorPagination()"


class HeuristicPagination:
    """Treat a short page as the last one"""

    def __init__(self, page_size: int):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size

    def next_page(self, page_index: int, page: Page) -> Optional[int]:
        if len(page.records) < self.page_size:
            return None
        return page_index + 1

    def __repr__(self) -> str:
        return f"HeuristicPagination(page_size={self.page_size})"


def make_strategy(mode: str, page_size: int) -> PaginationStrategy:
    """Build a strategy from its configuration name"""
    if mode == "cursor":
        return CursorPagination()
    if mode == "heuristic":
        return HeuristicPagination(page_size)
    raise ValueError(f"Unknown pagination mode: {mode}")


@dataclass
class CollectionResult(Generic[T]):
    """Records gathered from a paged endpoint and how the collection ended"""
    records: List[T] = field(default_factory=list)
    pages_fetched: int = 0
    error: Optional[BaseException] = None
    truncated: bool = False

    @property
    def complete(self) -> bool:
        return self.error is None and not self.truncated

    def __len__(self) -> int:
        return len(self.records)


async def collect_all(
    fetch_page: Callable[[int], Awaitable[Page]],
    strategy: PaginationStrategy,
    label: str = "records",
    first_page: int = 0,
    max_pages: Optional[int] = None,
) -> CollectionResult:
    """
    Fetch pages sequentially until the strategy says stop

    A failure on any page ends the loop; records from earlier pages are
    returned together with the error instead of raising.

    Args:
        fetch_page: Coroutine function returning the page at an index
        strategy: Termination protocol for this endpoint
        label: Name used in log messages
        first_page: Index of the first page to request
        max_pages: Stop after this many pages (None or 0 for no bound)
    """
    result: CollectionResult = CollectionResult()
    page_index: Optional[int] = first_page

    while page_index is not None:
        if max_pages and result.pages_fetched >= max_pages:
            logger.warning(f"Stopped collecting {label} after {max_pages} pages")
            result.truncated = True
            break

        try:
            page = await fetch_page(page_index)
        except Exception as e:
            logger.error(f"Failed to fetch page {page_index} of {label}: {e}")
            result.error = e
            break

        result.pages_fetched += 1
        result.records.extend(page.records)
        logger.debug(f"Page {page_index} of {label}: {len(page.records)} records")

        page_index = strategy.next_page(page_index, page)

    logger.info(
        f"Collected {len(result.records)} {label} in {result.pages_fetched} pages"
        + ("" if result.complete else " (incomplete)")
    )
    return result
