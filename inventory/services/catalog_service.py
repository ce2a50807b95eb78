"""
Filtering and pagination of the product listing.

Everything here works on a snapshot: the product list fetched once per load
and passed in explicitly. Nothing re-queries storage per page and nothing
keeps the snapshot between calls. The listing state (search text, category,
page size, page) is an immutable ``ListingState``; each user action returns a
new state, and ``build_listing`` turns snapshot + state into the page to show.
"""
import math
from dataclasses import dataclass, field, replace
from typing import Sequence

from inventory.config import settings
from inventory.exceptions import ValidationFailed
from inventory.models.product import NO_CATEGORY, Product

ALL_CATEGORIES = "All"


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def derive_categories(snapshot: Sequence[Product]) -> list[str]:
    """``"All"`` followed by every distinct category, sorted, blanks shown as ``"No category"``."""
    categories = {NO_CATEGORY if _is_blank(p.category) else p.category for p in snapshot}
    return [ALL_CATEGORIES] + sorted(categories)


def matches_search(product: Product, term: str | None) -> bool:
    if _is_blank(term):
        return True
    needle = term.casefold()
    return any(
        value is not None and needle in value.casefold()
        for value in (product.name, product.description, product.category)
    )


def matches_category(product: Product, category: str | None) -> bool:
    if category is None or category == "" or category == ALL_CATEGORIES:
        return True
    if category == NO_CATEGORY:
        return _is_blank(product.category)
    return product.category == category


def filter_products(
    snapshot: Sequence[Product], search: str | None = None, category: str | None = None
) -> list[Product]:
    return [p for p in snapshot if matches_search(p, search) and matches_category(p, category)]


def count_pages(total_count: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValidationFailed("Page size must be greater than 0", errors={"page_size": "must be > 0"})
    return max(1, math.ceil(total_count / page_size))


@dataclass(frozen=True)
class Page:
    items: list[Product]
    current_page: int
    total_pages: int
    page_size: int
    total_count: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def label(self) -> str:
        return f"{self.current_page}/{self.total_pages}"


def paginate(items: Sequence[Product], page_size: int, current_page: int) -> Page:
    total_pages = count_pages(len(items), page_size)
    # Clamp rather than reset so the user stays near where they were
    page = min(max(current_page, 1), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        current_page=page,
        total_pages=total_pages,
        page_size=page_size,
        total_count=len(items),
    )


@dataclass(frozen=True)
class ListingState:
    search: str = ""
    category: str = ""
    page_size: int = field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE)
    current_page: int = 1

    def with_search(self, search: str | None) -> "ListingState":
        return replace(self, search=search or "")

    def with_category(self, category: str | None) -> "ListingState":
        return replace(self, category=category or "")

    def with_page_size(self, page_size: int) -> "ListingState":
        count_pages(0, page_size)
        return replace(self, page_size=page_size, current_page=1)

    def clear_filters(self) -> "ListingState":
        return replace(self, search="", category="")

    def first(self) -> "ListingState":
        return replace(self, current_page=1)

    def previous(self) -> "ListingState":
        if self.current_page <= 1:
            return self
        return replace(self, current_page=self.current_page - 1)

    def next(self, total_pages: int) -> "ListingState":
        if self.current_page >= total_pages:
            return self
        return replace(self, current_page=self.current_page + 1)

    def last(self, total_pages: int) -> "ListingState":
        return replace(self, current_page=total_pages)


@dataclass(frozen=True)
class ProductListing:
    state: ListingState
    page: Page
    categories: list[str]

    @property
    def items(self) -> list[Product]:
        return self.page.items

    @property
    def total_pages(self) -> int:
        return self.page.total_pages

    def first(self) -> ListingState:
        return self.state.first()

    def previous(self) -> ListingState:
        return self.state.previous()

    def next(self) -> ListingState:
        return self.state.next(self.page.total_pages)

    def last(self) -> ListingState:
        return self.state.last(self.page.total_pages)


def build_listing(snapshot: Sequence[Product], state: ListingState | None = None) -> ProductListing:
    state = state or ListingState()
    filtered = filter_products(snapshot, state.search, state.category)
    page = paginate(filtered, state.page_size, state.current_page)
    return ProductListing(
        state=replace(state, current_page=page.current_page),
        page=page,
        categories=derive_categories(snapshot),
    )
