"""Tests for the page allocator.

The allocator hands out single physical pages first-fit from a
free-page bitmap.  Page 0 is reserved and never handed out, so a fresh
machine of 64 pages has 63 to give.
"""

import pytest

from pt_sim.config import MachineConfig
from pt_sim.logging import Logger, LogLevel
from pt_sim.memory.allocator import (
    RESERVED_PAGE,
    AllocationExhaustedError,
    InvalidPageError,
    PageAllocator,
)

PAGE_COUNT = 64
USABLE_PAGES = PAGE_COUNT - 1


def _allocator(logger: Logger | None = None) -> PageAllocator:
    """Create an allocator over the default 64-page machine."""
    return PageAllocator(MachineConfig(), logger=logger)


class TestAllocatorCreation:
    """Verify the initial state of the allocator."""

    def test_reserved_page_is_used(self) -> None:
        """Page 0 should be marked in use from the start."""
        allocator = _allocator()
        assert allocator.is_allocated(RESERVED_PAGE) is True

    def test_all_other_pages_free(self) -> None:
        """Every page except page 0 should be free initially."""
        allocator = _allocator()
        assert allocator.free_page_count == USABLE_PAGES
        assert allocator.snapshot() == (1,) + (0,) * USABLE_PAGES

    def test_page_count(self) -> None:
        """The page count should include the reserved page."""
        allocator = _allocator()
        assert allocator.page_count == PAGE_COUNT


class TestAllocatePage:
    """Verify first-fit allocation."""

    def test_first_allocation_is_page_one(self) -> None:
        """The lowest usable page is 1."""
        allocator = _allocator()
        assert allocator.allocate_page() == 1

    def test_allocations_ascend(self) -> None:
        """Consecutive allocations should return consecutive pages."""
        allocator = _allocator()
        pages = [allocator.allocate_page() for _ in range(3)]
        assert pages == [1, 2, 3]

    def test_allocation_marks_page_used(self) -> None:
        """An allocated page should read as allocated in the bitmap."""
        allocator = _allocator()
        page = allocator.allocate_page()
        assert allocator.is_allocated(page) is True
        assert allocator.free_page_count == USABLE_PAGES - 1

    def test_lowest_free_page_is_reused(self) -> None:
        """After a free, the freed page should be the next one handed out."""
        allocator = _allocator()
        for _ in range(5):
            allocator.allocate_page()
        allocator.free_page(4)
        allocator.free_page(2)
        expected_first = 2
        expected_second = 4
        expected_third = 6
        assert allocator.allocate_page() == expected_first
        assert allocator.allocate_page() == expected_second
        assert allocator.allocate_page() == expected_third

    def test_never_returns_reserved_page(self) -> None:
        """Exhausting memory should never hand out page 0."""
        allocator = _allocator()
        pages = [allocator.allocate_page() for _ in range(USABLE_PAGES)]
        assert RESERVED_PAGE not in pages
        assert sorted(pages) == list(range(1, PAGE_COUNT))


class TestExhaustion:
    """Verify behaviour when every page is in use."""

    def test_exhausted_raises(self) -> None:
        """Allocating past the last free page should raise."""
        allocator = _allocator()
        for _ in range(USABLE_PAGES):
            allocator.allocate_page()
        with pytest.raises(AllocationExhaustedError, match="No free physical page"):
            allocator.allocate_page()

    def test_exhaustion_leaves_counter_at_zero(self) -> None:
        """A failed allocation should not change the free count."""
        allocator = _allocator()
        for _ in range(USABLE_PAGES):
            allocator.allocate_page()
        with pytest.raises(AllocationExhaustedError):
            allocator.allocate_page()
        assert allocator.free_page_count == 0

    def test_exhaustion_is_logged(self) -> None:
        """Running out of pages should leave a warning in the log."""
        logger = Logger()
        allocator = _allocator(logger)
        for _ in range(USABLE_PAGES):
            allocator.allocate_page()
        with pytest.raises(AllocationExhaustedError):
            allocator.allocate_page()
        warnings = logger.filter(min_level=LogLevel.WARNING, source="allocator")
        assert len(warnings) == 1


class TestFreePage:
    """Verify returning pages and the contract checks around it."""

    def test_free_restores_count(self) -> None:
        """Freeing a page should make it available again."""
        allocator = _allocator()
        page = allocator.allocate_page()
        allocator.free_page(page)
        assert allocator.free_page_count == USABLE_PAGES
        assert allocator.is_allocated(page) is False

    def test_double_free_raises(self) -> None:
        """Freeing an already-free page is a contract violation."""
        allocator = _allocator()
        page = allocator.allocate_page()
        allocator.free_page(page)
        with pytest.raises(InvalidPageError, match="already free"):
            allocator.free_page(page)

    def test_free_reserved_raises(self) -> None:
        """Page 0 can never be freed."""
        allocator = _allocator()
        with pytest.raises(InvalidPageError, match="reserved"):
            allocator.free_page(RESERVED_PAGE)
        assert allocator.is_allocated(RESERVED_PAGE) is True

    def test_free_out_of_range_raises(self) -> None:
        """Page numbers beyond the store are rejected."""
        allocator = _allocator()
        with pytest.raises(InvalidPageError, match="out of range"):
            allocator.free_page(PAGE_COUNT)
        with pytest.raises(InvalidPageError, match="out of range"):
            allocator.free_page(-1)

    def test_is_allocated_out_of_range_raises(self) -> None:
        """Querying a page outside the store is rejected, not wrapped around."""
        allocator = _allocator()
        with pytest.raises(InvalidPageError, match="out of range"):
            allocator.is_allocated(-1)
        with pytest.raises(InvalidPageError, match="out of range"):
            allocator.is_allocated(PAGE_COUNT)

    def test_allocate_and_free_are_logged(self) -> None:
        """Each allocate and free should produce a debug entry."""
        logger = Logger()
        allocator = _allocator(logger)
        page = allocator.allocate_page()
        allocator.free_page(page)
        messages = [e.message for e in logger.filter(source="allocator")]
        assert messages == ["allocated page 1", "freed page 1"]
