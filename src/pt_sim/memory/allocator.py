"""Page allocator — first-fit allocation of single physical pages.

The allocator keeps a **free-page bitmap**: one entry per physical
page, ``0`` when the page is free and ``1`` when it is in use.  Entry 0
is set at start-up and never cleared, because page 0 is reserved.

Allocation scans the bitmap from index 1 upward and takes the first
free page.  First-fit is deterministic, so the same sequence of
allocate/free calls always yields the same page numbers — which is what
makes free-map dumps reproducible.

The bitmap lives here, in its own ``bytearray``, rather than inside
page 0 of the physical store.  Page 0 stays unaddressable to processes
because the allocator refuses to hand it out or take it back.
"""

from pt_sim.config import MachineConfig
from pt_sim.logging import Logger, LogLevel

RESERVED_PAGE = 0

_FREE = 0
_USED = 1


class AllocationExhaustedError(Exception):
    """Raise when no free physical page is left."""


class InvalidPageError(Exception):
    """Raise when a page number cannot be freed (reserved, free, or out of range)."""


class PageAllocator:
    """Track free and used physical pages with a bitmap."""

    def __init__(self, config: MachineConfig, *, logger: Logger | None = None) -> None:
        """Create an allocator with every page free except the reserved one.

        Args:
            config: The machine geometry.
            logger: Event log to report allocations to.

        """
        self._page_count = config.page_count
        self._bitmap = bytearray(config.page_count)
        self._bitmap[RESERVED_PAGE] = _USED
        self._free_page_count = config.page_count - 1
        self._logger = logger if logger is not None else Logger()

    @property
    def page_count(self) -> int:
        """Return the total number of physical pages, reserved page included."""
        return self._page_count

    @property
    def free_page_count(self) -> int:
        """Return the number of pages available for allocation."""
        return self._free_page_count

    def is_allocated(self, page: int) -> bool:
        """Return True if the page is reserved or in use.

        Raises:
            InvalidPageError: If the page is out of range.

        """
        self._check_range(page)
        return self._bitmap[page] == _USED

    def snapshot(self) -> tuple[int, ...]:
        """Return the bitmap as a tuple of 0/1 entries, one per page."""
        return tuple(self._bitmap)

    def allocate_page(self) -> int:
        """Allocate the lowest-numbered free page.

        Returns:
            The physical page number.

        Raises:
            AllocationExhaustedError: If every page is in use.

        """
        for page in range(RESERVED_PAGE + 1, self._page_count):
            if self._bitmap[page] == _FREE:
                self._bitmap[page] = _USED
                self._free_page_count -= 1
                self._logger.log(LogLevel.DEBUG, f"allocated page {page}", source="allocator")
                return page

        msg = f"No free physical page among {self._page_count}"
        self._logger.log(LogLevel.WARNING, msg, source="allocator")
        raise AllocationExhaustedError(msg)

    def free_page(self, page: int) -> None:
        """Return a page to the free pool.

        Raises:
            InvalidPageError: If the page is out of range, reserved, or
                already free.

        """
        self._check_range(page)
        if page == RESERVED_PAGE:
            msg = f"Page {RESERVED_PAGE} is reserved and cannot be freed"
            raise InvalidPageError(msg)
        if self._bitmap[page] == _FREE:
            msg = f"Page {page} is already free"
            raise InvalidPageError(msg)

        self._bitmap[page] = _FREE
        self._free_page_count += 1
        self._logger.log(LogLevel.DEBUG, f"freed page {page}", source="allocator")

    def _check_range(self, page: int) -> None:
        if not 0 <= page < self._page_count:
            msg = f"Page {page} is out of range 0..{self._page_count - 1}"
            raise InvalidPageError(msg)
