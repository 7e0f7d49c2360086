"""Address space manager — per-process page tables.

Each process owns exactly one **page table**: a physical page whose byte
at offset ``v`` holds the physical page number backing virtual page
``v``, or ``0`` when virtual page ``v`` is unmapped.  Page 0 can never
be allocated to a process, so ``0`` is unambiguous as "no mapping".

The manager also keeps the **process table** — process id → physical
page number of that process's page table.

Creating a process allocates its page table and ``page_count`` data
pages in one call; destroying it returns all of them.  There is no way
to grow or shrink an address space in between.

Two quirks are kept on purpose:

- The free-page pre-check compares against ``page_count`` only, not
  ``page_count + 1``.  A request that exactly matches the free pages
  passes the check, uses one page for the page table, and then runs
  out one data page short.
- Running out mid-creation does not roll back.  The process is left
  active with the mappings it managed to get.
"""

from pt_sim.config import MachineConfig
from pt_sim.logging import Logger, LogLevel
from pt_sim.memory.allocator import AllocationExhaustedError, PageAllocator
from pt_sim.memory.store import PhysicalStore

UNMAPPED = 0


class InsufficientMemoryError(Exception):
    """Raise when a process cannot be created because too few pages are free."""


class ProcessError(Exception):
    """Raise for an out-of-range, duplicate, or unknown process id."""


class AddressSpaceManager:
    """Create and destroy process address spaces on top of the allocator."""

    def __init__(
        self,
        *,
        store: PhysicalStore,
        allocator: PageAllocator,
        logger: Logger | None = None,
    ) -> None:
        """Create a manager with no processes.

        Args:
            store: The physical store that holds page tables.
            allocator: Source of physical pages.
            logger: Event log to report process lifecycle events to.

        """
        self._store = store
        self._allocator = allocator
        self._config: MachineConfig = store.config
        self._logger = logger if logger is not None else Logger()
        # proc_id → physical page number of the process's page table
        self._process_table: dict[int, int] = {}

    def active_processes(self) -> list[int]:
        """Return the ids of all processes with an address space, sorted."""
        return sorted(self._process_table)

    def is_active(self, proc_id: int) -> bool:
        """Return True if the process currently has an address space."""
        return proc_id in self._process_table

    def page_table_page(self, proc_id: int) -> int:
        """Return the physical page holding a process's page table.

        Raises:
            ProcessError: If the id is out of range or has no address space.

        """
        self._check_range(proc_id)
        page = self._process_table.get(proc_id)
        if page is None:
            msg = f"Process {proc_id} does not exist"
            raise ProcessError(msg)
        return page

    def entry(self, proc_id: int, virtual_page: int) -> int:
        """Return the physical page mapped at a virtual page (``0`` if unmapped)."""
        table = self.page_table_page(proc_id)
        return self._store.read_byte(self._store.address(table, virtual_page))

    def snapshot_page_table(self, proc_id: int) -> dict[int, int]:
        """Return the mapped entries of a process's page table.

        Returns:
            A dict of virtual page → physical page, unmapped entries omitted.

        """
        table = self.page_table_page(proc_id)
        mappings: dict[int, int] = {}
        for virtual_page in range(self._config.page_count):
            physical_page = self._store.read_byte(self._store.address(table, virtual_page))
            if physical_page != UNMAPPED:
                mappings[virtual_page] = physical_page
        return mappings

    def create_process(self, proc_id: int, page_count: int) -> int:
        """Allocate a page table and ``page_count`` data pages for a process.

        Args:
            proc_id: Id of the new process.
            page_count: Number of virtual pages to back with data pages.

        Returns:
            The number of data pages actually mapped.  This is less than
            ``page_count`` when memory ran out part-way through.

        Raises:
            ProcessError: If the id is out of range or already active.
            ValueError: If page_count is negative.
            InsufficientMemoryError: If fewer than page_count pages are
                free, which includes any request above the page count.
                Nothing is allocated in that case.
            AllocationExhaustedError: If not even the page table could
                be allocated.

        """
        self._check_range(proc_id)
        if proc_id in self._process_table:
            msg = f"Process {proc_id} already exists"
            raise ProcessError(msg)
        if page_count < 0:
            msg = f"page_count must not be negative, got {page_count}"
            raise ValueError(msg)

        free = self._allocator.free_page_count
        if free < page_count:
            msg = f"Could not allocate space for process #{proc_id}: {page_count} pages requested, {free} free"
            self._logger.log(LogLevel.WARNING, msg, source="process", proc_id=proc_id)
            raise InsufficientMemoryError(msg)

        table = self._allocator.allocate_page()
        self._store.zero_page(table)
        self._process_table[proc_id] = table

        mapped = 0
        for virtual_page in range(page_count):
            try:
                data_page = self._allocator.allocate_page()
            except AllocationExhaustedError:
                self._logger.log(
                    LogLevel.WARNING,
                    f"process {proc_id} created with {mapped} of {page_count} pages",
                    source="process",
                    proc_id=proc_id,
                )
                return mapped
            self._store.write_byte(self._store.address(table, virtual_page), data_page)
            mapped += 1

        self._logger.log(
            LogLevel.INFO,
            f"created process {proc_id}: page table at page {table}, {mapped} data pages",
            source="process",
            proc_id=proc_id,
        )
        return mapped

    def destroy_process(self, proc_id: int) -> None:
        """Free a process's data pages and page table.

        Raises:
            ProcessError: If the id is out of range or has no address space.

        """
        table = self.page_table_page(proc_id)
        for virtual_page in range(self._config.page_count):
            slot = self._store.address(table, virtual_page)
            data_page = self._store.read_byte(slot)
            if data_page != UNMAPPED:
                self._allocator.free_page(data_page)
                self._store.write_byte(slot, UNMAPPED)
        self._allocator.free_page(table)
        del self._process_table[proc_id]

        self._logger.log(LogLevel.INFO, f"destroyed process {proc_id}", source="process", proc_id=proc_id)

    def _check_range(self, proc_id: int) -> None:
        if not 0 <= proc_id < self._config.max_processes:
            msg = f"Process id {proc_id} is out of range 0..{self._config.max_processes - 1}"
            raise ProcessError(msg)
