"""The machine — one simulated computer's memory system, wired together.

``Machine`` owns one instance of each memory layer and the event log
they share, and exposes the operations callers actually use::

    machine = Machine()
    machine.create_process(1, 2)
    machine.store(1, 0, 99)
    machine.load(1, 0).value  # 99

The layers stack strictly bottom-up:

    PhysicalStore  ←  PageAllocator  ←  AddressSpaceManager  ←  AddressTranslator

Outer surfaces (shell, CLI, web UI) talk to the machine and never reach
into the layers themselves.
"""

from pt_sim.config import MachineConfig
from pt_sim.logging import Logger, LogLevel
from pt_sim.memory.address_space import AddressSpaceManager
from pt_sim.memory.allocator import PageAllocator
from pt_sim.memory.store import PhysicalStore
from pt_sim.memory.translator import Access, AddressTranslator


class Machine:
    """Facade over the physical store, allocator, address spaces, and MMU."""

    def __init__(
        self,
        config: MachineConfig | None = None,
        *,
        logger: Logger | None = None,
    ) -> None:
        """Create a machine with empty memory and no processes.

        Args:
            config: Machine geometry; defaults to 64 pages of 256 bytes.
            logger: Event log shared by every layer.

        """
        self._config = config if config is not None else MachineConfig()
        self._logger = logger if logger is not None else Logger()
        self._store = PhysicalStore(self._config)
        self._allocator = PageAllocator(self._config, logger=self._logger)
        self._address_spaces = AddressSpaceManager(
            store=self._store, allocator=self._allocator, logger=self._logger
        )
        self._translator = AddressTranslator(
            store=self._store, address_spaces=self._address_spaces, logger=self._logger
        )
        self._logger.log(
            LogLevel.INFO,
            f"memory: {self._config.page_count} pages of {self._config.page_size} bytes "
            f"({self._config.mem_size} bytes)",
            source="machine",
        )

    @property
    def config(self) -> MachineConfig:
        """Return the machine geometry."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the shared event log."""
        return self._logger

    @property
    def physical_store(self) -> PhysicalStore:
        """Return the physical store (for inspection)."""
        return self._store

    @property
    def allocator(self) -> PageAllocator:
        """Return the page allocator."""
        return self._allocator

    @property
    def address_spaces(self) -> AddressSpaceManager:
        """Return the address space manager."""
        return self._address_spaces

    @property
    def free_page_count(self) -> int:
        """Return the number of free physical pages."""
        return self._allocator.free_page_count

    def create_process(self, proc_id: int, page_count: int) -> int:
        """Create a process with ``page_count`` data pages.

        Returns:
            The number of data pages actually mapped.

        """
        return self._address_spaces.create_process(proc_id, page_count)

    def destroy_process(self, proc_id: int) -> None:
        """Tear down a process and free all its pages."""
        self._address_spaces.destroy_process(proc_id)

    def store(self, proc_id: int, virtual_address: int, value: int) -> Access:
        """Write a byte into a process's address space."""
        return self._translator.store(proc_id, virtual_address, value)

    def load(self, proc_id: int, virtual_address: int) -> Access:
        """Read a byte from a process's address space."""
        return self._translator.load(proc_id, virtual_address)

    def translate(self, proc_id: int, virtual_address: int) -> int:
        """Resolve a process's virtual address to a physical address."""
        return self._translator.translate(proc_id, virtual_address)

    def snapshot_free_bitmap(self) -> tuple[int, ...]:
        """Return the free-page bitmap, one 0/1 entry per physical page."""
        return self._allocator.snapshot()

    def snapshot_page_table(self, proc_id: int) -> dict[int, int]:
        """Return a process's mapped virtual → physical page entries."""
        return self._address_spaces.snapshot_page_table(proc_id)

    def active_processes(self) -> list[int]:
        """Return the ids of processes that have an address space."""
        return self._address_spaces.active_processes()

    def dmesg(self, *, min_level: LogLevel | None = None) -> list[str]:
        """Return the event log as formatted lines."""
        return [str(entry) for entry in self._logger.filter(min_level=min_level)]
