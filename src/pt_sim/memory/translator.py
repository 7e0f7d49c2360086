"""Address translator — the simulated MMU.

A virtual address splits into a virtual page number (high bits) and an
offset within the page (low bits)::

    virtual page  = virtual_address >> page_shift
    offset        = virtual_address & (page_size - 1)
    physical page = page_table[virtual page]
    physical addr = (physical page << page_shift) | offset

Translating through an unmapped entry raises ``PageFaultError``.  The
entry value ``0`` would otherwise point into the reserved page, so a
stray access would read or clobber allocator territory.
"""

from dataclasses import dataclass

from pt_sim.logging import Logger, LogLevel
from pt_sim.memory.address_space import UNMAPPED, AddressSpaceManager
from pt_sim.memory.store import PhysicalStore

_BYTE_MAX = 0xFF


class PageFaultError(Exception):
    """Raised when a virtual address has no physical mapping."""


@dataclass(frozen=True)
class Access:
    """One completed load or store.

    Attributes:
        proc_id: The process that made the access.
        virtual_address: The address the process used.
        physical_address: Where it resolved to.
        value: The byte read or written.

    """

    proc_id: int
    virtual_address: int
    physical_address: int
    value: int


class AddressTranslator:
    """Translate virtual addresses through process page tables."""

    def __init__(
        self,
        *,
        store: PhysicalStore,
        address_spaces: AddressSpaceManager,
        logger: Logger | None = None,
    ) -> None:
        """Create a translator over a store and its address spaces."""
        self._store = store
        self._address_spaces = address_spaces
        self._logger = logger if logger is not None else Logger()

    def translate(self, proc_id: int, virtual_address: int) -> int:
        """Translate a process's virtual address to a physical address.

        Raises:
            ProcessError: If the process does not exist.
            PageFaultError: If the address is outside the virtual address
                space or its page is unmapped.

        """
        config = self._store.config
        if not 0 <= virtual_address < config.mem_size:
            msg = f"Virtual address {virtual_address} is outside the address space of process {proc_id}"
            raise PageFaultError(msg)

        # virtual and physical addresses share the page geometry
        virtual_page, offset = self._store.split(virtual_address)
        physical_page = self._address_spaces.entry(proc_id, virtual_page)
        if physical_page == UNMAPPED:
            msg = f"Virtual page {virtual_page} of process {proc_id} is not mapped"
            raise PageFaultError(msg)
        return self._store.address(physical_page, offset)

    def load(self, proc_id: int, virtual_address: int) -> Access:
        """Read the byte at a virtual address."""
        physical_address = self.translate(proc_id, virtual_address)
        value = self._store.read_byte(physical_address)
        self._logger.log(
            LogLevel.DEBUG,
            f"load {virtual_address} => {physical_address}, value={value}",
            source="mmu",
            proc_id=proc_id,
        )
        return Access(proc_id, virtual_address, physical_address, value)

    def store(self, proc_id: int, virtual_address: int, value: int) -> Access:
        """Write a byte at a virtual address.

        Raises:
            ValueError: If the value does not fit in a byte.

        """
        if not 0 <= value <= _BYTE_MAX:
            msg = f"Value {value} does not fit in a byte"
            raise ValueError(msg)
        physical_address = self.translate(proc_id, virtual_address)
        self._store.write_byte(physical_address, value)
        self._logger.log(
            LogLevel.DEBUG,
            f"store {virtual_address} => {physical_address}, value={value}",
            source="mmu",
            proc_id=proc_id,
        )
        return Access(proc_id, virtual_address, physical_address, value)
