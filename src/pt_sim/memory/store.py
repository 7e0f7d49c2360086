"""Physical store — the simulated RAM.

Physical memory is one flat byte arena, ``page_count * page_size``
bytes long, logically cut into fixed-size **pages**.  An address is a
page number and an offset packed together::

    address = (page << page_shift) | offset

Page 0 is reserved: the allocator never hands it out, so no process
can ever own it.  The store itself does not enforce that rule — it is
just bytes — the allocator does.
"""

from pt_sim.config import MachineConfig


class PhysicalStore:
    """A fixed-size, zero-initialised byte arena split into pages."""

    def __init__(self, config: MachineConfig) -> None:
        """Create a zeroed store sized by the given configuration."""
        self._config = config
        self._mem = bytearray(config.mem_size)

    @property
    def config(self) -> MachineConfig:
        """Return the machine geometry."""
        return self._config

    def __len__(self) -> int:
        """Return the size of the store in bytes."""
        return len(self._mem)

    def address(self, page: int, offset: int) -> int:
        """Pack a page number and an offset into a physical address."""
        return (page << self._config.page_shift) | offset

    def split(self, address: int) -> tuple[int, int]:
        """Unpack a physical address into ``(page, offset)``."""
        return address >> self._config.page_shift, address & self._config.offset_mask

    def read_byte(self, address: int) -> int:
        """Return the byte at a physical address.

        Raises:
            IndexError: If the address lies outside the store.

        """
        self._check(address)
        return self._mem[address]

    def write_byte(self, address: int, value: int) -> None:
        """Write one byte at a physical address.

        Raises:
            IndexError: If the address lies outside the store.
            ValueError: If the value does not fit in a byte.

        """
        self._check(address)
        self._mem[address] = value

    def zero_page(self, page: int) -> None:
        """Fill one physical page with zero bytes."""
        start = self.address(page, 0)
        self._mem[start : start + self._config.page_size] = bytes(self._config.page_size)

    def _check(self, address: int) -> None:
        if not 0 <= address < len(self._mem):
            msg = f"Physical address {address} outside store of {len(self._mem)} bytes"
            raise IndexError(msg)
