"""Tests for the physical store — the simulated RAM arena."""

import pytest

from pt_sim.config import MachineConfig
from pt_sim.memory.store import PhysicalStore

PAGE_SIZE = 256
MEM_SIZE = 16384


class TestPhysicalStore:
    """Verify addressing and byte access."""

    def test_size(self) -> None:
        """The store should be page_count * page_size bytes."""
        store = PhysicalStore(MachineConfig())
        assert len(store) == MEM_SIZE

    def test_starts_zeroed(self) -> None:
        """Fresh memory should read as zero."""
        store = PhysicalStore(MachineConfig())
        assert all(store.read_byte(store.address(5, offset)) == 0 for offset in range(PAGE_SIZE))

    def test_address_packs_page_and_offset(self) -> None:
        """An address is the page shifted left plus the offset."""
        store = PhysicalStore(MachineConfig())
        expected = 3 * PAGE_SIZE + 17
        assert store.address(3, 17) == expected

    def test_split_inverts_address(self) -> None:
        """Splitting an address should recover its page and offset."""
        store = PhysicalStore(MachineConfig())
        assert store.split(store.address(9, 200)) == (9, 200)

    def test_write_then_read(self) -> None:
        """A written byte should be readable at the same address."""
        store = PhysicalStore(MachineConfig())
        address = store.address(2, 10)
        store.write_byte(address, 0xAB)
        expected = 0xAB
        assert store.read_byte(address) == expected

    def test_zero_page(self) -> None:
        """Zeroing a page should clear only that page."""
        store = PhysicalStore(MachineConfig())
        store.write_byte(store.address(1, 0), 1)
        store.write_byte(store.address(1, PAGE_SIZE - 1), 1)
        store.write_byte(store.address(2, 0), 2)
        store.zero_page(1)
        assert store.read_byte(store.address(1, 0)) == 0
        assert store.read_byte(store.address(1, PAGE_SIZE - 1)) == 0
        assert store.read_byte(store.address(2, 0)) == 2  # noqa: PLR2004

    def test_out_of_range_access_raises(self) -> None:
        """Addresses beyond the arena should raise IndexError."""
        store = PhysicalStore(MachineConfig())
        with pytest.raises(IndexError, match="outside store"):
            store.read_byte(MEM_SIZE)
        with pytest.raises(IndexError):
            store.write_byte(-1, 0)

    def test_value_must_fit_in_byte(self) -> None:
        """Writing a value above 255 should fail."""
        store = PhysicalStore(MachineConfig())
        with pytest.raises(ValueError):  # noqa: PT011
            store.write_byte(0, 256)

    def test_small_geometry(self) -> None:
        """A custom geometry should change the arena size and shift."""
        config = MachineConfig(page_size=16, page_count=8)
        store = PhysicalStore(config)
        expected_size = 128
        assert len(store) == expected_size
        assert store.address(1, 0) == 16  # noqa: PLR2004
