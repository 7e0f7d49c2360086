"""Memory subsystem — physical store, page allocator, page tables, and MMU.

Re-exports public symbols so callers can write::

    from pt_sim.memory import PageAllocator, PhysicalStore
"""

from pt_sim.memory.address_space import (
    UNMAPPED,
    AddressSpaceManager,
    InsufficientMemoryError,
    ProcessError,
)
from pt_sim.memory.allocator import (
    RESERVED_PAGE,
    AllocationExhaustedError,
    InvalidPageError,
    PageAllocator,
)
from pt_sim.memory.store import PhysicalStore
from pt_sim.memory.translator import Access, AddressTranslator, PageFaultError

__all__ = [
    "RESERVED_PAGE",
    "UNMAPPED",
    "Access",
    "AddressSpaceManager",
    "AddressTranslator",
    "AllocationExhaustedError",
    "InsufficientMemoryError",
    "InvalidPageError",
    "PageAllocator",
    "PageFaultError",
    "PhysicalStore",
    "ProcessError",
]
