"""Machine configuration — the geometry of the simulated physical store.

The simulator models a tiny machine: a fixed number of physical pages,
each a fixed number of bytes.  Everything else is derived from those
two numbers:

- **page_shift** — ``log2(page_size)``; an address is
  ``(page << page_shift) | offset``.
- **mem_size** — total bytes of simulated RAM.

A page table is itself one physical page with one byte per virtual
page, so a physical page number must fit in a byte (``page_count <=
256``) and a page must be large enough to hold ``page_count`` entries.

Configuration can come from a JSON file::

    {"page_size": 256, "page_count": 64, "max_processes": 64}

Missing keys fall back to the defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_PAGE_SIZE = 256
DEFAULT_PAGE_COUNT = 64
DEFAULT_MAX_PROCESSES = 64

# Page-table entries are single bytes.
_MAX_PAGE_COUNT = 256
_MIN_PAGE_COUNT = 2


class ConfigError(Exception):
    """Raise when a machine configuration is unreadable or invalid."""


@dataclass(frozen=True)
class MachineConfig:
    """Immutable description of the simulated machine.

    Attributes:
        page_size: Bytes per page (a power of two).
        page_count: Number of physical pages, page 0 included.
        max_processes: Size of the process-id range ``0 .. max_processes-1``.

    """

    page_size: int = DEFAULT_PAGE_SIZE
    page_count: int = DEFAULT_PAGE_COUNT
    max_processes: int = DEFAULT_MAX_PROCESSES

    def __post_init__(self) -> None:
        """Reject geometries the page-table layout cannot represent."""
        if self.page_size <= 0 or self.page_size & (self.page_size - 1):
            msg = f"page_size must be a power of two, got {self.page_size}"
            raise ConfigError(msg)
        if not _MIN_PAGE_COUNT <= self.page_count <= _MAX_PAGE_COUNT:
            msg = (
                f"page_count must be between {_MIN_PAGE_COUNT} and "
                f"{_MAX_PAGE_COUNT}, got {self.page_count}"
            )
            raise ConfigError(msg)
        if self.page_count > self.page_size:
            msg = (
                f"page_count {self.page_count} does not fit in a page table "
                f"of {self.page_size} entries"
            )
            raise ConfigError(msg)
        if self.max_processes < 1:
            msg = f"max_processes must be at least 1, got {self.max_processes}"
            raise ConfigError(msg)

    @property
    def page_shift(self) -> int:
        """Return the number of offset bits in an address."""
        return self.page_size.bit_length() - 1

    @property
    def offset_mask(self) -> int:
        """Return the mask selecting the offset bits of an address."""
        return self.page_size - 1

    @property
    def mem_size(self) -> int:
        """Return the total size of physical memory in bytes."""
        return self.page_size * self.page_count


def load_config(path: Path) -> MachineConfig:
    """Load a machine configuration from a JSON file.

    Args:
        path: Path to a JSON object with any of ``page_size``,
            ``page_count`` and ``max_processes``.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or
            describes an invalid machine.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load machine config: {e}"
        raise ConfigError(msg) from e

    if not isinstance(data, dict):
        msg = f"Machine config must be a JSON object, got {type(data).__name__}"
        raise ConfigError(msg)

    values: dict[str, object] = {
        "page_size": data.get("page_size", DEFAULT_PAGE_SIZE),
        "page_count": data.get("page_count", DEFAULT_PAGE_COUNT),
        "max_processes": data.get("max_processes", DEFAULT_MAX_PROCESSES),
    }
    for key, value in values.items():
        if not isinstance(value, int) or isinstance(value, bool):
            msg = f"{key} must be an integer, got {value!r}"
            raise ConfigError(msg)
    return MachineConfig(**values)  # type: ignore[arg-type]
