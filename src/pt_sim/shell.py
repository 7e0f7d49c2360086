"""The shell — command interpreter for the page-table simulator.

The shell turns short textual commands into calls on a ``Machine``:

    np <proc> <pages>        create a process with <pages> data pages
    kp <proc>                kill a process, freeing its pages
    sb <proc> <vaddr> <val>  store byte <val> at virtual address <vaddr>
    lb <proc> <vaddr>        load the byte at virtual address <vaddr>
    pfm                      print the page free map
    ppt <proc>               print a process's page table
    log [clear]              show (or empty) the event log

Commands arrive either one per line (``execute``, used by the REPL and
the web UI) or as one flat token stream (``run_tokens``, used by the
command line: ``ptsim np 1 2 pfm lb 1 0``), where each command consumes
as many following tokens as it takes arguments.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable and separates concerns (the caller decides how to
      display output).
    - **Command dispatch via a dict.**  Adding a command means writing
      a method and adding one dict entry.
    - **Core errors become ``Error:`` lines.**  A failed command never
      stops the run; the next command still executes.
"""

from collections.abc import Callable, Sequence

from pt_sim.machine import Machine
from pt_sim.memory import (
    AllocationExhaustedError,
    InsufficientMemoryError,
    InvalidPageError,
    PageFaultError,
    ProcessError,
)

# Type alias for a command handler: takes a list of args, returns output.
_Handler = Callable[[list[str]], str]

# Core exceptions the shell reports instead of propagating.
_CORE_ERRORS = (
    AllocationExhaustedError,
    InvalidPageError,
    PageFaultError,
    ProcessError,
    ValueError,
)

# Free-map characters per output line.
_FREE_MAP_WIDTH = 16


def format_free_map(bitmap: Sequence[int]) -> str:
    """Render the free-page bitmap, ``.`` for free and ``#`` for used.

    Args:
        bitmap: One 0/1 entry per physical page.

    Returns:
        A header line followed by rows of 16 page markers.

    """
    marks = "".join("." if used == 0 else "#" for used in bitmap)
    rows = [marks[i : i + _FREE_MAP_WIDTH] for i in range(0, len(marks), _FREE_MAP_WIDTH)]
    return "\n".join(["--- PAGE FREE MAP ---", *rows])


def format_page_table(proc_id: int, mappings: dict[int, int]) -> str:
    """Render a process's mapped entries as ``vv -> pp`` hex lines."""
    lines = [f"--- PROCESS {proc_id} PAGE TABLE ---"]
    lines.extend(f"{virtual:02x} -> {physical:02x}" for virtual, physical in sorted(mappings.items()))
    return "\n".join(lines)


class Shell:
    """Command interpreter that operates on a machine."""

    EXIT_SENTINEL = "__EXIT__"

    # Number of argument tokens each command consumes in a token stream.
    ARITY: dict[str, int] = {
        "np": 2,
        "kp": 1,
        "sb": 3,
        "lb": 2,
        "pfm": 0,
        "ppt": 1,
        "log": 0,
        "help": 0,
        "exit": 0,
    }

    def __init__(self, *, machine: Machine) -> None:
        """Create a shell attached to a machine."""
        self._machine = machine

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "np": self._cmd_np,
            "kp": self._cmd_kp,
            "sb": self._cmd_sb,
            "lb": self._cmd_lb,
            "pfm": self._cmd_pfm,
            "ppt": self._cmd_ppt,
            "log": self._cmd_log,
            "help": self._cmd_help,
            "exit": self._cmd_exit,
        }

    @property
    def machine(self) -> Machine:
        """Return the machine this shell drives."""
        return self._machine

    def commands(self) -> list[str]:
        """Return the sorted list of command names."""
        return sorted(self._commands)

    def completions(self, text: str) -> list[str]:
        """Return command names starting with ``text``."""
        return [name for name in self.commands() if name.startswith(text)]

    def execute(self, command: str) -> str:
        """Parse and execute a single command line.

        Args:
            command: The raw command string (e.g. "np 1 2").

        Returns:
            The command output, possibly empty, or an error message.

        """
        parts = command.split()
        if not parts:
            return ""
        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        return handler(args)

    def run_tokens(self, tokens: Sequence[str]) -> list[str]:
        """Execute a flat stream of command tokens.

        Each command name is followed by exactly its arguments, as in
        ``["np", "1", "2", "pfm"]``.  Unknown tokens are reported and
        skipped.  ``exit`` stops the run.

        Returns:
            The non-empty outputs, in order.

        """
        results: list[str] = []
        i = 0
        while i < len(tokens):
            name = tokens[i]
            i += 1
            arity = self.ARITY.get(name)
            if arity is None:
                results.append(f"Unknown command: {name}")
                continue
            args = list(tokens[i : i + arity])
            i += arity
            output = self._commands[name](args)
            if output == self.EXIT_SENTINEL:
                break
            if output:
                results.append(output)
        return results

    # -- Command handlers ------------------------------------------------

    def _cmd_np(self, args: list[str]) -> str:
        """Create a new process."""
        if len(args) != self.ARITY["np"]:
            return "Usage: np <proc> <pages>"
        numbers = _parse_ints(args)
        if isinstance(numbers, str):
            return numbers
        proc_id, page_count = numbers

        try:
            mapped = self._machine.create_process(proc_id, page_count)
        except InsufficientMemoryError:
            return f"Could not allocate space for process #{proc_id}"
        except _CORE_ERRORS as e:
            return f"Error: {e}"
        if mapped < page_count:
            return f"Warning: process #{proc_id} mapped {mapped} of {page_count} pages"
        return ""

    def _cmd_kp(self, args: list[str]) -> str:
        """Kill a process."""
        if len(args) != self.ARITY["kp"]:
            return "Usage: kp <proc>"
        numbers = _parse_ints(args)
        if isinstance(numbers, str):
            return numbers

        try:
            self._machine.destroy_process(numbers[0])
        except _CORE_ERRORS as e:
            return f"Error: {e}"
        return ""

    def _cmd_sb(self, args: list[str]) -> str:
        """Store a byte at a virtual address."""
        if len(args) != self.ARITY["sb"]:
            return "Usage: sb <proc> <vaddr> <value>"
        numbers = _parse_ints(args)
        if isinstance(numbers, str):
            return numbers
        proc_id, virtual_address, value = numbers

        try:
            access = self._machine.store(proc_id, virtual_address, value)
        except _CORE_ERRORS as e:
            return f"Error: {e}"
        return (
            f"Store proc {access.proc_id}: {access.virtual_address} => "
            f"{access.physical_address}, value={access.value}"
        )

    def _cmd_lb(self, args: list[str]) -> str:
        """Load a byte from a virtual address."""
        if len(args) != self.ARITY["lb"]:
            return "Usage: lb <proc> <vaddr>"
        numbers = _parse_ints(args)
        if isinstance(numbers, str):
            return numbers
        proc_id, virtual_address = numbers

        try:
            access = self._machine.load(proc_id, virtual_address)
        except _CORE_ERRORS as e:
            return f"Error: {e}"
        return (
            f"Load proc {access.proc_id}: {access.virtual_address} => "
            f"{access.physical_address}, value={access.value}"
        )

    def _cmd_pfm(self, _args: list[str]) -> str:
        """Print the page free map."""
        return format_free_map(self._machine.snapshot_free_bitmap())

    def _cmd_ppt(self, args: list[str]) -> str:
        """Print a process's page table."""
        if len(args) != self.ARITY["ppt"]:
            return "Usage: ppt <proc>"
        numbers = _parse_ints(args)
        if isinstance(numbers, str):
            return numbers

        proc_id = numbers[0]
        try:
            mappings = self._machine.snapshot_page_table(proc_id)
        except _CORE_ERRORS as e:
            return f"Error: {e}"
        return format_page_table(proc_id, mappings)

    def _cmd_log(self, args: list[str]) -> str:
        """Show the machine's event log, or empty it with ``log clear``."""
        if not args:
            return "\n".join(self._machine.dmesg())
        if args == ["clear"]:
            self._machine.logger.clear()
            return ""
        return "Usage: log [clear]"

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.commands())

    def _cmd_exit(self, _args: list[str]) -> str:
        """Signal the caller to stop."""
        return self.EXIT_SENTINEL


def _parse_ints(args: list[str]) -> list[int] | str:
    """Convert every argument to an int, or return an error message."""
    numbers: list[int] = []
    for arg in args:
        try:
            numbers.append(int(arg))
        except ValueError:
            return f"Error: invalid number '{arg}'"
    return numbers
