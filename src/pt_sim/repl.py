"""Interactive REPL (Read-Eval-Print Loop) for the simulator.

The REPL is the thin I/O wrapper around the shell:

    1. **Read** — display a prompt and read a command line.
    2. **Eval** — pass it to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until ``exit``, Ctrl+D, or Ctrl+C.

The helper functions (``build_prompt``, ``format_banner``) are pure
and testable.  The ``run()`` function is the I/O entrypoint.
"""

import readline

from pt_sim.logging import LogLevel
from pt_sim.machine import Machine
from pt_sim.shell import Shell

_BANNER_WIDTH = 38


def format_banner(machine: Machine) -> str:
    """Format the start-up banner, including the machine's event log.

    Args:
        machine: The machine the REPL drives.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n     pt-sim page table simulator\n  {border}\n\n"
    body = "\n".join(f"  {msg}" for msg in machine.dmesg(min_level=LogLevel.INFO))
    footer = "\nType 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def build_prompt(machine: Machine) -> str:
    """Build the prompt string showing the number of free pages.

    Returns:
        A prompt string like ``ptsim [63 free] $ ``.

    """
    return f"ptsim [{machine.free_page_count} free] $ "


def _install_completer(shell: Shell) -> None:
    """Wire command-name tab completion into readline."""

    def complete(text: str, state: int) -> str | None:
        matches = shell.completions(text)
        return matches[state] if state < len(matches) else None

    readline.set_completer(complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")


def run(shell: Shell) -> None:
    """Run the interactive loop on an existing shell.

    Handles graceful exit on ``exit``, Ctrl+D and Ctrl+C.
    """
    _install_completer(shell)
    print(format_banner(shell.machine))  # noqa: T201

    try:
        while True:
            try:
                command = input(build_prompt(shell.machine))
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201
