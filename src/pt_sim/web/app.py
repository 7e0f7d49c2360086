"""Flask application factory for the pt-sim web API.

The ``create_app`` function builds a machine, creates a shell, and
returns a Flask app with three endpoints:

- ``POST /api/execute`` — execute a command and return JSON.
- ``GET /api/status`` — return free page count, bitmap, and processes.
- ``GET /api/processes/<proc_id>/page-table`` — return one page table.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from pt_sim.config import MachineConfig
from pt_sim.machine import Machine
from pt_sim.memory import ProcessError
from pt_sim.shell import Shell

_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404


def create_app(config: MachineConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Machine geometry; defaults to 64 pages of 256 bytes.

    Returns:
        A configured Flask application ready to serve.

    """
    machine = Machine(config)
    shell = Shell(machine=machine)

    app = Flask(__name__)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output`` and ``halted`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        command: str = data["command"]
        result = shell.execute(command)
        if result == Shell.EXIT_SENTINEL:
            return jsonify({"output": "", "halted": True})
        return jsonify({"output": result, "halted": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the machine's memory status.

        Returns:
            JSON with ``free_pages``, ``bitmap`` and ``processes`` fields.

        """
        return jsonify(
            {
                "free_pages": machine.free_page_count,
                "bitmap": list(machine.snapshot_free_bitmap()),
                "processes": machine.active_processes(),
            }
        )

    @app.route("/api/processes/<int:proc_id>/page-table")
    def page_table(proc_id: int) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return a process's mapped entries keyed by virtual page."""
        try:
            mappings = machine.snapshot_page_table(proc_id)
        except ProcessError as e:
            return jsonify({"error": str(e)}), _HTTP_NOT_FOUND
        return jsonify({"proc_id": proc_id, "mappings": {str(v): p for v, p in mappings.items()}})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``ptsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
