"""Browser-facing JSON API for the simulator.

This package provides a Flask application that exposes the shell and
the machine's state over HTTP.  It is an **optional** extra — install
with::

    pip install pt-sim[web]

The ``create_app`` factory in ``app.py`` builds a machine, attaches a
shell, and serves:

- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — free page count, free-page bitmap, processes.
- ``GET /api/processes/<proc_id>/page-table`` — one process's mappings.
"""
