"""releasegate CLI — Typer-based command-line interface.

Provides the ``releasegate`` command with subcommands for running the
release pipeline on a trigger event, checking the publication gate,
recording PR opt-ins, and rendering install instructions.

All output uses Rich for formatted terminal display.
"""
