"""queuehook CLI — Typer-based command-line interface.

Provides the ``queuehook`` command with subcommands for running the
consume loop against a broker and for delivering one envelope by hand.

All output uses Rich for formatted terminal display.
"""
