"""Allow ``python -m podcast_dl`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m podcast_dl`` behaves identically to the ``podcast-dl``
console script.
"""

from __future__ import annotations

from podcast_dl.cli.app import cli

if __name__ == "__main__":
    cli()
