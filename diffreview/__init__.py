"""Public package surface for diffreview.

Exports ``main`` for programmatic CLI invocation.
Retrieval, parsing, and session logic live in the subpackages.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
