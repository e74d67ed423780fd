"""Public package surface for lazystatus.

Exports ``main`` for programmatic CLI invocation.
Git access lives under ``lazystatus.git``; the terminal runtime under
``lazystatus.runtime``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
