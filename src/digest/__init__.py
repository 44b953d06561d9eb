"""Daily digest package.

This package contains the modules that turn a channel's messages into a posted
digest. It keeps message correlation (`enricher`), text generation (`composer`),
per-run orchestration (`pipeline`) and the timer loop (`scheduler`) apart.
"""

from __future__ import annotations

__all__: list[str] = [
    "composer",
    "enricher",
    "pipeline",
    "scheduler",
]
