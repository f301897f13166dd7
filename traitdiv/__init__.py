from __future__ import annotations

from . import algos, config, metrics, structures, tools

__all__ = ["algos", "config", "metrics", "structures", "tools"]
