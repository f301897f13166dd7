from __future__ import annotations

from . import distances, mock

__all__ = ["distances", "mock"]
