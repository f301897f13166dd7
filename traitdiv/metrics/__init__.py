from __future__ import annotations

from . import functional, taxonomic

__all__ = ["functional", "taxonomic"]
