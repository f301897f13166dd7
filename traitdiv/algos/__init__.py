from __future__ import annotations

from . import checks, diversity

__all__ = ["checks", "diversity"]
