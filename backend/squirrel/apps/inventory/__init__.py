"""
Inventory module.

Handles the item store, the append-only movement ledgers and the
version-guarded stock mutation protocol that ties them together.
"""

from .router import router  # noqa: F401
from . import models  # noqa: F401
