"""Manager modules for Questline integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .hierarchy_manager import HierarchyManager
from .review_manager import ReviewManager

__all__ = [
    "BaseManager",
    "HierarchyManager",
    "ReviewManager",
]
