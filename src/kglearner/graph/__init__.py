"""Graph state for the learner.

Provides:
- Graph data store (sanitize, merge, replace)
- Selection controller
- Expansion coordinator
"""

from kglearner.graph.expansion import ExpansionCoordinator, ExpansionResult
from kglearner.graph.selection import SelectionController
from kglearner.graph.store import GraphStore, merge, replace, sanitize

__all__ = [
    # Store
    "GraphStore",
    "sanitize",
    "merge",
    "replace",
    # Selection
    "SelectionController",
    # Expansion
    "ExpansionCoordinator",
    "ExpansionResult",
]
