"""Error taxonomy for the knowledge graph learner.

Malformed fragments (dangling or duplicate references) are never raised;
the graph store filters them silently. Everything below is recoverable by
re-invoking the action that triggered it.
"""


class KGLearnerError(Exception):
    """Base class for all recoverable learner errors."""


class GenerationError(KGLearnerError):
    """The generation collaborator failed or returned unparsable data."""


class ImportFormatError(KGLearnerError):
    """An imported payload lacks the required nodes/links shape."""


class ExpansionError(KGLearnerError):
    """Expanding the selected nodes failed; the graph is unchanged."""


class ExpansionBusyError(ExpansionError):
    """An expansion is already in flight."""
