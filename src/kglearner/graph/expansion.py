"""Expansion coordinator - subdivide selected concepts into new nodes."""

import logging
from dataclasses import dataclass, field

from kglearner.exceptions import ExpansionBusyError, ExpansionError, GenerationError
from kglearner.generation.generator import GraphGenerator
from kglearner.graph.selection import SelectionController
from kglearner.graph.store import GraphStore

logger = logging.getLogger(__name__)


@dataclass
class ExpansionResult:
    """Outcome of one expansion call."""

    added_ids: list[str] = field(default_factory=list)
    requested_ids: list[str] = field(default_factory=list)
    called: bool = False  # Whether the generator was invoked at all
    discarded: bool = False  # Graph was replaced while the call was in flight

    @property
    def merged(self) -> bool:
        return self.called and not self.discarded


class ExpansionCoordinator:
    """Calls the generator for the selected nodes and merges the fragment.

    At most one expansion is in flight; a second trigger while busy is
    rejected with ExpansionBusyError. The selection is never modified here.
    """

    def __init__(self, store: GraphStore, generator: GraphGenerator) -> None:
        self.store = store
        self.generator = generator
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def expand(self, selection: SelectionController) -> ExpansionResult:
        """Expand the current selection into the store's graph."""
        graph = self.store.current
        selected = selection.list(graph)
        if not selected:
            logger.debug("Expansion skipped: nothing selected")
            return ExpansionResult()

        if self._busy:
            raise ExpansionBusyError("An expansion is already in progress")

        projection = [{"id": node.id, "label": node.label} for node in selected]
        requested = [node.id for node in selected]
        version = self.store.version

        self._busy = True
        try:
            logger.info(f"Expanding {len(projection)} nodes for topic '{self.store.topic}'")
            try:
                fragment = await self.generator.expand(projection, self.store.topic)
            except GenerationError as e:
                raise ExpansionError(f"Failed to expand selected nodes: {e}") from e

            if self.store.version != version or self.store.current is None:
                logger.warning("Graph changed during expansion, discarding fragment")
                return ExpansionResult(requested_ids=requested, called=True, discarded=True)

            added = self.store.merge(fragment)
            return ExpansionResult(added_ids=added, requested_ids=requested, called=True)
        finally:
            self._busy = False
