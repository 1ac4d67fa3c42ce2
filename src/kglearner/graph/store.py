"""Graph data store - sanitize, merge and replace knowledge graph snapshots.

Every function here returns a graph satisfying the store invariants:

1. node ids are unique
2. every link endpoint resolves to a node in the graph (dangling links dropped)
3. no two links share the same (source, target) pair, first occurrence wins
4. on id collision during a merge the existing node wins

Malformed input is filtered silently; nothing in this module raises on bad
fragments.
"""

import logging
from collections.abc import Iterable
from copy import deepcopy
from dataclasses import replace as dc_replace
from typing import Any

from kglearner.models import GraphLink, GraphNode, KnowledgeGraph, parse_link, parse_node

logger = logging.getLogger(__name__)

Fragment = dict[str, Any] | KnowledgeGraph


def fragment_parts(fragment: Fragment | None) -> tuple[list[Any], list[Any]]:
    """Split a raw fragment into node and link lists; non-lists become empty."""
    if fragment is None:
        return [], []
    if isinstance(fragment, KnowledgeGraph):
        return list(fragment.nodes), list(fragment.links)
    if not isinstance(fragment, dict):
        return [], []

    nodes = fragment.get("nodes")
    links = fragment.get("links")
    return (
        list(nodes) if isinstance(nodes, list) else [],
        list(links) if isinstance(links, list) else [],
    )


def collapse_nodes(raw_nodes: Iterable[Any]) -> list[GraphNode]:
    """Parse nodes and collapse duplicate ids.

    A duplicated id keeps the position of its first occurrence while
    label, group and description take the last occurrence's values.
    """
    by_id: dict[str, GraphNode] = {}
    for raw in raw_nodes:
        node = parse_node(raw)
        if node is None:
            continue
        first = by_id.get(node.id)
        if first is None:
            by_id[node.id] = node
        else:
            by_id[node.id] = dc_replace(
                first,
                label=node.label,
                group=node.group,
                description=node.description,
            )
    return list(by_id.values())


def valid_links(raw_links: Iterable[Any], node_ids: set[str]) -> list[GraphLink]:
    """Drop malformed, dangling and duplicate links, keeping first occurrences."""
    seen: set[tuple[str, str]] = set()
    result: list[GraphLink] = []
    for raw in raw_links:
        link = parse_link(raw)
        if link is None:
            continue
        if link.source not in node_ids or link.target not in node_ids:
            continue
        if link.key in seen:
            continue
        seen.add(link.key)
        result.append(link)
    return result


def sanitize(nodes: Iterable[Any], links: Iterable[Any]) -> KnowledgeGraph:
    """Build a valid graph from candidate nodes and links of any provenance."""
    clean_nodes = collapse_nodes(nodes)
    node_ids = {node.id for node in clean_nodes}
    links = list(links)
    clean_links = valid_links(links, node_ids)

    dropped = len(links) - len(clean_links)
    if dropped:
        logger.debug(f"Sanitize dropped {dropped} invalid or duplicate links")

    return KnowledgeGraph(nodes=clean_nodes, links=clean_links)


def replace(nodes: Iterable[Any], links: Iterable[Any]) -> KnowledgeGraph:
    """Full replacement path for fresh generation and import."""
    return sanitize(nodes, links)


def merge(existing: KnowledgeGraph | None, fragment: Fragment | None) -> KnowledgeGraph:
    """Merge a fragment into an existing graph; existing data wins.

    Existing nodes keep their order ahead of new ones so that a running
    layout stays stable. Merging the same fragment twice adds nothing the
    second time.
    """
    raw_nodes, raw_links = fragment_parts(fragment)
    if existing is None:
        existing = KnowledgeGraph()

    existing_ids = existing.node_ids()
    kept = [node for node in collapse_nodes(raw_nodes) if node.id not in existing_ids]
    merged_nodes = list(existing.nodes) + kept

    existing_keys = {link.key for link in existing.links}
    fragment_links = [
        link
        for link in (parse_link(raw) for raw in raw_links)
        if link is not None and link.key not in existing_keys
    ]
    merged_links: list[Any] = list(existing.links) + fragment_links

    # Re-validate: fragment links may point at ids that exist nowhere
    all_ids = {node.id for node in merged_nodes}
    return KnowledgeGraph(nodes=merged_nodes, links=valid_links(merged_links, all_ids))


def added_node_ids(before: KnowledgeGraph | None, after: KnowledgeGraph) -> list[str]:
    """Ids present in `after` but not in `before`, in graph order."""
    previous = before.node_ids() if before is not None else set()
    return [node.id for node in after.nodes if node.id not in previous]


class GraphStore:
    """Owns the current graph snapshot for one learning session.

    `version` changes whenever the graph is replaced or discarded, never on
    merge, so in-flight work can tell whether its graph is still current.
    """

    def __init__(self) -> None:
        self._graph: KnowledgeGraph | None = None
        self._version = 0
        self.topic: str = ""
        self.status: str = ""

    @property
    def current(self) -> KnowledgeGraph | None:
        return self._graph

    @property
    def version(self) -> int:
        return self._version

    def replace(self, nodes: Iterable[Any], links: Iterable[Any]) -> KnowledgeGraph:
        """Replace the whole graph (new generation or import)."""
        self._graph = replace(nodes, links)
        self._version += 1
        logger.info(
            f"Graph replaced: {len(self._graph.nodes)} nodes, "
            f"{len(self._graph.links)} links (version {self._version})"
        )
        return self._graph

    def merge(self, fragment: Fragment | None) -> list[str]:
        """Extend the current graph with a fragment; returns newly added ids."""
        before = self._graph
        self._graph = merge(before, fragment)
        added = added_node_ids(before, self._graph)
        logger.info(
            f"Merged fragment: +{len(added)} nodes, "
            f"{len(self._graph.links) - (len(before.links) if before else 0)} links"
        )
        return added

    def clear(self) -> None:
        """Discard the graph."""
        self._graph = None
        self._version += 1

    def update_positions(self, positions: dict[str, tuple[float, float]]) -> int:
        """Write layout coordinates back; only x/y change. Returns nodes updated."""
        if self._graph is None or not positions:
            return 0

        updated = 0
        nodes: list[GraphNode] = []
        for node in self._graph.nodes:
            position = positions.get(node.id)
            if position is None:
                nodes.append(node)
                continue
            nodes.append(dc_replace(node, x=float(position[0]), y=float(position[1])))
            updated += 1

        self._graph = KnowledgeGraph(nodes=nodes, links=list(self._graph.links))
        return updated

    def snapshot(self) -> KnowledgeGraph | None:
        """Deep copy of the current graph for read-only consumers."""
        return deepcopy(self._graph)
