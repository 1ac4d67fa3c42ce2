"""Knowledge graph models - concepts (nodes) and their relations (links)."""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_GROUP = "General"


def coerce_id(value: Any) -> str | None:
    """Coerce a raw identifier to a non-empty string, or None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def endpoint_id(value: Any) -> str | None:
    """Resolve a link endpoint given as an id, a node dict or a GraphNode."""
    if isinstance(value, GraphNode):
        return value.id
    if isinstance(value, dict):
        return coerce_id(value.get("id"))
    return coerce_id(value)


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class GraphNode:
    """
    A concept in the knowledge graph.

    Examples: "Gradient descent", "Linear algebra", "Backpropagation"
    """

    id: str
    label: str
    group: str = DEFAULT_GROUP  # Category tag used for color/partitioning
    description: str = ""

    # Layout position, written back from the force simulation
    x: float | None = None
    y: float | None = None

    # Pinned position while dragged, cleared on release
    fx: float | None = None
    fy: float | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "group": self.group,
            "description": self.description,
        }
        if self.x is not None and self.y is not None:
            data["x"] = self.x
            data["y"] = self.y
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "GraphNode":
        """Create from a dictionary (LLM output or imported file)."""
        node = parse_node(data)
        if node is None:
            raise ValueError(f"Not a valid node: {data!r}")
        return node


@dataclass
class GraphLink:
    """
    A directed, optionally labeled relation between two concepts.

    Example: Linear algebra --prerequisite--> Neural networks
    """

    source: str
    target: str
    relation: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Dedup key; direction sensitive."""
        return (self.source, self.target)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        data: dict[str, Any] = {"source": self.source, "target": self.target}
        if self.relation is not None:
            data["relation"] = self.relation
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "GraphLink":
        """Create from a dictionary (LLM output or imported file)."""
        link = parse_link(data)
        if link is None:
            raise ValueError(f"Not a valid link: {data!r}")
        return link


@dataclass
class KnowledgeGraph:
    """Ordered node and link collections; immutable by convention."""

    nodes: list[GraphNode] = field(default_factory=list)
    links: list[GraphLink] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def get_node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return any(node.id == node_id for node in self.nodes)

    def is_empty(self) -> bool:
        return not self.nodes

    def to_dict(self) -> dict:
        """Convert to the {nodes, links} JSON shape."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeGraph":
        """Build without validation; use the graph store to sanitize."""
        nodes = [n for n in (parse_node(raw) for raw in data.get("nodes") or []) if n]
        links = [lk for lk in (parse_link(raw) for raw in data.get("links") or []) if lk]
        return cls(nodes=nodes, links=links)


@dataclass
class GroundingSource:
    """A web source backing a learning plan."""

    title: str
    uri: str

    def to_dict(self) -> dict:
        return {"title": self.title, "uri": self.uri}


@dataclass
class PlanResponse:
    """Learning plan for a single concept."""

    markdown: str
    sources: list[GroundingSource] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "markdown": self.markdown,
            "sources": [source.to_dict() for source in self.sources],
        }


def parse_node(raw: Any) -> GraphNode | None:
    """Parse a raw node entry, returning None for malformed input."""
    if isinstance(raw, GraphNode):
        return GraphNode(
            id=raw.id,
            label=raw.label,
            group=raw.group,
            description=raw.description,
            x=raw.x,
            y=raw.y,
        )
    if not isinstance(raw, dict):
        return None

    node_id = coerce_id(raw.get("id"))
    if node_id is None:
        return None

    label = raw.get("label")
    group = raw.get("group")
    description = raw.get("description")

    return GraphNode(
        id=node_id,
        label=str(label).strip() if label not in (None, "") else node_id,
        group=str(group).strip() if group not in (None, "") else DEFAULT_GROUP,
        description=str(description) if description is not None else "",
        x=_optional_float(raw.get("x")),
        y=_optional_float(raw.get("y")),
    )


def parse_link(raw: Any) -> GraphLink | None:
    """Parse a raw link entry, returning None for malformed input."""
    if isinstance(raw, GraphLink):
        return GraphLink(source=raw.source, target=raw.target, relation=raw.relation)
    if not isinstance(raw, dict):
        return None

    source = endpoint_id(raw.get("source"))
    target = endpoint_id(raw.get("target"))
    if source is None or target is None:
        return None

    relation = raw.get("relation")
    return GraphLink(
        source=source,
        target=target,
        relation=str(relation) if relation not in (None, "") else None,
    )
