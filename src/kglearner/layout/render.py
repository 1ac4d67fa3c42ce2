"""Render-side structures: view transform, node styles and the scene."""

from dataclasses import dataclass, field

# Ordinal palette for node groups (ColorBrewer Set3)
GROUP_PALETTE = [
    "#8dd3c7", "#ffffb3", "#bebada", "#fb8072", "#80b1d3", "#fdb462",
    "#b3de69", "#fccde5", "#d9d9d9", "#bc80bd", "#ccebc5", "#ffed6f",
]

DEFAULT_STROKE = "#374151"
SELECTED_STROKE = "#34d399"


class GroupColors:
    """Assigns palette colors to groups in first-seen order, cycling."""

    def __init__(self, palette: list[str] | None = None) -> None:
        self.palette = palette or GROUP_PALETTE
        self._assigned: dict[str, str] = {}

    def __call__(self, group: str) -> str:
        color = self._assigned.get(group)
        if color is None:
            color = self.palette[len(self._assigned) % len(self.palette)]
            self._assigned[group] = color
        return color


@dataclass
class NodeStyle:
    """Presentation attributes driven by selection."""

    stroke: str = DEFAULT_STROKE
    stroke_width: float = 1.5
    stroke_opacity: float = 0.8
    radius: float = 20.0


def node_style(selected: bool, radius: float, selected_radius: float) -> NodeStyle:
    if selected:
        return NodeStyle(
            stroke=SELECTED_STROKE,
            stroke_width=4.0,
            stroke_opacity=1.0,
            radius=selected_radius,
        )
    return NodeStyle(radius=radius)


@dataclass
class ViewTransform:
    """Pan/zoom applied to the whole rendered layer: screen = k * layout + t."""

    k: float = 1.0
    tx: float = 0.0
    ty: float = 0.0
    min_scale: float = 0.1
    max_scale: float = 4.0

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return x * self.k + self.tx, y * self.k + self.ty

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.tx) / self.k, (sy - self.ty) / self.k

    def clamp(self, k: float) -> float:
        return max(self.min_scale, min(self.max_scale, k))

    def zoom_by(self, factor: float, cx: float, cy: float) -> None:
        """Scale around the screen point (cx, cy), keeping it fixed."""
        self.zoom_to(self.k * factor, cx, cy)

    def zoom_to(self, k: float, cx: float, cy: float) -> None:
        new_k = self.clamp(k)
        lx, ly = self.invert(cx, cy)
        self.k = new_k
        self.tx = cx - lx * new_k
        self.ty = cy - ly * new_k

    def pan(self, dx: float, dy: float) -> None:
        self.tx += dx
        self.ty += dy

    def reset(self) -> None:
        self.k, self.tx, self.ty = 1.0, 0.0, 0.0

    def to_dict(self) -> dict:
        return {"k": self.k, "x": self.tx, "y": self.ty}


@dataclass
class RenderedNode:
    id: str
    label: str
    group: str
    fill: str
    x: float
    y: float
    style: NodeStyle = field(default_factory=NodeStyle)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "group": self.group,
            "fill": self.fill,
            "x": self.x,
            "y": self.y,
            "r": self.style.radius,
            "stroke": self.style.stroke,
            "stroke_width": self.style.stroke_width,
            "stroke_opacity": self.style.stroke_opacity,
        }


@dataclass
class RenderedLink:
    source: str
    target: str
    relation: str | None
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "relation": self.relation,
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
        }


@dataclass
class Scene:
    """Everything needed to draw one frame."""

    nodes: list[RenderedNode]
    links: list[RenderedLink]
    transform: ViewTransform
    state: str
    alpha: float

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "alpha": self.alpha,
            "transform": self.transform.to_dict(),
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }
