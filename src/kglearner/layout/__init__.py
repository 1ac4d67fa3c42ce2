"""Force-directed layout: forces, simulation and render engine."""

from kglearner.layout.engine import LayoutEngine, LayoutState, PointerOutcome, PointerResult
from kglearner.layout.forces import CenterForce, CollideForce, Force, LinkForce, ManyBodyForce
from kglearner.layout.render import GroupColors, NodeStyle, Scene, ViewTransform
from kglearner.layout.simulation import Simulation

__all__ = [
    # Engine
    "LayoutEngine",
    "LayoutState",
    "PointerOutcome",
    "PointerResult",
    # Forces
    "Force",
    "LinkForce",
    "ManyBodyForce",
    "CenterForce",
    "CollideForce",
    # Simulation
    "Simulation",
    # Rendering
    "GroupColors",
    "NodeStyle",
    "Scene",
    "ViewTransform",
]
