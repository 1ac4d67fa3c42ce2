"""Iterative force simulation over a fixed node/link set.

Energy (`alpha`) starts at 1 and decays geometrically toward
`alpha_target`; once it drops below `alpha_min` with a zero target the
simulation stops stepping (settled). Node and link sets are fixed for the
lifetime of a simulation; structural changes build a new one.
"""

import logging
import math

import numpy as np

from kglearner.layout.forces import Force

logger = logging.getLogger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class Simulation:
    """Velocity-based force integrator with per-node pins."""

    def __init__(
        self,
        node_ids: list[str],
        positions: dict[str, tuple[float, float]] | None = None,
        center: tuple[float, float] = (0.0, 0.0),
        alpha_min: float = 0.001,
        alpha_decay_iterations: int = 300,
        velocity_decay: float = 0.4,
        seed: int | None = None,
    ) -> None:
        self.node_ids = list(node_ids)
        self.index = {node_id: i for i, node_id in enumerate(self.node_ids)}
        self.n = len(self.node_ids)
        self.rng = np.random.default_rng(seed)

        self.alpha = 1.0
        self.alpha_min = alpha_min
        self.alpha_decay = 1 - alpha_min ** (1 / alpha_decay_iterations)
        self.alpha_target = 0.0
        self.velocity_decay = velocity_decay

        self.x = np.zeros(self.n)
        self.y = np.zeros(self.n)
        self.vx = np.zeros(self.n)
        self.vy = np.zeros(self.n)
        self.fx = np.full(self.n, np.nan)
        self.fy = np.full(self.n, np.nan)

        self.forces: dict[str, Force] = {}
        self.tick_count = 0
        self._stopped = False

        self._place_nodes(positions or {}, center)

    def _place_nodes(self, positions: dict[str, tuple[float, float]], center: tuple[float, float]) -> None:
        """Use known positions; put the rest on a phyllotaxis spiral around center."""
        cx, cy = center
        for i, node_id in enumerate(self.node_ids):
            known = positions.get(node_id)
            if known is not None:
                self.x[i], self.y[i] = known
                continue
            radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * INITIAL_ANGLE
            self.x[i] = cx + radius * math.cos(angle)
            self.y[i] = cy + radius * math.sin(angle)

    # ── Forces ───────────────────────────────────────────────────

    def add_force(self, name: str, force: Force) -> "Simulation":
        force.initialize(self)
        self.forces[name] = force
        return self

    def get_force(self, name: str) -> Force | None:
        return self.forces.get(name)

    def remove_force(self, name: str) -> None:
        self.forces.pop(name, None)

    # ── Stepping ─────────────────────────────────────────────────

    @property
    def stopped(self) -> bool:
        return self._stopped

    def tick(self, iterations: int = 1) -> None:
        """Advance the integrator without checking the stop condition."""
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            for force in self.forces.values():
                force.apply(self.alpha)

            pinned_x = ~np.isnan(self.fx)
            pinned_y = ~np.isnan(self.fy)

            self.vx *= 1 - self.velocity_decay
            self.vy *= 1 - self.velocity_decay
            self.x += self.vx
            self.y += self.vy

            self.x[pinned_x] = self.fx[pinned_x]
            self.vx[pinned_x] = 0.0
            self.y[pinned_y] = self.fy[pinned_y]
            self.vy[pinned_y] = 0.0

            self.tick_count += 1

    def step(self) -> bool:
        """One animation-frame step. Returns False once settled or stopped."""
        if self._stopped:
            return False

        self.tick()
        if self.alpha < self.alpha_min:
            self._stopped = True
            logger.debug(f"Simulation settled after {self.tick_count} ticks")
        return not self._stopped

    def restart(self) -> None:
        self._stopped = False

    def stop(self) -> None:
        self._stopped = True

    # ── Pins ─────────────────────────────────────────────────────

    def pin(self, node_id: str, x: float, y: float) -> None:
        i = self.index[node_id]
        self.fx[i] = x
        self.fy[i] = y

    def unpin(self, node_id: str) -> None:
        i = self.index[node_id]
        self.fx[i] = np.nan
        self.fy[i] = np.nan

    def is_pinned(self, node_id: str) -> bool:
        i = self.index[node_id]
        return not (np.isnan(self.fx[i]) or np.isnan(self.fy[i]))

    def position(self, node_id: str) -> tuple[float, float]:
        i = self.index[node_id]
        return float(self.x[i]), float(self.y[i])

    def positions(self) -> dict[str, tuple[float, float]]:
        return {
            node_id: (float(self.x[i]), float(self.y[i]))
            for i, node_id in enumerate(self.node_ids)
        }
