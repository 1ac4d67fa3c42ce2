"""Pluggable forces for the layout simulation.

Each force reads and writes the simulation's numpy state arrays in place.
Link, many-body and collision forces adjust velocities; the centering
force translates positions directly.
"""

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from kglearner.layout.simulation import Simulation

JIGGLE_SCALE = 1e-6


class Force:
    """Base class for a simulation force."""

    def __init__(self) -> None:
        self.sim: "Simulation | None" = None

    def initialize(self, sim: "Simulation") -> None:
        """Bind to a simulation; called on registration and on node changes."""
        self.sim = sim

    def apply(self, alpha: float) -> None:
        raise NotImplementedError

    def _jiggle(self, shape: tuple[int, ...] | int) -> np.ndarray:
        assert self.sim is not None
        return (self.sim.rng.random(shape) - 0.5) * JIGGLE_SCALE


class LinkForce(Force):
    """Spring pulling linked nodes toward a target separation.

    Strength per link is 1 / min(degree(source), degree(target)) so hubs
    are not dragged around by their many neighbours.
    """

    def __init__(self, links: list[tuple[int, int]], distance: float = 120.0) -> None:
        super().__init__()
        self.links = links
        self.distance = distance
        self._source = np.zeros(0, dtype=int)
        self._target = np.zeros(0, dtype=int)
        self._strength = np.zeros(0)
        self._bias = np.zeros(0)

    def initialize(self, sim: "Simulation") -> None:
        super().initialize(sim)
        if not self.links:
            self._source = np.zeros(0, dtype=int)
            self._target = np.zeros(0, dtype=int)
            return

        pairs = np.asarray(self.links, dtype=int)
        self._source, self._target = pairs[:, 0], pairs[:, 1]

        degree = np.bincount(np.concatenate([self._source, self._target]), minlength=sim.n)
        src_deg = degree[self._source].astype(float)
        tgt_deg = degree[self._target].astype(float)
        self._strength = 1.0 / np.minimum(src_deg, tgt_deg)
        self._bias = src_deg / (src_deg + tgt_deg)

    def apply(self, alpha: float) -> None:
        sim = self.sim
        if sim is None or self._source.size == 0:
            return

        s, t = self._source, self._target
        dx = sim.x[t] + sim.vx[t] - sim.x[s] - sim.vx[s]
        dy = sim.y[t] + sim.vy[t] - sim.y[s] - sim.vy[s]

        zero_x = dx == 0
        zero_y = dy == 0
        if zero_x.any():
            dx[zero_x] = self._jiggle(int(zero_x.sum()))
        if zero_y.any():
            dy[zero_y] = self._jiggle(int(zero_y.sum()))

        length = np.sqrt(dx * dx + dy * dy)
        scale = (length - self.distance) / length * alpha * self._strength
        dx *= scale
        dy *= scale

        np.subtract.at(sim.vx, t, dx * self._bias)
        np.subtract.at(sim.vy, t, dy * self._bias)
        np.add.at(sim.vx, s, dx * (1 - self._bias))
        np.add.at(sim.vy, s, dy * (1 - self._bias))


class ManyBodyForce(Force):
    """Pairwise repulsion (negative strength) decaying with squared distance."""

    def __init__(self, strength: float = -400.0, distance_min: float = 1.0) -> None:
        super().__init__()
        self.strength = strength
        self.distance_min = distance_min

    def apply(self, alpha: float) -> None:
        sim = self.sim
        if sim is None or sim.n < 2:
            return

        # dx[i, j] points from node i toward node j
        dx = sim.x[None, :] - sim.x[:, None]
        dy = sim.y[None, :] - sim.y[:, None]
        off_diagonal = ~np.eye(sim.n, dtype=bool)

        coincident = (dx == 0) & (dy == 0) & off_diagonal
        if coincident.any():
            count = int(coincident.sum())
            dx[coincident] = self._jiggle(count)
            dy[coincident] = self._jiggle(count)

        dist2 = dx * dx + dy * dy
        min2 = self.distance_min * self.distance_min
        dist2 = np.where(dist2 < min2, np.sqrt(min2 * dist2), dist2)

        with np.errstate(divide="ignore", invalid="ignore"):
            weight = np.where(off_diagonal, self.strength * alpha / dist2, 0.0)

        sim.vx += (dx * weight).sum(axis=1)
        sim.vy += (dy * weight).sum(axis=1)


class CenterForce(Force):
    """Translates the whole layout so its mean sits at the viewport center."""

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0) -> None:
        super().__init__()
        self.x = x
        self.y = y
        self.strength = strength

    def apply(self, alpha: float) -> None:
        sim = self.sim
        if sim is None or sim.n == 0:
            return

        shift_x = (sim.x.mean() - self.x) * self.strength
        shift_y = (sim.y.mean() - self.y) * self.strength
        sim.x -= shift_x
        sim.y -= shift_y


class CollideForce(Force):
    """Keeps node centers at least twice the node radius apart."""

    def __init__(self, radius: float = 50.0, strength: float = 1.0) -> None:
        super().__init__()
        self.radius = radius
        self.strength = strength

    @property
    def min_separation(self) -> float:
        return 2 * self.radius

    def apply(self, alpha: float) -> None:
        sim = self.sim
        if sim is None or sim.n < 2:
            return

        # Predicted positions after this tick's velocities
        px = sim.x + sim.vx
        py = sim.y + sim.vy

        # dx[i, j] points from node j toward node i
        dx = px[:, None] - px[None, :]
        dy = py[:, None] - py[None, :]
        off_diagonal = ~np.eye(sim.n, dtype=bool)

        coincident = (dx == 0) & (dy == 0) & off_diagonal
        if coincident.any():
            upper = np.triu(coincident)
            count = int(upper.sum())
            jx, jy = self._jiggle(count), self._jiggle(count)
            dx[upper], dy[upper] = jx, jy
            dx.T[upper], dy.T[upper] = -jx, -jy

        dist = np.sqrt(dx * dx + dy * dy)
        reach = self.min_separation
        overlap = (dist < reach) & off_diagonal
        if not overlap.any():
            return

        with np.errstate(divide="ignore", invalid="ignore"):
            push = np.where(overlap, (reach - dist) / dist * self.strength, 0.0)

        # Equal radii: each node of a pair takes half the correction
        sim.vx += (dx * push).sum(axis=1) * 0.5
        sim.vy += (dy * push).sum(axis=1) * 0.5
