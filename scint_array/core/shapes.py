"""
Geometric primitives and their constructors.

Each shape is an immutable value centred on its own origin. Besides its
dimensions it answers two questions used by the overlap check:

- ``contains(points, tolerance)``: which points lie inside the solid by more
  than ``tolerance`` (a negative tolerance grows the solid instead);
- ``surface_points(n, rng)``: random points on the solid's surface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .constants import TWO_PI
from .errors import InvalidDimensions
from .transforms import Transform


def _as_points(points) -> np.ndarray:
    return np.atleast_2d(np.asarray(points, dtype=float))


def _split_counts(n: int, weights: Sequence[float], rng: np.random.Generator) -> np.ndarray:
    weights = np.asarray(weights, dtype=float)
    total = weights.sum()
    if total <= 0.0:
        return np.zeros(len(weights), dtype=int)
    return rng.multinomial(n, weights / total)


@dataclass(frozen=True)
class Box:
    """Rectangular box given by its half-lengths."""

    name: str
    half_x: float
    half_y: float
    half_z: float

    @property
    def half_extents(self) -> np.ndarray:
        return np.array([self.half_x, self.half_y, self.half_z])

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return -self.half_extents, self.half_extents

    def surface_area(self) -> float:
        hx, hy, hz = self.half_extents
        return 8.0 * (hx * hy + hx * hz + hy * hz)

    def contains(self, points, tolerance: float = 0.0) -> np.ndarray:
        p = _as_points(points)
        return np.all(np.abs(p) < self.half_extents - tolerance, axis=1)

    def surface_points(self, n: int, rng: np.random.Generator) -> np.ndarray:
        hx, hy, hz = self.half_extents
        # faces normal to x, y, z (both signs share each weight)
        counts = _split_counts(n, [hy * hz, hx * hz, hx * hy], rng)
        chunks = []
        for axis, count in enumerate(counts):
            if count == 0:
                continue
            pts = rng.uniform(-1.0, 1.0, size=(count, 3)) * self.half_extents
            signs = rng.choice([-1.0, 1.0], size=count)
            pts[:, axis] = signs * self.half_extents[axis]
            chunks.append(pts)
        return np.vstack(chunks) if chunks else np.empty((0, 3))


@dataclass(frozen=True)
class Tube:
    """Cylindrical section with optional bore and angular span."""

    name: str
    r_min: float
    r_max: float
    half_z: float
    phi_start: float = 0.0
    phi_delta: float = TWO_PI

    @property
    def full_turn(self) -> bool:
        return self.phi_delta >= TWO_PI - 1e-12

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        ext = np.array([self.r_max, self.r_max, self.half_z])
        return -ext, ext

    def surface_area(self) -> float:
        length = 2.0 * self.half_z
        area = self.phi_delta * ((self.r_max + self.r_min) * length + self.r_max ** 2 - self.r_min ** 2)
        if not self.full_turn:
            area += 2.0 * (self.r_max - self.r_min) * length
        return area

    def contains(self, points, tolerance: float = 0.0) -> np.ndarray:
        p = _as_points(points)
        r = np.hypot(p[:, 0], p[:, 1])
        mask = (r < self.r_max - tolerance) & (np.abs(p[:, 2]) < self.half_z - tolerance)
        if self.r_min > 0.0:
            mask &= r > self.r_min + tolerance
        if not self.full_turn:
            angle = np.mod(np.arctan2(p[:, 1], p[:, 0]) - self.phi_start, TWO_PI)
            mask &= angle < self.phi_delta
        return mask

    def surface_points(self, n: int, rng: np.random.Generator) -> np.ndarray:
        length = 2.0 * self.half_z
        weights = [
            self.phi_delta * self.r_max * length,
            self.phi_delta * self.r_min * length,
            self.phi_delta * (self.r_max ** 2 - self.r_min ** 2),
            0.0 if self.full_turn else 2.0 * (self.r_max - self.r_min) * length,
        ]
        n_outer, n_inner, n_caps, n_sides = _split_counts(n, weights, rng)
        chunks = []

        def ring(count, radius):
            phi = self.phi_start + rng.uniform(0.0, self.phi_delta, count)
            z = rng.uniform(-self.half_z, self.half_z, count)
            return np.column_stack([radius * np.cos(phi), radius * np.sin(phi), z])

        chunks.append(ring(n_outer, self.r_max))
        chunks.append(ring(n_inner, self.r_min))

        phi = self.phi_start + rng.uniform(0.0, self.phi_delta, n_caps)
        r = np.sqrt(rng.uniform(self.r_min ** 2, self.r_max ** 2, n_caps))
        z = rng.choice([-self.half_z, self.half_z], size=n_caps)
        chunks.append(np.column_stack([r * np.cos(phi), r * np.sin(phi), z]))

        if n_sides:
            phi = self.phi_start + rng.choice([0.0, self.phi_delta], size=n_sides)
            r = rng.uniform(self.r_min, self.r_max, n_sides)
            z = rng.uniform(-self.half_z, self.half_z, n_sides)
            chunks.append(np.column_stack([r * np.cos(phi), r * np.sin(phi), z]))
        return np.vstack(chunks)


@dataclass(frozen=True)
class Polyhedron:
    """Polygonal solid of revolution.

    ``r_inner`` and ``r_outer`` are distances from the axis to the flat
    faces (apothems), tabulated at the ``z_planes``.
    """

    name: str
    phi_start: float
    phi_total: float
    num_sides: int
    z_planes: Tuple[float, ...]
    r_inner: Tuple[float, ...]
    r_outer: Tuple[float, ...]

    @property
    def sector_width(self) -> float:
        return self.phi_total / self.num_sides

    @property
    def full_turn(self) -> bool:
        return self.phi_total >= TWO_PI - 1e-12

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        corner = max(self.r_outer) / math.cos(self.sector_width / 2.0)
        lo = np.array([-corner, -corner, self.z_planes[0]])
        hi = np.array([corner, corner, self.z_planes[-1]])
        return lo, hi

    def surface_area(self) -> float:
        """Flat faces and end caps; side walls of a partial turn are left out."""
        half_tan = math.tan(self.sector_width / 2.0)
        height = self.z_planes[-1] - self.z_planes[0]
        walls = 2.0 * height * (float(np.mean(self.r_outer)) + float(np.mean(self.r_inner)))
        caps = (self.r_outer[0] ** 2 - self.r_inner[0] ** 2) + (self.r_outer[-1] ** 2 - self.r_inner[-1] ** 2)
        return self.num_sides * half_tan * (walls + caps)

    def _sector_centres(self, p: np.ndarray):
        rel = np.mod(np.arctan2(p[:, 1], p[:, 0]) - self.phi_start, TWO_PI)
        sector = np.minimum(np.floor(rel / self.sector_width), self.num_sides - 1)
        return rel, self.phi_start + (sector + 0.5) * self.sector_width

    def contains(self, points, tolerance: float = 0.0) -> np.ndarray:
        p = _as_points(points)
        rel, centre = self._sector_centres(p)
        rho = p[:, 0] * np.cos(centre) + p[:, 1] * np.sin(centre)
        r_out = np.interp(p[:, 2], self.z_planes, self.r_outer)
        r_in = np.interp(p[:, 2], self.z_planes, self.r_inner)
        mask = (p[:, 2] > self.z_planes[0] + tolerance) & (p[:, 2] < self.z_planes[-1] - tolerance)
        mask &= rho < r_out - tolerance
        if max(self.r_inner) > 0.0:
            mask &= rho > r_in + tolerance
        if not self.full_turn:
            mask &= rel < self.phi_total
        return mask

    def surface_points(self, n: int, rng: np.random.Generator) -> np.ndarray:
        z0, z1 = self.z_planes[0], self.z_planes[-1]
        half_tan = math.tan(self.sector_width / 2.0)
        height = z1 - z0
        mean_out = float(np.mean(self.r_outer))
        mean_in = float(np.mean(self.r_inner))
        caps = (self.r_outer[0] ** 2 - self.r_inner[0] ** 2) + (self.r_outer[-1] ** 2 - self.r_inner[-1] ** 2)
        weights = [mean_out * height, mean_in * height, caps * half_tan]
        n_outer, n_inner, n_caps = _split_counts(n, weights, rng)

        def place(rho, lateral, z, count):
            centre = self.phi_start + (rng.integers(0, self.num_sides, count) + 0.5) * self.sector_width
            x = rho * np.cos(centre) - lateral * np.sin(centre)
            y = rho * np.sin(centre) + lateral * np.cos(centre)
            return np.column_stack([x, y, z])

        chunks = []
        for count, radii in ((n_outer, self.r_outer), (n_inner, self.r_inner)):
            z = rng.uniform(z0, z1, count)
            rho = np.interp(z, self.z_planes, radii)
            lateral = rng.uniform(-1.0, 1.0, count) * rho * half_tan
            chunks.append(place(rho, lateral, z, count))

        at_start = rng.random(n_caps) < 0.5
        z = np.where(at_start, z0, z1)
        r_lo = np.where(at_start, self.r_inner[0], self.r_inner[-1])
        r_hi = np.where(at_start, self.r_outer[0], self.r_outer[-1])
        rho = rng.uniform(r_lo, r_hi)
        lateral = rng.uniform(-1.0, 1.0, n_caps) * rho * half_tan
        chunks.append(place(rho, lateral, z, n_caps))
        return np.vstack(chunks)


@dataclass(frozen=True)
class Subtraction:
    """``base`` minus ``subtrahend`` placed by ``transform`` in base coordinates."""

    name: str
    base: object
    subtrahend: object
    transform: Transform

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.base.bounds()

    def surface_area(self) -> float:
        return self.base.surface_area() + self.subtrahend.surface_area()

    def contains(self, points, tolerance: float = 0.0) -> np.ndarray:
        p = _as_points(points)
        inside_base = self.base.contains(p, tolerance)
        local = self.transform.apply_inverse(p)
        return inside_base & ~self.subtrahend.contains(local, -tolerance)

    def surface_points(self, n: int, rng: np.random.Generator) -> np.ndarray:
        n_outer, n_carved = _split_counts(n, [self.base.surface_area(), self.subtrahend.surface_area()], rng)
        outer = self.base.surface_points(n_outer, rng)
        # faces shared with the subtrahend are openings, not surface
        outer = outer[~self.subtrahend.contains(self.transform.apply_inverse(outer), -1.0e-9)]
        carved = self.transform.apply(self.subtrahend.surface_points(n_carved, rng))
        carved = carved[self.base.contains(carved)]
        return np.vstack([outer, carved])


# =============================================================================
# Constructors
# =============================================================================

def make_box(name: str, half_x: float, half_y: float, half_z: float) -> Box:
    """Create a box from its half-lengths (mm)."""
    for label, value in (("half_x", half_x), ("half_y", half_y), ("half_z", half_z)):
        if not value > 0.0:
            raise InvalidDimensions(name, f"{label} must be > 0, got {value}")
    return Box(name, float(half_x), float(half_y), float(half_z))


def make_tube(
    name: str,
    r_min: float,
    r_max: float,
    half_z: float,
    phi_start: float = 0.0,
    phi_delta: float = TWO_PI,
) -> Tube:
    """Create a tube section (mm, rad)."""
    if r_min < 0.0 or not r_max > r_min:
        raise InvalidDimensions(name, f"need 0 <= r_min < r_max, got {r_min}, {r_max}")
    if not half_z > 0.0:
        raise InvalidDimensions(name, f"half_z must be > 0, got {half_z}")
    if not 0.0 < phi_delta <= TWO_PI + 1e-12:
        raise InvalidDimensions(name, f"phi_delta must be in (0, 2pi], got {phi_delta}")
    return Tube(name, float(r_min), float(r_max), float(half_z), float(phi_start), float(min(phi_delta, TWO_PI)))


def make_polyhedron(
    name: str,
    phi_start: float,
    phi_total: float,
    num_sides: int,
    z_planes: Sequence[float],
    r_inner: Sequence[float],
    r_outer: Sequence[float],
) -> Polyhedron:
    """Create a polyhedron from its radial profile table."""
    z_planes = tuple(float(z) for z in z_planes)
    r_inner = tuple(float(r) for r in r_inner)
    r_outer = tuple(float(r) for r in r_outer)
    if num_sides < 3:
        raise InvalidDimensions(name, f"num_sides must be >= 3, got {num_sides}")
    if not (len(z_planes) == len(r_inner) == len(r_outer)) or len(z_planes) < 2:
        raise InvalidDimensions(name, "profile table needs at least two planes of equal length")
    if any(b <= a for a, b in zip(z_planes, z_planes[1:])):
        raise InvalidDimensions(name, "z planes must be strictly increasing")
    if any(ri < 0.0 or ro <= ri for ri, ro in zip(r_inner, r_outer)):
        raise InvalidDimensions(name, "need 0 <= r_inner < r_outer at every plane")
    if not 0.0 < phi_total <= TWO_PI + 1e-12:
        raise InvalidDimensions(name, f"phi_total must be in (0, 2pi], got {phi_total}")
    return Polyhedron(name, float(phi_start), float(min(phi_total, TWO_PI)), int(num_sides),
                      z_planes, r_inner, r_outer)


def make_subtraction(name: str, base, subtrahend, transform: Transform) -> Subtraction:
    """Subtract ``subtrahend`` (placed by ``transform`` in base coordinates) from ``base``."""
    if not isinstance(transform, Transform):
        raise TypeError(f"Subtraction '{name}' requires a Transform, got {type(transform).__name__}")
    return Subtraction(name, base, subtrahend, transform)
