"""
Construction-time overlap check.

Points are sampled on the surface of every placed volume and mapped into
its mother's frame. A placement fails when one of its surface points lies
outside the mother, or inside a sibling by more than the tolerance.
Touching surfaces therefore pass.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .. import config
from .constants import DEBUG
from .data_classes import Placement, Volume
from .errors import GeometryOverlap


def _world_bounds(placement: Placement) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned box around a placed volume, in the mother frame."""
    lo, hi = placement.volume.shape.bounds()
    corners = np.array([[x, y, z] for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])])
    moved = placement.transform.apply(corners)
    return moved.min(axis=0), moved.max(axis=0)


def _boxes_touch(a, b, tolerance: float) -> bool:
    return bool(np.all(a[0] < b[1] - tolerance) and np.all(b[0] < a[1] - tolerance))


def _label(placement: Placement) -> str:
    return f"{placement.name}:{placement.copy_number}"


def _depth_inside(shape, point: np.ndarray, tolerance: float) -> float:
    """How far ``point`` lies inside ``shape``, by bisection on the tolerance."""
    lo, hi = tolerance, float(np.max(shape.bounds()[1] - shape.bounds()[0]))
    for _ in range(40):
        mid = 0.5 * (lo + hi)
        if shape.contains(point, mid)[0]:
            lo = mid
        else:
            hi = mid
    return lo


def _depth_outside(shape, point: np.ndarray, tolerance: float) -> float:
    """How far ``point`` lies outside ``shape``."""
    lo, hi = tolerance, 1.0
    while not shape.contains(point, -hi)[0] and hi < 1.0e6:
        lo, hi = hi, hi * 2.0
    for _ in range(40):
        mid = 0.5 * (lo + hi)
        if shape.contains(point, -mid)[0]:
            hi = mid
        else:
            lo = mid
    return hi


def check_placement(
    placement: Placement,
    mother: Volume,
    siblings: Iterable[Placement],
    resolution: int = config.OVERLAP_RESOLUTION,
    tolerance: float = config.OVERLAP_TOLERANCE_MM,
    rng: Optional[np.random.Generator] = None,
) -> None:
    """Check one placement against its mother and its siblings.

    Raises
    ------
    GeometryOverlap
        On the first intrusion found.
    """
    if rng is None:
        rng = np.random.default_rng(config.OVERLAP_SEED)

    local = placement.volume.shape.surface_points(resolution, rng)
    if len(local) == 0:
        return
    points = placement.transform.apply(local)

    outside = ~mother.shape.contains(points, -tolerance)
    if np.any(outside):
        point = points[np.flatnonzero(outside)[0]]
        depth = _depth_outside(mother.shape, point, tolerance)
        raise GeometryOverlap(_label(placement), mother.name, point, depth)

    bounds = _world_bounds(placement)
    for other in siblings:
        if other is placement:
            continue
        if not _boxes_touch(bounds, _world_bounds(other), tolerance):
            continue
        in_other = other.transform.apply_inverse(points)
        hits = other.volume.shape.contains(in_other, tolerance)
        if np.any(hits):
            k = int(np.flatnonzero(hits)[0])
            depth = _depth_inside(other.volume.shape, in_other[k], tolerance)
            raise GeometryOverlap(_label(placement), _label(other), points[k], depth)


def check_overlaps(
    placements: List[Placement],
    mothers: Dict[Optional[str], Volume],
    resolution: int = config.OVERLAP_RESOLUTION,
    tolerance: float = config.OVERLAP_TOLERANCE_MM,
    seed: int = config.OVERLAP_SEED,
) -> int:
    """Run the overlap check over every placement that asks for it.

    Parameters
    ----------
    placements : list of Placement
        All placements of the geometry.
    mothers : dict
        Mother name (``None`` for the world) to mother volume.
    resolution : int
        Surface points per placement.
    tolerance : float
        Intrusion depth (mm) below which contacts are accepted.
    seed : int
        Seed of the surface sampling.

    Returns
    -------
    int
        Number of placements checked.
    """
    rng = np.random.default_rng(seed)
    by_mother: Dict[Optional[str], List[Placement]] = {}
    for placement in placements:
        by_mother.setdefault(placement.mother, []).append(placement)

    checked = 0
    for mother_name, daughters in by_mother.items():
        try:
            mother = mothers[mother_name]
        except KeyError:
            raise KeyError(f"Placement mother '{mother_name}' is not a known volume") from None
        for placement in daughters:
            if not placement.check_overlaps:
                continue
            check_placement(placement, mother, daughters, resolution, tolerance, rng)
            checked += 1
            if DEBUG:
                print(f"[debug] Checking overlaps for volume {_label(placement)} ... OK!")
    return checked
