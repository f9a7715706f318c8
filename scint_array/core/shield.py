"""
Compton-suppression shield ring.

One BGO element sits in the wedge between every pair of neighbouring
segments. Each element is a box with two slabs cut away so that its side
faces run parallel to the side faces of the two segments it touches.
"""

from __future__ import annotations

import math
from typing import List, Tuple

from .constants import SHIELD_COPY_OFFSET, TWO_PI
from .data_classes import Material, Placement, Volume
from .errors import InvalidDimensions
from .shapes import make_box, make_subtraction
from .transforms import Transform, rot_z

# Half-depth of the shield element along its radial axis (117 mm / 2, integer halved)
SHIELD_HALF_DEPTH = 117 // 2
SHIELD_HALF_WIDTH = 30.0
CUT_HALF_LENGTH = 200.0

# The shield covers three housings plus the two gaps between them
SHIELD_RINGS = 3


def shield_half_length(housing_half_x: float, gap: float) -> float:
    """Half-length of a shield element along the beam axis."""
    return housing_half_x * SHIELD_RINGS + (gap / 2.0) * 2.0


def shield_radius(segments: int, inscribed_radius: float) -> float:
    """Distance from the beam axis to the centre of each shield element."""
    half_dphi = TWO_PI / segments / 2.0
    return SHIELD_HALF_DEPTH + inscribed_radius / math.cos(half_dphi)


def build_shield_volume(segments: int, half_length: float, material: Material) -> Volume:
    """Shape of one shield element, a box minus two angled slabs."""
    if segments < 3:
        raise InvalidDimensions("ComptSuppTrap", f"shield ring needs at least 3 segments, got {segments}")
    half_dphi = TWO_PI / segments / 2.0
    body = make_box("ComptSuppSolid", SHIELD_HALF_DEPTH, SHIELD_HALF_WIDTH, half_length)
    slab_half_y = SHIELD_HALF_WIDTH * math.cos(half_dphi)

    upper = make_box("ComptSuppSolidUp", CUT_HALF_LENGTH, slab_half_y, 2.0 * half_length)
    without_upper = make_subtraction(
        "ComptSuppSolidBoxWithoutUp", body, upper,
        Transform(rot_z(half_dphi), [-SHIELD_HALF_DEPTH, SHIELD_HALF_WIDTH, 0.0]),
    )
    lower = make_box("ComptSuppSolidDown", CUT_HALF_LENGTH, slab_half_y, 2.0 * half_length)
    shape = make_subtraction(
        "ComptSuppSolidBoxWithoutDown", without_upper, lower,
        Transform(rot_z(-half_dphi), [-SHIELD_HALF_DEPTH, -SHIELD_HALF_WIDTH, 0.0]),
    )
    return Volume(shape, material, "ComptSuppTrap")


def build_suppression_shield(
    segments: int,
    inscribed_radius: float,
    housing_half_x: float,
    gap: float,
    material: Material,
    check_overlaps: bool = True,
) -> Tuple[Volume, List[Placement]]:
    """Build the shield ring.

    Parameters
    ----------
    segments : int
        Number of segments; one shield element is placed per segment.
    inscribed_radius : float
        Inscribed radius of the array (mm).
    housing_half_x : float
        Half-size of a detector housing along the beam axis (mm).
    gap : float
        Gap between rings (mm).
    material : Material
        Shield material (BGO).
    check_overlaps : bool
        Overlap flag stored on every placement.

    Returns
    -------
    volume : Volume
        The shared shield element volume.
    placements : list of Placement
        World placements with copy numbers ``100 + i``.
    """
    volume = build_shield_volume(segments, shield_half_length(housing_half_x, gap), material)
    dphi = TWO_PI / segments
    radius = shield_radius(segments, inscribed_radius)

    placements = []
    angle = dphi / 2.0
    for i in range(segments):
        position = [radius * math.cos(angle), radius * math.sin(angle), 0.0]
        placements.append(Placement(
            volume=volume,
            name="ComptSuppTrapPl",
            mother=None,
            transform=Transform(rot_z(angle), position),
            copy_number=SHIELD_COPY_OFFSET + i,
            check_overlaps=check_overlaps,
        ))
        angle += dphi
    return volume, placements
