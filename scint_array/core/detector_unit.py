"""
Detector unit builder: crystal, reflector, housing and optical window.

All offsets are derived from the crystal half-sizes and the wall
thicknesses. The window sits on the forward (+Z) face of the crystal; the
reflector and housing are open on that face and close the crystal on the
sides and at the back.
"""

from __future__ import annotations

from typing import Sequence

from .data_classes import DetectorUnit, Material, Volume
from .errors import InvalidDimensions
from . import materials
from .shapes import make_box, make_subtraction
from .transforms import Transform


def build_detector_unit(
    crystal_half_extents: Sequence[float],
    reflector_walls: Sequence[float],
    housing_walls: Sequence[float],
    window_half_z: float,
    crystal_material: Material,
    reflector_material: Material,
    housing_material: Material,
    window_material: Material,
    crystal_z: float = 0.0,
) -> DetectorUnit:
    """Build the nested volume stack of one detector.

    Parameters
    ----------
    crystal_half_extents : sequence of float
        Crystal half-sizes (x, y, z) in mm.
    reflector_walls : sequence of float
        Reflector thickness on the x sides, y sides and behind the crystal.
    housing_walls : sequence of float
        Housing thickness on the x sides, y sides and behind the reflector.
    window_half_z : float
        Half-thickness of the optical window.
    crystal_material, reflector_material, housing_material, window_material : Material
        Materials of the four volumes.
    crystal_z : float, optional
        Position of the crystal centre along Z inside the unit.

    Returns
    -------
    DetectorUnit
        The four volumes and their offsets along Z.

    Raises
    ------
    InvalidDimensions
        If any derived half-extent is not positive.
    """
    cx, cy, cz = (float(v) for v in crystal_half_extents)
    refl_x, refl_y, refl_window = (float(v) for v in reflector_walls)
    hous_x, hous_y, hous_window = (float(v) for v in housing_walls)

    for label, walls in (("reflector_walls", reflector_walls), ("housing_walls", housing_walls)):
        if any(float(w) < 0.0 for w in walls):
            raise InvalidDimensions(label, f"wall thicknesses must be >= 0, got {tuple(walls)}")

    crystal_box = make_box("sciCrystSolid", cx, cy, cz)

    # Reflector: open on the readout face, shifted back by half its window thickness
    reflector_half = (cx + refl_x, cy + refl_y, cz + refl_window / 2.0)
    reflector_box = make_box("reflBoxSolid", *reflector_half)
    reflector_shape = make_subtraction(
        "sciReflSolid", reflector_box, crystal_box,
        Transform.from_translation([0.0, 0.0, refl_window / 2.0]),
    )
    reflector_z = crystal_z - refl_window / 2.0

    housing_half = (
        reflector_half[0] + hous_x,
        reflector_half[1] + hous_y,
        reflector_half[2] + hous_window / 2.0,
    )
    housing_box = make_box("housBoxASolid", *housing_half)
    housing_shape = make_subtraction(
        "housBoxBSolid", housing_box, reflector_box,
        Transform.from_translation([0.0, 0.0, hous_window / 2.0]),
    )
    housing_z = crystal_z - (refl_window / 2.0 + hous_window / 2.0)

    window_half = (housing_half[0], housing_half[1], float(window_half_z))
    window_shape = make_box("sciWindSolid", *window_half)
    window_z = crystal_z + cz + window_half_z

    return DetectorUnit(
        crystal=Volume(crystal_box, crystal_material, "crystal"),
        reflector=Volume(reflector_shape, reflector_material, "sciReflLog"),
        housing=Volume(housing_shape, housing_material, "sciCaseLog"),
        window=Volume(window_shape, window_material, "sciWindLog"),
        crystal_half=(cx, cy, cz),
        reflector_half=reflector_half,
        housing_half=housing_half,
        window_half=window_half,
        crystal_z=float(crystal_z),
        reflector_z=reflector_z,
        housing_z=housing_z,
        window_z=window_z,
        reflector_walls=(refl_x, refl_y, refl_window),
        housing_walls=(hous_x, hous_y, hous_window),
    )


def unit_from_spec(spec, catalog) -> DetectorUnit:
    """Build the detector unit described by an ``ArraySpec``."""
    crystal = materials.crystal_material(spec.crystal_material, spec.custom_crystal_material)
    return build_detector_unit(
        spec.crystal_half_extents,
        spec.reflector_walls,
        spec.housing_walls,
        spec.window_half_z,
        catalog[crystal.name],
        catalog["TiO2"],
        catalog["Aluminum_"],
        catalog["Quartz"],
    )
