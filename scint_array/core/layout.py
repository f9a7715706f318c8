"""
Array layout engine.

Builds the complete, immutable description of the array from an
``ArraySpec``:

1. inscribed radius of the segment ring;
2. auxiliary volumes (suppression shield, vacuum chamber tubes, side
   flanges, insulation tube) when enabled;
3. one segment box per azimuth, filled with a rows x columns grid of
   detector units, rotated so that the crystals face the beam axis;
4. the world-frame centre of every crystal, stored in the registry;
5. the overlap check.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from .. import config
from . import materials
from .constants import CRYSTAL_COLLECTION, DEBUG, SHIELD_COLLECTION, TWO_PI
from .data_classes import ArrayGeometry, ArraySpec, DetectorUnit, Placement, Volume
from .detector_unit import unit_from_spec
from .errors import InvalidSegmentCount
from .overlaps import check_overlaps
from .registry import CrystalPositionRegistry
from .shapes import make_box, make_polyhedron, make_tube
from .shield import build_suppression_shield
from .transforms import Transform, rot_x, rot_y, rot_z

# Radii used when the trigonometric formula degenerates
SINGLE_SEGMENT_RADIUS = 150.0
TWO_SEGMENT_RADIUS = 100.0

INSULATION_TUBE_HALF_LENGTH = 150.0

# Vacuum chamber tubes as (inner radius, outer radius, half-length, z centre).
# ``None`` radii follow the array: inner -> R - thickness, outer -> R.
VACUUM_TUBES = (
    (None, None, 102.25, 29.25),
    (None, 226.0, 5.0, -78.0),
    (150.0, 255.0, 5.0, -88.0),
    (200.0, 255.0, 15.0, -108.0),
    (None, 254.0, 7.5, 138.0),
    (239.0, 254.0, 37.5, 174.0),
    (239.0, 305.0, 10.0, 226.5),
)


def segment_mother(segment_index: int) -> str:
    """Name under which daughters of segment ``segment_index`` refer to their mother."""
    return f"Segment:{segment_index}"


def compute_inscribed_radius(segments: int, housing_half_y: float, columns: int) -> float:
    """Radius of the circle inscribed in the segment ring (mm).

    Parameters
    ----------
    segments : int
        Number of segments around the beam axis.
    housing_half_y : float
        Half-width of one detector housing across the segment.
    columns : int
        Number of detectors across the segment.

    Returns
    -------
    float
        150 for a single segment, 100 for two, otherwise
        ``housing_half_y * columns / tan(pi / segments)``.
    """
    if int(segments) != segments or segments < 1:
        raise InvalidSegmentCount(segments)
    if segments == 1:
        return SINGLE_SEGMENT_RADIUS
    if segments == 2:
        return TWO_SEGMENT_RADIUS
    return housing_half_y * columns / math.tan(math.pi / segments)


def segment_half_extents(unit: DetectorUnit, rows: int, columns: int, gap: float) -> Tuple[float, float, float]:
    """Half-sizes of the box holding one segment's grid of detector units."""
    hx, hy, hz = unit.housing_half
    return (
        hx * rows + gap * (rows - 1) / 2.0,
        hy * columns,
        hz + unit.window_half[2],
    )


def grid_origin(unit: DetectorUnit, rows: int, columns: int, gap: float) -> np.ndarray:
    """Position of the first detector unit inside the segment box."""
    hx, hy, hz = unit.housing_half
    return np.array([
        -(rows * hx + gap * (rows - 1) / 2.0 - hx),
        -(columns * hy - hy),
        hz - unit.crystal_half[2] - unit.window_half[2],
    ])


def unit_grid(unit: DetectorUnit, rows: int, columns: int, gap: float) -> np.ndarray:
    """Centres of the detector units in a segment, in serial-number order.

    The first index runs fastest along the segment's X axis (``rows``
    positions, spaced by ``2*hx + gap``), then along Y (``columns``
    positions, spaced by ``2*hy``).
    """
    hx, hy, _ = unit.housing_half
    origin = grid_origin(unit, rows, columns, gap)
    positions = []
    for j in range(columns):
        for i in range(rows):
            positions.append(origin + np.array([i * (2.0 * hx + gap), j * 2.0 * hy, 0.0]))
    return np.array(positions)


def segment_transform(phi: float, inscribed_radius: float, half_depth: float) -> Transform:
    """Placement of a segment box at azimuth ``phi``.

    The segment is turned by 90 deg about Y, so its local +Z points
    outwards, then by ``phi`` about the beam axis.
    """
    direction = np.array([math.cos(phi), math.sin(phi), 0.0])
    return Transform(rot_z(phi) @ rot_y(math.pi / 2.0), (inscribed_radius + half_depth) * direction)


def segment_to_world(points: np.ndarray, phi: float, position: np.ndarray) -> np.ndarray:
    """Map crystal centres from segment to world coordinates.

    Turns the points by ``2pi - phi`` about X, then by 90 deg about Y, and
    finally shifts them to the segment position. The product of the two
    rotations equals the segment placement rotation.
    """
    first = Transform(rot_x(TWO_PI - phi))
    second = Transform(rot_y(math.pi / 2.0), position)
    return second.apply(first.apply(points))


def _vacuum_tube_placements(
    inscribed_radius: float, thickness: float, material, check: bool
) -> List[Placement]:
    placements = []
    for k, (r_in, r_out, half_z, z) in enumerate(VACUUM_TUBES, start=1):
        suffix = "" if k == 1 else str(k)
        r_in = inscribed_radius - thickness if r_in is None else r_in
        r_out = inscribed_radius if r_out is None else r_out
        shape = make_tube(f"vacuumTubeSolid{suffix}", r_in, r_out, half_z)
        volume = Volume(shape, material, f"vacuumTubeLog{suffix}")
        placements.append(Placement(
            volume, f"vacuumTubePhys{suffix}", None,
            Transform.from_translation([0.0, 0.0, z]), 1, check,
        ))
    return placements


def _side_flange_placements(
    segments: int, inscribed_radius: float, half_length: float, half_thickness: float,
    material, check: bool,
) -> List[Placement]:
    if segments < 3:
        # A polygon needs three sides; fewer segments get a round flange
        shape = make_tube("vacuumChamberSideFlange", 0.0, inscribed_radius + 2.0 * half_thickness, half_thickness)
        offset = half_thickness
    else:
        shape = make_polyhedron(
            "vacuumChamberSideFlange", 0.0, TWO_PI, segments,
            z_planes=(0.0, 2.0 * half_thickness),
            r_inner=(0.0, 0.0),
            r_outer=(inscribed_radius + 2.0 * half_thickness,) * 2,
        )
        offset = 0.0
    volume = Volume(shape, material, "vacuumChamberSideFlangeLog")
    rotation = rot_z(TWO_PI / segments / 2.0)
    return [
        Placement(volume, "VacuumChamberSideFlangeLog", None,
                  Transform(rotation, [0.0, 0.0, half_length + offset]), 1, check),
        Placement(volume, "VacuumChamberSideFlangeLog", None,
                  Transform(rotation, [0.0, 0.0, -half_length - 2.0 * half_thickness + offset]), 2, check),
    ]


def _insulation_tube_placement(
    inscribed_radius: float, thickness: float, material, check: bool
) -> Tuple[Placement, Tuple[float, float]]:
    radii = (inscribed_radius - thickness, inscribed_radius)
    shape = make_tube("insulationTubeSolid", radii[0], radii[1], INSULATION_TUBE_HALF_LENGTH)
    volume = Volume(shape, material, "insulationTubeLog")
    placement = Placement(volume, "insulationTubePhys", None, Transform.identity(), 1, check)
    return placement, radii


def build_array(spec: Optional[ArraySpec] = None, verbose: bool = False) -> ArrayGeometry:
    """Build the array geometry.

    Parameters
    ----------
    spec : ArraySpec, optional
        Array configuration. Defaults to ``ArraySpec.from_config()``.
    verbose : bool
        Print progress messages.

    Returns
    -------
    ArrayGeometry
        Placements, registry and derived dimensions. Building twice from
        equal specs gives equal results.

    Raises
    ------
    InvalidSegmentCount, InvalidDimensions, UnknownMaterial
        On an invalid configuration.
    GeometryOverlap
        If ``spec.check_overlaps`` is set and two volumes intersect.
    """
    if spec is None:
        spec = ArraySpec.from_config()

    catalog = materials.build_catalog(
        spec.crystal_material, spec.shield_enabled, spec.custom_crystal_material
    )
    unit = unit_from_spec(spec, catalog)
    rows, columns, segments = spec.crystals_per_row, spec.crystals_per_column, spec.segments
    check = spec.check_overlaps

    radius = compute_inscribed_radius(segments, unit.housing_half[1], columns)
    flange_half_width = max(spec.flange_half_width, unit.housing_half[1] * columns)
    if verbose:
        print(f"[info] Inscribed radius: {radius:.3f} mm for {segments} segments")

    world = Volume(make_box("World", *spec.world_half_extents), catalog["Air"], "World")
    half_extents = segment_half_extents(unit, rows, columns, spec.gap)
    segment_volume = Volume(
        make_box("segmentBox", *half_extents),
        materials.find_or_default("G4_Galactic"),
        "segmentBoxLog",
    )

    placements: List[Placement] = []
    collections = [CRYSTAL_COLLECTION]

    shield_volume = None
    if spec.shield_enabled:
        shield_volume, shield_placements = build_suppression_shield(
            segments, radius, unit.housing_half[0], spec.gap, catalog["BGO"], check,
        )
        placements.extend(shield_placements)
        collections.append(SHIELD_COLLECTION)

    aluminium = materials.find_or_default("G4_Al")
    if spec.vacuum_chamber:
        placements.extend(_vacuum_tube_placements(radius, spec.vacuum_tube_thickness, aluminium, check))
    if spec.side_flanges:
        placements.extend(_side_flange_placements(
            segments, radius, spec.flange_half_length, spec.flange_half_thickness,
            catalog["Aluminum_"], check,
        ))

    insulation_radii = None
    if spec.insulation_tube:
        insulation, insulation_radii = _insulation_tube_placement(
            radius, spec.insulation_tube_thickness, aluminium, check
        )
        placements.append(insulation)

    registry = CrystalPositionRegistry(spec.total_crystals)
    grid = unit_grid(unit, rows, columns, spec.gap)
    offsets = (
        (unit.crystal, "sciCrystPl", unit.crystal_z),
        (unit.window, "sciWindPl", unit.window_z),
        (unit.reflector, "sciReflPl", unit.reflector_z),
        (unit.housing, "sciHousPl", unit.housing_z),
    )
    dphi = TWO_PI / segments
    copy_number = 1
    for iseg in range(segments):
        phi = iseg * dphi
        mother = segment_mother(iseg)
        crystal_centres = []
        for centre in grid:
            for volume, name, dz in offsets:
                position = centre + np.array([0.0, 0.0, dz])
                placements.append(Placement(
                    volume, name, mother, Transform.from_translation(position), copy_number, check,
                ))
            crystal_centres.append(centre + np.array([0.0, 0.0, unit.crystal_z]))
            copy_number += 1

        transform = segment_transform(phi, radius, half_extents[2])
        placements.append(Placement(segment_volume, "Segment", None, transform, iseg, check))
        registry.record_segment(
            iseg * len(grid),
            segment_to_world(np.array(crystal_centres), phi, transform.translation),
        )
        if DEBUG:
            print(f"[debug] Segment {iseg} placed at phi = {math.degrees(phi):.2f} deg")

    registry.freeze()

    if check:
        mothers: Dict[Optional[str], Volume] = {None: world}
        mothers.update({segment_mother(i): segment_volume for i in range(segments)})
        checked = check_overlaps(
            placements, mothers,
            resolution=config.OVERLAP_RESOLUTION,
            tolerance=config.OVERLAP_TOLERANCE_MM,
            seed=config.OVERLAP_SEED,
        )
        if verbose:
            print(f"[info] Overlap check passed for {checked} placements")

    if verbose:
        print(f"[info] Placed {segments} segments with {spec.total_crystals} crystals")

    return ArrayGeometry(
        spec=spec,
        unit=unit,
        materials=catalog,
        inscribed_radius=radius,
        flange_half_width=flange_half_width,
        segment_half_extents=half_extents,
        world=world,
        segment_volume=segment_volume,
        placements=tuple(placements),
        registry=registry,
        collections=tuple(collections),
        insulation_radii=insulation_radii,
        shield_volume=shield_volume,
    )
