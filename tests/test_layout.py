"""
Tests of the array layout: inscribed radius, segment placement and the
crystal position registry.
"""

import math

import numpy as np
import pytest

from scint_array import (
    ArraySpec,
    CRYSTAL_COLLECTION,
    CrystalPositionRegistry,
    IndexOutOfRange,
    InvalidSegmentCount,
    RegistryError,
    UnknownMaterial,
    build_array,
    compute_inscribed_radius,
    segment_transform,
)
from scint_array.core.layout import segment_half_extents, unit_grid


class TestInscribedRadius:
    """Radius of the circle inscribed in the segment ring."""

    def test_single_segment(self):
        assert compute_inscribed_radius(1, 27.5, 1) == 150.0

    def test_two_segments(self):
        assert compute_inscribed_radius(2, 27.5, 1) == 100.0

    @pytest.mark.parametrize("segments", [3, 6, 15, 24])
    def test_polygon(self, segments):
        expected = 27.5 / math.tan(math.pi / segments)
        assert compute_inscribed_radius(segments, 27.5, 1) == pytest.approx(expected)

    def test_columns_widen_the_ring(self):
        assert compute_inscribed_radius(15, 27.5, 2) == pytest.approx(2 * compute_inscribed_radius(15, 27.5, 1))

    def test_invalid_segment_count(self):
        with pytest.raises(InvalidSegmentCount):
            compute_inscribed_radius(0, 27.5, 1)
        with pytest.raises(InvalidSegmentCount):
            ArraySpec.from_config(segments=0)


class TestSegmentGrid:
    """Detector units inside one segment."""

    def test_segment_half_extents(self, default_geometry):
        np.testing.assert_array_almost_equal(default_geometry.segment_half_extents, (85.5, 27.5, 25.75))

    def test_grid_positions(self, default_geometry):
        grid = unit_grid(default_geometry.unit, 3, 1, 3.0)
        np.testing.assert_array_almost_equal(grid, [[-58.0, 0.0, -0.25], [0.0, 0.0, -0.25], [58.0, 0.0, -0.25]])

    def test_grid_order_rows_fastest(self, default_geometry):
        grid = unit_grid(default_geometry.unit, 2, 2, 0.0)
        # x changes first, then y
        assert grid[0][1] == grid[1][1]
        assert grid[0][0] == grid[2][0]
        assert grid[2][1] == pytest.approx(grid[0][1] + 55.0)

    def test_units_fit_in_segment(self, default_geometry):
        unit = default_geometry.unit
        half = np.array(segment_half_extents(unit, 3, 1, 3.0))
        grid = unit_grid(unit, 3, 1, 3.0)
        housing = np.array(unit.housing_half)
        for centre in grid:
            lo = centre + [0.0, 0.0, unit.housing_z] - housing
            hi = centre + [0.0, 0.0, unit.window_z] + np.array(unit.window_half)
            assert np.all(lo >= -half - 1e-9)
            assert np.all(hi <= half + 1e-9)


class TestBuildArray:
    """Placement and registry of the default 15 x 3 x 1 array."""

    def test_counts(self, default_geometry):
        assert default_geometry.total_crystals == 45
        assert len(default_geometry.registry) == 45
        assert len(default_geometry.find_placements("Segment")) == 15
        assert len(default_geometry.find_placements("sciCrystPl")) == 45
        assert default_geometry.collections == (CRYSTAL_COLLECTION,)

    def test_registry_frozen(self, default_geometry):
        assert default_geometry.registry.frozen
        with pytest.raises(RegistryError):
            default_geometry.registry.record(0, [0.0, 0.0, 0.0])

    def test_segment_copy_numbers(self, default_geometry):
        copies = [p.copy_number for p in default_geometry.find_placements("Segment")]
        assert copies == list(range(15))

    def test_crystal_copy_numbers(self, default_geometry):
        copies = [p.copy_number for p in default_geometry.find_placements("sciCrystPl")]
        assert copies == list(range(1, 46))
        second_segment = [p.copy_number for p in default_geometry.placements_in("Segment:1")
                          if p.name == "sciCrystPl"]
        assert second_segment == [4, 5, 6]

    def test_first_segment_positions(self, default_geometry):
        radius = default_geometry.inscribed_radius
        positions = default_geometry.crystal_positions()
        expected = [[radius + 25.5, 0.0, 58.0], [radius + 25.5, 0.0, 0.0], [radius + 25.5, 0.0, -58.0]]
        np.testing.assert_array_almost_equal(positions[:3], expected)

    def test_segments_repeat_by_rotation(self, default_geometry):
        positions = default_geometry.crystal_positions()
        dphi = 2 * math.pi / 15
        for segment in range(15):
            rotation = np.array([[math.cos(segment * dphi), -math.sin(segment * dphi), 0.0],
                                 [math.sin(segment * dphi), math.cos(segment * dphi), 0.0],
                                 [0.0, 0.0, 1.0]])
            np.testing.assert_array_almost_equal(
                positions[3 * segment:3 * segment + 3], positions[:3] @ rotation.T
            )

    def test_registry_matches_placements(self, default_geometry):
        """Registry entries equal the segment placement applied to the in-segment centres."""
        unit = default_geometry.unit
        grid = unit_grid(unit, 3, 1, 3.0) + [0.0, 0.0, unit.crystal_z]
        for segment in default_geometry.find_placements("Segment"):
            world = segment.transform.apply(grid)
            start = segment.copy_number * 3
            np.testing.assert_array_almost_equal(default_geometry.crystal_positions()[start:start + 3], world)

    def test_all_crystals_outside_inscribed_circle(self, default_geometry):
        positions = default_geometry.crystal_positions()
        radii = np.hypot(positions[:, 0], positions[:, 1])
        assert np.all(radii > default_geometry.inscribed_radius)

    def test_single_segment_is_plain_translation(self):
        geometry = build_array(ArraySpec.from_config(segments=1, check_overlaps=False))
        segment = geometry.find_placements("Segment")[0]
        expected = segment_transform(0.0, 150.0, 25.75)
        assert segment.transform == expected
        np.testing.assert_array_almost_equal(geometry.registry.position(2), [175.5, 0.0, 0.0])

    def test_two_segments_face_each_other(self):
        geometry = build_array(ArraySpec.from_config(segments=2, check_overlaps=False))
        positions = geometry.crystal_positions()
        np.testing.assert_array_almost_equal(positions[3:], positions[:3] * [-1.0, -1.0, 1.0])
        assert positions[1][0] == pytest.approx(125.5)

    def test_determinism(self):
        spec = ArraySpec.from_config(segments=6, check_overlaps=False)
        assert build_array(spec) == build_array(spec)

    def test_flange_width_clamped(self):
        geometry = build_array(ArraySpec.from_config(segments=4, crystals_per_column=3,
                                                     flange_half_width=10.0, check_overlaps=False))
        assert geometry.flange_half_width == pytest.approx(27.5 * 3)

    def test_other_material_needs_composition(self):
        with pytest.raises(UnknownMaterial):
            build_array(ArraySpec.from_config(crystal_material="NaI", check_overlaps=False))


class TestOptionalStructures:
    """Vacuum chamber, side flanges and insulation tube."""

    def test_vacuum_chamber_tubes(self):
        geometry = build_array(ArraySpec.from_config(vacuum_chamber=True, check_overlaps=False))
        tubes = [p for p in geometry.placements_in(None) if p.name.startswith("vacuumTubePhys")]
        assert [p.name for p in tubes] == ["vacuumTubePhys"] + [f"vacuumTubePhys{k}" for k in range(2, 8)]
        first = tubes[0].volume.shape
        assert first.r_max == pytest.approx(geometry.inscribed_radius)
        assert first.r_min == pytest.approx(geometry.inscribed_radius - 3.0)
        assert tubes[1].volume.shape.r_max == 226.0
        assert tubes[6].transform.translation[2] == 226.5

    def test_side_flanges(self):
        geometry = build_array(ArraySpec.from_config(side_flanges=True, check_overlaps=False))
        flanges = geometry.find_placements("VacuumChamberSideFlangeLog")
        assert [p.copy_number for p in flanges] == [1, 2]
        assert flanges[0].transform.translation[2] == pytest.approx(150.0)
        assert flanges[1].transform.translation[2] == pytest.approx(-156.0)
        assert flanges[0].volume.shape.num_sides == 15

    def test_insulation_tube(self):
        geometry = build_array(ArraySpec.from_config(insulation_tube=True, check_overlaps=False))
        inner, outer = geometry.insulation_radii
        assert outer == pytest.approx(geometry.inscribed_radius)
        assert outer - inner == pytest.approx(3.0)


class TestRegistry:
    """Write-once behaviour of the position registry."""

    def test_record_and_read(self):
        registry = CrystalPositionRegistry(2)
        registry.record(0, [1.0, 2.0, 3.0])
        registry.record(1, [4.0, 5.0, 6.0])
        registry.freeze()
        np.testing.assert_array_equal(registry.position(1), [1.0, 2.0, 3.0])
        assert [serial for serial, _ in registry.items()] == [1, 2]

    def test_double_write(self):
        registry = CrystalPositionRegistry(2)
        registry.record(0, [1.0, 2.0, 3.0])
        with pytest.raises(RegistryError):
            registry.record(0, [1.0, 2.0, 3.0])

    def test_incomplete_freeze(self):
        registry = CrystalPositionRegistry(3)
        registry.record(0, [0.0, 0.0, 0.0])
        with pytest.raises(RegistryError):
            registry.freeze()

    def test_out_of_range(self):
        registry = CrystalPositionRegistry(2)
        with pytest.raises(IndexOutOfRange):
            registry.record(2, [0.0, 0.0, 0.0])
        with pytest.raises(IndexOutOfRange):
            registry.position(0)

    def test_non_integer_index_rejected(self):
        registry = CrystalPositionRegistry(2)
        with pytest.raises(IndexOutOfRange):
            registry.record(0.5, [0.0, 0.0, 0.0])
        registry.record(np.int64(0), [1.0, 2.0, 3.0])
        registry.record(1, [4.0, 5.0, 6.0])
        registry.freeze()
        with pytest.raises(IndexOutOfRange):
            registry.position(1.7)
        with pytest.raises(IndexOutOfRange):
            registry.get(True)
        np.testing.assert_array_equal(registry.position(np.int64(2)), [4.0, 5.0, 6.0])

    def test_as_array_read_only(self, default_geometry):
        positions = default_geometry.crystal_positions()
        with pytest.raises(ValueError):
            positions[0, 0] = 1.0
