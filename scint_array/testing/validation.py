"""
Validation utilities for the array geometry.

Self-checks that can be run on a built geometry before a production run:
registry completeness, ring radius, crystal spacing and rebuild
determinism.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

from ..core.data_classes import ArrayGeometry, ArraySpec
from ..core.errors import ScintArrayError
from ..core.layout import build_array, compute_inscribed_radius


def validate_registry(geometry: ArrayGeometry) -> Tuple[bool, str]:
    """Check that every crystal has a finite, distinct position."""
    positions = geometry.crystal_positions()
    errors = []
    if len(positions) != geometry.total_crystals:
        errors.append(f"Expected {geometry.total_crystals} positions, got {len(positions)}")
    if not np.all(np.isfinite(positions)):
        errors.append("Contains NaN or Inf values")
    if not geometry.registry.frozen:
        errors.append("Registry is not frozen")
    if len(positions) > 1:
        distances = np.linalg.norm(positions[:, None, :] - positions[None, :, :], axis=2)
        np.fill_diagonal(distances, np.inf)
        closest = float(distances.min())
        # two crystals cannot be closer than one crystal width
        min_spacing = 2.0 * min(geometry.unit.crystal_half[:2])
        if closest < min_spacing - 1e-6:
            errors.append(f"Crystals only {closest:.3f} mm apart (< {min_spacing:.3f} mm)")

    if errors:
        return False, "Registry: " + "; ".join(errors)
    return True, f"Registry: Valid ({len(positions)} crystals)"


def validate_ring_radius(geometry: ArrayGeometry) -> Tuple[bool, str]:
    """Check that no crystal sits closer to the beam axis than allowed."""
    spec = geometry.spec
    expected = compute_inscribed_radius(spec.segments, geometry.unit.housing_half[1], spec.crystals_per_column)
    if not math.isclose(expected, geometry.inscribed_radius):
        return False, f"Radius: expected {expected:.3f} mm, geometry has {geometry.inscribed_radius:.3f} mm"

    positions = geometry.crystal_positions()
    radial = np.hypot(positions[:, 0], positions[:, 1])
    if np.any(radial < geometry.inscribed_radius - 1e-6):
        return False, f"Radius: crystal centre inside the inscribed circle (min r = {radial.min():.3f} mm)"
    return True, f"Radius: Valid (R = {geometry.inscribed_radius:.3f} mm, min crystal r = {radial.min():.3f} mm)"


def validate_determinism(spec: Optional[ArraySpec] = None) -> Tuple[bool, str]:
    """Build the array twice and compare placements and registries."""
    first = build_array(spec)
    second = build_array(spec)
    if first.placements != second.placements:
        return False, "Determinism: placements differ between builds"
    if first.registry != second.registry:
        return False, "Determinism: registries differ between builds"
    return True, f"Determinism: Valid ({len(first.placements)} placements)"


def validate_geometry(spec: Optional[ArraySpec] = None) -> Tuple[bool, List[tuple]]:
    """Run all geometry checks.

    Returns
    -------
    success : bool
        True if all checks pass.
    results : list
        ``(check name, passed, message)`` tuples.
    """
    results = []
    try:
        geometry = build_array(spec)
    except ScintArrayError as exc:
        return False, [("Build", False, str(exc))]
    results.append(("Build", True, f"{len(geometry.placements)} placements"))

    for name, check in (("Registry", validate_registry), ("Radius", validate_ring_radius)):
        passed, message = check(geometry)
        results.append((name, passed, message))
    passed, message = validate_determinism(spec)
    results.append(("Determinism", passed, message))
    return all(passed for _, passed, _ in results), results


def run_quick_test(spec: Optional[ArraySpec] = None, verbose: bool = True) -> bool:
    """Run the geometry checks and print the results.

    Example
    -------
    >>> from scint_array.testing import run_quick_test
    >>> success = run_quick_test()
    """
    if verbose:
        print("=" * 70)
        print("ARRAY GEOMETRY VALIDATION")
        print("=" * 70)

    success, results = validate_geometry(spec)

    if verbose:
        for test_name, passed, message in results:
            status = "✓" if passed else "✗"
            print(f"{status} {test_name}: {message}")
        print()
        print("=" * 70)
        print("ALL CHECKS PASSED ✓" if success else "SOME CHECKS FAILED ✗")
        print("=" * 70)
    return success
