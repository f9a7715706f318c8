"""
Basic usage of the scint_array package.

Builds the default array, looks at the crystal positions, smears a few
energies and pushes a handful of hand-written events through the hit
processor.
"""

import numpy as np

from scint_array import (
    ArraySpec,
    CEBR3_RESOLUTION,
    EventHitProcessor,
    HitCollections,
    KEV,
    build_array,
    compute_inscribed_radius,
    print_construction_report,
)
from scint_array.testing import run_quick_test


def example_geometry():
    """Build the default array and print its crystal positions."""
    print("=" * 60)
    print("Array geometry")
    print("=" * 60)

    geometry = build_array(ArraySpec.from_config(check_overlaps=False))
    print_construction_report(geometry)

    for segments in (1, 2, 6, 15):
        radius = compute_inscribed_radius(segments, geometry.unit.housing_half[1], 1)
        print(f"  {segments:2d} segments: inscribed radius {radius:.2f} mm")
    return geometry


def example_resolution():
    """Resolution of the CeBr3 crystals at a few energies."""
    print("\n" + "=" * 60)
    print("CeBr3 resolution")
    print("=" * 60)

    rng = np.random.default_rng(1)
    for energy in (122.0, 662.0, 1332.5):
        smeared = [CEBR3_RESOLUTION.smear(energy, rng) for _ in range(5)]
        print(f"  {energy:7.1f} keV: FWHM {CEBR3_RESOLUTION.fwhm_percent(energy):5.2f} %, "
              f"samples {np.round(smeared, 1)}")


def example_events(geometry):
    """Process two events given as copy number to deposit maps."""
    print("\n" + "=" * 60)
    print("Event processing")
    print("=" * 60)

    collections = HitCollections.from_geometry(geometry)
    processor = EventHitProcessor(geometry, rng=np.random.default_rng(2))
    processor.begin_run(collections)
    crystal_id = collections.collection_id("crystal/edep")

    events = [
        {crystal_id: {1: 661.7 * KEV}},
        {crystal_id: {3: 200.0 * KEV, 6: 461.7 * KEV}},
    ]
    for event_id, hits in enumerate(events):
        summary = processor.process_event(event_id, hits)
        for hit in summary.crystal_hits:
            print(f"  Event {event_id}: Nb{hit.copy_number} {hit.raw_energy:.1f} keV -> "
                  f"{hit.energy:.1f} keV, groups {hit.groups}")
    print(processor.sink.rows_frame())


def main():
    geometry = example_geometry()
    example_resolution()
    example_events(geometry)

    print("\n" + "=" * 60)
    run_quick_test()


if __name__ == "__main__":
    main()
