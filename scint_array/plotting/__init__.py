"""
Plotting subpackage for the scintillator array.

This subpackage provides:
- Projections of the array geometry (beam view, (z, r) plane, 3-D)
- The construction report and run statistics
- Spectrum plots of the analysis sink

Example usage:
    from scint_array import build_array
    from scint_array.plotting import plot_array_layout, print_construction_report

    geometry = build_array()
    print_construction_report(geometry)
    plot_array_layout(geometry, save_path='Figures/array_layout.png')
"""

from .geometry_viewer import (
    plot_array_layout,
    segment_footprint,
    shield_footprint,
)

from .results import (
    format_construction_report,
    print_construction_report,
    print_run_statistics,
    plot_spectra,
)

__all__ = [
    # Geometry visualization
    "plot_array_layout",
    "segment_footprint",
    "shield_footprint",
    # Reports and results
    "format_construction_report",
    "print_construction_report",
    "print_run_statistics",
    "plot_spectra",
]
