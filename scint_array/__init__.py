"""
Segmented Scintillator Array Package
====================================

This package models a segmented gamma-ray scintillator array arranged as a
ring of segments around the beam axis: the geometry generator with its
crystal position registry and overlap check, and the per-event hit
pipeline with detector resolution and analysis histograms.

Modules:
--------
- constants: Units, physical constants and the debug flag
- config: Configurable array and run parameters
- data_classes: Data structures (ArraySpec, ArrayGeometry, Placement, ...)
- materials: Material catalog
- shapes: Box, tube, polyhedron and boolean subtraction solids
- detector_unit: Crystal, reflector, housing and window stack
- layout: Array construction and inscribed radius
- registry: World positions of the crystal centres
- shield: Compton-suppression shield ring
- overlaps: Construction-time overlap check
- resolution: Energy resolution models
- hits: Event hit processor
- sink: Histograms and per-hit table
- io_utils: CSV export
"""

from .core.constants import (
    MM,
    CM,
    MEV,
    KEV,
    DEG,
    FWHM_TO_SIGMA,
    SHIELD_COPY_OFFSET,
    CRYSTAL_COLLECTION,
    SHIELD_COLLECTION,
)
from . import config
from .core.errors import (
    ScintArrayError,
    InvalidSegmentCount,
    InvalidDimensions,
    UnknownMaterial,
    IndexOutOfRange,
    MissingCollection,
    GeometryOverlap,
    InvalidSelection,
    MalformedDeposits,
    RegistryError,
)
from .core.data_classes import (
    CrystalMaterial,
    ShieldMode,
    Material,
    Volume,
    Placement,
    DetectorUnit,
    ArraySpec,
    ArrayGeometry,
    ClassifiedHit,
    ShieldHit,
    EventSummary,
)
from .core.materials import build_catalog, find_or_default
from .core.detector_unit import build_detector_unit
from .core.layout import (
    compute_inscribed_radius,
    build_array,
    segment_transform,
    segment_to_world,
)
from .core.registry import CrystalPositionRegistry
from .core.shield import build_suppression_shield
from .core.overlaps import check_overlaps
from .core.resolution import (
    ResolutionModel,
    CEBR3_RESOLUTION,
    LABR3_RESOLUTION,
    BGO_RESOLUTION,
    resolution_for,
    smear_energy,
)
from .core.hits import (
    HitCollections,
    SelectionGroup,
    canonical_selection_groups,
    default_selection_groups,
    EventHitProcessor,
)
from .core.sink import Histogram1D, AnalysisSink
from .core.io_utils import (
    export_crystal_positions_to_csv,
    export_rows_to_csv,
    export_histograms_to_csv,
    load_crystal_positions_from_csv,
)
from .plotting import (
    plot_array_layout,
    print_construction_report,
    print_run_statistics,
    plot_spectra,
)
from .runner import run_full_simulation

__version__ = "1.0.0"
__all__ = [
    # Config module
    "config",
    # Constants
    "MM",
    "CM",
    "MEV",
    "KEV",
    "DEG",
    "FWHM_TO_SIGMA",
    "SHIELD_COPY_OFFSET",
    "CRYSTAL_COLLECTION",
    "SHIELD_COLLECTION",
    # Errors
    "ScintArrayError",
    "InvalidSegmentCount",
    "InvalidDimensions",
    "UnknownMaterial",
    "IndexOutOfRange",
    "MissingCollection",
    "GeometryOverlap",
    "InvalidSelection",
    "MalformedDeposits",
    "RegistryError",
    # Data classes
    "CrystalMaterial",
    "ShieldMode",
    "Material",
    "Volume",
    "Placement",
    "DetectorUnit",
    "ArraySpec",
    "ArrayGeometry",
    "ClassifiedHit",
    "ShieldHit",
    "EventSummary",
    # Geometry
    "build_catalog",
    "find_or_default",
    "build_detector_unit",
    "compute_inscribed_radius",
    "build_array",
    "segment_transform",
    "segment_to_world",
    "CrystalPositionRegistry",
    "build_suppression_shield",
    "check_overlaps",
    # Resolution and hits
    "ResolutionModel",
    "CEBR3_RESOLUTION",
    "LABR3_RESOLUTION",
    "BGO_RESOLUTION",
    "resolution_for",
    "smear_energy",
    "HitCollections",
    "SelectionGroup",
    "canonical_selection_groups",
    "default_selection_groups",
    "EventHitProcessor",
    "Histogram1D",
    "AnalysisSink",
    # IO
    "export_crystal_positions_to_csv",
    "export_rows_to_csv",
    "export_histograms_to_csv",
    "load_crystal_positions_from_csv",
    # Plotting
    "plot_array_layout",
    "print_construction_report",
    "print_run_statistics",
    "plot_spectra",
    # Runner
    "run_full_simulation",
]
