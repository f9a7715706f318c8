"""
Core modules of the scintillator array model.

- constants: units, physical constants and the debug flag
- errors: exception taxonomy
- data_classes: value types (Material, Volume, Placement, ArraySpec, ...)
- materials: material catalog
- shapes: geometric primitives
- transforms: rotations and rigid transforms
- detector_unit: crystal, reflector, housing and window stack
- layout: array construction
- registry: crystal position registry
- shield: Compton-suppression shield ring
- overlaps: construction-time overlap check
- resolution: energy resolution models
- hits: event hit processor
- sink: histograms and row table
- io_utils: CSV export
"""

from .constants import (
    MM,
    CM,
    MEV,
    KEV,
    DEG,
    FWHM_TO_SIGMA,
    SHIELD_COPY_OFFSET,
    CRYSTAL_COLLECTION,
    SHIELD_COLLECTION,
    DEBUG,
)

from .errors import (
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

from .data_classes import (
    CrystalMaterial,
    ShieldMode,
    Element,
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

from .materials import (
    define_material,
    find_or_default,
    MaterialCatalog,
    build_catalog,
)

from .shapes import (
    Box,
    Tube,
    Polyhedron,
    Subtraction,
    make_box,
    make_tube,
    make_polyhedron,
    make_subtraction,
)

from .transforms import Transform, rot_x, rot_y, rot_z

from .detector_unit import build_detector_unit

from .layout import (
    compute_inscribed_radius,
    build_array,
    segment_transform,
    segment_to_world,
)

from .registry import CrystalPositionRegistry

from .shield import build_suppression_shield

from .overlaps import check_overlaps

from .resolution import (
    ResolutionModel,
    CEBR3_RESOLUTION,
    LABR3_RESOLUTION,
    BGO_RESOLUTION,
    resolution_for,
    smear_energy,
)

from .hits import (
    HitCollections,
    SelectionGroup,
    canonical_selection_groups,
    default_selection_groups,
    EventHitProcessor,
)

from .sink import Histogram1D, AnalysisSink

from .io_utils import (
    export_crystal_positions_to_csv,
    export_rows_to_csv,
    export_histograms_to_csv,
    load_crystal_positions_from_csv,
)

__all__ = [
    # Constants
    'MM',
    'CM',
    'MEV',
    'KEV',
    'DEG',
    'FWHM_TO_SIGMA',
    'SHIELD_COPY_OFFSET',
    'CRYSTAL_COLLECTION',
    'SHIELD_COLLECTION',
    'DEBUG',
    # Errors
    'ScintArrayError',
    'InvalidSegmentCount',
    'InvalidDimensions',
    'UnknownMaterial',
    'IndexOutOfRange',
    'MissingCollection',
    'GeometryOverlap',
    'InvalidSelection',
    'MalformedDeposits',
    'RegistryError',
    # Data classes
    'CrystalMaterial',
    'ShieldMode',
    'Element',
    'Material',
    'Volume',
    'Placement',
    'DetectorUnit',
    'ArraySpec',
    'ArrayGeometry',
    'ClassifiedHit',
    'ShieldHit',
    'EventSummary',
    # Materials
    'define_material',
    'find_or_default',
    'MaterialCatalog',
    'build_catalog',
    # Shapes
    'Box',
    'Tube',
    'Polyhedron',
    'Subtraction',
    'make_box',
    'make_tube',
    'make_polyhedron',
    'make_subtraction',
    # Transforms
    'Transform',
    'rot_x',
    'rot_y',
    'rot_z',
    # Geometry construction
    'build_detector_unit',
    'compute_inscribed_radius',
    'build_array',
    'segment_transform',
    'segment_to_world',
    'CrystalPositionRegistry',
    'build_suppression_shield',
    'check_overlaps',
    # Resolution
    'ResolutionModel',
    'CEBR3_RESOLUTION',
    'LABR3_RESOLUTION',
    'BGO_RESOLUTION',
    'resolution_for',
    'smear_energy',
    # Hits
    'HitCollections',
    'SelectionGroup',
    'canonical_selection_groups',
    'default_selection_groups',
    'EventHitProcessor',
    # Sink
    'Histogram1D',
    'AnalysisSink',
    # IO
    'export_crystal_positions_to_csv',
    'export_rows_to_csv',
    'export_histograms_to_csv',
    'load_crystal_positions_from_csv',
]
