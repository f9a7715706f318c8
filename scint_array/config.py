"""
Configuration settings for the scintillator array model.

This module holds the default values of every parameter of the array and of
the run driver. Users can modify these values to customize the geometry
without changing the core code; ``ArraySpec.from_config()`` picks up the
current values.

All lengths are in millimetres, energies in keV.
"""

from __future__ import annotations

# =============================================================================
# Output Paths
# =============================================================================

DATA_OUTPUT_DIR = "Data"
FIGURES_OUTPUT_DIR = "Figures"

CRYSTAL_POSITIONS_CSV = "crystal_positions.csv"
HITS_CSV = "crystal_hits.csv"
HISTOGRAMS_CSV = "histograms.csv"
SHIELD_HISTOGRAMS_CSV = "shield_histograms.csv"
ARRAY_FIGURE = "array_layout.png"
SPECTRA_FIGURE_BASE = "spectra"

# =============================================================================
# Array Layout
# =============================================================================

# Number of segments around the beam axis (detectors in one ring)
NB_SEGMENTS = 15

# Crystals along the beam axis in a segment (number of rings)
NB_CRYST_IN_SEGMENT_ROW = 3

# Crystals across a segment
NB_CRYST_IN_SEGMENT_COLUMN = 1

# Distance between rings
RING_GAP_MM = 3.0

# =============================================================================
# Detector Unit (half-sizes)
# =============================================================================

CRYSTAL_HALF_EXTENTS_MM = (24.0, 24.0, 24.0)

# Reflector wall thickness (x, y, thickness behind the crystal)
REFLECTOR_WALLS_MM = (0.5, 0.5, 0.5)

# Housing wall thickness (x, y, thickness behind the reflector)
HOUSING_WALLS_MM = (3.0, 3.0, 1.0)

# Optical window half-thickness
WINDOW_HALF_Z_MM = 1.0

# Crystal material: "CeBr3" or "LaBr3"; anything else is not smeared
CRYSTAL_MATERIAL = "CeBr3"

# =============================================================================
# Optional Structures
# =============================================================================

# Vacuum chamber tubes between the beam and the detectors.
# The tube table is kept as drawn: the first and fifth tubes share 1 mm
# along the beam axis, and with 3 rings the second tube cuts into the
# segments. Build it with CHECK_OVERLAPS = False.
VACUUM_CHAMBER = False
VACUUM_TUBE_THICKNESS_MM = 3.0

# Polyhedral side flanges closing the vacuum chamber
SIDE_FLANGES = False
FLANGE_HALF_WIDTH_MM = 29.0
FLANGE_HALF_LENGTH_MM = 150.0
FLANGE_HALF_THICKNESS_MM = 3.0

# Insulation tube between field cage and vacuum chamber
INSULATION_TUBE = False
INSULATION_TUBE_THICKNESS_MM = 3.0

# Compton suppression shield: "no" or "BGO"
COMPTON_SUPPRESSION = "no"

# World half-size
WORLD_HALF_EXTENTS_MM = (400.0, 400.0, 400.0)

# =============================================================================
# Overlap Check
# =============================================================================

CHECK_OVERLAPS = True

# Surface points sampled per volume
OVERLAP_RESOLUTION = 1000

# Penetration depth tolerated before a point counts as an overlap (mm)
OVERLAP_TOLERANCE_MM = 1.0e-6

# Seed of the surface sampling, fixed so that the check is reproducible
OVERLAP_SEED = 12345

# =============================================================================
# Analysis Sink
# =============================================================================

HIST_N_BINS = 4000
HIST_E_MAX_KEV = 4000.0

# =============================================================================
# Run Driver
# =============================================================================

DEFAULT_N_EVENTS = 1000
DEFAULT_SEED = None

# Synthetic source: gamma line and probability of a second crystal firing
SYNTHETIC_LINE_KEV = 1332.5
SYNTHETIC_PHOTOPEAK_FRACTION = 0.4
SYNTHETIC_MULTIPLICITY_PROB = 0.2

# =============================================================================
# Visualization Settings
# =============================================================================

PLOT_DPI = 300
QUICK_PLOT_DPI = 150
ARRAY_FIGSIZE = (14, 6)
SPECTRA_FIGSIZE = (12, 8)
CRYSTAL_COLOR = "tab:blue"
SHIELD_COLOR = "tab:red"
TUBE_COLOR = "gray"
