"""
Unit and physical constants shared by the geometry and hit modules.

Lengths are in millimetres and angles in radians. Deposited energies arrive
from the transport engine in its internal unit (MeV), and are divided by
``KEV`` to obtain keV.
"""

import math

# Length units (mm based)
MM = 1.0
CM = 10.0 * MM
M = 1000.0 * MM

# Energy units (MeV based, as delivered by the transport engine)
MEV = 1.0
KEV = 1.0e-3 * MEV
EV = 1.0e-6 * MEV

# Angles
DEG = math.pi / 180.0
TWO_PI = 2.0 * math.pi

# Density units (g/cm3 based)
G_PER_CM3 = 1.0
MG_PER_CM3 = 1.0e-3 * G_PER_CM3

# Gaussian FWHM = 2.355 sigma
FWHM_TO_SIGMA = 2.355

# Copy numbers of suppression shield placements start here
SHIELD_COPY_OFFSET = 100

# Hit collection names registered by the geometry
CRYSTAL_COLLECTION = "crystal/edep"
SHIELD_COLLECTION = "ComptSupp/edep"

# Deposits above this value count as a fired detector (keV)
FIRED_THRESHOLD_KEV = 0.0

# Debug flag
DEBUG = False
