"""
Energy resolution models.

The resolution of a scintillator is parametrised as
``FWHM[%] = a * E[keV] ** b``; the Gaussian width follows from
``sigma = E * FWHM / 100 / 2.355``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .constants import FWHM_TO_SIGMA
from .data_classes import CrystalMaterial


@dataclass(frozen=True)
class ResolutionModel:
    """Power-law FWHM curve of one detector material."""

    name: str
    a: float
    b: float

    def fwhm_percent(self, energy_kev: float) -> float:
        return self.a * energy_kev ** self.b

    def sigma(self, energy_kev: float) -> float:
        """Gaussian sigma (keV) at ``energy_kev``; zero for non-positive energies."""
        if energy_kev <= 0.0:
            return 0.0
        return energy_kev * (self.fwhm_percent(energy_kev) / 100.0) / FWHM_TO_SIGMA

    def smear(self, energy_kev: float, rng: np.random.Generator) -> float:
        sigma = self.sigma(energy_kev)
        if sigma == 0.0:
            return float(energy_kev)
        return float(rng.normal(energy_kev, sigma))


CEBR3_RESOLUTION = ResolutionModel("CeBr3", 94.6, -0.476)
LABR3_RESOLUTION = ResolutionModel("LaBr3", 81.0, -0.501)
BGO_RESOLUTION = ResolutionModel("BGO", 398.0, -0.584)

# ``None`` means the material is not smeared
RESOLUTION_TABLE: Dict[CrystalMaterial, Optional[ResolutionModel]] = {
    CrystalMaterial.CEBR3: CEBR3_RESOLUTION,
    CrystalMaterial.LABR3: LABR3_RESOLUTION,
    CrystalMaterial.OTHER: None,
}


def resolution_for(material: CrystalMaterial) -> Optional[ResolutionModel]:
    return RESOLUTION_TABLE[material]


def smear_energy(
    energy_kev: float,
    model: Optional[ResolutionModel],
    rng: np.random.Generator,
) -> float:
    """Sample the detected energy for a raw deposit.

    Parameters
    ----------
    energy_kev : float
        Raw deposited energy in keV.
    model : ResolutionModel or None
        Resolution curve; ``None`` returns the raw energy unchanged.
    rng : numpy.random.Generator
        Random stream of the caller.

    Returns
    -------
    float
        Smeared energy in keV.
    """
    if model is None:
        return float(energy_kev)
    return model.smear(energy_kev, rng)
