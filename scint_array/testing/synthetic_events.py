"""
Synthetic deposit maps
======================

Stand-in for the transport engine when exercising the hit pipeline. A
mono-energetic gamma line is either fully absorbed in one crystal or
Compton scatters: part of the energy stays in the first crystal, the rest
may reach a neighbouring crystal, escape, or (when the shield is built)
end up in a suppression element.

Deposits are returned in engine units (MeV), keyed by copy number, exactly
as the hit processor receives them from the scorers.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from .. import config
from ..core.constants import CRYSTAL_COLLECTION, KEV, SHIELD_COLLECTION, SHIELD_COPY_OFFSET
from ..core.data_classes import ArrayGeometry
from ..core.hits import HitCollections

ELECTRON_MASS_KEV = 510.99895


def compton_edge(energy_kev: float) -> float:
    """Maximum energy transferred to the electron in a single Compton scatter."""
    return energy_kev * 2.0 * energy_kev / (ELECTRON_MASS_KEV + 2.0 * energy_kev)


def generate_deposits(
    geometry: ArrayGeometry,
    rng: np.random.Generator,
    line_kev: float = config.SYNTHETIC_LINE_KEV,
    photopeak_fraction: float = config.SYNTHETIC_PHOTOPEAK_FRACTION,
    multiplicity_prob: float = config.SYNTHETIC_MULTIPLICITY_PROB,
) -> Tuple[Dict[int, float], Optional[Dict[int, float]]]:
    """Generate the deposits of one event.

    Parameters
    ----------
    geometry : ArrayGeometry
        Built array.
    rng : numpy.random.Generator
        Random stream.
    line_kev : float
        Gamma energy.
    photopeak_fraction : float
        Probability of full absorption in the first crystal.
    multiplicity_prob : float
        Probability that the scattered photon is absorbed in a neighbour.

    Returns
    -------
    crystal_deposits : dict
        Copy number to deposit (MeV).
    shield_deposits : dict or None
        Shield copy number to deposit (MeV); None without a shield.
    """
    n = geometry.total_crystals
    segments = geometry.spec.segments
    per_segment = geometry.spec.crystals_per_segment
    shield = geometry.spec.shield_enabled

    crystal: Dict[int, float] = {}
    shield_deposits: Optional[Dict[int, float]] = {} if shield else None

    first = int(rng.integers(1, n + 1))
    if rng.random() < photopeak_fraction:
        crystal[first] = line_kev * KEV
        return crystal, shield_deposits

    deposited = rng.uniform(0.0, compton_edge(line_kev))
    crystal[first] = deposited * KEV
    rest = line_kev - deposited

    if rng.random() < multiplicity_prob and n > 1:
        # neighbour along the ring of segments, same position inside the segment
        neighbour = (first - 1 + per_segment) % n + 1 if segments > 1 else first % n + 1
        crystal[neighbour] = crystal.get(neighbour, 0.0) + rest * KEV
    elif shield and rng.random() < 0.5:
        segment = (first - 1) // per_segment
        side = segment if rng.random() < 0.5 else (segment - 1) % segments
        shield_deposits[SHIELD_COPY_OFFSET + side] = rng.uniform(0.0, rest) * KEV
    return crystal, shield_deposits


def event_stream(
    geometry: ArrayGeometry,
    collections: HitCollections,
    n_events: int,
    rng: Optional[np.random.Generator] = None,
    **kwargs,
) -> Iterator[Tuple[int, Dict[int, Dict[int, float]]]]:
    """Yield ``(event_id, hits_of_event)`` with deposit maps keyed by collection id."""
    if rng is None:
        rng = np.random.default_rng(config.DEFAULT_SEED)
    crystal_id = collections.collection_id(CRYSTAL_COLLECTION)
    shield_id = collections.collection_id(SHIELD_COLLECTION) if geometry.spec.shield_enabled else None
    for event_id in range(n_events):
        crystal, shield = generate_deposits(geometry, rng, **kwargs)
        hits = {crystal_id: crystal}
        if shield_id is not None:
            hits[shield_id] = shield
        yield event_id, hits
