"""
Event hit processor.

Takes the per-event energy deposits of the crystals (and of the
suppression shield when it is built), applies the detector resolution and
routes the results to the analysis sink:

- one histogram per crystal, indexed by its copy number;
- aggregate histograms after the crystal channels, first the smeared
  total and selection groups, then the same aggregates with raw energies;
- one shield histogram per shield element;
- one table row per crystal hit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import (
    CRYSTAL_COLLECTION,
    DEBUG,
    FIRED_THRESHOLD_KEV,
    KEV,
    SHIELD_COLLECTION,
    SHIELD_COPY_OFFSET,
)
from .data_classes import ArrayGeometry, ClassifiedHit, EventSummary, ShieldHit
from .errors import IndexOutOfRange, InvalidSelection, MalformedDeposits, MissingCollection
from .resolution import BGO_RESOLUTION, ResolutionModel, resolution_for, smear_energy
from .sink import AnalysisSink


# =============================================================================
# Hit collections
# =============================================================================

class HitCollections:
    """Name to integer id table of the scorers registered by the geometry."""

    def __init__(self, names: Iterable[str] = ()):
        self._ids: Dict[str, int] = {}
        for name in names:
            self.register(name)

    @classmethod
    def from_geometry(cls, geometry: ArrayGeometry) -> "HitCollections":
        return cls(geometry.collections)

    def register(self, name: str) -> int:
        if name not in self._ids:
            self._ids[name] = len(self._ids)
        return self._ids[name]

    def collection_id(self, name: str) -> int:
        try:
            return self._ids[name]
        except KeyError:
            raise MissingCollection(name) from None

    def __contains__(self, name) -> bool:
        return name in self._ids

    def names(self) -> List[str]:
        return list(self._ids)


# =============================================================================
# Selection groups
# =============================================================================

@dataclass(frozen=True)
class SelectionGroup:
    """Subset of crystals defined by excluding one ring.

    Attributes
    ----------
    name : str
        Channel and column name.
    excluded_ring : int
        Ring (position along the beam axis inside a segment) left out;
        negative values count from the last ring.
    segments : tuple of int or None
        Segments in which the ring is left out; ``None`` means all.
    nominal_size : int or None
        Expected number of members. Checked against the layout.
    """

    name: str
    excluded_ring: int = -1
    segments: Optional[Tuple[int, ...]] = None
    nominal_size: Optional[int] = None

    def members(self, rows: int, columns: int, segments: int) -> frozenset:
        """Copy numbers belonging to the group for the given layout."""
        ring = self.excluded_ring % rows if self.excluded_ring < 0 else self.excluded_ring
        if not 0 <= ring < rows:
            raise InvalidSelection(
                f"Selection '{self.name}' excludes ring {self.excluded_ring}, layout has {rows} rings"
            )
        if self.segments is not None and any(not 0 <= s < segments for s in self.segments):
            raise InvalidSelection(
                f"Selection '{self.name}' refers to segments {self.segments}, layout has {segments}"
            )
        per_segment = rows * columns
        excluded_segments = range(segments) if self.segments is None else self.segments
        members = set()
        for copy_number in range(1, per_segment * segments + 1):
            segment = (copy_number - 1) // per_segment
            crystal_ring = (copy_number - 1) % rows
            if crystal_ring == ring and segment in excluded_segments:
                continue
            members.add(copy_number)
        if self.nominal_size is not None and len(members) != self.nominal_size:
            raise InvalidSelection(
                f"Selection '{self.name}' expects {self.nominal_size} crystals but the "
                f"{segments}x{rows}x{columns} layout gives {len(members)}"
            )
        return frozenset(members)


def canonical_selection_groups() -> Tuple[SelectionGroup, ...]:
    """Groups of the 15-segment, 3-ring array.

    ``crystals30`` leaves out the last ring everywhere, ``crystals40`` only
    in the first five segments.
    """
    return (
        SelectionGroup("crystals30", excluded_ring=-1, segments=None, nominal_size=30),
        SelectionGroup("crystals40", excluded_ring=-1, segments=tuple(range(5)), nominal_size=40),
    )


def default_selection_groups(geometry: ArrayGeometry) -> Tuple[SelectionGroup, ...]:
    """Canonical groups when they fit the layout, none otherwise."""
    spec = geometry.spec
    groups = canonical_selection_groups()
    try:
        for group in groups:
            group.members(spec.crystals_per_row, spec.crystals_per_column, spec.segments)
    except InvalidSelection as exc:
        print(f"[warning] Selection groups disabled: {exc}")
        return ()
    return groups


# =============================================================================
# Channel indices
# =============================================================================

def crystal_channel(copy_number: int) -> int:
    return copy_number


def aggregate_channel(total_crystals: int, k: int) -> int:
    """Smeared aggregate ``k``: 0 is the total, 1..G the selection groups."""
    return total_crystals + 1 + k


def raw_aggregate_channel(total_crystals: int, n_groups: int, k: int) -> int:
    """Raw-energy counterpart of ``aggregate_channel``."""
    return total_crystals + 1 + (n_groups + 1) + k


def shield_channel(total_crystals: int, copy_number: int) -> int:
    return total_crystals + 2 + (copy_number - SHIELD_COPY_OFFSET)


# =============================================================================
# Processor
# =============================================================================

def _check_deposit(kind: str, copy_number, value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise MalformedDeposits(f"{kind} {copy_number}: deposit {value!r} is not a number") from None
    if not math.isfinite(value) or value < 0.0:
        raise MalformedDeposits(f"{kind} {copy_number}: deposit {value!r} is not a valid energy")
    return value


def _check_copy_number(copy_number) -> int:
    try:
        valid = not isinstance(copy_number, (bool, np.bool_)) and int(copy_number) == copy_number
    except (TypeError, ValueError, OverflowError):
        valid = False
    if not valid:
        raise MalformedDeposits(f"Copy number {copy_number!r} is not an integer")
    return int(copy_number)


class EventHitProcessor:
    """Resolution correction and routing of per-event deposits.

    Parameters
    ----------
    geometry : ArrayGeometry
        Built array; only read.
    sink : AnalysisSink, optional
        Destination of histograms and rows. A new one is created if omitted.
    rng : numpy.random.Generator, optional
        Random stream used for the smearing.
    groups : sequence of SelectionGroup, optional
        Selection groups. Defaults to the canonical groups, which only fit
        the 15x3x1 layout; pass ``()`` for other layouts.
    """

    def __init__(
        self,
        geometry: ArrayGeometry,
        sink: Optional[AnalysisSink] = None,
        rng: Optional[np.random.Generator] = None,
        groups: Optional[Sequence[SelectionGroup]] = None,
    ):
        self.geometry = geometry
        self.sink = sink if sink is not None else AnalysisSink()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.groups = tuple(canonical_selection_groups() if groups is None else groups)

        spec = geometry.spec
        self.total_crystals = spec.total_crystals
        self.shield_enabled = spec.shield_enabled
        self.n_shields = spec.segments
        self.resolution: Optional[ResolutionModel] = resolution_for(spec.crystal_material)
        self.material_name = geometry.unit.crystal.material.name
        self._members = [
            group.members(spec.crystals_per_row, spec.crystals_per_column, spec.segments)
            for group in self.groups
        ]
        self._collection_ids: Optional[Dict[str, int]] = None

        self.events_processed = 0
        self.crystal_hits = 0
        self.shield_hits = 0

    # -------------------------------------------------------------------------
    # Run setup
    # -------------------------------------------------------------------------

    def begin_run(self, collections: HitCollections) -> Dict[str, int]:
        """Resolve the collection ids used during the run.

        Raises
        ------
        MissingCollection
            If the crystal collection (or the shield collection when the
            shield is built) is not registered.
        """
        ids = {CRYSTAL_COLLECTION: collections.collection_id(CRYSTAL_COLLECTION)}
        if self.shield_enabled:
            ids[SHIELD_COLLECTION] = collections.collection_id(SHIELD_COLLECTION)
        self._collection_ids = ids
        return dict(ids)

    def process_event(self, event_id: int, hits_of_event: Mapping[int, Mapping[int, float]]) -> EventSummary:
        """Process one event given the deposit maps keyed by collection id."""
        if self._collection_ids is None:
            raise RuntimeError("begin_run() must be called before process_event()")
        crystal_id = self._collection_ids[CRYSTAL_COLLECTION]
        if crystal_id not in hits_of_event:
            raise MissingCollection(CRYSTAL_COLLECTION)
        shield_deposits = None
        if self.shield_enabled:
            shield_id = self._collection_ids[SHIELD_COLLECTION]
            if shield_id not in hits_of_event:
                raise MissingCollection(SHIELD_COLLECTION)
            shield_deposits = hits_of_event[shield_id]
        return self.process_deposits(event_id, hits_of_event[crystal_id], shield_deposits)

    # -------------------------------------------------------------------------
    # Event processing
    # -------------------------------------------------------------------------

    def process_deposits(
        self,
        event_id: int,
        crystal_deposits: Mapping[int, float],
        shield_deposits: Optional[Mapping[int, float]] = None,
    ) -> EventSummary:
        """Smear, classify and route the deposits of one event.

        Parameters
        ----------
        event_id : int
            Event number.
        crystal_deposits : mapping
            Crystal copy number to deposited energy (engine units, MeV).
        shield_deposits : mapping, optional
            Shield copy number to deposited energy. Must be empty when the
            shield is not built.

        Returns
        -------
        EventSummary
        """
        if DEBUG:
            print(f"[debug] Event {event_id}")
        summary = EventSummary(event_id)

        # validate the whole event before anything reaches the sink
        crystals = self._validate_crystals(crystal_deposits)
        shields = self._validate_shields(event_id, shield_deposits)

        for copy_number, raw in crystals:
            hit = self._classify(event_id, copy_number, raw)
            summary.crystal_hits.append(hit)
            if hit.raw_energy > FIRED_THRESHOLD_KEV:
                summary.nb_fired += 1

        for copy_number, raw in shields:
            hit = self._route_shield(event_id, copy_number, raw)
            summary.shield_hits.append(hit)
            if hit.raw_energy > FIRED_THRESHOLD_KEV:
                summary.nb_shield_fired += 1

        for hit in summary.crystal_hits:
            self.sink.add_row(self._row(hit, summary))

        self.events_processed += 1
        self.crystal_hits += len(summary.crystal_hits)
        self.shield_hits += len(summary.shield_hits)
        return summary

    def _validate_crystals(self, deposits: Mapping[int, float]) -> List[Tuple[int, float]]:
        """Checked ``(copy_number, raw keV)`` pairs in copy-number order."""
        checked = []
        for copy_number, deposit in deposits.items():
            copy_number = _check_copy_number(copy_number)
            if not 1 <= copy_number <= self.total_crystals:
                raise IndexOutOfRange("Crystal copy number", copy_number, self.total_crystals + 1)
            checked.append((copy_number, _check_deposit("Crystal", copy_number, deposit) / KEV))
        return sorted(checked)

    def _validate_shields(
        self, event_id: int, deposits: Optional[Mapping[int, float]]
    ) -> List[Tuple[int, float]]:
        if deposits and not self.shield_enabled:
            raise MalformedDeposits(
                f"Shield deposits for copy numbers {list(deposits)} but no shield is built"
            )
        checked = []
        for copy_number, deposit in (deposits or {}).items():
            copy_number = _check_copy_number(copy_number)
            if copy_number < SHIELD_COPY_OFFSET:
                print(f"[warning] Event {event_id}: shield deposit with copy number {copy_number} ignored")
                continue
            if copy_number - SHIELD_COPY_OFFSET >= self.n_shields:
                raise IndexOutOfRange("Shield element", copy_number - SHIELD_COPY_OFFSET, self.n_shields)
            checked.append((copy_number, _check_deposit("Shield", copy_number, deposit) / KEV))
        return sorted(checked)

    def _classify(self, event_id: int, copy_number: int, raw: float) -> ClassifiedHit:
        energy = smear_energy(raw, self.resolution, self.rng)
        n = self.total_crystals
        n_groups = len(self.groups)

        self.sink.fill_h1(crystal_channel(copy_number), energy)
        self.sink.fill_h1(aggregate_channel(n, 0), energy)
        self.sink.fill_h1(raw_aggregate_channel(n, n_groups, 0), raw)
        groups = []
        for k, (group, members) in enumerate(zip(self.groups, self._members), start=1):
            if copy_number in members:
                groups.append(group.name)
                self.sink.fill_h1(aggregate_channel(n, k), energy)
                self.sink.fill_h1(raw_aggregate_channel(n, n_groups, k), raw)

        if DEBUG:
            fwhm = self.resolution.fwhm_percent(raw) if self.resolution is not None and raw > 0 else 0.0
            print(f"[debug] {self.material_name} Nb{copy_number}: E {raw:.3f} keV, "
                  f"Resolution Corrected E {energy:.3f} keV, FWHM {fwhm:.3f} %")
        return ClassifiedHit(event_id, copy_number, energy, raw, tuple(groups))

    def _route_shield(self, event_id: int, copy_number: int, raw: float) -> ShieldHit:
        energy = smear_energy(raw, BGO_RESOLUTION, self.rng)
        self.sink.fill_shield_h1(shield_channel(self.total_crystals, copy_number), energy)
        if DEBUG:
            print(f"[debug] ComptSupp Nb{copy_number}: E {raw:.3f} keV, Resolution Corrected E {energy:.3f} keV")
        return ShieldHit(event_id, copy_number, copy_number - SHIELD_COPY_OFFSET, energy, raw)

    def _row(self, hit: ClassifiedHit, summary: EventSummary) -> dict:
        row = {
            "event_id": hit.event_id,
            "copy_nb": hit.copy_number,
            "energy_res": hit.energy,
            "energy_raw": hit.raw_energy,
        }
        for group in self.groups:
            member = group.name in hit.groups
            row[f"{group.name}_res"] = hit.energy if member else 0.0
            row[f"{group.name}_raw"] = hit.raw_energy if member else 0.0
        if self.shield_enabled:
            row["shield_nb_fired"] = summary.nb_shield_fired
            row["shield_energy_res"] = float(sum(h.energy for h in summary.shield_hits))
            row["shield_energy_raw"] = float(sum(h.raw_energy for h in summary.shield_hits))
        return row
