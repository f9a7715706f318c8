"""
Data classes for the scintillator array model.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .. import config
from .errors import InvalidDimensions, InvalidSegmentCount
from .transforms import Transform


class CrystalMaterial(enum.Enum):
    """Scintillator materials with a known resolution curve."""

    CEBR3 = "CeBr3"
    LABR3 = "LaBr3"
    OTHER = "Other"

    @classmethod
    def from_name(cls, name: str) -> "CrystalMaterial":
        for member in cls:
            if member.value.lower() == str(name).lower():
                return member
        return cls.OTHER


class ShieldMode(enum.Enum):
    """Compton-suppression shield configuration."""

    OFF = "off"
    BGO = "bgo"

    @classmethod
    def from_flag(cls, flag) -> "ShieldMode":
        if isinstance(flag, ShieldMode):
            return flag
        if isinstance(flag, bool):
            return cls.BGO if flag else cls.OFF
        value = str(flag).strip().lower()
        if value in ("yes", "on", "true", "bgo"):
            return cls.BGO
        if value in ("no", "off", "false", ""):
            return cls.OFF
        raise ValueError(f"Unrecognised shield mode '{flag}'")


@dataclass(frozen=True)
class Element:
    """Chemical element used as a material component."""

    name: str
    symbol: str
    z: float
    molar_mass: float  # g/mol


@dataclass(frozen=True)
class Material:
    """Material defined by composition.

    Attributes
    ----------
    name : str
        Name used for lookups and reports.
    density : float
        Density in g/cm3.
    components : tuple of (Element, float)
        Ordered components with either atom counts or mass fractions.
    proportion_kind : str
        ``"atoms"`` or ``"mass_fraction"``.
    """

    name: str
    density: float
    components: Tuple[Tuple[Element, float], ...]
    proportion_kind: str = "atoms"


@dataclass(frozen=True)
class Volume:
    """A shape filled with a material, not yet placed in space."""

    shape: object
    material: Material
    name: str


@dataclass(frozen=True)
class Placement:
    """One positioned copy of a volume inside a mother volume."""

    volume: Volume
    name: str
    mother: Optional[str]  # None means the world volume itself
    transform: Transform
    copy_number: int
    check_overlaps: bool = True


@dataclass(frozen=True)
class DetectorUnit:
    """Crystal, reflector, housing and optical window of one detector.

    The ``*_z`` offsets are the centre positions of each volume along Z
    relative to the crystal centre.
    """

    crystal: Volume
    reflector: Volume
    housing: Volume
    window: Volume
    crystal_half: Tuple[float, float, float]
    reflector_half: Tuple[float, float, float]
    housing_half: Tuple[float, float, float]
    window_half: Tuple[float, float, float]
    crystal_z: float
    reflector_z: float
    housing_z: float
    window_z: float
    reflector_walls: Tuple[float, float, float]
    housing_walls: Tuple[float, float, float]


def _triple(value, name) -> Tuple[float, float, float]:
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise InvalidDimensions(name, f"expected 3 values, got {len(values)}")
    return values


@dataclass(frozen=True)
class ArraySpec:
    """Configuration of the detector array.

    ``crystals_per_row`` counts crystals along the segment's local X axis,
    which ends up parallel to the beam axis, so it is the number of rings.
    ``crystals_per_column`` counts crystals across the segment (local Y).
    """

    segments: int = config.NB_SEGMENTS
    crystals_per_row: int = config.NB_CRYST_IN_SEGMENT_ROW
    crystals_per_column: int = config.NB_CRYST_IN_SEGMENT_COLUMN
    gap: float = config.RING_GAP_MM
    crystal_half_extents: Tuple[float, float, float] = config.CRYSTAL_HALF_EXTENTS_MM
    reflector_walls: Tuple[float, float, float] = config.REFLECTOR_WALLS_MM
    housing_walls: Tuple[float, float, float] = config.HOUSING_WALLS_MM
    window_half_z: float = config.WINDOW_HALF_Z_MM
    crystal_material: CrystalMaterial = CrystalMaterial.from_name(config.CRYSTAL_MATERIAL)
    custom_crystal_material: Optional[Material] = None
    shield_mode: ShieldMode = ShieldMode.from_flag(config.COMPTON_SUPPRESSION)
    vacuum_chamber: bool = config.VACUUM_CHAMBER
    vacuum_tube_thickness: float = config.VACUUM_TUBE_THICKNESS_MM
    side_flanges: bool = config.SIDE_FLANGES
    flange_half_width: float = config.FLANGE_HALF_WIDTH_MM
    flange_half_length: float = config.FLANGE_HALF_LENGTH_MM
    flange_half_thickness: float = config.FLANGE_HALF_THICKNESS_MM
    insulation_tube: bool = config.INSULATION_TUBE
    insulation_tube_thickness: float = config.INSULATION_TUBE_THICKNESS_MM
    world_half_extents: Tuple[float, float, float] = config.WORLD_HALF_EXTENTS_MM
    check_overlaps: bool = config.CHECK_OVERLAPS

    def __post_init__(self):
        if int(self.segments) != self.segments or self.segments < 1:
            raise InvalidSegmentCount(self.segments)
        for name in ("crystals_per_row", "crystals_per_column"):
            value = getattr(self, name)
            if int(value) != value or value < 1:
                raise InvalidDimensions(name, f"must be a positive integer, got {value}")
        if self.gap < 0:
            raise InvalidDimensions("gap", f"must be >= 0, got {self.gap}")
        for name in ("crystal_half_extents", "reflector_walls", "housing_walls", "world_half_extents"):
            object.__setattr__(self, name, _triple(getattr(self, name), name))
        for name in ("vacuum_tube_thickness", "insulation_tube_thickness", "window_half_z",
                     "flange_half_length", "flange_half_thickness"):
            if getattr(self, name) <= 0:
                raise InvalidDimensions(name, f"must be > 0, got {getattr(self, name)}")
        if not isinstance(self.crystal_material, CrystalMaterial):
            object.__setattr__(self, "crystal_material", CrystalMaterial.from_name(self.crystal_material))
        object.__setattr__(self, "shield_mode", ShieldMode.from_flag(self.shield_mode))

    @classmethod
    def from_config(cls, **overrides) -> "ArraySpec":
        """Build a spec from the current values in ``scint_array.config``."""
        values = dict(
            segments=config.NB_SEGMENTS,
            crystals_per_row=config.NB_CRYST_IN_SEGMENT_ROW,
            crystals_per_column=config.NB_CRYST_IN_SEGMENT_COLUMN,
            gap=config.RING_GAP_MM,
            crystal_half_extents=config.CRYSTAL_HALF_EXTENTS_MM,
            reflector_walls=config.REFLECTOR_WALLS_MM,
            housing_walls=config.HOUSING_WALLS_MM,
            window_half_z=config.WINDOW_HALF_Z_MM,
            crystal_material=CrystalMaterial.from_name(config.CRYSTAL_MATERIAL),
            shield_mode=ShieldMode.from_flag(config.COMPTON_SUPPRESSION),
            vacuum_chamber=config.VACUUM_CHAMBER,
            vacuum_tube_thickness=config.VACUUM_TUBE_THICKNESS_MM,
            side_flanges=config.SIDE_FLANGES,
            flange_half_width=config.FLANGE_HALF_WIDTH_MM,
            flange_half_length=config.FLANGE_HALF_LENGTH_MM,
            flange_half_thickness=config.FLANGE_HALF_THICKNESS_MM,
            insulation_tube=config.INSULATION_TUBE,
            insulation_tube_thickness=config.INSULATION_TUBE_THICKNESS_MM,
            world_half_extents=config.WORLD_HALF_EXTENTS_MM,
            check_overlaps=config.CHECK_OVERLAPS,
        )
        values.update(overrides)
        return cls(**values)

    @property
    def crystals_per_segment(self) -> int:
        return self.crystals_per_row * self.crystals_per_column

    @property
    def total_crystals(self) -> int:
        return self.segments * self.crystals_per_segment

    @property
    def shield_enabled(self) -> bool:
        return self.shield_mode is not ShieldMode.OFF


@dataclass(frozen=True)
class ClassifiedHit:
    """Energy registered by one crystal in one event (keV)."""

    event_id: int
    copy_number: int
    energy: float  # resolution corrected
    raw_energy: float
    groups: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ShieldHit:
    """Energy registered by one suppression shield element (keV)."""

    event_id: int
    copy_number: int
    shield_index: int
    energy: float
    raw_energy: float


@dataclass
class EventSummary:
    """Everything the hit processor produced for a single event."""

    event_id: int
    crystal_hits: List[ClassifiedHit] = field(default_factory=list)
    shield_hits: List[ShieldHit] = field(default_factory=list)
    nb_fired: int = 0
    nb_shield_fired: int = 0

    @property
    def total_energy(self) -> float:
        return float(sum(hit.energy for hit in self.crystal_hits))

    def energies_by_copy(self) -> Dict[int, float]:
        return {hit.copy_number: hit.energy for hit in self.crystal_hits}


@dataclass(frozen=True, eq=False)
class ArrayGeometry:
    """Immutable result of building an array.

    Everything downstream (reports, plots, the hit processor) reads from
    this object; nothing is looked up from global state.
    """

    spec: ArraySpec
    unit: DetectorUnit
    materials: object  # MaterialCatalog
    inscribed_radius: float
    flange_half_width: float
    segment_half_extents: Tuple[float, float, float]
    world: Volume
    segment_volume: Volume
    placements: Tuple[Placement, ...]
    registry: object  # CrystalPositionRegistry, frozen
    collections: Tuple[str, ...]
    insulation_radii: Optional[Tuple[float, float]] = None
    shield_volume: Optional[Volume] = None

    @property
    def total_crystals(self) -> int:
        return self.spec.total_crystals

    def crystal_positions(self):
        return self.registry.as_array()

    def placements_in(self, mother: Optional[str]) -> List[Placement]:
        """Daughters of ``mother`` (``None`` for the world) in placement order."""
        return [p for p in self.placements if p.mother == mother]

    def find_placements(self, name: str) -> List[Placement]:
        return [p for p in self.placements if p.name == name]

    def __eq__(self, other):
        if not isinstance(other, ArrayGeometry):
            return NotImplemented
        return (
            self.spec == other.spec
            and self.inscribed_radius == other.inscribed_radius
            and self.placements == other.placements
            and self.registry == other.registry
            and self.collections == other.collections
        )

    __hash__ = None
