"""
Material catalog.

Materials are immutable values. The handful of standard materials the array
needs from the NIST database are provided by ``find_or_default``; the
detector materials are defined from their elemental composition.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence, Tuple

from .constants import G_PER_CM3, MG_PER_CM3
from .data_classes import CrystalMaterial, Element, Material
from .errors import InvalidDimensions, UnknownMaterial

# =============================================================================
# Elements
# =============================================================================

HYDROGEN = Element("Hydrogen", "H", 1.0, 1.008)
CARBON = Element("Carbon", "C", 6.0, 12.011)
NITROGEN = Element("Nitrogen", "N", 7.0, 14.01)
OXYGEN = Element("Oxygen", "O", 8.0, 16.00)
ALUMINIUM = Element("Aluminum", "Al", 13.0, 26.98)
SILICON = Element("Silicon", "Si", 14.0, 28.09)
ARGON = Element("Argon", "Ar", 18.0, 39.948)
TITANIUM = Element("Titanium", "Ti", 22.0, 47.9)
GERMANIUM = Element("Germanium", "Ge", 32.0, 72.63)
BROMINE = Element("Bromine", "Br", 35.0, 79.904)
LANTHANUM = Element("Lanthanum", "La", 57.0, 138.9055)
CERIUM = Element("Cerium", "Ce", 58.0, 140.116)
BISMUTH = Element("Bismuth", "Bi", 83.0, 208.98)


def define_material(
    name: str,
    density: float,
    components: Sequence[Tuple[Element, float]],
    proportion_kind: str = "atoms",
) -> Material:
    """Create an immutable material.

    Parameters
    ----------
    name : str
        Material name.
    density : float
        Density in g/cm3.
    components : sequence of (Element, float)
        Components with atom counts or mass fractions.
    proportion_kind : str
        ``"atoms"`` or ``"mass_fraction"``. Mass fractions must sum to one.

    Returns
    -------
    Material
    """
    if not density > 0.0:
        raise InvalidDimensions(name, f"density must be > 0, got {density}")
    if proportion_kind not in ("atoms", "mass_fraction"):
        raise ValueError(f"Unknown proportion kind '{proportion_kind}' for material '{name}'")
    components = tuple((element, float(amount)) for element, amount in components)
    if not components:
        raise InvalidDimensions(name, "material needs at least one component")
    if any(amount <= 0.0 for _, amount in components):
        raise InvalidDimensions(name, "component proportions must be > 0")
    if proportion_kind == "mass_fraction":
        total = sum(amount for _, amount in components)
        if abs(total - 1.0) > 1e-6:
            raise InvalidDimensions(name, f"mass fractions sum to {total}, expected 1")
    return Material(name, float(density), components, proportion_kind)


# =============================================================================
# Standard materials
# =============================================================================

_STANDARD_MATERIALS: Dict[str, Material] = {
    material.name: material
    for material in (
        define_material("G4_AIR", 1.20479 * MG_PER_CM3,
                        [(CARBON, 0.000124), (NITROGEN, 0.755268), (OXYGEN, 0.231781), (ARGON, 0.012827)],
                        "mass_fraction"),
        define_material("G4_Galactic", 1.0e-25 * G_PER_CM3, [(HYDROGEN, 1)]),
        define_material("G4_Al", 2.699 * G_PER_CM3, [(ALUMINIUM, 1)]),
    )
}


def find_or_default(name: str, catalog: Optional["MaterialCatalog"] = None) -> Material:
    """Return a standard material, or one registered in ``catalog``.

    Raises
    ------
    UnknownMaterial
        If no material of that name exists.
    """
    if catalog is not None and name in catalog:
        return catalog[name]
    try:
        return _STANDARD_MATERIALS[name]
    except KeyError:
        raise UnknownMaterial(name) from None


class MaterialCatalog:
    """Name-indexed collection of the materials used by one geometry."""

    def __init__(self, materials: Iterable[Material] = ()):
        self._materials: Dict[str, Material] = {}
        for material in materials:
            self.add(material)

    def add(self, material: Material) -> Material:
        existing = self._materials.get(material.name)
        if existing is not None and existing != material:
            raise ValueError(f"Material '{material.name}' already defined with a different composition")
        self._materials[material.name] = material
        return material

    def __contains__(self, name) -> bool:
        return name in self._materials

    def __getitem__(self, name) -> Material:
        try:
            return self._materials[name]
        except KeyError:
            raise UnknownMaterial(name) from None

    def __iter__(self):
        return iter(self._materials.values())

    def __len__(self):
        return len(self._materials)

    def names(self):
        return list(self._materials)


# =============================================================================
# Detector materials
# =============================================================================

def crystal_material(kind: CrystalMaterial, custom: Optional[Material] = None) -> Material:
    """Scintillator material for the configured crystal type.

    ``CrystalMaterial.OTHER`` has no built-in composition and needs ``custom``.
    """
    if kind is CrystalMaterial.CEBR3:
        return define_material("CeBr3", 5.1 * G_PER_CM3, [(CERIUM, 1), (BROMINE, 3)])
    if kind is CrystalMaterial.LABR3:
        return define_material("LaBr3", 5.1 * G_PER_CM3, [(LANTHANUM, 1), (BROMINE, 3)])
    if custom is None:
        raise UnknownMaterial(kind.value)
    return custom


def reflector_material() -> Material:
    return define_material("TiO2", 4.23 * G_PER_CM3, [(TITANIUM, 1), (OXYGEN, 2)])


def housing_material() -> Material:
    return define_material("Aluminum_", 2.7 * G_PER_CM3, [(ALUMINIUM, 1)])


def window_material() -> Material:
    return define_material("Quartz", 2.66 * G_PER_CM3, [(SILICON, 1), (OXYGEN, 2)])


def shield_material() -> Material:
    return define_material("BGO", 7.13 * G_PER_CM3, [(BISMUTH, 4), (GERMANIUM, 3), (OXYGEN, 12)])


def world_material() -> Material:
    return define_material("Air", 0.2e-5 * MG_PER_CM3, [(NITROGEN, 0.7), (OXYGEN, 0.3)], "mass_fraction")


def build_catalog(
    kind: CrystalMaterial,
    with_shield: bool = False,
    custom_crystal: Optional[Material] = None,
) -> MaterialCatalog:
    """Collect every material the array geometry uses."""
    catalog = MaterialCatalog([
        crystal_material(kind, custom_crystal),
        reflector_material(),
        housing_material(),
        window_material(),
        world_material(),
    ])
    if with_shield:
        catalog.add(shield_material())
    return catalog
