"""
Crystal position registry.

Holds the world-frame centre of every crystal, indexed by serial number
minus one. The layout engine fills it while placing segments and freezes it
once construction is complete; afterwards it is a read-only table that can
be shared between workers.
"""

from __future__ import annotations

import numbers
from typing import Iterator, Tuple

import numpy as np

from .errors import IndexOutOfRange, RegistryError


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


class CrystalPositionRegistry:
    """Fixed-size, write-once table of crystal centres (mm)."""

    def __init__(self, total: int):
        if total < 1:
            raise RegistryError(f"Registry size must be >= 1, got {total}")
        self._positions = np.zeros((int(total), 3), dtype=float)
        self._filled = np.zeros(int(total), dtype=bool)
        self._frozen = False

    def __len__(self) -> int:
        return self._positions.shape[0]

    @property
    def total(self) -> int:
        return len(self)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_index(self, index: int) -> int:
        if not _is_integer(index) or not 0 <= index < len(self):
            raise IndexOutOfRange("Crystal", index, len(self))
        return int(index)

    def record(self, index: int, point) -> None:
        """Store the position of crystal ``index`` (0-based). Each slot is written once."""
        if self._frozen:
            raise RegistryError("Registry is frozen; positions can no longer be recorded")
        index = self._check_index(index)
        if self._filled[index]:
            raise RegistryError(f"Position of crystal {index + 1} already recorded")
        self._positions[index] = np.asarray(point, dtype=float)
        self._filled[index] = True

    def record_segment(self, start: int, points: np.ndarray) -> None:
        """Record consecutive crystals starting at ``start`` (0-based)."""
        for offset, point in enumerate(np.atleast_2d(points)):
            self.record(start + offset, point)

    def freeze(self) -> "CrystalPositionRegistry":
        if not np.all(self._filled):
            missing = np.flatnonzero(~self._filled) + 1
            raise RegistryError(f"Crystal positions never recorded for serial numbers {missing.tolist()}")
        self._positions.setflags(write=False)
        self._frozen = True
        return self

    def get(self, index: int) -> np.ndarray:
        """Position of crystal ``index`` (0-based)."""
        index = self._check_index(index)
        return self._positions[index].copy()

    def position(self, copy_number: int) -> np.ndarray:
        """Position of the crystal with 1-based serial ``copy_number``."""
        if not _is_integer(copy_number) or not 1 <= copy_number <= len(self):
            raise IndexOutOfRange("Crystal copy number", copy_number, len(self) + 1)
        return self.get(copy_number - 1)

    def as_array(self) -> np.ndarray:
        """Read-only ``(N, 3)`` view of all positions."""
        view = self._positions.view()
        view.setflags(write=False)
        return view

    def items(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Iterate over ``(serial_number, position)`` with 1-based serials."""
        for index in range(len(self)):
            yield index + 1, self._positions[index].copy()

    def __eq__(self, other):
        if not isinstance(other, CrystalPositionRegistry):
            return NotImplemented
        return bool(np.array_equal(self._positions, other._positions)
                    and np.array_equal(self._filled, other._filled))

    __hash__ = None

    def __repr__(self):
        state = "frozen" if self._frozen else f"{int(self._filled.sum())}/{len(self)} filled"
        return f"CrystalPositionRegistry({len(self)} crystals, {state})"
