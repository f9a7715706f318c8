"""
Rotation matrices and rigid transforms.

A ``Transform`` maps local coordinates into the mother frame with
``mother = rotation @ local + translation``. Composition follows the usual
matrix order: ``a.compose(b)`` applies ``b`` first, then ``a``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


def _frozen(array) -> np.ndarray:
    out = np.array(array, dtype=float)
    out.setflags(write=False)
    return out


def rot_x(angle: float) -> np.ndarray:
    """Right-handed rotation about the X axis."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rot_y(angle: float) -> np.ndarray:
    """Right-handed rotation about the Y axis."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rot_z(angle: float) -> np.ndarray:
    """Right-handed rotation about the Z axis."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@dataclass(frozen=True, eq=False)
class Transform:
    """Rigid transform: rotation followed by translation."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        rotation = np.asarray(self.rotation, dtype=float)
        translation = np.asarray(self.translation, dtype=float).reshape(-1)
        if rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got shape {rotation.shape}")
        if translation.shape != (3,):
            raise ValueError(f"Translation must have 3 components, got {translation.shape}")
        object.__setattr__(self, "rotation", _frozen(rotation))
        object.__setattr__(self, "translation", _frozen(translation))

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def from_translation(cls, translation: Sequence[float]) -> "Transform":
        return cls(np.eye(3), translation)

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform a point (3,) or an array of points (n, 3)."""
        points = np.asarray(points, dtype=float)
        return points @ self.rotation.T + self.translation

    def apply_inverse(self, points: np.ndarray) -> np.ndarray:
        """Map mother-frame points back into the local frame."""
        points = np.asarray(points, dtype=float)
        return (points - self.translation) @ self.rotation

    def compose(self, inner: "Transform") -> "Transform":
        """Return the transform equivalent to applying ``inner`` then ``self``."""
        return Transform(
            self.rotation @ inner.rotation,
            self.rotation @ inner.translation + self.translation,
        )

    def inverse(self) -> "Transform":
        return Transform(self.rotation.T, -self.rotation.T @ self.translation)

    def is_identity(self) -> bool:
        return bool(
            np.array_equal(self.rotation, np.eye(3))
            and not np.any(self.translation)
        )

    def __eq__(self, other):
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(
            np.array_equal(self.rotation, other.rotation)
            and np.array_equal(self.translation, other.translation)
        )

    __hash__ = None

    def __repr__(self):
        t = ", ".join(f"{c:.4f}" for c in self.translation)
        return f"Transform(translation=({t}), rotation={self.rotation.round(6).tolist()})"
