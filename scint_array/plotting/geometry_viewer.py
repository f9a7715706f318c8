"""
Array geometry visualization.

Projections of the built array: the ring seen along the beam axis, the
(z, r) half-plane and a 3-D view of the crystal centres.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Polygon

from .. import config
from ..core.data_classes import ArrayGeometry, Placement


def segment_footprint(placement: Placement, half_extents) -> np.ndarray:
    """Corners of a segment box projected on the XY plane, in drawing order."""
    _, hy, hz = half_extents
    local = np.array([
        [0.0, -hy, -hz],
        [0.0, hy, -hz],
        [0.0, hy, hz],
        [0.0, -hy, hz],
    ])
    return placement.transform.apply(local)[:, :2]


def shield_footprint(placement: Placement, n_points: int = 4000, seed: int = 0) -> np.ndarray:
    """Surface points of a shield element projected on the XY plane."""
    rng = np.random.default_rng(seed)
    points = placement.volume.shape.surface_points(n_points, rng)
    return placement.transform.apply(points)[:, :2]


def _tube_placements(geometry: ArrayGeometry) -> List[Placement]:
    names = ("vacuumTube", "insulationTube")
    return [p for p in geometry.placements_in(None) if p.name.startswith(names)]


def plot_array_layout(
    geometry: ArrayGeometry,
    save_path: Optional[str] = None,
    show: bool = True,
    dpi: int = config.QUICK_PLOT_DPI,
) -> Optional[plt.Figure]:
    """Plot the array geometry.

    Parameters
    ----------
    geometry : ArrayGeometry
        Built array.
    save_path : str, optional
        Path to save the figure. If None, uses default from config.
    show : bool
        Whether to display the plot interactively.
    dpi : int
        Resolution for saved figure.

    Returns
    -------
    fig : matplotlib.figure.Figure or None
        Figure object if show=False.
    """
    positions = geometry.crystal_positions()
    segments = geometry.placements_in(None)
    segment_placements = [p for p in segments if p.name == "Segment"]
    shield_placements = [p for p in segments if p.name == "ComptSuppTrapPl"]

    fig = plt.figure(figsize=config.ARRAY_FIGSIZE)
    ax_xy = fig.add_subplot(1, 3, 1)
    ax_zr = fig.add_subplot(1, 3, 2)
    ax_3d = fig.add_subplot(1, 3, 3, projection='3d')

    # 1. View along the beam axis
    for placement in segment_placements:
        corners = segment_footprint(placement, geometry.segment_half_extents)
        ax_xy.add_patch(Polygon(corners, closed=True, fill=False, edgecolor='black', linewidth=0.8))
    for placement in shield_placements:
        pts = shield_footprint(placement)
        ax_xy.scatter(pts[:, 0], pts[:, 1], s=0.2, color=config.SHIELD_COLOR, alpha=0.5)
    for placement in _tube_placements(geometry):
        shape = placement.volume.shape
        for radius in (shape.r_min, shape.r_max):
            ax_xy.add_patch(Circle((0.0, 0.0), radius, fill=False, color=config.TUBE_COLOR, linewidth=0.5))
    ax_xy.add_patch(Circle((0.0, 0.0), geometry.inscribed_radius, fill=False, linestyle='--',
                           color='green', label=f'R = {geometry.inscribed_radius:.1f} mm'))
    ax_xy.scatter(positions[:, 0], positions[:, 1], s=12, color=config.CRYSTAL_COLOR, label='Crystal centres')
    ax_xy.set_xlabel('X (mm)')
    ax_xy.set_ylabel('Y (mm)')
    ax_xy.set_title('Beam view')
    ax_xy.set_aspect('equal')
    ax_xy.autoscale_view()
    ax_xy.legend(loc='upper right', fontsize=8)
    ax_xy.grid(True, alpha=0.3)

    # 2. (z, r) half-plane
    radii = np.hypot(positions[:, 0], positions[:, 1])
    ax_zr.scatter(positions[:, 2], radii, s=12, color=config.CRYSTAL_COLOR)
    for placement in _tube_placements(geometry):
        shape = placement.volume.shape
        z = placement.transform.translation[2]
        ax_zr.add_patch(Polygon(
            [[z - shape.half_z, shape.r_min], [z + shape.half_z, shape.r_min],
             [z + shape.half_z, shape.r_max], [z - shape.half_z, shape.r_max]],
            closed=True, color=config.TUBE_COLOR, alpha=0.4,
        ))
    ax_zr.axhline(geometry.inscribed_radius, color='green', linestyle='--', linewidth=1)
    ax_zr.set_xlabel('Z (mm)')
    ax_zr.set_ylabel('R (mm)')
    ax_zr.set_title('Crystal centres (z, r)')
    ax_zr.autoscale_view()
    ax_zr.grid(True, alpha=0.3)

    # 3. 3-D view
    ax_3d.scatter(positions[:, 0], positions[:, 1], positions[:, 2], s=10, color=config.CRYSTAL_COLOR)
    for serial in (1, len(positions)):
        x, y, z = positions[serial - 1]
        ax_3d.text(x, y, z, str(serial), fontsize=7)
    ax_3d.set_xlabel('X (mm)')
    ax_3d.set_ylabel('Y (mm)')
    ax_3d.set_zlabel('Z (mm)')
    ax_3d.set_title(f'{len(positions)} crystals')

    spec = geometry.spec
    fig.suptitle(f"{spec.segments} segments x {spec.crystals_per_row} x {spec.crystals_per_column} "
                 f"{geometry.unit.crystal.material.name} crystals")
    plt.tight_layout()

    if save_path is None:
        save_path = Path(config.FIGURES_OUTPUT_DIR) / config.ARRAY_FIGURE
    else:
        save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(str(save_path), dpi=dpi)
    print(f"[info] Array layout plot saved to {save_path}")

    if show:
        plt.show()
        return None
    return fig
