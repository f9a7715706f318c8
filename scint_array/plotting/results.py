"""
Construction report, run statistics and spectrum plots.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np
import matplotlib.pyplot as plt

from .. import config
from ..core.data_classes import ArrayGeometry
from ..core.hits import EventHitProcessor, aggregate_channel, raw_aggregate_channel
from ..core.sink import AnalysisSink

BANNER = "$" * 64
PREFIX = "$$$$"


def _vector(point) -> str:
    return "(" + ",".join(f"{float(c):g}" for c in point) + ")"


def format_construction_report(geometry: ArrayGeometry) -> str:
    """Human-readable summary of the built array.

    Lists materials, dimensions, counts, the inscribed radius, the optional
    structures and finally the world position of every crystal centre.
    """
    spec = geometry.spec
    unit = geometry.unit
    cx, cy, cz = unit.crystal_half
    hx, hy, hz = unit.housing_half
    refl_x, _, refl_window = unit.reflector_walls
    hous_x, _, hous_window = unit.housing_walls

    lines: List[str] = ["", BANNER, PREFIX]
    lines.append(f"{PREFIX} Crystal material: {unit.crystal.material.name}")
    lines.append(f"{PREFIX} Reflector material: {unit.reflector.material.name}")
    lines.append(f"{PREFIX} Housing material: {unit.housing.material.name}")
    lines.append(f"{PREFIX} Optic window material: {unit.window.material.name}")
    lines.append(PREFIX)
    lines.append(f"{PREFIX} Single crystal dimensions: {cx * 2:g}mmx{cy * 2:g}mmx{cz * 2:g}mm ")
    lines.append(f"{PREFIX} Dimensions of the crystal housing: {hx * 2:g}mmx{hy * 2:g}mmx{hz * 2:g}mm ")
    lines.append(f"{PREFIX} Housing wall thickness: {hous_x:g}mm ")
    lines.append(f"{PREFIX} Housing window thickness: {hous_window:g}mm ")
    lines.append(f"{PREFIX} Reflecting material wall thickness: {refl_x:g}mm ")
    lines.append(f"{PREFIX} Reflecting material thickness in front of the window: {refl_window:g}mm ")
    lines.append(PREFIX)
    lines.append(f"{PREFIX} Number of segments in the array: {spec.segments} ")
    lines.append(f"{PREFIX} Number of crystals in the segment row: {spec.crystals_per_row} ")
    lines.append(f"{PREFIX} Number of crystals in the segment column: {spec.crystals_per_column} ")
    lines.append(f"{PREFIX} Number of crystals in the array: {spec.total_crystals} ")
    lines.append(f"{PREFIX} Segment width: {hy * spec.crystals_per_column * 2:g}mm ")
    lines.append(PREFIX)
    lines.append(f"{PREFIX} Radius of a circle inscribed in the array: {geometry.inscribed_radius:g}mm ")
    lines.append(PREFIX)
    if spec.vacuum_chamber or spec.side_flanges:
        flanges = geometry.find_placements("VacuumChamberSideFlangeLog")
        if flanges:
            lines.append(f"{PREFIX} SideFlange material: {flanges[0].volume.material.name}")
        if spec.vacuum_chamber:
            lines.append(f"{PREFIX} Vacuum tube thickness: {spec.vacuum_tube_thickness:g}mm ")
        lines.append(f"{PREFIX} Flange width: {geometry.flange_half_width * 2:g}mm ")
        lines.append(f"{PREFIX} Flange thickness: {spec.flange_half_thickness * 2:g}mm ")
        lines.append(PREFIX)
    if spec.shield_enabled:
        lines.append(f"{PREFIX} Compton suppressor material: {geometry.shield_volume.material.name}")
        lines.append(f"{PREFIX} Compton suppressor elements: {spec.segments} ")
        lines.append(PREFIX)
    if geometry.insulation_radii is not None:
        inner, outer = geometry.insulation_radii
        insulation = geometry.find_placements("insulationTubePhys")[0]
        lines.append(f"{PREFIX} Insulator material: {insulation.volume.material.name}")
        lines.append(f"{PREFIX} Insulator thickness: {spec.insulation_tube_thickness:g}mm ")
        lines.append(f"{PREFIX} Insulator tube outer radius: {outer:g}mm ")
        lines.append(f"{PREFIX} Insulator tube inner radius: {inner:g}mm ")
    lines.append(PREFIX)
    lines.append(BANNER)
    lines.append("")
    lines.append("Positions of the crystal centers in the world:")
    for serial, point in geometry.registry.items():
        lines.append(f"CrystNb{serial}: {_vector(point)}")
    lines.append("")
    return "\n".join(lines)


def print_construction_report(geometry: ArrayGeometry):
    print(format_construction_report(geometry))


def print_run_statistics(processor: EventHitProcessor, n_events: int):
    """Print a statistical summary of a processed run.

    Parameters
    ----------
    processor : EventHitProcessor
        Processor after the event loop.
    n_events : int
        Number of events requested.
    """
    sink = processor.sink
    frame = sink.rows_frame()
    if frame.empty:
        print("\n[Statistics] No crystal hits to display.")
        return

    print("\n" + "=" * 60)
    print("RUN STATISTICS")
    print("=" * 60)
    print(f"Events requested: {n_events}")
    print(f"Events processed: {processor.events_processed}")
    print(f"Crystal hits: {processor.crystal_hits} "
          f"({processor.crystal_hits / max(processor.events_processed, 1):.3f} per event)")
    if processor.shield_enabled:
        print(f"Shield hits: {processor.shield_hits}")
    print()

    multiplicity = frame.groupby("event_id").size()
    print("Crystal multiplicity per event with hits:")
    print(f"  Mean: {multiplicity.mean():.3f}, Max: {multiplicity.max()}")
    print()
    print("Raw energy (keV):")
    print(f"  Mean: {frame['energy_raw'].mean():.3f}, Std: {frame['energy_raw'].std(ddof=0):.3f}")
    print(f"  Range: [{frame['energy_raw'].min():.3f}, {frame['energy_raw'].max():.3f}]")
    print()
    print("Resolution corrected energy (keV):")
    print(f"  Mean: {frame['energy_res'].mean():.3f}, Std: {frame['energy_res'].std(ddof=0):.3f}")
    print(f"  Range: [{frame['energy_res'].min():.3f}, {frame['energy_res'].max():.3f}]")
    print()

    n = processor.total_crystals
    n_groups = len(processor.groups)
    names = ["total"] + [group.name for group in processor.groups]
    print("Aggregate channels (entries smeared / raw):")
    for k, name in enumerate(names):
        smeared = sink.h1(aggregate_channel(n, k))
        raw = sink.h1(raw_aggregate_channel(n, n_groups, k))
        print(f"  {name:<12s} h{aggregate_channel(n, k):<4d}: "
              f"{smeared.entries if smeared else 0} / {raw.entries if raw else 0}")

    hits_per_crystal = frame.groupby("copy_nb").size()
    busiest = hits_per_crystal.idxmax()
    print()
    print(f"Busiest crystal: Nb{busiest} with {hits_per_crystal.max()} hits")
    print("=" * 60)


def plot_spectra(
    sink: AnalysisSink,
    processor: EventHitProcessor,
    save_path: Optional[str] = None,
    show: bool = True,
    dpi: int = config.PLOT_DPI,
) -> Optional[plt.Figure]:
    """Plot the aggregate spectra and the per-crystal hit map.

    Parameters
    ----------
    sink : AnalysisSink
        Filled sink.
    processor : EventHitProcessor
        Processor that filled the sink; gives the channel layout.
    save_path : str, optional
        Base path for saving the figure.
    show : bool
        Whether to display the plot interactively.
    dpi : int
        Resolution for saved figure.
    """
    n = processor.total_crystals
    n_groups = len(processor.groups)
    names = ["total"] + [group.name for group in processor.groups]

    fig, axes = plt.subplots(2, 2, figsize=config.SPECTRA_FIGSIZE)

    # 1. Resolution corrected aggregates (top-left)
    ax1 = axes[0, 0]
    for k, name in enumerate(names):
        hist = sink.h1(aggregate_channel(n, k))
        if hist is not None:
            ax1.step(hist.centers, hist.counts, where='mid', label=name, linewidth=0.8)
    ax1.set_xlabel('Energy (keV)')
    ax1.set_ylabel('Counts')
    ax1.set_title('Resolution Corrected Spectra')
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    # 2. Raw aggregates (top-right)
    ax2 = axes[0, 1]
    for k, name in enumerate(names):
        hist = sink.h1(raw_aggregate_channel(n, n_groups, k))
        if hist is not None:
            ax2.step(hist.centers, hist.counts, where='mid', label=name, linewidth=0.8)
    ax2.set_xlabel('Energy (keV)')
    ax2.set_ylabel('Counts')
    ax2.set_title('Raw Deposited Energy')
    ax2.set_yscale('log')
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    # 3. Entries per crystal (bottom-left)
    ax3 = axes[1, 0]
    entries = np.array([sink.h1(c).entries if sink.h1(c) else 0 for c in range(1, n + 1)])
    ax3.bar(np.arange(1, n + 1), entries, color=config.CRYSTAL_COLOR)
    ax3.set_xlabel('Crystal number')
    ax3.set_ylabel('Entries')
    ax3.set_title('Hits per Crystal')
    ax3.grid(True, alpha=0.3)

    # 4. Shield spectra (bottom-right)
    ax4 = axes[1, 1]
    if sink.shield_histograms:
        total = np.zeros(sink.n_bins)
        for hist in sink.shield_histograms.values():
            total += hist.counts
        centers = next(iter(sink.shield_histograms.values())).centers
        ax4.step(centers, total, where='mid', color=config.SHIELD_COLOR, linewidth=0.8)
        ax4.set_title('Compton Suppressor (sum of elements)')
    else:
        ax4.text(0.5, 0.5, 'No shield data', ha='center', va='center', transform=ax4.transAxes)
        ax4.set_title('Compton Suppressor')
    ax4.set_xlabel('Energy (keV)')
    ax4.set_ylabel('Counts')
    ax4.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path is None:
        save_path = Path(config.FIGURES_OUTPUT_DIR) / f"{config.SPECTRA_FIGURE_BASE}.png"
    else:
        save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(str(save_path), dpi=dpi)
    print(f"[info] Spectra saved to {save_path}")

    if show:
        plt.show()
        return None
    return fig
