"""
Data export utilities for the scintillator array.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List

import numpy as np

from .registry import CrystalPositionRegistry
from .sink import AnalysisSink, Histogram1D


def _prepare(filename: str) -> Path:
    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def export_crystal_positions_to_csv(registry: CrystalPositionRegistry, filename: str = "crystal_positions.csv"):
    """Export the world-frame crystal centres.

    Parameters
    ----------
    registry : CrystalPositionRegistry
        Frozen registry of the built array.
    filename : str
        Output CSV filename.
    """
    output_path = _prepare(filename)
    headers = ['crystal_nb', 'x_mm', 'y_mm', 'z_mm', 'r_mm', 'phi_deg']

    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        for serial, (x, y, z) in registry.items():
            r = float(np.hypot(x, y))
            phi = float(np.degrees(np.arctan2(y, x)))
            writer.writerow([serial, f"{x:.6f}", f"{y:.6f}", f"{z:.6f}", f"{r:.6f}", f"{phi:.6f}"])

    print(f"[info] Exported {len(registry)} crystal positions to {output_path}")


def export_rows_to_csv(sink: AnalysisSink, filename: str = "crystal_hits.csv"):
    """Export the row table of the sink."""
    if not sink.rows:
        print("[warning] No crystal hits to export.")
        return

    output_path = _prepare(filename)
    headers = list(sink.rows[0].keys())
    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=headers)
        writer.writeheader()
        for row in sink.rows:
            writer.writerow(row)

    print(f"[info] Exported {len(sink.rows)} hit rows to {output_path}")


def export_histograms_to_csv(histograms: Dict[int, Histogram1D], filename: str = "histograms.csv"):
    """Export histograms in long format: one line per non-empty bin.

    Under- and overflow are written with ``bin`` = -1 and ``n_bins``.
    """
    if not histograms:
        print(f"[warning] No histograms to export to {filename}.")
        return

    output_path = _prepare(filename)
    headers = ['histogram', 'bin', 'low_keV', 'high_keV', 'count']
    n_lines = 0
    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        for index in sorted(histograms):
            hist = histograms[index]
            n_bins = len(hist.counts)
            if hist.underflow:
                writer.writerow([index, -1, '', f"{hist.edges[0]:g}", hist.underflow])
                n_lines += 1
            for b in np.flatnonzero(hist.counts):
                writer.writerow([index, int(b), f"{hist.edges[b]:g}", f"{hist.edges[b + 1]:g}", int(hist.counts[b])])
                n_lines += 1
            if hist.overflow:
                writer.writerow([index, n_bins, f"{hist.edges[-1]:g}", '', hist.overflow])
                n_lines += 1

    print(f"[info] Exported {len(histograms)} histograms ({n_lines} bins) to {output_path}")


def load_crystal_positions_from_csv(filename: str) -> List[np.ndarray]:
    """Read back a file written by ``export_crystal_positions_to_csv``."""
    positions = []
    with open(filename, 'r', encoding='utf-8') as csvfile:
        for row in csv.DictReader(csvfile):
            positions.append(np.array([float(row['x_mm']), float(row['y_mm']), float(row['z_mm'])]))
    return positions
