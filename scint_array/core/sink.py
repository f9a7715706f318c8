"""
Analysis sink: one-dimensional histograms addressed by integer index and a
row table.

Each worker fills its own sink; sinks are combined afterwards with
``merge``, which does not depend on the order in which events were
processed.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .. import config


class Histogram1D:
    """Fixed-binning histogram with under/overflow counters."""

    def __init__(self, edges):
        edges = np.asarray(edges, dtype=float)
        if edges.ndim != 1 or len(edges) < 2 or np.any(np.diff(edges) <= 0):
            raise ValueError("Histogram edges must be a strictly increasing 1-D array")
        self.edges = edges
        self.counts = np.zeros(len(edges) - 1, dtype=np.int64)
        self.underflow = 0
        self.overflow = 0
        self.sum = 0.0

    @classmethod
    def uniform(cls, n_bins: int, low: float, high: float) -> "Histogram1D":
        return cls(np.linspace(low, high, n_bins + 1))

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])

    @property
    def entries(self) -> int:
        return int(self.counts.sum()) + self.underflow + self.overflow

    @property
    def mean(self) -> float:
        return self.sum / self.entries if self.entries else 0.0

    def fill(self, value: float) -> None:
        self.fill_many([value])

    def fill_many(self, values: Iterable[float]) -> None:
        values = np.asarray(list(values), dtype=float)
        if values.size == 0:
            return
        below = values < self.edges[0]
        above = values >= self.edges[-1]
        self.underflow += int(below.sum())
        self.overflow += int(above.sum())
        inside = values[~below & ~above]
        idx = np.searchsorted(self.edges, inside, side="right") - 1
        np.add.at(self.counts, idx, 1)
        self.sum += float(values.sum())

    def same_binning(self, other: "Histogram1D") -> bool:
        return self.edges.shape == other.edges.shape and bool(np.all(self.edges == other.edges))

    def merge(self, other: "Histogram1D") -> "Histogram1D":
        """Add the contents of ``other`` into this histogram."""
        if not self.same_binning(other):
            raise ValueError("Cannot merge histograms with different binning")
        self.counts += other.counts
        self.underflow += other.underflow
        self.overflow += other.overflow
        self.sum += other.sum
        return self

    def __repr__(self):
        return (f"Histogram1D({len(self.counts)} bins in [{self.edges[0]:g}, {self.edges[-1]:g}), "
                f"entries={self.entries})")


class AnalysisSink:
    """Histograms and rows produced by the hit processor.

    Parameters
    ----------
    n_bins : int
        Bins of every histogram.
    e_max : float
        Upper edge of every histogram (keV); the lower edge is 0.
    """

    def __init__(self, n_bins: int = config.HIST_N_BINS, e_max: float = config.HIST_E_MAX_KEV):
        if n_bins < 1 or not e_max > 0.0:
            raise ValueError(f"Need n_bins >= 1 and e_max > 0, got {n_bins}, {e_max}")
        self.n_bins = int(n_bins)
        self.e_max = float(e_max)
        self.histograms: Dict[int, Histogram1D] = {}
        self.shield_histograms: Dict[int, Histogram1D] = {}
        self.rows: List[dict] = []

    def _new_histogram(self) -> Histogram1D:
        return Histogram1D.uniform(self.n_bins, 0.0, self.e_max)

    def fill_h1(self, index: int, value: float) -> None:
        if index not in self.histograms:
            self.histograms[index] = self._new_histogram()
        self.histograms[index].fill(value)

    def fill_shield_h1(self, index: int, value: float) -> None:
        if index not in self.shield_histograms:
            self.shield_histograms[index] = self._new_histogram()
        self.shield_histograms[index].fill(value)

    def h1(self, index: int) -> Optional[Histogram1D]:
        return self.histograms.get(index)

    def shield_h1(self, index: int) -> Optional[Histogram1D]:
        return self.shield_histograms.get(index)

    def add_row(self, row: dict) -> None:
        self.rows.append(dict(row))

    def merge(self, other: "AnalysisSink") -> "AnalysisSink":
        """Fold another sink (e.g. from a second worker) into this one."""
        if (self.n_bins, self.e_max) != (other.n_bins, other.e_max):
            raise ValueError("Cannot merge sinks with different histogram binning")
        for mine, theirs in ((self.histograms, other.histograms),
                             (self.shield_histograms, other.shield_histograms)):
            for index, hist in theirs.items():
                if index in mine:
                    mine[index].merge(hist)
                else:
                    mine[index] = self._new_histogram().merge(hist)
        self.rows.extend(dict(row) for row in other.rows)
        return self

    def rows_frame(self) -> pd.DataFrame:
        """Row table as a DataFrame, one row per fired crystal."""
        if not self.rows:
            return pd.DataFrame()
        return pd.DataFrame(self.rows, columns=list(self.rows[0].keys()))

    def __repr__(self):
        return (f"AnalysisSink({len(self.histograms)} histograms, "
                f"{len(self.shield_histograms)} shield histograms, {len(self.rows)} rows)")
