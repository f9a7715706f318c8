"""
Scintillator Array Runner Module

This module provides the main run function that can be called from scripts
or imported directly: build the array, feed synthetic events through the
hit processor, export the results and optionally plot them.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from tqdm import tqdm

from . import config
from .core.data_classes import ArrayGeometry, ArraySpec
from .core.errors import ScintArrayError
from .core.hits import EventHitProcessor, HitCollections, default_selection_groups
from .core.io_utils import (
    export_crystal_positions_to_csv,
    export_histograms_to_csv,
    export_rows_to_csv,
)
from .core.layout import build_array
from .core.sink import AnalysisSink
from .plotting import plot_array_layout, plot_spectra, print_construction_report, print_run_statistics
from .testing.synthetic_events import event_stream


def run_full_simulation(
    spec: Optional[ArraySpec] = None,
    n_events: Optional[int] = None,
    seed: Optional[int] = config.DEFAULT_SEED,
    output_dir: Optional[Path] = None,
    save_results: bool = True,
    generate_plots: bool = False,
    show: bool = False,
    report: bool = True,
) -> Tuple[ArrayGeometry, EventHitProcessor]:
    """Build the array and run synthetic events through the hit pipeline.

    This is the main entry point for running the model. It handles:
    1. Building the geometry (with the overlap check when enabled)
    2. Printing the construction report
    3. Processing the events
    4. Exporting positions, hit rows and histograms
    5. Generating plots

    Parameters
    ----------
    spec : ArraySpec, optional
        Array configuration. If None, uses the config defaults.
    n_events : int, optional
        Number of events. If None, uses config default.
    seed : int, optional
        Seed of the random stream shared by the source and the smearing.
    output_dir : Path, optional
        Directory for output files (Data/, Figures/). If None, uses the
        current working directory.
    save_results : bool
        Whether to save results to CSV files.
    generate_plots : bool
        Whether to generate the layout and spectrum plots.
    show : bool
        Whether to display the plots interactively.
    report : bool
        Whether to print the construction report.

    Returns
    -------
    geometry : ArrayGeometry
    processor : EventHitProcessor
        Processor after the run; its ``sink`` holds the results.
    """
    output_dir = Path.cwd() if output_dir is None else Path(output_dir)
    if n_events is None:
        n_events = config.DEFAULT_N_EVENTS

    geometry = build_array(spec, verbose=True)
    if report:
        print_construction_report(geometry)

    rng = np.random.default_rng(seed)
    sink = AnalysisSink()
    collections = HitCollections.from_geometry(geometry)
    processor = EventHitProcessor(geometry, sink=sink, rng=rng, groups=default_selection_groups(geometry))
    processor.begin_run(collections)

    print(f"[info] Processing {n_events} events...")
    for event_id, hits in tqdm(event_stream(geometry, collections, n_events, rng=rng),
                               total=n_events, desc="Processing Events"):
        processor.process_event(event_id, hits)

    print_run_statistics(processor, n_events)

    if save_results:
        data_dir = output_dir / config.DATA_OUTPUT_DIR
        export_crystal_positions_to_csv(geometry.registry, filename=str(data_dir / config.CRYSTAL_POSITIONS_CSV))
        export_rows_to_csv(sink, filename=str(data_dir / config.HITS_CSV))
        export_histograms_to_csv(sink.histograms, filename=str(data_dir / config.HISTOGRAMS_CSV))
        if geometry.spec.shield_enabled:
            export_histograms_to_csv(sink.shield_histograms,
                                     filename=str(data_dir / config.SHIELD_HISTOGRAMS_CSV))

    if generate_plots:
        print("[info] Generating visualizations...")
        figures_dir = output_dir / config.FIGURES_OUTPUT_DIR
        plot_array_layout(geometry, save_path=str(figures_dir / config.ARRAY_FIGURE), show=show)
        plot_spectra(sink, processor, save_path=str(figures_dir / f"{config.SPECTRA_FIGURE_BASE}.png"),
                     show=show)
        print("[info] Visualization complete!")

    return geometry, processor


def main():
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Build the scintillator array and process synthetic events")
    parser.add_argument("--segments", type=int, default=config.NB_SEGMENTS,
                        help="Number of segments around the beam axis")
    parser.add_argument("--rows", type=int, default=config.NB_CRYST_IN_SEGMENT_ROW,
                        help="Crystals along the beam axis in a segment")
    parser.add_argument("--columns", type=int, default=config.NB_CRYST_IN_SEGMENT_COLUMN,
                        help="Crystals across a segment")
    parser.add_argument("--gap", type=float, default=config.RING_GAP_MM,
                        help="Distance between rings (mm)")
    parser.add_argument("--material", default=config.CRYSTAL_MATERIAL,
                        help="Crystal material (CeBr3 or LaBr3)")
    parser.add_argument("--shield", action="store_true",
                        help="Build the BGO Compton-suppression shield")
    parser.add_argument("--vacuum-chamber", action="store_true",
                        help="Build the vacuum chamber tubes")
    parser.add_argument("--side-flanges", action="store_true",
                        help="Build the vacuum chamber side flanges")
    parser.add_argument("--insulation", action="store_true",
                        help="Build the insulation tube")
    parser.add_argument("--no-overlap-check", action="store_true",
                        help="Skip the overlap check")
    parser.add_argument("-n", "--events", type=int, default=None,
                        help="Number of events to process")
    parser.add_argument("--seed", type=int, default=config.DEFAULT_SEED,
                        help="Random seed")
    parser.add_argument("--no-save", action="store_true",
                        help="Don't save results to CSV")
    parser.add_argument("--plot", action="store_true",
                        help="Generate visualization plots")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Output directory for results and figures")

    args = parser.parse_args()

    try:
        spec = ArraySpec.from_config(
            segments=args.segments,
            crystals_per_row=args.rows,
            crystals_per_column=args.columns,
            gap=args.gap,
            crystal_material=args.material,
            shield_mode="BGO" if args.shield else config.COMPTON_SUPPRESSION,
            vacuum_chamber=args.vacuum_chamber or config.VACUUM_CHAMBER,
            side_flanges=args.side_flanges or config.SIDE_FLANGES,
            insulation_tube=args.insulation or config.INSULATION_TUBE,
            check_overlaps=config.CHECK_OVERLAPS and not args.no_overlap_check,
        )
        run_full_simulation(
            spec=spec,
            n_events=args.events,
            seed=args.seed,
            output_dir=args.output_dir,
            save_results=not args.no_save,
            generate_plots=args.plot,
        )
    except ScintArrayError as exc:
        print(f"[error] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
