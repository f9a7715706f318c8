#!/usr/bin/env python
"""
Plot the array layout and print the construction report.

Usage:
    python plot_array.py
    python plot_array.py --segments 6 --shield
"""

import argparse

from scint_array import ArraySpec, build_array, config, plot_array_layout, print_construction_report


def main():
    parser = argparse.ArgumentParser(description="Plot the scintillator array layout")
    parser.add_argument("--segments", type=int, default=config.NB_SEGMENTS)
    parser.add_argument("--rows", type=int, default=config.NB_CRYST_IN_SEGMENT_ROW)
    parser.add_argument("--shield", action="store_true")
    parser.add_argument("--save", default=None, help="Output image path")
    parser.add_argument("--no-show", action="store_true")
    args = parser.parse_args()

    spec = ArraySpec.from_config(
        segments=args.segments,
        crystals_per_row=args.rows,
        shield_mode="BGO" if args.shield else config.COMPTON_SUPPRESSION,
    )
    geometry = build_array(spec, verbose=True)
    print_construction_report(geometry)
    plot_array_layout(geometry, save_path=args.save, show=not args.no_show)


if __name__ == "__main__":
    main()
