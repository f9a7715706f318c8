#!/usr/bin/env python
"""
Scintillator Array - Main Runner Script

Builds the array, processes synthetic events and exports the results.

Usage:
    python run_simulation.py
    python run_simulation.py -n 10000 --shield
    python run_simulation.py --rows 2 --vacuum-chamber --plot

Output files (Data/, Figures/) will be saved in the current working
directory or in the specified output directory.
"""

from pathlib import Path
import sys

from scint_array.runner import run_full_simulation, main as runner_main

project_dir = Path(__file__).resolve().parent.parent


def main():
    """Script entry point."""
    if len(sys.argv) > 1:
        runner_main()
    else:
        # default run writes next to the project
        run_full_simulation(output_dir=project_dir)


if __name__ == "__main__":
    main()
