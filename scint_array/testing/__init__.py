"""
Testing subpackage for the scintillator array model.

This subpackage provides tools for testing and debugging the array:
- Synthetic deposit maps that stand in for the transport engine
- Validation functions for a built geometry

Example usage:
    from scint_array.testing import event_stream, run_quick_test

    # Check the default geometry
    run_quick_test()
"""

from .synthetic_events import (
    ELECTRON_MASS_KEV,
    compton_edge,
    generate_deposits,
    event_stream,
)

from .validation import (
    validate_registry,
    validate_ring_radius,
    validate_determinism,
    validate_geometry,
    run_quick_test,
)

__all__ = [
    # Synthetic events
    "ELECTRON_MASS_KEV",
    "compton_edge",
    "generate_deposits",
    "event_stream",
    # Validation
    "validate_registry",
    "validate_ring_radius",
    "validate_determinism",
    "validate_geometry",
    "run_quick_test",
]
