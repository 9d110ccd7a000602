"""
astrokernel

Time scales and reference-frame rotations for astrodynamics: an attosecond
resolution time representation, leap-second aware UTC, IERS/IAU rotation
chains between inertial and Earth-fixed frames, and immutable state vectors.
"""

__version__ = "1.0.0"
__author__ = "astrokernel contributors"

# Version information
VERSION_INFO = {
    "major": 1,
    "minor": 0,
    "patch": 0,
    "status": "stable"
}
