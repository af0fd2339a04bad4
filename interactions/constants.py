"""
Shared constants for InteractX.

Units: GeV, fm, fm/c (natural units c = 1).
"""

import os
from pathlib import Path

# Numerical tolerance for conservation checks and "is this zero" tests
REALLY_SMALL = 1e-6

# PDG code of the "no interaction" placeholder species
INVALID_PDG = 0

# Paths
BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / "data"
DB_PATH = Path(os.getenv("INTERACTX_DB", str(BASE_DIR / "interactx.db")))

# Binary collisions output
BINARY_MAGIC = b"SMSH"
BINARY_FORMAT_VERSION = 4
