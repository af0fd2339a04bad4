"""
Binary collisions output.

Block structure (little-endian):

    header       4*char magic, uint16 format version, uint16 variant,
                 uint32 len, len*char version string
    'p' block    uint32 npart, then npart particle lines
    'i' block    uint32 nin, uint32 nout, double density,
                 double total weight, uint32 process type,
                 then nin + nout particle lines
    'f' block    int32 event number, double impact parameter

Particle line: 9 doubles ``t x y z mass p0 px py pz`` and 3 int32
``pdg id charge``. The extended variant appends int32 ncoll, double
formation time, double cross-section scaling, uint32 id_process of origin,
uint32 process type of origin, double time of origin and two int32 mother
PDG codes.
"""

import struct
from pathlib import Path
from typing import Iterable, Optional, Union

from . import __version__
from .action import Action
from .constants import BINARY_FORMAT_VERSION, BINARY_MAGIC

_LINE = struct.Struct("<9d3i")
_LINE_EXTENDED = struct.Struct("<9d3ii2dIId2i")


class BinaryCollisionWriter:
    """
    Writes performed actions as they happen. The particle list goes out as a
    'p' block at event start, or only at event end when ``only_final`` is set.
    """

    def __init__(self, path: Union[str, Path], extended: bool = False, only_final: bool = False):
        self.path = Path(path)
        self.extended = extended
        self.only_final = only_final
        self._file = open(self.path, "wb")
        version = f"interactx-{__version__}".encode("utf-8")
        self._file.write(BINARY_MAGIC)
        self._file.write(struct.pack("<HHI", BINARY_FORMAT_VERSION, int(extended), len(version)))
        self._file.write(version)

    # -------------------- Blocks --------------------

    def write_particles(self, particles: Iterable, time: float = 0.0):
        """'p' block with the given particles at time ``time``."""
        particles = list(particles)
        self._file.write(b"p")
        self._file.write(struct.pack("<I", len(particles)))
        for p in particles:
            self._write_line(p, time)

    def at_eventstart(self, particles: Iterable, time: float = 0.0):
        if not self.only_final:
            self.write_particles(particles, time)

    def at_interaction(self, action: Action, density: float = 0.0):
        """'i' block for a performed action."""
        self._file.write(b"i")
        self._file.write(struct.pack(
            "<IIddI", len(action.incoming), len(action.outgoing),
            density, action.total_weight, int(action.process_type),
        ))
        t = action.time_of_execution
        for p in action.incoming:
            self._write_line(p, t)
        for p in action.outgoing:
            self._write_line(p, t, action)

    def at_eventend(self, event_number: int, impact_parameter: float = 0.0,
                    particles: Optional[Iterable] = None, time: float = 0.0):
        if self.only_final and particles is not None:
            self.write_particles(particles, time)
        self._file.write(b"f")
        self._file.write(struct.pack("<id", event_number, impact_parameter))
        self._file.flush()

    def _write_line(self, particle, time: float, origin: Action = None):
        m = particle.momentum
        x, y, z = (float(c) for c in particle.position)
        values = (time, x, y, z, m.mass, m.E, m.px, m.py, m.pz,
                  particle.type.pdg, particle.id, particle.type.charge)
        if not self.extended:
            self._file.write(_LINE.pack(*values))
            return
        origin_type = int(origin.process_type) if origin is not None else 0
        origin_time = origin.time_of_execution if origin is not None else 0.0
        self._file.write(_LINE_EXTENDED.pack(
            *values, 0, time, 1.0, particle.id_process, origin_type, origin_time, 0, 0
        ))

    # -------------------- File handling --------------------

    def close(self):
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
