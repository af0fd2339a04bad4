import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .constants import DATA_DIR, INVALID_PDG, REALLY_SMALL

PARTICLES_CSV = DATA_DIR / "particles.csv"


def _normalize(key: str) -> str:
    # Decay tables use the Unicode minus sign, humans type "-"
    return key.strip().replace("−", "-").lower()


@dataclass(frozen=True)
class ParticleType:
    """
    One particle species: pole mass, width and the lightest mass it can
    be produced with. A species with (numerically) zero width is stable.
    """

    name: str
    pdg: int
    mass: float
    width: float = 0.0
    minimum_mass: Optional[float] = None
    symbol: str = ""
    charge: int = 0

    def __post_init__(self):
        if self.mass < 0.0:
            raise ValueError(f"Negative mass for {self.name}: {self.mass}")
        if self.width < 0.0:
            raise ValueError(f"Negative width for {self.name}: {self.width}")
        if self.minimum_mass is None:
            object.__setattr__(self, "minimum_mass", self.mass)

    @classmethod
    def invalid(cls) -> "ParticleType":
        """Placeholder species for "no interaction" branches."""
        return cls(name="invalid", pdg=INVALID_PDG, mass=0.0)

    @property
    def is_stable(self) -> bool:
        return self.width < REALLY_SMALL

    @property
    def is_invalid(self) -> bool:
        return self.pdg == INVALID_PDG

    def __repr__(self):
        return f"ParticleType({self.name}, pdg={self.pdg}, m={self.mass:.3f} GeV, Γ={self.width:.4f} GeV)"


class SpeciesRegistry:
    """
    Species lookup by name, symbol or PDG code.

    Rows come from a ``particles`` table (sqlite3 or psycopg2 connection)
    or from the shipped CSV; both use the same column names.
    """

    def __init__(self, types: Iterable[ParticleType] = ()):
        self._by_pdg: Dict[int, ParticleType] = {}
        self._by_key: Dict[str, ParticleType] = {}  # name and symbol
        for t in types:
            self.register(t)

    # -------------------- Construction --------------------

    @classmethod
    def from_connection(cls, conn) -> "SpeciesRegistry":
        """Load every row of the ``particles`` table from a DB-API connection."""
        cur = conn.cursor()
        try:
            cur.execute("SELECT * FROM particles")
            columns = [d[0] for d in cur.description]
            rows = [dict(zip(columns, row)) for row in cur.fetchall()]
        finally:
            cur.close()
        return cls(cls._row_to_type(r) for r in rows)

    @classmethod
    def from_csv(cls, path: Union[str, Path] = PARTICLES_CSV) -> "SpeciesRegistry":
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        return cls(cls._row_to_type(r) for r in rows)

    @staticmethod
    def _row_to_type(row: dict) -> ParticleType:
        def _float(key, default=0.0):
            value = row.get(key)
            if value is None or str(value).strip() == "":
                return default
            return float(value)

        return ParticleType(
            name=str(row["Name"]).strip(),
            pdg=int(row["PDG ID"]),
            mass=_float("Mass (GeV)"),
            width=_float("Width (GeV)"),
            minimum_mass=_float("Minimum mass (GeV)", None),
            symbol=str(row.get("Symbol") or "").strip(),
            charge=int(_float("Charge (e)")),
        )

    # -------------------- Lookup --------------------

    def register(self, particle_type: ParticleType):
        if particle_type.pdg in self._by_pdg:
            raise ValueError(f"Duplicate PDG code {particle_type.pdg} ({particle_type.name})")
        self._by_pdg[particle_type.pdg] = particle_type
        self._by_key[_normalize(particle_type.name)] = particle_type
        if particle_type.symbol:
            self._by_key[_normalize(particle_type.symbol)] = particle_type

    def lookup(self, name_or_symbol: str) -> ParticleType:
        try:
            return self._by_key[_normalize(name_or_symbol)]
        except KeyError:
            raise KeyError(f"Particle '{name_or_symbol}' not found in species registry") from None

    def by_pdg(self, pdg: int) -> ParticleType:
        try:
            return self._by_pdg[pdg]
        except KeyError:
            raise KeyError(f"No species with PDG code {pdg}") from None

    def __getitem__(self, key: Union[str, int]) -> ParticleType:
        if isinstance(key, int):
            return self.by_pdg(key)
        return self.lookup(key)

    def __contains__(self, key) -> bool:
        if isinstance(key, int):
            return key in self._by_pdg
        return _normalize(key) in self._by_key

    def __len__(self):
        return len(self._by_pdg)

    def __iter__(self):
        return iter(self._by_pdg.values())

    def unstable(self) -> List[ParticleType]:
        return [t for t in self if not t.is_stable]
