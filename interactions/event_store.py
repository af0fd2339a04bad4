import sqlite3
import json
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Dict, Any
from contextlib import contextmanager

from .action import Action
from .conservation import check_energy_momentum
from .constants import DB_PATH, REALLY_SMALL
from .kinematics import FourVector


def _particle_columns(particles) -> Dict[str, str]:
    moms = [p.momentum for p in particles]
    return {
        "names": json.dumps([p.type.name for p in particles]),
        "pdgs": json.dumps([p.type.pdg for p in particles]),
        "E": json.dumps([fv.E for fv in moms]),
        "px": json.dumps([fv.px for fv in moms]),
        "py": json.dumps([fv.py for fv in moms]),
        "pz": json.dumps([fv.pz for fv in moms]),
    }


def _rebuild(names, E, px, py, pz):
    return [
        (name, FourVector(e, x, y, z))
        for name, e, x, y, z in zip(json.loads(names), json.loads(E), json.loads(px), json.loads(py), json.loads(pz))
    ]


class ActionDB:
    """
    Stores performed actions in an sqlite database.
    Each row holds the process id and type, the incoming and outgoing
    particles with their 4-vectors, and the result of the conservation check.
    """

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = db_path
        self.create_table()

    @contextmanager
    def get_connection(self):
        """Context manager for safe DB access."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def create_table(self):
        """Create the 'actions' table with conservation tracking."""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS actions (
                    row_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_number INTEGER,
                    id_process INTEGER,
                    process_type TEXT,
                    time REAL,
                    sqrt_s REAL,
                    total_weight REAL,
                    in_names TEXT, in_pdgs TEXT,
                    in_E TEXT, in_px TEXT, in_py TEXT, in_pz TEXT,
                    out_names TEXT, out_pdgs TEXT,
                    out_E TEXT, out_px TEXT, out_py TEXT, out_pz TEXT,
                    energy_conserved INTEGER,
                    momentum_conserved INTEGER,
                    timestamp TEXT
                )
            """)

    def store_action(self, action: Action, id_process: int, event_number: int = 0,
                     tolerance: float = REALLY_SMALL) -> int:
        """
        Store one performed action and return its row id.

        Args:
            action: Action with populated outgoing particles
            id_process: Process id the action was committed under
            event_number: Event the action belongs to
            tolerance: Threshold for the conservation flags
        """
        incoming = _particle_columns(action.incoming)
        outgoing = _particle_columns(action.outgoing)
        diag = check_energy_momentum(
            [p.momentum for p in action.incoming], [p.momentum for p in action.outgoing], tolerance
        )
        energy_conserved = abs(diag["deltaE"]) <= tolerance
        momentum_conserved = all(abs(diag[k]) <= tolerance for k in ("deltaPx", "deltaPy", "deltaPz"))

        with self.get_connection() as conn:
            cur = conn.execute("""
                INSERT INTO actions (
                    event_number, id_process, process_type, time, sqrt_s, total_weight,
                    in_names, in_pdgs, in_E, in_px, in_py, in_pz,
                    out_names, out_pdgs, out_E, out_px, out_py, out_pz,
                    energy_conserved, momentum_conserved, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                event_number, id_process, action.process_type.name, action.time_of_execution,
                action.sqrt_s(), action.total_weight,
                incoming["names"], incoming["pdgs"], incoming["E"], incoming["px"], incoming["py"], incoming["pz"],
                outgoing["names"], outgoing["pdgs"], outgoing["E"], outgoing["px"], outgoing["py"], outgoing["pz"],
                int(energy_conserved), int(momentum_conserved),
                datetime.now().isoformat(timespec="seconds")
            ))
            return cur.lastrowid

    def parse_action(self, row_id: int) -> Optional[Dict[str, Any]]:
        """
        Reconstruct a stored action with FourVector objects.
        Returns None if row_id not found.
        """
        with self.get_connection() as conn:
            conn.row_factory = sqlite3.Row
            cur = conn.cursor()
            cur.execute("SELECT * FROM actions WHERE row_id = ?", (row_id,))
            row = cur.fetchone()

        if not row:
            return None

        return {
            "row_id": row["row_id"],
            "event_number": row["event_number"],
            "id_process": row["id_process"],
            "process_type": row["process_type"],
            "time": row["time"],
            "sqrt_s": row["sqrt_s"],
            "total_weight": row["total_weight"],
            "incoming": _rebuild(row["in_names"], row["in_E"], row["in_px"], row["in_py"], row["in_pz"]),
            "outgoing": _rebuild(row["out_names"], row["out_E"], row["out_px"], row["out_py"], row["out_pz"]),
            "energy_conserved": bool(row["energy_conserved"]),
            "momentum_conserved": bool(row["momentum_conserved"]),
            "timestamp": row["timestamp"]
        }

    def list_actions(
        self,
        limit: int = 10,
        process_type: Optional[str] = None,
        conserved_only: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Return recent actions, optionally filtered.

        Args:
            limit: Max number of rows to return
            process_type: Filter by type name (e.g., "DECAY")
            conserved_only: Only return actions with perfect conservation
        """
        with self.get_connection() as conn:
            conn.row_factory = sqlite3.Row
            cur = conn.cursor()

            query = "SELECT * FROM actions WHERE 1=1"
            params = []

            if process_type:
                query += " AND process_type = ?"
                params.append(process_type)

            if conserved_only:
                query += " AND energy_conserved = 1 AND momentum_conserved = 1"

            query += " ORDER BY row_id DESC LIMIT ?"
            params.append(limit)

            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]

    def stats(self) -> Dict[str, Any]:
        """Get summary statistics."""
        with self.get_connection() as conn:
            cur = conn.cursor()

            cur.execute("SELECT COUNT(*) FROM actions")
            total = cur.fetchone()[0]

            cur.execute("SELECT COUNT(*) FROM actions WHERE energy_conserved = 1 AND momentum_conserved = 1")
            both_conserved = cur.fetchone()[0]

            cur.execute("SELECT process_type, COUNT(*) FROM actions GROUP BY process_type ORDER BY COUNT(*) DESC")
            by_type = dict(cur.fetchall())

            cur.execute("SELECT AVG(sqrt_s) FROM actions")
            avg_sqrt_s = cur.fetchone()[0] or 0.0

        return {
            "total_actions": total,
            "both_conserved": both_conserved,
            "by_process_type": by_type,
            "average_sqrt_s": avg_sqrt_s,
            "conservation_rate": both_conserved / total if total > 0 else 0.0
        }

    def clear_actions(self):
        """Delete all stored actions (use with caution!)."""
        with self.get_connection() as conn:
            conn.execute("DELETE FROM actions")
