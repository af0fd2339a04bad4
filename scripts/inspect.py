import sqlite3
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from interactions.constants import DB_PATH


def list_species(db_path=DB_PATH):
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute('SELECT "Name", "Symbol", "PDG ID", "Mass (GeV)", "Width (GeV)" FROM particles')
    rows = cursor.fetchall()
    conn.close()

    print("=== Species in Database ===")
    for name, symbol, pdg, mass, width in rows:
        kind = "stable" if not width else f"Γ = {width:.4f} GeV"
        print(f"{name:10s} ({symbol}) | PDG ID: {pdg:6d} | m = {mass:.3f} GeV | {kind}")


def list_decays(pdg_id, db_path=DB_PATH):
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute("SELECT decay_mode, branching_fraction FROM decays WHERE pdg_id=?", (pdg_id,))
    rows = cursor.fetchall()
    conn.close()

    print(f"=== Decays of PDG ID {pdg_id} ===")
    for mode, br in rows:
        print(f"{mode} ({br*100:.2f}%)")

if __name__ == "__main__":
    list_species()
    # Rho0
    list_decays(113)
    # Delta+
    list_decays(2214)
    # Phi
    list_decays(333)
