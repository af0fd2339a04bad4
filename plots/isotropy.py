import json
import sqlite3
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from interactions.constants import DB_PATH


def load_cos_theta(process_type="TWO_TO_TWO"):
    """cos(theta) of the first outgoing particle of every stored action of one type."""
    conn = sqlite3.connect(DB_PATH)
    df = pd.read_sql(
        "SELECT out_px, out_py, out_pz FROM actions WHERE process_type = ?",
        conn, params=(process_type,)
    )
    conn.close()

    cos_theta = []
    for px, py, pz in zip(df["out_px"], df["out_py"], df["out_pz"]):
        p = np.array([json.loads(px)[0], json.loads(py)[0], json.loads(pz)[0]])
        norm = np.linalg.norm(p)
        if norm > 0:
            cos_theta.append(p[2] / norm)
    return np.array(cos_theta)

def main():
    ptype = sys.argv[1] if len(sys.argv) > 1 else "TWO_TO_TWO"
    c = load_cos_theta(ptype)
    if len(c) == 0:
        print(f"No {ptype} actions in {DB_PATH}, run monte_carlo.py first.")
        return

    plt.figure(figsize=(7, 5))
    plt.hist(c, bins=40, range=(-1, 1), density=True, alpha=0.8, label=f'{ptype} ({len(c)} actions)')
    plt.axhline(0.5, color='r', linestyle='--', label='isotropic')

    plt.xlabel(r'$\cos\theta$ (first outgoing particle)')
    plt.ylabel('Normalized counts')
    plt.title('Emission direction of two-body final states')
    plt.grid(alpha=0.3)
    plt.legend()
    plt.tight_layout()
    plt.show()

if __name__ == "__main__":
    main()
