import sqlite3
import sys
from pathlib import Path

import pandas as pd

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR))

from interactions.constants import DB_PATH, DATA_DIR

conn = sqlite3.connect(DB_PATH)

# Load CSVs
particles_df = pd.read_csv(DATA_DIR / 'particles.csv')
decays_df = pd.read_csv(DATA_DIR / 'decays.csv')

# Clean up decays_df column names
decays_df = decays_df.rename(columns={
    "PDG ID": "pdg_id",
    "Decay mode": "decay_mode",
    "Branching fraction": "branching_fraction"
})
decays_df = decays_df.loc[:, ["pdg_id", "decay_mode", "branching_fraction"]]

# Save clean tables to SQLite
particles_df.to_sql('particles', conn, if_exists='replace', index=False)
decays_df.to_sql('decays', conn, if_exists='replace', index=False)

print(f"Migration complete: {DB_PATH.name} refreshed with {len(particles_df)} species "
      f"and {len(decays_df)} decay modes.")

conn.commit()
conn.close()
