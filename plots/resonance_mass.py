import sys
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from interactions.resonances import breit_wigner, sample_resonance_mass
from interactions.species import SpeciesRegistry

registry = SpeciesRegistry.from_csv()
rho = registry.lookup("Rho0")
neutron = registry.lookup("Neutron")
sqrt_s = 2.0
n_samples = 50_000

rng = np.random.default_rng(1)
masses = np.array([sample_resonance_mass(rho, neutron.mass, sqrt_s, rng) for _ in range(n_samples)])

# Histogram
m_min, m_max = rho.minimum_mass, sqrt_s - neutron.mass
hist, edges = np.histogram(masses, bins=80, range=(m_min, m_max), density=True)
centres = 0.5 * (edges[:-1] + edges[1:])
plt.plot(centres, hist, drawstyle="steps-mid", alpha=0.7, label="sampled")

# Truncated Breit-Wigner (analytic)
grid = np.linspace(m_min, m_max, 400)
bw = breit_wigner(grid, rho.mass, rho.width)
bw /= np.trapezoid(bw, grid)
plt.plot(grid, bw, label="Breit-Wigner", linestyle="--")

plt.xlabel("ρ0 mass (GeV)")
plt.ylabel("Normalized distribution")
plt.title(f"ρ0 mass in π− p → ρ0 n at √s = {sqrt_s} GeV")
plt.legend()
plt.grid(True, alpha=0.3)
plt.tight_layout()
plt.show()
