import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import numpy as np

from interactions.action import ScatterAction
from interactions.branches import ProcessBranch, ProcessType
from interactions.kinematics import FourVector
from interactions.particles import ParticleData
from interactions.species import ParticleType


def main():
    # Two 0.5 GeV particles colliding head-on at sqrt(s) = 2 GeV
    light = ParticleType("Light", pdg=9001, mass=0.5)
    p = np.sqrt(1.0 - 0.25)
    a = ParticleData(light, id=0, momentum=FourVector(1.0, 0.0, 0.0, p), position=[0.0, 0.0, -1.0])
    b = ParticleData(light, id=1, momentum=FourVector(1.0, 0.0, 0.0, -p), position=[0.0, 0.0, 1.0])

    action = ScatterAction(a, b, time_of_execution=0.0)
    action.append_branch(ProcessBranch((light, light), 1.0, ProcessType.TWO_TO_TWO))

    final_particles = action.generate_final_state(np.random.default_rng(7))
    p1, p2 = final_particles

    print("sqrt(s)       :", action.sqrt_s())
    print("Interaction at:", action.interaction_point())
    print("Particle 1:", p1)
    print("Particle 2:", p2)
    print(f"|p| = {p1.momentum.magnitude:.4f} GeV (expected {p:.4f})")
    print("Conservation:", action.check_conservation(id_process=1))

if __name__ == "__main__":
    main()
