#!/usr/bin/env python3
"""
Monte Carlo driver script for InteractX

Runs seeded two-body scatterings of a projectile/target pair at fixed
sqrt(s), optionally followed by the decays of every resonance produced, and
stores the performed actions in an sqlite database.

Examples:
    python monte_carlo.py --events 1000
    python monte_carlo.py --incoming "Pion+" "Proton" --sqrts 1.8 --seed 42
    python monte_carlo.py --events 100 --decay-resonances --binary collisions.bin --output actions.csv
"""

import argparse
import csv
import logging
import os
import sqlite3
from pathlib import Path

import numpy as np

from db import get_conn
from interactions.action import ScatterAction
from interactions.branches import ProcessBranch, ProcessType
from interactions.constants import DB_PATH
from interactions.decay_modes import load_decay_table, load_decay_table_csv, make_decay_action
from interactions.event_store import ActionDB
from interactions.exceptions import ChannelSelectionError, InvalidResonanceFormation
from interactions.executor import perform_action
from interactions.kinematics import FourVector, pcm
from interactions.output import BinaryCollisionWriter
from interactions.particles import ParticleData, ParticlePool
from interactions.species import SpeciesRegistry

logger = logging.getLogger("monte_carlo")

# Toy channel weights (mb) per incoming pair: (final state, weight, process type).
# Illustrative numbers, not a cross-section parametrisation.
TOY_CHANNELS = {
    ("Pion-", "Proton"): [
        (("Pion-", "Proton"), 10.0, ProcessType.ELASTIC),
        (("Pion0", "Neutron"), 2.0, ProcessType.TWO_TO_TWO),
        (("Rho0", "Neutron"), 3.0, ProcessType.TWO_TO_TWO),
        (("Delta0", "Pion0"), 2.0, ProcessType.TWO_TO_TWO),
        (("Delta-", "Pion+"), 1.0, ProcessType.TWO_TO_TWO),
    ],
    ("Pion+", "Proton"): [
        (("Pion+", "Proton"), 12.0, ProcessType.ELASTIC),
        (("Rho+", "Proton"), 3.0, ProcessType.TWO_TO_TWO),
        (("Delta++", "Pion0"), 2.0, ProcessType.TWO_TO_TWO),
        (("Delta+", "Pion+"), 1.0, ProcessType.TWO_TO_TWO),
    ],
    ("Kaon-", "Proton"): [
        (("Kaon-", "Proton"), 8.0, ProcessType.ELASTIC),
        (("Antikaon0", "Neutron"), 3.0, ProcessType.TWO_TO_TWO),
    ],
}


def _has_species_tables(conn) -> bool:
    cur = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type='table' AND name IN ('particles', 'decays')"
    )
    return cur.fetchone()[0] == 2


def load_tables(args):
    """Species registry and decay table from PostgreSQL, an sqlite DB, or the shipped CSVs."""
    if args.postgres:
        conn = get_conn()
        try:
            return SpeciesRegistry.from_connection(conn), load_decay_table(conn)
        finally:
            conn.close()
    if args.db and Path(args.db).exists():
        conn = sqlite3.connect(args.db)
        try:
            if _has_species_tables(conn):
                return SpeciesRegistry.from_connection(conn), load_decay_table(conn)
        finally:
            conn.close()
    return SpeciesRegistry.from_csv(), load_decay_table_csv()


def make_incoming(registry, names, sqrt_s):
    """Projectile along +z, target along -z, in their CM frame."""
    t_a, t_b = (registry.lookup(n) for n in names)
    if sqrt_s <= t_a.mass + t_b.mass:
        raise ValueError(f"sqrt_s={sqrt_s} GeV is below the {t_a.name} {t_b.name} threshold")
    p = pcm(sqrt_s, t_a.mass, t_b.mass)
    a = ParticleData(t_a, momentum=FourVector(np.hypot(t_a.mass, p), 0.0, 0.0, p),
                     position=[0.0, 0.0, -0.5])
    b = ParticleData(t_b, momentum=FourVector(np.hypot(t_b.mass, p), 0.0, 0.0, -p),
                     position=[0.0, 0.0, 0.5])
    return a, b


def build_scatter(registry, a, b, time):
    key = (a.type.name, b.type.name)
    if key not in TOY_CHANNELS:
        raise KeyError(f"No toy channels for {key[0]} + {key[1]}; known: {sorted(TOY_CHANNELS)}")
    action = ScatterAction(a, b, time)
    action.append_branches(
        ProcessBranch(tuple(registry.lookup(n) for n in names), w, ptype)
        for names, w, ptype in TOY_CHANNELS[key]
    )
    return action


def simulate_event(event_number, registry, decay_table, names, sqrt_s, rng,
                   db=None, writer=None, decay_resonances=False):
    """
    One event: fresh pool, one scattering, then (optionally) the decays of
    all unstable products. Returns the number of performed actions.
    """
    pool = ParticlePool(make_incoming(registry, names, sqrt_s))
    a, b = pool
    queue = [build_scatter(registry, a, b, time=1.0)]
    id_process = 1
    performed = 0
    if writer is not None:
        writer.at_eventstart(pool)

    while queue:
        action = queue.pop(0)
        try:
            diag = perform_action(action, pool, id_process, rng)
        except InvalidResonanceFormation as e:
            logger.info(f"Event {event_number}: action not realized ({e})")
            continue
        except ChannelSelectionError as e:
            logger.error(f"Event {event_number}: dropping candidate ({e})")
            continue
        if diag is None:
            continue
        performed += 1
        if db is not None:
            db.store_action(action, id_process, event_number)
        if writer is not None:
            writer.at_interaction(action)
        if decay_resonances:
            for p in action.outgoing:
                if p.type.is_stable:
                    continue
                decay = make_decay_action(p, registry, decay_table, action.time_of_execution + 1.0)
                if decay is not None:
                    queue.append(decay)
        id_process += 1

    if writer is not None:
        writer.at_eventend(event_number, particles=pool)
    return performed


def simulate_events(names, sqrt_s, n_events, seed=None, db=None, writer=None,
                    decay_resonances=False, registry=None, decay_table=None, verbose=False):
    rng = np.random.default_rng(seed)
    if registry is None:
        registry = SpeciesRegistry.from_csv()
    if decay_table is None:
        decay_table = load_decay_table_csv()

    performed = 0
    failed = 0
    for i in range(n_events):
        n = simulate_event(i, registry, decay_table, names, sqrt_s, rng,
                           db=db, writer=writer, decay_resonances=decay_resonances)
        if n == 0:
            failed += 1
        performed += n

        if verbose and ((n_events > 100 and (i + 1) % 100 == 0) or (n_events <= 100 and (i + 1) % 10 == 0)):
            print(f"[PROGRESS] {i+1}/{n_events} processed ({performed} actions, {failed} empty events)")

    return {
        "events": n_events,
        "actions": performed,
        "empty_events": failed,
        "actions_per_event": performed / n_events if n_events > 0 else 0.0,
    }


def export_actions_to_csv(db, filename, limit=100000):
    """Export stored actions (one row per outgoing particle) to CSV."""
    rows_written = 0
    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["row_id", "event", "id_process", "process_type", "particle", "E", "px", "py", "pz"])
        for row in db.list_actions(limit=limit):
            parsed = db.parse_action(row["row_id"])
            for name, fv in parsed["outgoing"]:
                writer.writerow([parsed["row_id"], parsed["event_number"], parsed["id_process"],
                                 parsed["process_type"], name, fv.E, fv.px, fv.py, fv.pz])
                rows_written += 1
    print(f"📄 Exported {rows_written} outgoing particles to {filename}")


def print_action_stats(db):
    stats = db.stats()
    print("\n📊 Database Statistics")
    print("=" * 60)
    print(f"Total actions stored : {stats['total_actions']}")
    print(f"Average sqrt(s)      : {stats['average_sqrt_s']:.4f} GeV")
    print("\nActions by process type:")
    for ptype, count in stats["by_process_type"].items():
        print(f"  • {ptype:12s}: {count:6d}")
    print(f"\nFour-momentum conserved: {stats['both_conserved']}/{stats['total_actions']} "
          f"({stats['conservation_rate']:.2%})")
    print("=" * 60 + "\n")


def build_parser():
    return argparse.ArgumentParser(
        description="InteractX candidate-interaction Monte Carlo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python monte_carlo.py --events 1000
  python monte_carlo.py --incoming "Pion+" "Proton" --sqrts 1.8 --seed 42
  python monte_carlo.py --decay-resonances --binary collisions.bin --stats"""
    )


def main(argv=None):
    parser = build_parser()
    parser.add_argument("--incoming", nargs=2, default=["Pion-", "Proton"], metavar=("A", "B"),
                        help='Projectile and target names (default "Pion-" "Proton")')
    parser.add_argument("--sqrts", type=float, default=2.0, help="CM energy in GeV (default 2.0)")
    parser.add_argument("--events", type=int, default=10, help="Number of events (default 10)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument("--decay-resonances", action="store_true", help="Decay unstable products")
    parser.add_argument("--db", type=str, default=str(DB_PATH), help="sqlite DB for species and actions")
    parser.add_argument("--postgres", action="store_true", help="Read species/decay tables from PostgreSQL")
    parser.add_argument("--binary", type=str, help="Write binary collisions output to this file")
    parser.add_argument("--only-final", action="store_true",
                        help="Binary output: write the particle list at event end instead of event start")
    parser.add_argument("--output", type=str, help="Export stored actions to CSV file")
    parser.add_argument("--stats", action="store_true", help="Print DB statistics after generation")
    parser.add_argument("--verbose", action="store_true", help="Show progress and debug output")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)-8s %(name)s: %(message)s")

    print("\n" + "=" * 60)
    print("🔥 InteractX Monte Carlo")
    print("=" * 60)
    print(f"Incoming         : {args.incoming[0]} + {args.incoming[1]}")
    print(f"sqrt(s)          : {args.sqrts} GeV")
    print(f"Number of Events : {args.events}")
    print(f"Random Seed      : {args.seed if args.seed is not None else 'None'}")
    if args.binary:
        print(f"Binary Output    : {args.binary}")
    print("=" * 60 + "\n")

    registry, decay_table = load_tables(args)
    db = ActionDB(Path(args.db))
    writer = BinaryCollisionWriter(args.binary, only_final=args.only_final) if args.binary else None
    try:
        results = simulate_events(
            tuple(args.incoming), args.sqrts, args.events, seed=args.seed, db=db, writer=writer,
            decay_resonances=args.decay_resonances, registry=registry, decay_table=decay_table,
            verbose=args.verbose,
        )
    finally:
        if writer is not None:
            writer.close()

    print("\n" + "=" * 60)
    print("✅ Generation Complete")
    print("=" * 60)
    print(f"Events            : {results['events']}")
    print(f"Performed actions : {results['actions']}")
    print(f"Empty events      : {results['empty_events']}")
    print(f"Actions per event : {results['actions_per_event']:.3f}")
    print("=" * 60 + "\n")

    if args.output:
        export_actions_to_csv(db, args.output)

    if args.stats and results["actions"] > 0:
        print_action_stats(db)
    return results


if __name__ == "__main__":
    main()
