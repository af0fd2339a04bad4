import math

import pytest

from interactions.action import ScatterAction
from interactions.branches import ProcessBranch, ProcessType
from interactions.event_store import ActionDB
from interactions.executor import perform_action
from interactions.particles import ParticlePool

from conftest import on_shell


@pytest.fixture
def db(tmp_path):
    return ActionDB(tmp_path / "actions.db")


def _performed(light, rng, process_type=ProcessType.TWO_TO_TWO, id_process=1):
    pool = ParticlePool([
        on_shell(light, pz=math.sqrt(0.75)),
        on_shell(light, pz=-math.sqrt(0.75)),
    ])
    action = ScatterAction(*pool, 1.0)
    action.append_branch(ProcessBranch((light, light), 2.0, process_type))
    perform_action(action, pool, id_process, rng)
    return action


def test_store_and_parse(db, light, rng):
    action = _performed(light, rng)
    row_id = db.store_action(action, id_process=1, event_number=7)
    parsed = db.parse_action(row_id)
    assert parsed["event_number"] == 7
    assert parsed["process_type"] == "TWO_TO_TWO"
    assert parsed["sqrt_s"] == pytest.approx(2.0)
    assert parsed["total_weight"] == pytest.approx(2.0)
    assert parsed["energy_conserved"] and parsed["momentum_conserved"]
    names = [name for name, _ in parsed["outgoing"]]
    assert names == ["Light", "Light"]
    fv = parsed["outgoing"][0][1]
    assert fv.E == pytest.approx(action.outgoing[0].momentum.E)
    assert fv.px == pytest.approx(action.outgoing[0].momentum.px)


def test_parse_missing_row(db):
    assert db.parse_action(12345) is None


def test_list_and_stats(db, light, rng):
    db.store_action(_performed(light, rng), id_process=1)
    db.store_action(_performed(light, rng, ProcessType.ELASTIC), id_process=2)
    db.store_action(_performed(light, rng, ProcessType.ELASTIC), id_process=3)

    assert len(db.list_actions()) == 3
    elastic = db.list_actions(process_type="ELASTIC")
    assert [r["id_process"] for r in elastic] == [3, 2]
    assert len(db.list_actions(conserved_only=True)) == 3

    stats = db.stats()
    assert stats["total_actions"] == 3
    assert stats["by_process_type"] == {"ELASTIC": 2, "TWO_TO_TWO": 1}
    assert stats["conservation_rate"] == pytest.approx(1.0)
    assert stats["average_sqrt_s"] == pytest.approx(2.0)


def test_clear(db, light, rng):
    db.store_action(_performed(light, rng), id_process=1)
    db.clear_actions()
    assert db.stats()["total_actions"] == 0
    assert db.stats()["conservation_rate"] == 0.0
