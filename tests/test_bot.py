"""Test the bot decision policy."""
from engine.bot import BASE_INTERVAL_MS, Bot
from engine.engine import Engine
from engine.levels import get_level
from engine.model import ENEMY, NEUTRAL, PLAYER, LevelDescriptor, TowerSpec
from engine.rng import DRNG


class ScriptedRNG:
    """Stand-in for DRNG with fixed rolls and picks."""

    def __init__(self, rolls, pick=0):
        self.rolls = list(rolls)
        self.pick = pick

    def random(self) -> float:
        return self.rolls.pop(0)

    def choice(self, seq):
        return seq[self.pick % len(seq)]

    def uniform(self, a: float, b: float) -> float:
        return a


def star_level() -> LevelDescriptor:
    """Enemy master in the middle of a mixed neighborhood."""
    return LevelDescriptor(round=1, towers=[
        TowerSpec(0, 0, ENEMY, 30, True),
        TowerSpec(100, 0, PLAYER, 8, True),
        TowerSpec(0, 100, NEUTRAL, 3),
        TowerSpec(-100, 0, ENEMY, 12),
        TowerSpec(0, -100, ENEMY, 6),
    ], connections=[(0, 1), (0, 2), (0, 3), (0, 4)])


def make_engine(level=None) -> Engine:
    return Engine(seed=1, level=level or star_level(), bot_factions=())


def test_attack_roll_targets_weakest_foreign_neighbor():
    eng = make_engine()
    bot = Bot(ENEMY, ScriptedRNG([0.3]))
    assert bot.act(eng) == ("tower-0", "tower-2")
    assert eng.tower("tower-0").unit_count == 15
    assert eng.pending_spawns == 15


def test_reinforce_roll_targets_weakest_own_neighbor():
    eng = make_engine()
    bot = Bot(ENEMY, ScriptedRNG([0.6]))
    assert bot.act(eng) == ("tower-0", "tower-4")


def test_high_roll_picks_random_neighbor():
    eng = make_engine()
    bot = Bot(ENEMY, ScriptedRNG([0.9], pick=0))
    assert bot.act(eng) == ("tower-0", "tower-1")


def test_empty_category_falls_back_to_random():
    level = LevelDescriptor(round=1, towers=[
        TowerSpec(0, 0, ENEMY, 30, True),
        TowerSpec(100, 0, PLAYER, 8, True),
        TowerSpec(0, 100, NEUTRAL, 3),
    ], connections=[(0, 1), (0, 2)])
    eng = make_engine(level)
    bot = Bot(ENEMY, ScriptedRNG([0.6], pick=1))
    assert bot.act(eng) == ("tower-0", "tower-2")


def test_no_capable_tower_does_nothing():
    level = LevelDescriptor(round=1, towers=[
        TowerSpec(0, 0, ENEMY, 10, True),
        TowerSpec(100, 0, PLAYER, 8, True),
    ], connections=[(0, 1)])
    eng = make_engine(level)
    bot = Bot(ENEMY, ScriptedRNG([]))
    assert bot.act(eng) is None
    assert eng.tower("tower-0").unit_count == 10
    assert eng.pending_spawns == 0


def test_source_drawn_from_capable_towers_only():
    eng = make_engine()
    bot = Bot(ENEMY, ScriptedRNG([0.9], pick=1))
    # capable: tower-0 (30) and tower-3 (12); tower-4 (6) is never a source
    assert bot.act(eng) == ("tower-3", "tower-0")


def test_timer_acts_once_then_rerandomizes():
    eng = make_engine()
    bot = Bot(ENEMY, DRNG(7))
    assert bot.update(int(BASE_INTERVAL_MS) - 1, eng) is None
    assert bot.update(1, eng) is not None
    assert bot.timer_ms == 0
    assert 2000.0 <= bot.interval_ms < 4000.0


def test_bots_only_use_direct_lanes():
    eng = Engine(seed=11, level=get_level(5), bot_factions=(PLAYER, ENEMY))
    evts = []
    for _ in range(3000):
        evts.extend(eng.step(16))
        if eng.round_over:
            break
    dispatched = [e for e in evts if e.kind == "Dispatched"]
    assert dispatched
    for e in dispatched:
        assert len(e.data["route"]) == 1
        assert e.data["route"][0] in eng.tower(e.data["source"]).neighbors
