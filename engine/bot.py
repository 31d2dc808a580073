from typing import TYPE_CHECKING, Optional, Tuple

from .model import FactionId
from .rng import DRNG

if TYPE_CHECKING:
    from .engine import Engine

BASE_INTERVAL_MS = 2000.0
INTERVAL_JITTER_MS = 2000.0
ATTACK_THRESHOLD = 10        # towers need strictly more units than this to act
ATTACK_ROLL = 0.5            # roll < 0.5: hit the weakest foreign neighbor
REINFORCE_ROLL = 0.8         # roll < 0.8: feed the weakest own neighbor

class Bot:
    """Periodic decision-maker for one non-human faction."""

    def __init__(self, faction: FactionId, rng: DRNG):
        self.faction = faction
        self._rng = rng
        self.timer_ms = 0.0
        self.interval_ms = BASE_INTERVAL_MS

    def update(self, dt_ms: int, game: "Engine") -> Optional[Tuple[str, str]]:
        """Advance the timer; act once when it expires. Returns the (source, target) chosen."""
        self.timer_ms += dt_ms
        if self.timer_ms < self.interval_ms:
            return None
        choice = self.act(game)
        self.timer_ms = 0.0
        self.interval_ms = BASE_INTERVAL_MS + self._rng.uniform(0.0, INTERVAL_JITTER_MS)
        return choice

    def act(self, game: "Engine") -> Optional[Tuple[str, str]]:
        capable = [t for t in game.towers_owned_by(self.faction) if t.unit_count > ATTACK_THRESHOLD]
        if not capable:
            return None

        source = self._rng.choice(capable)
        targets = [game.tower(tid) for tid in source.neighbors]
        if not targets:
            return None

        roll = self._rng.random()
        candidates = []
        if roll < ATTACK_ROLL:
            candidates = [t for t in targets if t.owner != self.faction]
        elif roll < REINFORCE_ROLL:
            candidates = [t for t in targets if t.owner == self.faction]

        if candidates:
            target = min(candidates, key=lambda t: t.unit_count)
        else:
            target = self._rng.choice(targets)

        game.dispatch(source.id, target.id)
        return source.id, target.id
