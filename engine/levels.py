import math
from typing import List, Tuple

from .model import ENEMY, NEUTRAL, PLAYER, LevelDescriptor, TowerSpec

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
MAX_ROUNDS = 20
PROCEDURAL_LINK_RANGE = 350.0

def get_level(round: int, width: float = DEFAULT_WIDTH, height: float = DEFAULT_HEIGHT) -> LevelDescriptor:
    """Layout for a campaign round. Rounds 1-5 are hand-made, later rounds are generated."""
    cx = width / 2
    cy = height / 2
    h = height

    towers: List[TowerSpec] = []
    connections: List[Tuple[int, int]] = []

    if round == 1:
        # The Duel
        towers = [
            TowerSpec(cx, h - 150, PLAYER, 30, True),
            TowerSpec(cx, 150, ENEMY, 30, True),
            TowerSpec(cx, h / 2, NEUTRAL, 10),
        ]
        connections = [(0, 2), (2, 1)]
    elif round == 2:
        # The Triangle
        towers = [
            TowerSpec(cx, h - 150, PLAYER, 40, True),
            TowerSpec(cx, 150, ENEMY, 40, True),
            TowerSpec(cx - 200, h / 2, NEUTRAL, 15),
            TowerSpec(cx + 200, h / 2, NEUTRAL, 15),
        ]
        connections = [(0, 2), (0, 3), (2, 1), (3, 1), (2, 3)]
    elif round == 3:
        # The Cross, flanks are worth more
        towers = [
            TowerSpec(cx, h - 100, PLAYER, 50, True),
            TowerSpec(cx, 100, ENEMY, 50, True),
            TowerSpec(cx, cy, NEUTRAL, 20),
            TowerSpec(cx - 250, cy, NEUTRAL, 30),
            TowerSpec(cx + 250, cy, NEUTRAL, 30),
        ]
        connections = [(0, 2), (2, 1), (2, 3), (2, 4), (0, 3), (0, 4), (1, 3), (1, 4)]
    elif round == 4:
        # The Zig Zag
        towers = [
            TowerSpec(cx, h - 100, PLAYER, 60, True),
            TowerSpec(cx, 100, ENEMY, 60, True),
            TowerSpec(cx - 150, h - 250, NEUTRAL, 20),
            TowerSpec(cx + 150, cy, NEUTRAL, 20),
            TowerSpec(cx - 150, 250, NEUTRAL, 20),
        ]
        connections = [(0, 2), (2, 3), (3, 4), (4, 1), (0, 3), (1, 3)]
    elif round == 5:
        # The Circle of Death
        towers = [
            TowerSpec(cx, h - 150, PLAYER, 60, True),
            TowerSpec(cx, 150, ENEMY, 60, True),
        ]
        radius = 250
        for i in range(6):
            ang = (math.pi * 2 / 6) * i
            towers.append(TowerSpec(cx + math.cos(ang) * radius, cy + math.sin(ang) * radius, NEUTRAL, 25))
        connections = [(2, 3), (3, 4), (4, 5), (5, 6), (6, 7), (7, 2),  # ring
                       (0, 3), (0, 4),                                    # player into the bottom of the ring
                       (1, 6), (1, 7),                                    # enemy into the top
                       (2, 5)]                                            # cross cut
    else:
        return generate_procedural(round, width, height)

    return LevelDescriptor(round=round, towers=towers, connections=connections)

def generate_procedural(round: int, width: float = DEFAULT_WIDTH, height: float = DEFAULT_HEIGHT) -> LevelDescriptor:
    """Deterministic ring layout; the same round always yields the same map."""
    cx = width / 2
    cy = height / 2
    towers = [
        TowerSpec(cx, height - 100, PLAYER, 50, True),
        TowerSpec(cx, 100, ENEMY, 30 + round * 5, True),
    ]

    rings = 1 + round // 4
    for r in range(rings):
        radius = 200 + r * 150
        count = 4 + r * 2
        for i in range(count):
            angle = (math.pi * 2 / count) * i
            towers.append(TowerSpec(cx + math.cos(angle) * radius, cy + math.sin(angle) * radius,
                                    NEUTRAL, 10 + round * 2))

    connections = []
    for i in range(len(towers)):
        for j in range(i + 1, len(towers)):
            dx = towers[i].x - towers[j].x
            dy = towers[i].y - towers[j].y
            if math.sqrt(dx * dx + dy * dy) < PROCEDURAL_LINK_RANGE:
                connections.append((i, j))

    return LevelDescriptor(round=round, towers=towers, connections=connections)

class Campaign:
    """Round progression: next level after a win, same level after a loss."""

    def __init__(self, start_round: int = 1, max_rounds: int = MAX_ROUNDS):
        self.round = start_round
        self.max_rounds = max_rounds

    def advance(self) -> int:
        self.round += 1
        if self.round > self.max_rounds:
            self.round = 1
        return self.round

    def retry(self) -> int:
        return self.round

    def level(self, width: float = DEFAULT_WIDTH, height: float = DEFAULT_HEIGHT) -> LevelDescriptor:
        return get_level(self.round, width, height)
