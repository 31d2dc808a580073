from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
from enum import Enum

if TYPE_CHECKING:
    from .entities import Tower, Troop

FactionId = int
Position = Tuple[float, float]  # (x, y) in screen units

NEUTRAL: FactionId = 0
PLAYER: FactionId = 1
ENEMY: FactionId = 2

# Tower rules
TOWER_RADIUS = 40.0
TOWER_CAPACITY = 50.0
REGEN_INTERVAL_MS = 1000     # +1 unit per full interval while stable and owned
DECAY_RATE = 2.0             # units/s lost while over capacity
CAPTURE_ANIM_RATE = 2.0      # scale/s for both collapse and rebuild

# Troop rules
TROOP_RADIUS = 5.0
TROOP_SPEED = 100.0          # units/s along the straight-line leg length
LANE_CURVE_OFFSET = 40.0
SPAWN_STAGGER_MS = 50
SPAWN_JITTER = 20.0          # full span, troops spawn within +/- half of it

class CaptureState(Enum):
    """Capture animation phase of a tower"""
    STABLE = "stable"
    COLLAPSING = "collapsing"    # scale 1 -> 0, owner still the old one
    REBUILDING = "rebuilding"    # scale 0 -> 1, owner already flipped

@dataclass
class TowerSpec:
    """Initial state of one tower as handed over by the level source"""
    x: float
    y: float
    owner: FactionId
    units: float
    is_master: bool = False

@dataclass
class LevelDescriptor:
    round: int
    towers: List[TowerSpec]
    connections: List[Tuple[int, int]]  # undirected index pairs into towers

@dataclass
class Order:
    source_ids: List[str]
    target_id: str
    faction: FactionId = PLAYER
    client_ts_ms: int = 0

@dataclass
class Event:
    kind: str
    ts_ms: int
    data: Dict

@dataclass(frozen=True)
class TowerView:
    id: str
    pos: Position
    radius: float
    owner: FactionId
    units: int
    unit_count: float
    capacity: float
    is_master: bool
    capture_state: CaptureState
    pending_owner: Optional[FactionId]
    scale: float
    neighbors: Tuple[str, ...]

@dataclass(frozen=True)
class TroopView:
    id: str
    pos: Position
    radius: float
    owner: FactionId
    target_id: Optional[str]

@dataclass(frozen=True)
class Lane:
    """Rendered edge between two towers, ids in sorted order"""
    a_id: str
    b_id: str
    start: Position
    control: Position
    end: Position

@dataclass(frozen=True)
class Snapshot:
    ts_ms: int
    round: int
    paused: bool
    victory: bool
    defeat: bool
    towers: Tuple[TowerView, ...]
    troops: Tuple[TroopView, ...]
    pending_spawns: int

@dataclass
class State:
    ts_ms: int = 0
    round: int = 0
    towers: Dict[str, "Tower"] = field(default_factory=dict)
    troops: List["Troop"] = field(default_factory=list)
    round_over: bool = False
