import math
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from .geometry import curve_control_point, distance_2d, quadratic_point
from .model import (
    CAPTURE_ANIM_RATE, DECAY_RATE, NEUTRAL, REGEN_INTERVAL_MS, TOWER_CAPACITY,
    TOWER_RADIUS, TROOP_RADIUS, TROOP_SPEED, CaptureState, FactionId, Position,
    TowerView, TroopView,
)

class Entity(Protocol):
    """Shape shared by everything the simulation moves or draws."""
    pos: Position
    radius: float

    def update(self, dt_ms: int) -> Optional[str]: ...

    def view(self): ...

@dataclass
class Tower:
    id: str
    pos: Position
    owner: FactionId
    unit_count: float
    is_master: bool = False
    capacity: float = TOWER_CAPACITY
    radius: float = TOWER_RADIUS
    neighbors: List[str] = field(default_factory=list)  # ids into the engine's tower arena
    capture_state: CaptureState = CaptureState.STABLE
    pending_owner: Optional[FactionId] = None
    scale: float = 1.0
    regen_ms: int = 0

    @property
    def animating(self) -> bool:
        return self.capture_state is not CaptureState.STABLE

    @property
    def display_units(self) -> int:
        return math.floor(self.unit_count)

    def update(self, dt_ms: int) -> Optional[str]:
        """Advance regen/decay or the capture animation.

        Returns the name of the capture transition taken this tick, if any:
        "CaptureFlipped" when the owner changes at the bottom of the collapse,
        "CaptureCompleted" when the tower is stable again.
        """
        dt = dt_ms / 1000.0

        if self.capture_state is CaptureState.COLLAPSING:
            self.scale -= dt * CAPTURE_ANIM_RATE
            if self.scale <= 0:
                self.scale = 0.0
                self.owner = self.pending_owner
                self.capture_state = CaptureState.REBUILDING
                return "CaptureFlipped"
            return None

        if self.capture_state is CaptureState.REBUILDING:
            self.scale += dt * CAPTURE_ANIM_RATE
            if self.scale >= 1:
                self.scale = 1.0
                self.pending_owner = None
                self.capture_state = CaptureState.STABLE
                return "CaptureCompleted"
            return None

        if self.owner != NEUTRAL:
            self.regen_ms += dt_ms
            if self.regen_ms >= REGEN_INTERVAL_MS:
                if self.unit_count < self.capacity:
                    self.unit_count = min(self.capacity, self.unit_count + 1)
                self.regen_ms = 0

        if self.unit_count > self.capacity:
            self.unit_count = max(self.capacity, self.unit_count - DECAY_RATE * dt)
        return None

    def begin_capture(self, new_owner: FactionId) -> str:
        """Hand the tower to new_owner: instantly, or via the collapse animation for masters."""
        if self.is_master:
            self.capture_state = CaptureState.COLLAPSING
            self.pending_owner = new_owner
            return "CaptureStarted"
        self.owner = new_owner
        return "Captured"

    def view(self) -> TowerView:
        return TowerView(
            id=self.id,
            pos=self.pos,
            radius=self.radius,
            owner=self.owner,
            units=self.display_units,
            unit_count=self.unit_count,
            capacity=self.capacity,
            is_master=self.is_master,
            capture_state=self.capture_state,
            pending_owner=self.pending_owner,
            scale=self.scale,
            neighbors=tuple(self.neighbors),
        )

Waypoint = Tuple[str, Position]  # (tower id, tower position)

@dataclass
class Troop:
    """One combat unit walking a route of towers, one curved leg at a time."""
    id: str
    owner: FactionId
    pos: Position
    origin_id: str
    waypoints: List[Waypoint]
    speed: float = TROOP_SPEED
    radius: float = TROOP_RADIUS
    route_idx: int = 0
    arrived: bool = False
    t: float = 0.0
    leg_start: Optional[Position] = None
    leg_control: Optional[Position] = None
    leg_end: Optional[Position] = None

    def __post_init__(self):
        if not self.waypoints:
            # Nothing to walk: no motion, no combat
            self.arrived = True
            return
        self._begin_leg()

    @property
    def route(self) -> List[str]:
        return [tid for tid, _ in self.waypoints]

    @property
    def target_id(self) -> Optional[str]:
        """Final destination, regardless of intermediate hops."""
        if not self.waypoints:
            return None
        return self.waypoints[-1][0]

    def _begin_leg(self) -> None:
        from_id = self.origin_id if self.route_idx == 0 else self.waypoints[self.route_idx - 1][0]
        to_id, end = self.waypoints[self.route_idx]
        self.leg_start = self.pos
        self.leg_end = end
        self.leg_control = curve_control_point(self.pos, end, from_id, to_id)
        self.t = 0.0

    def update(self, dt_ms: int) -> Optional[str]:
        if self.arrived:
            return None

        dist = distance_2d(self.leg_start, self.leg_end)
        if dist < 1e-9:
            self.t = 1.0
        else:
            self.t += self.speed * (dt_ms / 1000.0) / dist

        if self.t < 1.0:
            self.pos = quadratic_point(self.leg_start, self.leg_control, self.leg_end, self.t)
            return None

        self.pos = self.leg_end
        self.route_idx += 1
        if self.route_idx >= len(self.waypoints):
            self.arrived = True
            return "Arrived"
        self._begin_leg()
        return None

    def view(self) -> TroopView:
        return TroopView(id=self.id, pos=self.pos, radius=self.radius,
                         owner=self.owner, target_id=self.target_id)
