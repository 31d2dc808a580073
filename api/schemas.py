from typing import List, Optional
from pydantic import BaseModel, Field

class OrderIn(BaseModel):
    """Dispatch request schema: every source sends half its garrison to the target."""
    source_ids: List[str] = Field(min_length=1)
    target_id: str
    client_ts_ms: int = Field(default=0)

class StartRequest(BaseModel):
    """Game start request schema."""
    seed: int = 42
    round: Optional[int] = Field(default=None, ge=1)

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: list[dict]

class TowerOut(BaseModel):
    id: str
    pos: List[float]
    radius: float
    owner: int
    units: int
    capacity: float
    is_master: bool
    capture_state: str
    pending_owner: Optional[int] = None
    scale: float
    neighbors: List[str]

class TroopOut(BaseModel):
    id: str
    pos: List[float]
    radius: float
    owner: int
    target_id: Optional[str] = None

class LaneOut(BaseModel):
    a_id: str
    b_id: str
    start: List[float]
    control: List[float]
    end: List[float]

class StateResponse(BaseModel):
    """Game state snapshot for the renderer."""
    ts_ms: int
    round: int
    paused: bool
    victory: bool
    defeat: bool
    pending_spawns: int
    towers: List[TowerOut]
    troops: List[TroopOut]
    lanes: List[LaneOut]
