import math
from typing import Tuple

from .model import LANE_CURVE_OFFSET, Position

def distance_2d(pos1: Position, pos2: Position) -> float:
    """Calculate Euclidean distance between two 2D positions."""
    dx = pos2[0] - pos1[0]
    dy = pos2[1] - pos1[1]
    return math.sqrt(dx * dx + dy * dy)

def quadratic_point(p0: Position, p1: Position, p2: Position, t: float) -> Position:
    """Point at parameter t on the quadratic Bezier curve p0 -> p2 with control p1."""
    u = 1.0 - t
    x = u * u * p0[0] + 2 * u * t * p1[0] + t * t * p2[0]
    y = u * u * p0[1] + 2 * u * t * p1[1] + t * t * p2[1]
    return (x, y)

def lane_key(a_id: str, b_id: str) -> str:
    """Order-independent key for the lane between two towers."""
    return "-".join(sorted((a_id, b_id)))

def _string_hash32(s: str) -> int:
    h = 0
    for ch in s:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    # back to signed int32
    if h >= 0x80000000:
        h -= 0x100000000
    return h

def lane_direction(a_id: str, b_id: str) -> int:
    """Side (+1 or -1) the lane between two towers bulges to.

    Pure function of the two ids, so a pair of towers always curves the
    same way for rendering and for troops travelling between them.
    """
    return 1 if abs(_string_hash32(lane_key(a_id, b_id))) % 2 == 0 else -1

def curve_control_point(start: Position, end: Position, from_id: str, to_id: str,
                        offset: float = LANE_CURVE_OFFSET) -> Position:
    """Control point for a curved leg from tower from_id to tower to_id.

    The perpendicular is taken in the sorted-id orientation of the pair, so
    travelling B -> A bulges to the same side as A -> B.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    dist = math.sqrt(dx * dx + dy * dy)
    mid: Tuple[float, float] = ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
    if dist < 1e-9:
        return mid

    sign = lane_direction(from_id, to_id)
    if from_id > to_id:
        sign = -sign
    px = -dy / dist
    py = dx / dist
    return (mid[0] + px * offset * sign, mid[1] + py * offset * sign)
