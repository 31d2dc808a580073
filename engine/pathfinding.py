"""Route planning over the tower graph.

Troops may only pass through towers owned by the dispatching tower's
faction, but may always end on the target, whoever owns it. Routes exclude
the source tower and are planned once at dispatch.
"""

from collections import deque
from typing import Dict, List, Mapping, Optional

from .entities import Tower

def find_path(towers: Mapping[str, Tower], start_id: str, end_id: str) -> Optional[List[str]]:
    """Breadth-first search in neighbor-list order.

    Returns the minimal-hop route (start excluded, end included), an empty
    list when start and end are the same tower, or None when no traversable
    path exists.
    """
    start = towers[start_id]
    queue = deque([start_id])
    came_from: Dict[str, str] = {}
    visited = {start_id}

    while queue:
        current = queue.popleft()
        if current == end_id:
            path: List[str] = []
            node = end_id
            while node != start_id:
                path.append(node)
                node = came_from[node]
            path.reverse()
            return path
        for nxt in towers[current].neighbors:
            if nxt in visited:
                continue
            if nxt == end_id or towers[nxt].owner == start.owner:
                visited.add(nxt)
                came_from[nxt] = current
                queue.append(nxt)
    return None

def resolve_route(towers: Mapping[str, Tower], source_id: str, target_id: str) -> Optional[List[str]]:
    """Direct lane first, search otherwise."""
    if target_id in towers[source_id].neighbors:
        return [target_id]
    return find_path(towers, source_id, target_id)
