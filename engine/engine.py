import heapq
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from loguru import logger

from .bot import Bot
from .entities import Tower, Troop
from .geometry import curve_control_point, lane_key
from .model import (
    ENEMY, NEUTRAL, PLAYER, SPAWN_JITTER, SPAWN_STAGGER_MS, Event, FactionId,
    Lane, LevelDescriptor, Order, Position, Snapshot, State,
)
from .pathfinding import resolve_route
from .rng import DRNG

@dataclass
class PendingSpawn:
    """A troop committed by a dispatch but not yet on the map."""
    due_ms: int
    owner: FactionId
    origin_id: str
    pos: Position
    route: List[str]

class Engine:
    """Pure, deterministic simulation engine."""

    def __init__(self, seed: int, level: Optional[LevelDescriptor] = None,
                 human_faction: FactionId = PLAYER, bot_factions: Sequence[FactionId] = (ENEMY,)):
        self.state = State()
        self._rng = DRNG(seed)
        self.human_faction = human_faction
        self.bot_factions = tuple(bot_factions)
        self.spawn_stagger_ms = SPAWN_STAGGER_MS
        self.spawn_jitter = SPAWN_JITTER
        self.bots: List[Bot] = []
        self.paused = False
        self.victory = False
        self.defeat = False
        self._pending_orders: List[Order] = []
        self._spawn_queue: List[Tuple[int, int, PendingSpawn]] = []
        self._spawn_seq = 0
        self._troop_seq = 0
        self._rival_factions: Set[FactionId] = set()
        self._outbox: List[Event] = []
        if level is not None:
            self.load_level(level)

    def load_level(self, level: LevelDescriptor) -> None:
        """Replace the whole world with a fresh round built from level."""
        towers: Dict[str, Tower] = {}
        ids: List[str] = []
        for i, spec in enumerate(level.towers):
            tid = f"tower-{i}"
            towers[tid] = Tower(id=tid, pos=(float(spec.x), float(spec.y)), owner=spec.owner,
                                unit_count=float(spec.units), is_master=spec.is_master)
            ids.append(tid)

        for i1, i2 in level.connections:
            if not (0 <= i1 < len(ids) and 0 <= i2 < len(ids)) or i1 == i2:
                continue
            t1, t2 = towers[ids[i1]], towers[ids[i2]]
            if t2.id not in t1.neighbors:
                t1.neighbors.append(t2.id)
            if t1.id not in t2.neighbors:
                t2.neighbors.append(t1.id)

        self.state = State(ts_ms=0, round=level.round, towers=towers)
        self.paused = False
        self.victory = False
        self.defeat = False
        self._pending_orders.clear()
        self._spawn_queue.clear()
        self._outbox.clear()
        self._troop_seq = 0
        self._rival_factions = {t.owner for t in towers.values()
                                if t.is_master and t.owner not in (NEUTRAL, self.human_faction)}
        self.bots = [Bot(f, self._rng) for f in self.bot_factions]

        logger.debug(f"Loaded round {level.round}: {len(towers)} towers, {len(level.connections)} lanes")
        self._outbox.append(Event("LevelLoaded", 0, {"round": level.round, "towers": len(towers)}))

    def tower(self, tower_id: str) -> Tower:
        return self.state.towers[tower_id]

    def towers_owned_by(self, faction: FactionId) -> List[Tower]:
        return [t for t in self.state.towers.values() if t.owner == faction]

    @property
    def round_over(self) -> bool:
        return self.state.round_over

    @property
    def pending_spawns(self) -> int:
        return len(self._spawn_queue)

    def lanes(self) -> List[Lane]:
        """Every lane once, with the curve troops on it follow."""
        seen: Set[str] = set()
        out: List[Lane] = []
        for t in self.state.towers.values():
            for nid in t.neighbors:
                key = lane_key(t.id, nid)
                if key in seen:
                    continue
                seen.add(key)
                a, b = sorted((t, self.state.towers[nid]), key=lambda x: x.id)
                out.append(Lane(a.id, b.id, a.pos, curve_control_point(a.pos, b.pos, a.id, b.id), b.pos))
        return out

    def snapshot(self) -> Snapshot:
        """Read-only copy of the world for rendering."""
        return Snapshot(
            ts_ms=self.state.ts_ms,
            round=self.state.round,
            paused=self.paused,
            victory=self.victory,
            defeat=self.defeat,
            towers=tuple(t.view() for t in self.state.towers.values()),
            troops=tuple(tr.view() for tr in self.state.troops),
            pending_spawns=len(self._spawn_queue),
        )

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def apply_orders(self, orders: Iterable[Order]) -> None:
        """Queue orders to be applied on next step."""
        self._pending_orders.extend(orders)

    def dispatch(self, source_id: str, target_id: str) -> int:
        """Send half the source garrison toward target. Returns the number of troops committed."""
        towers = self.state.towers
        if source_id == target_id or source_id not in towers or target_id not in towers:
            return 0

        route = resolve_route(towers, source_id, target_id)
        if not route:
            return 0

        source = towers[source_id]
        count = math.floor(source.unit_count / 2)
        if count <= 0:
            return 0

        source.unit_count -= count
        now = self.state.ts_ms
        for i in range(count):
            offset = (self._rng.random() - 0.5) * self.spawn_jitter
            spawn = PendingSpawn(due_ms=now + i * self.spawn_stagger_ms, owner=source.owner,
                                 origin_id=source_id,
                                 pos=(source.pos[0] + offset, source.pos[1] + offset),
                                 route=list(route))
            heapq.heappush(self._spawn_queue, (spawn.due_ms, self._spawn_seq, spawn))
            self._spawn_seq += 1

        self._outbox.append(Event("Dispatched", now, {"source": source_id, "target": target_id,
                                                      "owner": source.owner, "count": count,
                                                      "route": list(route)}))
        return count

    def _apply_orders_now(self) -> List[Event]:
        """Process queued orders and return events."""
        evts: List[Event] = []
        for o in self._pending_orders:
            for sid in o.source_ids:
                src = self.state.towers.get(sid)
                reason = None
                if src is None or o.target_id not in self.state.towers:
                    reason = "unknown tower"
                elif src.owner != o.faction:
                    reason = "source not owned"
                elif sid == o.target_id:
                    reason = "source is target"
                if reason:
                    logger.warning(f"Order {sid} -> {o.target_id} rejected: {reason}")
                    evts.append(Event("OrderRejected", self.state.ts_ms,
                                      {"source": sid, "target": o.target_id, "reason": reason}))
                    continue
                self.dispatch(sid, o.target_id)
        self._pending_orders.clear()
        return evts

    def _spawn_due(self) -> List[Event]:
        """Put every queued troop whose time has come onto the map."""
        evts: List[Event] = []
        while self._spawn_queue and self._spawn_queue[0][0] <= self.state.ts_ms:
            _, _, sp = heapq.heappop(self._spawn_queue)
            waypoints = [(tid, self.state.towers[tid].pos) for tid in sp.route]
            troop = Troop(id=f"troop-{self._troop_seq}", owner=sp.owner, pos=sp.pos,
                          origin_id=sp.origin_id, waypoints=waypoints)
            self._troop_seq += 1
            self.state.troops.append(troop)
            evts.append(Event("TroopSpawned", self.state.ts_ms,
                              {"troop_id": troop.id, "owner": troop.owner, "target": troop.target_id}))
        return evts

    def _update_towers(self, dt_ms: int) -> List[Event]:
        evts: List[Event] = []
        for t in self.state.towers.values():
            transition = t.update(dt_ms)
            if transition:
                evts.append(Event(transition, self.state.ts_ms, {"tower_id": t.id, "owner": t.owner}))
        return evts

    def _resolve_arrival(self, troop: Troop) -> List[Event]:
        """Reinforce or attack the troop's final destination."""
        target = self.state.towers.get(troop.target_id) if troop.target_id else None
        # Animating towers neither gain nor lose units; the troop is simply lost
        if target is None or target.animating:
            return []

        if target.owner == troop.owner:
            target.unit_count += 1
            return []

        target.unit_count -= 1
        if target.unit_count < 0:
            target.unit_count = abs(target.unit_count)
            previous = target.owner
            kind = target.begin_capture(troop.owner)
            return [Event(kind, self.state.ts_ms, {"tower_id": target.id, "from": previous,
                                                   "to": troop.owner, "units": target.unit_count})]
        return []

    def _move_troops(self, dt_ms: int) -> List[Event]:
        evts: List[Event] = []
        remaining: List[Troop] = []
        for troop in self.state.troops:
            troop.update(dt_ms)
            if troop.arrived:
                evts += self._resolve_arrival(troop)
            else:
                remaining.append(troop)
        self.state.troops = remaining
        return evts

    def _check_outcome(self) -> List[Event]:
        """Victory/defeat, evaluated only over a world with no master mid-capture."""
        if self.victory or self.defeat:
            return []
        masters = [t for t in self.state.towers.values() if t.is_master]
        if any(t.animating for t in masters):
            return []

        human_alive = any(t.owner == self.human_faction for t in masters)
        rivals_alive = any(t.owner in self._rival_factions for t in masters)
        if not human_alive:
            self.defeat = True
            kind = "Defeat"
        elif not rivals_alive:
            self.victory = True
            kind = "Victory"
        else:
            return []

        self.state.round_over = True
        logger.info(f"Round {self.state.round} finished: {kind}")
        return [Event(kind, self.state.ts_ms, {"round": self.state.round})]

    def _drain_outbox(self) -> List[Event]:
        evts, self._outbox = self._outbox, []
        return evts

    def step(self, dt_ms: int) -> List[Event]:
        """Advance simulation by dt_ms milliseconds."""
        if self.paused or self.state.round_over:
            return self._drain_outbox()
        evts: List[Event] = self._drain_outbox()
        evts += self._apply_orders_now()
        evts += self._spawn_due()
        for bot in self.bots:
            bot.update(dt_ms, self)
        evts += self._update_towers(dt_ms)
        evts += self._move_troops(dt_ms)
        evts += self._check_outcome()
        evts += self._drain_outbox()
        self.state.ts_ms += dt_ms
        return evts
