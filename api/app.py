import sys
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from engine.engine import Engine
from engine.levels import Campaign
from engine.model import Order, PLAYER, Snapshot
from runtime.runner import TickRunner
from .config import settings
from .schemas import EventsResponse, OrderIn, StartRequest, StateResponse

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

app = FastAPI(title=settings.app_name)
runner: TickRunner | None = None
campaign = Campaign(start_round=settings.start_round, max_rounds=settings.max_rounds)

# Enable CORS for development (the renderer runs on a different port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _make_runner(seed: int) -> TickRunner:
    """Build an engine for the campaign's current round and wrap it in a runner."""
    level = campaign.level(settings.level_width, settings.level_height)
    eng = Engine(seed=seed, level=level)
    return TickRunner(eng, tick_ms=settings.tick_ms, time_compression=settings.time_compression)

def _require_runner() -> TickRunner:
    if not runner:
        raise HTTPException(400, "Game not started")
    return runner

def _state_to_dict(s: Snapshot, lanes) -> dict:
    return {
        "ts_ms": s.ts_ms,
        "round": s.round,
        "paused": s.paused,
        "victory": s.victory,
        "defeat": s.defeat,
        "pending_spawns": s.pending_spawns,
        "towers": [
            {
                "id": t.id,
                "pos": list(t.pos),  # Convert tuple to list for JSON
                "radius": t.radius,
                "owner": t.owner,
                "units": t.units,
                "capacity": t.capacity,
                "is_master": t.is_master,
                "capture_state": t.capture_state.value,
                "pending_owner": t.pending_owner,
                "scale": t.scale,
                "neighbors": list(t.neighbors),
            } for t in s.towers
        ],
        "troops": [
            {"id": tr.id, "pos": list(tr.pos), "radius": tr.radius,
             "owner": tr.owner, "target_id": tr.target_id}
            for tr in s.troops
        ],
        "lanes": [
            {"a_id": ln.a_id, "b_id": ln.b_id, "start": list(ln.start),
             "control": list(ln.control), "end": list(ln.end)}
            for ln in lanes
        ],
    }

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": settings.app_name,
        "docs": "/docs",
        "version": "1.0"
    }

@app.on_event("startup")
async def startup():
    """Initialize and start the simulation on app startup."""
    global runner
    runner = _make_runner(settings.seed)
    await runner.start()

@app.on_event("shutdown")
async def shutdown():
    """Stop the simulation on app shutdown."""
    global runner
    if runner:
        await runner.stop()

@app.post("/game/start")
async def start_game(req: StartRequest):
    """Start a new game with specified seed, optionally at a given round."""
    await shutdown()
    global runner, campaign
    campaign = Campaign(start_round=req.round or settings.start_round, max_rounds=settings.max_rounds)
    runner = _make_runner(req.seed)
    await runner.start()
    return {"game_id": "local", "round": campaign.round}

@app.post("/game/local/orders")
async def post_orders(orders: list[OrderIn]):
    """Submit dispatch orders for the human faction."""
    r = _require_runner()
    order_objs = [Order(source_ids=o.source_ids, target_id=o.target_id, faction=PLAYER,
                        client_ts_ms=o.client_ts_ms) for o in orders]
    logger.debug(f"Received {len(order_objs)} orders")
    await r.enqueue_orders(order_objs)
    return {"queued": len(orders)}

@app.get("/game/local/state", response_model=StateResponse)
async def get_state():
    """Get current game state snapshot."""
    r = _require_runner()
    s = await r.snapshot()
    return _state_to_dict(s, r.engine.lanes())

@app.get("/game/local/events")
async def get_events(since: int = 0, limit: int = 500):
    """Get events since offset."""
    r = _require_runner()
    evts, next_offset = r.events.since(since, limit)
    return EventsResponse(
        next_offset=next_offset,
        events=[{"kind": e.kind, "ts_ms": e.ts_ms, "data": e.data} for e in evts]
    )

@app.post("/game/local/pause")
async def pause_game():
    """Halt towers, troops, bots and pending spawns."""
    r = _require_runner()
    await r.pause()
    return {"paused": True}

@app.post("/game/local/resume")
async def resume_game():
    r = _require_runner()
    await r.resume()
    return {"paused": False}

@app.post("/game/local/next")
async def next_round():
    """Load the next round after a victory, or replay the current one."""
    r = _require_runner()
    if r.engine.victory:
        campaign.advance()
    else:
        campaign.retry()
    await r.load_level(campaign.level(settings.level_width, settings.level_height))
    return {"round": campaign.round}

@app.post("/game/local/time-control")
async def set_time_control(time_compression: float):
    """Set simulation time compression (1.0 = real-time, higher = faster)."""
    r = _require_runner()
    r.set_time_compression(time_compression)
    return {"time_compression": r.time_compression}

@app.get("/game/local/time-control")
async def get_time_control():
    """Get current time compression setting."""
    r = _require_runner()
    return {"time_compression": r.time_compression}
