import asyncio
from typing import List
from loguru import logger
from engine.engine import Engine
from engine.model import Event, LevelDescriptor, Order, Snapshot
from .eventlog import EventLog

class TickRunner:
    """Async driver that runs the engine on a fixed tick cadence."""

    def __init__(self, engine: Engine, tick_ms: int = 16, time_compression: float = 1.0):
        self.engine = engine
        self.tick_ms = tick_ms
        self.time_compression = time_compression
        self.sleep_s = (tick_ms / 1000.0) / max(1.0, time_compression)
        self._orders: asyncio.Queue[List[Order]] = asyncio.Queue()
        self.events = EventLog()
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        logger.info(f"TickRunner starting round {self.engine.state.round} ({self.tick_ms}ms ticks)")
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Stop the tick loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("TickRunner stopped")

    async def tick(self) -> List[Event]:
        """Apply queued orders and advance the engine by one tick."""
        batched: List[Order] = []
        # Drain all pending orders from the queue
        while not self._orders.empty():
            try:
                batched += self._orders.get_nowait()
            except asyncio.QueueEmpty:
                break

        async with self._lock:
            if batched:
                logger.debug(f"Applying {len(batched)} orders to engine")
                self.engine.apply_orders(batched)
            evts: List[Event] = self.engine.step(self.tick_ms)

        self.events.append_many(evts)
        return evts

    async def _loop(self):
        """Main tick loop - batch orders, step engine, log events."""
        while True:
            await self.tick()
            await asyncio.sleep(self.sleep_s)

    async def enqueue_orders(self, orders: List[Order]):
        """Queue orders to be applied on next tick."""
        logger.debug(f"Enqueuing {len(orders)} orders")
        await self._orders.put(orders)

    async def snapshot(self) -> Snapshot:
        """Get a read-only view of the current world."""
        async with self._lock:
            return self.engine.snapshot()

    async def pause(self):
        async with self._lock:
            self.engine.pause()

    async def resume(self):
        async with self._lock:
            self.engine.resume()

    async def load_level(self, level: LevelDescriptor):
        """Swap in a new round; queued orders for the old one are dropped."""
        async with self._lock:
            while not self._orders.empty():
                self._orders.get_nowait()
            self.engine.load_level(level)
        logger.info(f"Loaded round {level.round}")

    def set_time_compression(self, time_compression: float):
        """Update time compression factor (1.0 = real-time, higher = faster)."""
        self.time_compression = max(0.1, min(1000.0, time_compression))
        self.sleep_s = (self.tick_ms / 1000.0) / max(1.0, self.time_compression)
        logger.info(f"Time compression set to {self.time_compression}x (sleep: {self.sleep_s:.4f}s)")
