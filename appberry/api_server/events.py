from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Set

from starlette.websockets import WebSocket


class EventHub:
    """Broadcasts desktop events to connected WebSocket clients."""

    def __init__(self) -> None:
        self._clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def add(self, ws: WebSocket) -> None:
        async with self._lock:
            self._clients.add(ws)

    async def remove(self, ws: WebSocket) -> None:
        async with self._lock:
            self._clients.discard(ws)

    async def emit(self, event: str, data: Dict[str, Any]) -> None:
        payload = json.dumps({"event": event, "data": data})
        async with self._lock:
            targets = list(self._clients)
        if not targets:
            return
        # send outside the lock; a client that fails once is dropped
        results = await asyncio.gather(*(c.send_text(payload) for c in targets), return_exceptions=True)
        dead = [ws for ws, res in zip(targets, results) if isinstance(res, Exception)]
        if dead:
            async with self._lock:
                for ws in dead:
                    self._clients.discard(ws)
