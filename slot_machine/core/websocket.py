"""
WebSocket manager for real-time spin playback.
Keeps track of connections and broadcasts effects to all of them.
"""

import asyncio
from typing import Set
from fastapi import WebSocket
import orjson

from slot_machine.core.effects import Effect
from slot_machine.core.logger import get_logger

logger = get_logger("websocket")


class ConnectionManager:
    """Every connected client watches the same machine."""

    def __init__(self):
        self.all_connections: Set[WebSocket] = set()

    async def _send_json(self, websocket: WebSocket, data: dict):
        # orjson.dumps returns bytes, so send_bytes skips a decode/encode round
        await websocket.send_bytes(orjson.dumps(data))

    async def connect(self, websocket: WebSocket, snapshot: dict = None):
        """Accept a new connection and tell it where the machine stands."""
        await websocket.accept()
        self.all_connections.add(websocket)

        logger.info(f"WebSocket connected: total={len(self.all_connections)}")

        if snapshot is not None:
            await self._send_json(websocket, {"type": "state", **snapshot})

    def disconnect(self, websocket: WebSocket):
        self.all_connections.discard(websocket)
        logger.info(f"WebSocket disconnected: total={len(self.all_connections)}")

    async def send(self, websocket: WebSocket, message: dict):
        await self._send_json(websocket, message)

    async def broadcast(self, message: dict, batch_size: int = 100, delay: float = 0.01):
        """
        Broadcast a message to all clients in batches to avoid blocking the
        event loop. Clients that fail to receive are dropped.
        """
        disconnected = []
        connections = list(self.all_connections)

        for i in range(0, len(connections), batch_size):
            batch = connections[i : i + batch_size]
            tasks = [self._send_json(ws, message) for ws in batch]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            for ws, result in zip(batch, results):
                if isinstance(result, Exception):
                    disconnected.append(ws)

            is_last_batch = (i + batch_size) >= len(connections)
            if delay > 0 and not is_last_batch:
                await asyncio.sleep(delay)

        if disconnected:
            logger.info(f"Found {len(disconnected)} disconnected clients during broadcast.")
            for ws in disconnected:
                self.all_connections.discard(ws)

    async def broadcast_effect(self, effect: Effect):
        """Effect sink for the player."""
        await self.broadcast(effect.to_dict())

    def get_connection_count(self) -> int:
        return len(self.all_connections)
