"""
Optional live progress feed over WebSocket.

Clients get a welcome message, every message broadcast so far this run,
and then one message per finished URL.
"""

import asyncio
import json
import time
from typing import List, Optional, Set

import websockets

from models import SessionOutcome
from run_logger import unified_logger


def outcome_message(outcome: SessionOutcome) -> dict:
    if outcome.ok:
        return {
            "url": outcome.url,
            "ok": True,
            "events": len(outcome.result.ga_events),
            "passed": outcome.result.passed,
            "total": len(outcome.result.event_results),
        }
    return {"url": outcome.url, "ok": False, "error": outcome.error, "state": outcome.state}


class ProgressBroadcaster:
    def __init__(self, host: str = "localhost", port: int = 9999, logger=unified_logger):
        self.host = host
        self.port = port
        self.logger = logger
        self.connected_clients: Set = set()
        self.message_buffer: List[str] = []
        self._server = None

    @property
    def bound_port(self) -> Optional[int]:
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        self._server = await websockets.serve(self.handle_client, self.host, self.port)
        self.logger.log_info(f"✅ Progress websocket server running on ws://{self.host}:{self.bound_port}")

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    async def handle_client(self, websocket) -> None:
        """Handle new websocket client connections"""
        self.logger.log_debug("🔌 Progress client connected")
        await websocket.send(self._wrap("🎯 Connected to GA tracking checker", source="tracking-checker"))
        backlog = list(self.message_buffer)
        self.connected_clients.add(websocket)

        try:
            for buffered in backlog:
                await websocket.send(buffered)
            async for _ in websocket:
                pass  # Keep connection alive
        except websockets.exceptions.ConnectionClosed:
            self.logger.log_debug("🔌 Progress client disconnected")
        finally:
            self.connected_clients.discard(websocket)

    def _wrap(self, message, source: str = "tracking-checker") -> str:
        return json.dumps({"timestamp": time.time(), "message": message, "source": source}, ensure_ascii=False)

    async def broadcast(self, message) -> None:
        """Broadcast message to all connected clients"""
        ws_message = self._wrap(message)
        self.message_buffer.append(ws_message)
        if not self.connected_clients:
            return
        results = await asyncio.gather(
            *[client.send(ws_message) for client in list(self.connected_clients)],
            return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                self.logger.log_debug(f"Broadcast error: {result}")

    async def publish_outcome(self, outcome: SessionOutcome) -> None:
        await self.broadcast(outcome_message(outcome))
