from fastapi import WebSocket
from typing import Dict, List, Set
import json
import logging

from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Per-user realtime channel for notification toasts"""

    def __init__(self):
        # user_id -> open sockets (a user may have several tabs)
        self.active_connections: Dict[int, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: int):
        """Register an accepted WebSocket for a user"""
        self.active_connections.setdefault(user_id, set()).add(websocket)
        logger.info(f"User {user_id} connected. Connections: {len(self.active_connections[user_id])}")

        await self._send(websocket, {
            "type": "connection",
            "message": "Connected to notification service",
            "timestamp": utcnow().isoformat(),
        })

    def disconnect(self, websocket: WebSocket, user_id: int):
        if user_id in self.active_connections:
            self.active_connections[user_id].discard(websocket)
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]
            logger.info(f"User {user_id} disconnected. Remaining: {self.get_connection_count(user_id)}")

    async def _send(self, websocket: WebSocket, message: dict):
        await websocket.send_text(json.dumps(message, default=str))

    async def send_notification_to_user(self, user_id: int, notification: dict) -> int:
        """
        Push a notification to every socket of a user.

        Returns how many sockets received it. Users without an open socket
        still see the stored notification on their next fetch.
        """
        if user_id not in self.active_connections:
            logger.debug(f"User {user_id} not connected, skipping realtime push")
            return 0

        message = {
            "type": "notification",
            "data": notification,
            "broadcast_at": utcnow().isoformat(),
        }

        delivered = 0
        broken = set()
        for websocket in list(self.active_connections[user_id]):
            try:
                await self._send(websocket, message)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending notification to user {user_id}: {e}")
                broken.add(websocket)

        for websocket in broken:
            self.disconnect(websocket, user_id)
        return delivered

    async def broadcast_to_all(self, message: dict):
        """Broadcast a message to all connected users"""
        payload = {
            "type": "broadcast",
            "data": message,
            "broadcast_at": utcnow().isoformat(),
        }

        broken = set()
        for user_id, connections in list(self.active_connections.items()):
            for websocket in list(connections):
                try:
                    await self._send(websocket, payload)
                except Exception as e:
                    logger.error(f"Error broadcasting to user {user_id}: {e}")
                    broken.add((websocket, user_id))

        for websocket, user_id in broken:
            self.disconnect(websocket, user_id)

    def get_connected_users(self) -> List[int]:
        return list(self.active_connections.keys())

    def get_connection_count(self, user_id: int) -> int:
        return len(self.active_connections.get(user_id, set()))

    def get_total_connections(self) -> int:
        return sum(len(connections) for connections in self.active_connections.values())


# Global instance
websocket_manager = WebSocketManager()
