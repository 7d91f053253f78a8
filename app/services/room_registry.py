"""
Room registry — multiplexes pitch-room WebSockets into isolated broadcast groups.

One ``RoomRegistry`` is built at application start and shared by every
socket handler through ``app.state.rooms``. Rooms are created lazily on the
first join and discarded when their last client leaves; their in-memory
history goes with them.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


@dataclass
class Client:
    user_id: str
    role: str
    socket: Any
    # False until the history frame has been delivered; broadcasts skip it meanwhile.
    ready: bool = False


@dataclass
class Room:
    id: str
    clients: Dict[str, Client] = field(default_factory=dict)
    messages: List[dict] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def _is_open(socket: Any) -> bool:
    """True when both sides of the WebSocket are still connected."""
    return (
        getattr(socket, "client_state", None) == WebSocketState.CONNECTED
        and getattr(socket, "application_state", None) == WebSocketState.CONNECTED
    )


class RoomRegistry:
    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def online_users(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        return list(room.clients) if room else []

    async def join(self, room_id: str, user_id: str, role: str, socket: Any) -> Client:
        """
        Register ``socket`` for ``user_id`` in ``room_id`` and send it the room's history.

        A second socket for the same user replaces the first registration.
        The ``history`` frame is always the first frame the client receives.
        """
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(id=room_id)
            self._rooms[room_id] = room
            logger.debug("Created room %s", room_id)

        client = Client(user_id=user_id, role=role, socket=socket)
        room.clients[user_id] = client
        logger.info("User %s (%s) joined room %s", user_id, role, room_id)

        async with room.lock:
            try:
                await socket.send_json({"type": "history", "messages": list(room.messages)})
            except Exception as e:
                logger.warning("Failed to send history to %s in room %s: %s", user_id, room_id, e)
            client.ready = True
        return client

    def leave(self, room_id: str, user_id: str, socket: Any = None) -> None:
        """
        Remove ``user_id`` from ``room_id``; the room is discarded once empty.

        When ``socket`` is given, a registration that has since been replaced
        by a newer socket for the same user is left alone.
        """
        room = self._rooms.get(room_id)
        if room is None:
            return

        client = room.clients.get(user_id)
        if client is not None and (socket is None or client.socket is socket):
            del room.clients[user_id]
            logger.info("User %s left room %s", user_id, room_id)

        if not room.clients:
            del self._rooms[room_id]
            logger.debug("Discarded empty room %s", room_id)

    async def broadcast(self, room_id: str, message: dict) -> int:
        """
        Append ``message`` to the room's history and send it to every open client.

        Returns the number of clients the frame was delivered to. A failing
        socket is logged and skipped; it never aborts delivery to the others.
        """
        room = self._rooms.get(room_id)
        if room is None:
            logger.debug("Broadcast to unknown room %s dropped", room_id)
            return 0

        frame = {"type": "message", "message": message}
        delivered = 0
        async with room.lock:
            room.messages.append(message)
            for client in list(room.clients.values()):
                if not client.ready or not _is_open(client.socket):
                    continue
                try:
                    await client.socket.send_json(frame)
                    delivered += 1
                except Exception as e:
                    logger.warning(
                        "Failed to deliver message to %s in room %s: %s",
                        client.user_id, room_id, e,
                    )
        return delivered
