"""
Chat client module.

This module wraps a Socket.IO connection to the chat server. Requests that
the server acknowledges are exposed as coroutines resolving with the
acknowledgment; fire-and-forget requests are plain emits.
"""

import asyncio
from typing import Any, Callable, List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from roomchat_common.constants import Events, CONNECT_TIMEOUT, DEFAULT_SOCKETIO_PATH
from roomchat_common.exceptions import ConnectionFailedError, NotConnectedError
from roomchat_common.protocol_definitions import (
    Ack, ChatMessage, parse_history,
    create_join_room_message, create_send_message_message
)
from roomchat_client.utils.logger import logger


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, sio: Optional[socketio.AsyncClient] = None, reconnection: bool = False):
        self.sio = sio if sio is not None else socketio.AsyncClient(reconnection=reconnection)

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    def on(self, event: str, handler: Callable):
        """Register a handler for a server push or transport event."""
        self.sio.on(event, handler)

    async def connect(self, url: str, timeout: float = CONNECT_TIMEOUT,
                      socketio_path: str = DEFAULT_SOCKETIO_PATH):
        """Open the connection to the server."""
        try:
            await asyncio.wait_for(
                self.sio.connect(url, socketio_path=socketio_path),
                timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.log_connection(url, False)
            raise ConnectionFailedError(f"Timed out connecting to {url} after {timeout}s") from e
        except SocketIOConnectionError as e:
            logger.log_connection(url, False)
            raise ConnectionFailedError(f"Could not connect to {url}: {e}") from e
        logger.log_connection(url, True)

    async def disconnect(self):
        """Close the connection if it is open."""
        if self.connected:
            await self.sio.disconnect()

    async def request(self, event: str, data: Any = None) -> Any:
        """Emit an event and wait for its acknowledgment.

        There is no timeout: if the server never acknowledges, this never
        returns.
        """
        self._ensure_connected(event)
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _on_ack(*args):
            if not future.done():
                future.set_result(args[0] if args else None)

        await self.sio.emit(event, data, callback=_on_ack)
        return await future

    async def notify(self, event: str, data: Any = None):
        """Emit an event that the server does not acknowledge."""
        self._ensure_connected(event)
        await self.sio.emit(event, data)

    def _ensure_connected(self, event: str):
        if not self.connected:
            raise NotConnectedError(f"Cannot send '{event}': not connected to server")

    async def choose_username(self, username: str) -> Ack:
        """Ask the server to reserve a username."""
        return Ack.from_payload(await self.request(Events.CHOOSE_USERNAME, username))

    async def get_rooms(self):
        """Ask for the room list; it arrives as a rooms_list push."""
        await self.notify(Events.GET_ROOMS)

    async def create_room(self, room: str) -> Ack:
        """Create a new room."""
        return Ack.from_payload(await self.request(Events.CREATE_ROOM, room))

    async def join_room(self, room: str) -> Ack:
        """Join a room."""
        return Ack.from_payload(await self.request(Events.JOIN_ROOM, create_join_room_message(room)))

    async def get_participants(self, room: str):
        """Ask for the participant list; it arrives as a participants push."""
        await self.notify(Events.GET_PARTICIPANTS, room)

    async def get_history(self, room: str) -> List[ChatMessage]:
        """Fetch the message history of a room."""
        return parse_history(await self.request(Events.GET_HISTORY, room), room)

    async def send_message(self, room: str, text: str) -> Ack:
        """Send a chat message to a room."""
        ack = Ack.from_payload(await self.request(Events.SEND_MESSAGE, create_send_message_message(room, text)))
        if ack.ok:
            logger.log_chat_sent(room, text)
        return ack

    async def leave_room(self, room: str):
        """Leave a room; the server does not acknowledge."""
        await self.notify(Events.LEAVE_ROOM, room)
