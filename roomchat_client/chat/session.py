"""
Client session module.

Holds the username the server accepted and the room currently joined. The
session is passed explicitly to whoever needs it and is never persisted.
"""

from typing import Optional

from roomchat_common.protocol_definitions import ChatMessage


class ClientSession:
    """Client-local record of chosen username and current room."""

    def __init__(self):
        self.username: Optional[str] = None
        self.current_room: Optional[str] = None

    @property
    def has_username(self) -> bool:
        return self.username is not None

    @property
    def in_room(self) -> bool:
        return self.current_room is not None

    def choose_username(self, username: str):
        """Record the username accepted by the server."""
        self.username = username

    def enter_room(self, room: str):
        """Record the room the server let us join."""
        self.current_room = room

    def leave_room(self) -> Optional[str]:
        """Forget the current room and return it."""
        room = self.current_room
        self.current_room = None
        return room

    def reset(self):
        """Discard all session state."""
        self.username = None
        self.current_room = None

    def is_current_room(self, room: Optional[str]) -> bool:
        return self.current_room is not None and room == self.current_room

    def is_mine(self, message: ChatMessage) -> bool:
        return self.username is not None and message.username == self.username

    def __repr__(self):
        return f"ClientSession(username={self.username!r}, current_room={self.current_room!r})"
