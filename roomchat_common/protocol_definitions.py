"""
Protocol definitions for the RoomChat client.

This module defines the message structures exchanged with the chat server,
the payload builders for outbound events and the parsers for inbound ones.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class ChatMessage:
    """Chat message structure."""
    username: str
    text: str
    timestamp: Optional[datetime]
    room: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], default_room: Optional[str] = None) -> 'ChatMessage':
        """Build a message from a server payload.

        The server sends the timestamp under ``ts``; ``timestamp`` is accepted
        as well. History entries may omit ``room``, in which case
        ``default_room`` is used.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Malformed chat message: {payload!r}")
        raw_ts = payload.get('ts', payload.get('timestamp'))
        return cls(
            username=str(payload.get('username', '')),
            text=str(payload.get('text', '')),
            timestamp=parse_timestamp(raw_ts),
            room=str(payload.get('room', default_room or '')),
        )


@dataclass(frozen=True)
class Ack:
    """Acknowledgment returned by the server for a request."""
    ok: bool
    error: Optional[str] = None
    ts: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: Any) -> 'Ack':
        """Build an acknowledgment; anything but a dict counts as a failure."""
        if not isinstance(payload, dict):
            return cls(ok=False)
        error = payload.get('error')
        return cls(
            ok=bool(payload.get('ok', False)),
            error=str(error) if error else None,
            ts=parse_timestamp(payload.get('ts')),
        )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Convert a wire timestamp to an aware datetime.

    Numbers are milliseconds since the Unix epoch, strings are ISO-8601.
    Unparseable values yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def parse_history(payload: Any, room: str) -> List[ChatMessage]:
    """Parse a get_history acknowledgment, skipping malformed entries."""
    if not isinstance(payload, list):
        return []
    messages = []
    for entry in payload:
        if isinstance(entry, dict):
            messages.append(ChatMessage.from_payload(entry, default_room=room))
    return messages


def parse_name_list(payload: Any) -> List[str]:
    """Parse a rooms_list or participants push."""
    if not isinstance(payload, list):
        return []
    return [str(name) for name in payload if name is not None]


def create_join_room_message(room: str) -> Dict[str, Any]:
    """Create a join_room payload."""
    return {
        "room": room
    }


def create_send_message_message(room: str, text: str) -> Dict[str, Any]:
    """Create a send_message payload."""
    return {
        "room": room,
        "text": text
    }
