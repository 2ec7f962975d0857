"""
Client logging module.

This module handles client-side logging functionality.
"""

import logging
import sys
from typing import List, Optional


class ClientLogger:
    """Client logging class."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger('roomchat_client')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

    def set_level(self, level):
        """Change the level of the logger and its handlers."""
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                level = logging.INFO
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, url: str, success: bool):
        """Log connection attempt."""
        status = "Connected" if success else "Failed to connect"
        self.info(f"{status} to {url}")

    def log_disconnect(self):
        self.info("Disconnected from server")

    def log_username(self, username: str, success: bool, error: Optional[str] = None):
        """Log username selection."""
        if success:
            self.info(f"Using username '{username}'")
        else:
            self.warning(f"Username '{username}' rejected: {error or 'no reason given'}")

    def log_room_created(self, room: str):
        self.info(f"Created room '{room}'")

    def log_room_joined(self, room: str):
        self.info(f"Joined room '{room}'")

    def log_room_left(self, room: str):
        self.info(f"Left room '{room}'")

    def log_request_failed(self, event: str, error: Optional[str]):
        """Log a request the server refused."""
        self.warning(f"Request '{event}' failed: {error or 'no reason given'}")

    def log_chat_sent(self, room: str, message: str):
        """Log chat message sent."""
        self.info(f"Chat sent to '{room}': {message}")

    def log_rooms(self, rooms: List[str]):
        self.debug(f"Rooms: {', '.join(rooms) if rooms else '(none)'}")

    def log_participants(self, room: Optional[str], participants: List[str]):
        self.debug(f"Participants in '{room}': {', '.join(participants)}")

    def log_forced_disconnect(self, reason: str):
        self.warning(f"Forced disconnect: {reason}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ClientLogger()
