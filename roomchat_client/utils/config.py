"""
Client configuration module.

This module handles client-side configuration settings.
"""

import os

from roomchat_common.constants import (
    DEFAULT_SERVER_URL, DEFAULT_SOCKETIO_PATH, DEFAULT_LOG_LEVEL,
    CONNECT_TIMEOUT, MAX_NOTICES, ENV_SERVER_URL, ENV_LOG_LEVEL
)


class ClientConfig:
    """Client configuration class."""

    def __init__(self, server_url: str = DEFAULT_SERVER_URL, username: str = None,
                 log_level: str = DEFAULT_LOG_LEVEL):
        self.server_url = server_url
        self.username = username
        self.log_level = log_level

        # Connection settings
        self.socketio_path = DEFAULT_SOCKETIO_PATH
        self.connect_timeout = CONNECT_TIMEOUT
        self.reconnection = False

        # UI settings
        self.max_notices = MAX_NOTICES

    @classmethod
    def from_env(cls, **overrides):
        """Build a config from environment variables, then apply non-None overrides."""
        config = cls(
            server_url=os.environ.get(ENV_SERVER_URL, DEFAULT_SERVER_URL),
            log_level=os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config
