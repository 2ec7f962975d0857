"""
Shared constants for the RoomChat client.

This module contains the event names, defaults and user-facing strings used
across the chat, UI and CLI components.
"""

# Network Configuration
DEFAULT_SERVER_URL = 'http://localhost:3000'
DEFAULT_SOCKETIO_PATH = 'socket.io'

# Timeouts
CONNECT_TIMEOUT = 10  # seconds, connection establishment only

# Cross-room notices kept in the notice area
MAX_NOTICES = 50

# Logging
DEFAULT_LOG_LEVEL = 'INFO'

# Environment variables
ENV_SERVER_URL = 'SERVER_URL'
ENV_LOG_LEVEL = 'ROOMCHAT_LOG_LEVEL'


# Event names
class Events:
    # Client to Server
    CHOOSE_USERNAME = 'choose_username'
    GET_ROOMS = 'get_rooms'
    CREATE_ROOM = 'create_room'
    JOIN_ROOM = 'join_room'
    GET_PARTICIPANTS = 'get_participants'
    GET_HISTORY = 'get_history'
    SEND_MESSAGE = 'send_message'
    LEAVE_ROOM = 'leave_room'

    # Server to Client
    ROOMS_LIST = 'rooms_list'
    PARTICIPANTS = 'participants'
    MESSAGE = 'message'
    USERNAME_TAKEN_DISCONNECT = 'username_taken_disconnect'

    # Transport
    CONNECT = 'connect'
    DISCONNECT = 'disconnect'


PUSH_EVENTS = (
    Events.ROOMS_LIST,
    Events.PARTICIPANTS,
    Events.MESSAGE,
    Events.USERNAME_TAKEN_DISCONNECT,
)


# User-facing text
class Messages:
    ENTER_USERNAME = 'Please enter a username.'
    CONNECTING = 'Still connecting to the server, please wait.'
    USERNAME_UNAVAILABLE = 'Unable to use that username.'
    CHOOSE_USERNAME_FIRST = 'Choose a username first.'
    JOIN_ROOM_FIRST = 'Join a room first.'
    CREATE_ROOM_FAILED = 'Could not create room'
    JOIN_ROOM_FAILED = 'Could not join room'
    MESSAGE_NOT_DELIVERED = 'Message not delivered'
    USERNAME_TAKEN = 'Your username was taken elsewhere. You will be disconnected.'
    NO_ROOMS = 'No rooms. Create one!'
    NOT_IN_ROOM = 'Not in a room'
    ROOM_STATUS_IDLE = 'Join or create a room to start chatting'
    ROOM_STATUS_CONNECTED = 'Connected to room "{room}"'
    DISCONNECTED = 'Disconnected from server.'
