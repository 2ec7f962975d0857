#!/usr/bin/env python3
"""
RoomChat Client - Command-line mode

Terminal front end over the same ChatClient and ClientSession the GUI uses.
Plain lines are sent to the current room; lines starting with '/' are
commands (see HELP_TEXT).
"""

import asyncio
import sys
from typing import Any, List, Optional

from roomchat_client.chat.chat_client import ChatClient
from roomchat_client.chat.formatter import format_time
from roomchat_client.chat.session import ClientSession
from roomchat_client.utils.config import ClientConfig
from roomchat_client.utils.logger import logger
from roomchat_common.constants import Events, Messages
from roomchat_common.exceptions import RoomChatError
from roomchat_common.protocol_definitions import ChatMessage, parse_name_list

HELP_TEXT = """Commands:
  /rooms           list rooms
  /create <name>   create a room and join it
  /join <name>     join a room
  /leave           leave the current room
  /who             list participants of the current room
  /help            show this help
  /quit            exit"""


class RoomChatClient:
    """Interactive terminal chat client."""

    def __init__(self, config: ClientConfig, chat_client: Optional[ChatClient] = None,
                 session: Optional[ClientSession] = None):
        self.config = config
        self.chat_client = chat_client or ChatClient(reconnection=config.reconnection)
        self.session = session or ClientSession()
        self.rooms: List[str] = []
        self._reload: Optional[asyncio.Event] = None
        self._pending_read = None
        self._register_handlers()

    def _reload_event(self) -> asyncio.Event:
        # Created inside the running loop; an Event made in __init__ binds to the wrong loop on 3.9
        if self._reload is None:
            self._reload = asyncio.Event()
        return self._reload

    def _register_handlers(self):
        self.chat_client.on(Events.ROOMS_LIST, self.handle_rooms_list)
        self.chat_client.on(Events.PARTICIPANTS, self.handle_participants)
        self.chat_client.on(Events.MESSAGE, self.handle_message)
        self.chat_client.on(Events.USERNAME_TAKEN_DISCONNECT, self.handle_forced_disconnect)
        self.chat_client.on(Events.DISCONNECT, self.handle_disconnect)

    # ========================================================================
    # SERVER PUSHES
    # ========================================================================

    async def handle_rooms_list(self, payload: Any):
        self.rooms = parse_name_list(payload)
        if not self.rooms:
            print(f"[ROOMS] {Messages.NO_ROOMS}")
            return
        marked = [f"{room}*" if self.session.is_current_room(room) else room for room in self.rooms]
        print(f"[ROOMS] {', '.join(marked)}")

    async def handle_participants(self, payload: Any):
        participants = parse_name_list(payload)
        print(f"[PARTICIPANTS] {', '.join(participants)}")

    async def handle_message(self, payload: Any):
        try:
            message = ChatMessage.from_payload(payload)
        except ValueError as e:
            logger.warning(f"Skipping malformed message: {e}")
            return
        self.print_message(message)

    async def handle_forced_disconnect(self, reason: Any = None):
        text = reason if isinstance(reason, str) and reason else Messages.USERNAME_TAKEN
        logger.log_forced_disconnect(text)
        print(f"[ALERT] {text}")
        self._reload_event().set()

    async def handle_disconnect(self, *args):
        logger.info(Messages.DISCONNECTED)

    def print_message(self, message: ChatMessage):
        """Current-room messages print as transcript lines, others as notices."""
        if self.session.is_current_room(message.room):
            mine = " (you)" if self.session.is_mine(message) else ""
            print(f"[{message.room}] {format_time(message.timestamp)} {message.username}{mine}: {message.text}")
        else:
            print(f"({message.room}) {message.username}: {message.text}")

    # ========================================================================
    # USER ACTIONS
    # ========================================================================

    async def choose_username(self, name: str) -> bool:
        name = name.strip()
        if not name:
            print(f"[ERROR] {Messages.ENTER_USERNAME}")
            return False
        ack = await self.chat_client.choose_username(name)
        logger.log_username(name, ack.ok, ack.error)
        if not ack.ok:
            print(f"[ERROR] {ack.error or Messages.USERNAME_UNAVAILABLE}")
            return False
        self.session.choose_username(name)
        await self.chat_client.get_rooms()
        return True

    async def create_room(self, name: str):
        name = name.strip()
        if not name:
            return
        ack = await self.chat_client.create_room(name)
        if not ack.ok:
            print(f"[ERROR] {ack.error or Messages.CREATE_ROOM_FAILED}")
            return
        logger.log_room_created(name)
        await self.join_room(name)

    async def join_room(self, room: str):
        room = room.strip()
        if not room or self.session.is_current_room(room):
            return
        if not self.session.has_username:
            print(f"[ERROR] {Messages.CHOOSE_USERNAME_FIRST}")
            return
        ack = await self.chat_client.join_room(room)
        if not ack.ok:
            print(f"[ERROR] {ack.error or Messages.JOIN_ROOM_FAILED}")
            return
        self.session.enter_room(room)
        logger.log_room_joined(room)
        print(f"[INFO] {Messages.ROOM_STATUS_CONNECTED.format(room=room)}")
        await self.chat_client.get_participants(room)
        history = await self.chat_client.get_history(room)
        if self.session.is_current_room(room):
            for message in history:
                self.print_message(message)

    async def leave_room(self):
        if not self.session.in_room:
            return
        room = self.session.leave_room()
        await self.chat_client.leave_room(room)
        logger.log_room_left(room)
        print(f"[INFO] {Messages.ROOM_STATUS_IDLE}")

    async def send_text(self, text: str):
        text = text.strip()
        if not text:
            return
        if not self.session.in_room:
            print(f"[ERROR] {Messages.JOIN_ROOM_FIRST}")
            return
        room = self.session.current_room
        ack = await self.chat_client.send_message(room, text)
        if not ack.ok:
            print(f"[ERROR] {ack.error or Messages.MESSAGE_NOT_DELIVERED}")
            return
        self.print_message(ChatMessage(username=self.session.username, text=text, timestamp=ack.ts, room=room))

    async def handle_command(self, line: str) -> bool:
        """Dispatch one input line. Returns False when the user quits."""
        if not line.startswith('/'):
            await self.send_text(line)
            return True

        command, _, arg = line[1:].partition(' ')
        command = command.lower()
        if command in ('quit', 'exit'):
            return False
        elif command == 'rooms':
            await self.chat_client.get_rooms()
        elif command == 'create':
            await self.create_room(arg)
        elif command == 'join':
            await self.join_room(arg)
        elif command == 'leave':
            await self.leave_room()
        elif command == 'who':
            if self.session.in_room:
                await self.chat_client.get_participants(self.session.current_room)
            else:
                print(f"[ERROR] {Messages.JOIN_ROOM_FIRST}")
        elif command == 'help':
            print(HELP_TEXT)
        else:
            print(f"[ERROR] Unknown command '/{command}'. Type /help for commands.")
        return True

    # ========================================================================
    # MAIN LOOP
    # ========================================================================

    async def _next_line(self, prompt: str = '') -> Optional[str]:
        """Next stdin line, or None if a forced reload interrupted the wait."""
        if prompt:
            print(prompt, end='', flush=True)
        if self._pending_read is None:
            self._pending_read = asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)
        reload_wait = asyncio.ensure_future(self._reload_event().wait())
        try:
            done, _ = await asyncio.wait({self._pending_read, reload_wait},
                                         return_when=asyncio.FIRST_COMPLETED)
        finally:
            reload_wait.cancel()
        if self._pending_read not in done:
            return None
        line = self._pending_read.result()
        self._pending_read = None
        if line == '':
            raise EOFError
        return line.strip()

    async def _session_loop(self, initial_username: Optional[str]) -> bool:
        """One connected session. Returns True if the client must reload."""
        username = initial_username
        while not self.session.has_username:
            if username is None:
                username = await self._next_line("Enter username: ")
                if username is None:
                    return True
            await self.choose_username(username)
            username = None

        logger.info("Type messages to chat, /help for commands")
        while True:
            line = await self._next_line()
            if line is None:
                return True
            if not line:
                continue
            try:
                if not await self.handle_command(line):
                    return False
            except RoomChatError as e:
                logger.log_error("command", e)

    async def interactive_mode(self):
        """Run client with interactive chat input."""
        username = self.config.username
        self._reload = asyncio.Event()
        while True:
            try:
                await self.chat_client.connect(
                    self.config.server_url,
                    timeout=self.config.connect_timeout,
                    socketio_path=self.config.socketio_path
                )
            except RoomChatError as e:
                logger.log_error("connection", e)
                return

            try:
                reload = await self._session_loop(username)
            except EOFError:
                reload = False
            finally:
                if self.session.in_room:
                    try:
                        await self.chat_client.leave_room(self.session.current_room)
                    except RoomChatError as e:
                        logger.log_error("leave on exit", e)
                await self.chat_client.disconnect()

            if not reload:
                break

            # Full reload: fresh connection, fresh session, ask for a username again
            self.session.reset()
            self.rooms = []
            self._reload = asyncio.Event()
            self.chat_client = ChatClient(reconnection=self.config.reconnection)
            self._register_handlers()
            username = None

        logger.info("Disconnected from server")


async def main():
    """Main entry point."""
    username = sys.argv[1] if len(sys.argv) > 1 else None
    client = RoomChatClient(ClientConfig.from_env(username=username))

    try:
        await client.interactive_mode()
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        logger.log_error("client", e)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[INFO] Client terminated")
