#!/usr/bin/env python3
"""
Unit tests for the Socket.IO chat client and the command-line client.

The Socket.IO connection is replaced by FakeSocket, which records emits and
answers acknowledgments from a canned table.
"""

import asyncio
import io
import sys
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from socketio.exceptions import ConnectionError as SocketIOConnectionError

from roomchat_client.chat.chat_client import ChatClient
from roomchat_client.main_client import RoomChatClient
from roomchat_client.utils.config import ClientConfig
from roomchat_common.constants import Messages
from roomchat_common.exceptions import ConnectionFailedError, NotConnectedError


class FakeSocket:
    """Stand-in for socketio.AsyncClient."""

    def __init__(self, acks=None, connected=True):
        self.acks = dict(acks or {})
        self.connected = connected
        self.emitted = []
        self.handlers = {}
        self.connect_error = None
        self.connect_delay = 0

    def on(self, event, handler):
        self.handlers[event] = handler

    async def connect(self, url, socketio_path='socket.io'):
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def disconnect(self):
        self.connected = False

    async def emit(self, event, data=None, callback=None):
        self.emitted.append((event, data))
        if callback is not None and event in self.acks:
            ack = self.acks[event]
            callback(ack(data) if callable(ack) else ack)

    def events(self):
        return [event for event, _ in self.emitted]


class TestChatClient(unittest.IsolatedAsyncioTestCase):
    """Request/acknowledgment mapping."""

    async def test_choose_username(self):
        sio = FakeSocket({'choose_username': {'ok': False, 'error': 'taken'}})
        ack = await ChatClient(sio=sio).choose_username('alice')
        self.assertEqual(sio.emitted, [('choose_username', 'alice')])
        self.assertFalse(ack.ok)
        self.assertEqual(ack.error, 'taken')

    async def test_join_room_payload(self):
        sio = FakeSocket({'join_room': {'ok': True}})
        ack = await ChatClient(sio=sio).join_room('general')
        self.assertEqual(sio.emitted, [('join_room', {'room': 'general'})])
        self.assertTrue(ack.ok)

    async def test_send_message(self):
        sio = FakeSocket({'send_message': {'ok': True, 'ts': 1000}})
        ack = await ChatClient(sio=sio).send_message('general', 'hi')
        self.assertEqual(sio.emitted, [('send_message', {'room': 'general', 'text': 'hi'})])
        self.assertTrue(ack.ok)
        self.assertEqual(ack.ts.timestamp(), 1.0)

    async def test_get_history(self):
        sio = FakeSocket({'get_history': [
            {'username': 'bob', 'text': 'one', 'ts': 0},
            {'username': 'carol', 'text': 'two', 'ts': 1, 'room': 'general'},
        ]})
        history = await ChatClient(sio=sio).get_history('general')
        self.assertEqual(sio.emitted, [('get_history', 'general')])
        self.assertEqual([m.text for m in history], ['one', 'two'])
        self.assertEqual({m.room for m in history}, {'general'})

    async def test_fire_and_forget_requests(self):
        sio = FakeSocket()
        client = ChatClient(sio=sio)
        await client.get_rooms()
        await client.get_participants('general')
        await client.leave_room('general')
        self.assertEqual(sio.emitted, [
            ('get_rooms', None),
            ('get_participants', 'general'),
            ('leave_room', 'general'),
        ])

    async def test_request_waits_for_acknowledgment(self):
        """There is no client-side timeout on acknowledgments."""
        client = ChatClient(sio=FakeSocket())
        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(client.create_room('quiet'), timeout=0.05)

    async def test_missing_ack_value_is_failure(self):
        sio = FakeSocket({'create_room': None})
        ack = await ChatClient(sio=sio).create_room('general')
        self.assertFalse(ack.ok)

    async def test_not_connected(self):
        client = ChatClient(sio=FakeSocket(connected=False))
        with self.assertRaises(NotConnectedError):
            await client.join_room('general')
        with self.assertRaises(NotConnectedError):
            await client.get_rooms()

    async def test_connect_failure(self):
        sio = FakeSocket(connected=False)
        sio.connect_error = SocketIOConnectionError('refused')
        with self.assertRaises(ConnectionFailedError):
            await ChatClient(sio=sio).connect('http://localhost:1')

    async def test_connect_timeout(self):
        sio = FakeSocket(connected=False)
        sio.connect_delay = 1
        with self.assertRaises(ConnectionFailedError):
            await ChatClient(sio=sio).connect('http://localhost:1', timeout=0.01)

    async def test_disconnect(self):
        sio = FakeSocket()
        client = ChatClient(sio=sio)
        await client.disconnect()
        self.assertFalse(client.connected)


class TestRoomChatClient(unittest.IsolatedAsyncioTestCase):
    """Command-line client behaviour."""

    def setUp(self):
        self.sio = FakeSocket({
            'choose_username': {'ok': True},
            'create_room': {'ok': True},
            'join_room': {'ok': True},
            'get_history': [{'username': 'bob', 'text': 'earlier', 'ts': 0, 'room': 'general'}],
            'send_message': {'ok': True, 'ts': 0},
        })
        self.client = RoomChatClient(ClientConfig(), chat_client=ChatClient(sio=self.sio))

    async def _run(self, coro):
        out = io.StringIO()
        with redirect_stdout(out):
            result = await coro
        return result, out.getvalue()

    async def test_handlers_registered(self):
        for event in ('rooms_list', 'participants', 'message', 'username_taken_disconnect'):
            self.assertIn(event, self.sio.handlers)

    async def test_choose_username_then_rooms(self):
        ok, _ = await self._run(self.client.choose_username(' alice '))
        self.assertTrue(ok)
        self.assertEqual(self.client.session.username, 'alice')
        self.assertEqual(self.sio.events(), ['choose_username', 'get_rooms'])

    async def test_empty_username_is_rejected_locally(self):
        ok, out = await self._run(self.client.choose_username('   '))
        self.assertFalse(ok)
        self.assertIn(Messages.ENTER_USERNAME, out)
        self.assertEqual(self.sio.emitted, [])

    async def test_join_room_prints_history(self):
        self.client.session.choose_username('alice')
        _, out = await self._run(self.client.handle_command('/join general'))
        self.assertEqual(self.client.session.current_room, 'general')
        self.assertEqual(self.sio.events(), ['join_room', 'get_participants', 'get_history'])
        self.assertIn('[general]', out)
        self.assertIn('bob: earlier', out)

    async def test_join_requires_username(self):
        _, out = await self._run(self.client.join_room('general'))
        self.assertIn(Messages.CHOOSE_USERNAME_FIRST, out)
        self.assertEqual(self.sio.emitted, [])

    async def test_create_room_joins_it(self):
        self.client.session.choose_username('alice')
        await self._run(self.client.handle_command('/create fresh'))
        self.assertEqual(self.client.session.current_room, 'fresh')
        self.assertEqual(self.sio.emitted[0], ('create_room', 'fresh'))

    async def test_send_requires_room(self):
        _, out = await self._run(self.client.handle_command('hello'))
        self.assertIn(Messages.JOIN_ROOM_FIRST, out)
        self.assertEqual(self.sio.emitted, [])

    async def test_send_in_room(self):
        self.client.session.choose_username('alice')
        self.client.session.enter_room('general')
        _, out = await self._run(self.client.handle_command('hello there'))
        self.assertEqual(self.sio.emitted, [('send_message', {'room': 'general', 'text': 'hello there'})])
        self.assertIn('alice (you): hello there', out)

    async def test_send_failure(self):
        self.sio.acks['send_message'] = {'ok': False}
        self.client.session.choose_username('alice')
        self.client.session.enter_room('general')
        _, out = await self._run(self.client.send_text('hi'))
        self.assertIn(Messages.MESSAGE_NOT_DELIVERED, out)

    async def test_message_from_other_room_is_a_notice(self):
        self.client.session.enter_room('general')
        _, out = await self._run(self.client.handle_message(
            {'username': 'bob', 'text': 'psst', 'room': 'random', 'ts': 0}))
        self.assertEqual(out.strip(), '(random) bob: psst')

    async def test_message_for_current_room(self):
        self.client.session.enter_room('general')
        _, out = await self._run(self.client.handle_message(
            {'username': 'bob', 'text': 'hey', 'room': 'general', 'ts': 0}))
        self.assertTrue(out.startswith('[general]'))

    async def test_rooms_list(self):
        self.client.session.enter_room('b')
        _, out = await self._run(self.client.handle_rooms_list(['a', 'b']))
        self.assertIn('a, b*', out)
        _, out = await self._run(self.client.handle_rooms_list([]))
        self.assertIn(Messages.NO_ROOMS, out)

    async def test_leave(self):
        self.client.session.enter_room('general')
        await self._run(self.client.handle_command('/leave'))
        self.assertIsNone(self.client.session.current_room)
        self.assertEqual(self.sio.emitted, [('leave_room', 'general')])

    async def test_forced_disconnect_requests_reload(self):
        _, out = await self._run(self.client.handle_forced_disconnect('Name claimed elsewhere'))
        self.assertTrue(self.client._reload.is_set())
        self.assertIn('Name claimed elsewhere', out)

    async def test_quit_and_unknown_commands(self):
        quit_result, _ = await self._run(self.client.handle_command('/quit'))
        self.assertFalse(quit_result)
        result, out = await self._run(self.client.handle_command('/dance'))
        self.assertTrue(result)
        self.assertIn('Unknown command', out)


class TestClientConfig(unittest.TestCase):

    def test_defaults(self):
        config = ClientConfig()
        self.assertEqual(config.server_url, 'http://localhost:3000')
        self.assertEqual(config.connect_timeout, 10)
        self.assertFalse(config.reconnection)
        self.assertEqual(config.max_notices, 50)

    def test_from_env_then_overrides(self):
        env = {'SERVER_URL': 'http://chat.example:8080', 'ROOMCHAT_LOG_LEVEL': 'DEBUG'}
        with patch.dict('os.environ', env):
            config = ClientConfig.from_env(username='alice', server_url=None)
        self.assertEqual(config.server_url, 'http://chat.example:8080')
        self.assertEqual(config.log_level, 'DEBUG')
        self.assertEqual(config.username, 'alice')


class TestInteractiveMode(unittest.TestCase):
    """Client built outside any event loop, then run under asyncio.run."""

    def test_reads_username_and_quits(self):
        sio = FakeSocket({'choose_username': {'ok': True}}, connected=False)
        client = RoomChatClient(ClientConfig(), chat_client=ChatClient(sio=sio))
        out = io.StringIO()
        with patch('sys.stdin', io.StringIO("alice\n/quit\n")), redirect_stdout(out), \
                self.assertLogs('roomchat_client', level='INFO') as logs:
            asyncio.run(asyncio.wait_for(client.interactive_mode(), timeout=5))
        self.assertIn('INFO:roomchat_client:Disconnected from server', logs.output)
        self.assertFalse([line for line in logs.output if '[INFO]' in line])
        self.assertEqual(client.session.username, 'alice')
        self.assertEqual(sio.events(), ['choose_username', 'get_rooms'])
        self.assertFalse(sio.connected)

    def test_end_of_input_leaves_room(self):
        sio = FakeSocket({'choose_username': {'ok': True}, 'join_room': {'ok': True}, 'get_history': []},
                         connected=False)
        client = RoomChatClient(ClientConfig(username='alice'), chat_client=ChatClient(sio=sio))
        with patch('sys.stdin', io.StringIO("/join general\n")), redirect_stdout(io.StringIO()):
            asyncio.run(asyncio.wait_for(client.interactive_mode(), timeout=5))
        self.assertEqual(sio.emitted[-1], ('leave_room', 'general'))


if __name__ == '__main__':
    unittest.main()
