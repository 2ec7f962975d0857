#!/usr/bin/env python3
"""
Unit tests for roomchat_common.protocol_definitions and the client session.
"""

import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from roomchat_client.chat.session import ClientSession
from roomchat_common.protocol_definitions import (
    Ack, ChatMessage, parse_history, parse_name_list, parse_timestamp,
    create_join_room_message, create_send_message_message
)


class TestParseTimestamp(unittest.TestCase):

    def test_epoch_milliseconds(self):
        self.assertEqual(parse_timestamp(0), datetime(1970, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(parse_timestamp(1500), datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc))

    def test_iso_string_with_z(self):
        self.assertEqual(
            parse_timestamp("2024-05-01T12:00:00Z"),
            datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        )

    def test_naive_iso_string_is_utc(self):
        self.assertEqual(
            parse_timestamp("2024-05-01T12:00:00"),
            datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        )

    def test_unparseable_values(self):
        for value in (None, "yesterday", True, [], {}):
            with self.subTest(value=value):
                self.assertIsNone(parse_timestamp(value))


class TestAck(unittest.TestCase):

    def test_ok(self):
        ack = Ack.from_payload({"ok": True})
        self.assertTrue(ack.ok)
        self.assertIsNone(ack.error)
        self.assertIsNone(ack.ts)

    def test_error(self):
        ack = Ack.from_payload({"ok": False, "error": "Username taken"})
        self.assertFalse(ack.ok)
        self.assertEqual(ack.error, "Username taken")

    def test_send_ack_carries_timestamp(self):
        ack = Ack.from_payload({"ok": True, "ts": 0})
        self.assertEqual(ack.ts, datetime(1970, 1, 1, tzinfo=timezone.utc))

    def test_missing_payload_is_failure(self):
        self.assertFalse(Ack.from_payload(None).ok)
        self.assertFalse(Ack.from_payload("ok").ok)
        self.assertFalse(Ack.from_payload({}).ok)


class TestChatMessage(unittest.TestCase):

    def test_from_payload(self):
        message = ChatMessage.from_payload({"username": "bob", "text": "hi", "ts": 0, "room": "general"})
        self.assertEqual(message.username, "bob")
        self.assertEqual(message.text, "hi")
        self.assertEqual(message.room, "general")
        self.assertEqual(message.timestamp, datetime(1970, 1, 1, tzinfo=timezone.utc))

    def test_timestamp_key_is_accepted(self):
        message = ChatMessage.from_payload({"username": "bob", "text": "hi", "timestamp": "2024-01-01T00:00:00Z"})
        self.assertEqual(message.timestamp.year, 2024)

    def test_default_room(self):
        message = ChatMessage.from_payload({"username": "bob", "text": "hi"}, default_room="lobby")
        self.assertEqual(message.room, "lobby")
        self.assertIsNone(message.timestamp)

    def test_immutable(self):
        message = ChatMessage("bob", "hi", None, "general")
        with self.assertRaises(AttributeError):
            message.text = "changed"

    def test_malformed_payload(self):
        with self.assertRaises(ValueError):
            ChatMessage.from_payload("not a message")


class TestParsers(unittest.TestCase):

    def test_history_skips_malformed_entries(self):
        history = parse_history([{"username": "a", "text": "x"}, "junk", None], "general")
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].room, "general")

    def test_history_of_wrong_type(self):
        self.assertEqual(parse_history(None, "general"), [])

    def test_name_list(self):
        self.assertEqual(parse_name_list(["a", None, 3]), ["a", "3"])
        self.assertEqual(parse_name_list("a"), [])

    def test_payload_builders(self):
        self.assertEqual(create_join_room_message("general"), {"room": "general"})
        self.assertEqual(create_send_message_message("general", "hi"), {"room": "general", "text": "hi"})


class TestClientSession(unittest.TestCase):

    def setUp(self):
        self.session = ClientSession()

    def test_initial_state(self):
        self.assertIsNone(self.session.username)
        self.assertIsNone(self.session.current_room)
        self.assertFalse(self.session.in_room)
        self.assertFalse(self.session.is_current_room(None))

    def test_room_lifecycle(self):
        self.session.choose_username("alice")
        self.session.enter_room("general")
        self.assertTrue(self.session.is_current_room("general"))
        self.assertFalse(self.session.is_current_room("random"))
        self.assertEqual(self.session.leave_room(), "general")
        self.assertFalse(self.session.in_room)
        self.assertIsNone(self.session.leave_room())
        self.assertEqual(self.session.username, "alice")

    def test_is_mine(self):
        self.session.choose_username("alice")
        self.assertTrue(self.session.is_mine(ChatMessage("alice", "x", None, "r")))
        self.assertFalse(self.session.is_mine(ChatMessage("bob", "x", None, "r")))

    def test_reset(self):
        self.session.choose_username("alice")
        self.session.enter_room("general")
        self.session.reset()
        self.assertIsNone(self.session.username)
        self.assertIsNone(self.session.current_room)


if __name__ == '__main__':
    unittest.main()
