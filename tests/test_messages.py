"""Test messages and conversation"""

import unittest

from pydantic import ValidationError

from agentloop.language_models.messages import (
    Conversation,
    Message,
    ToolCallRequest,
    assistant_message,
    new_call_id,
    tool_message,
    user_message,
)


class TestMessages(unittest.TestCase):

    def test_call_ids_unique(self):
        ids = {new_call_id() for _ in range(100)}
        self.assertEqual(len(ids), 100)
        self.assertTrue(all(i.startswith("call_") for i in ids))

    def test_message_frozen(self):
        msg = user_message("hello")
        with self.assertRaises(ValidationError):
            msg.content = "changed"  # type: ignore

    def test_invalid_role(self):
        with self.assertRaises(ValidationError):
            Message(role='robot', content="beep")  # type: ignore

    def test_assistant_without_calls(self):
        msg = assistant_message("hi", [])
        self.assertIsNone(msg.tool_calls)


class TestConversation(unittest.TestCase):

    def test_system_prompt_seeded(self):
        conv = Conversation("You are helpful.")
        self.assertEqual(len(conv), 1)
        self.assertEqual(conv[0].role, 'system')

    def test_empty_system_prompt(self):
        conv = Conversation("")
        self.assertEqual(len(conv), 0)
        self.assertIsNone(conv.last)

    def test_append_order(self):
        conv = Conversation()
        conv.append(user_message("a"))
        conv.append(assistant_message("b"))
        self.assertEqual([m.content for m in conv], ["a", "b"])
        self.assertEqual(conv.last.content, "b")  # type: ignore
        self.assertEqual(conv.count('user'), 1)

    def test_tool_message_requires_request(self):
        conv = Conversation()
        conv.append(user_message("a"))
        with self.assertRaises(ValueError):
            conv.append(tool_message("call_x", "result"))

    def test_tool_message_answers_request(self):
        conv = Conversation()
        call = ToolCallRequest(id="call_1", tool_name="calculate")
        conv.append(user_message("a"))
        conv.append(assistant_message(None, [call]))
        conv.append(tool_message("call_1", "4"))
        self.assertEqual(conv.last.tool_call_id, "call_1")  # type: ignore
        self.assertEqual(conv.count('tool'), 1)

    def test_messages_is_copy(self):
        conv = Conversation()
        conv.append(user_message("a"))
        messages = conv.messages
        messages.clear()
        self.assertEqual(len(conv), 1)


if __name__ == "__main__":
    unittest.main()
