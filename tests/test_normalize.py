"""Test recovery of tool calls from model output"""

import json
import unittest

from agentloop.language_models.messages import (
    ToolCallRequest,
    assistant_message,
)
from agentloop.language_models.normalize import (
    extract_json_tool_calls,
    normalize_action_text,
    normalize_json_text,
    normalize_native,
    parse_action_line,
    scan_json_objects,
)
from agentloop.language_models.results import FinalAnswer, ToolInvocations


class TestJsonFallback(unittest.TestCase):

    def test_two_calls_in_prose(self):
        text = (
            'foo {"name":"calculate","arguments":{"input":"2+2"}} bar '
            '{"name":"calculate","arguments":{"input":"3+3"}}'
        )
        result = normalize_json_text(text)
        self.assertIsInstance(result, ToolInvocations)
        assert isinstance(result, ToolInvocations)
        self.assertEqual(len(result.calls), 2)
        self.assertEqual(
            [json.loads(c.raw_arguments)["input"] for c in result.calls],
            ["2+2", "3+3"],
        )
        self.assertEqual(
            [c.tool_name for c in result.calls], ["calculate", "calculate"]
        )
        self.assertNotEqual(result.calls[0].id, result.calls[1].id)

    def test_whole_body(self):
        text = '{"name":"wikipedia","arguments":{"input":"Paris"}}'
        calls = extract_json_tool_calls(text)
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0].tool_name, "wikipedia")
        self.assertEqual(json.loads(calls[0].raw_arguments), {"input": "Paris"})

    def test_whole_body_with_whitespace(self):
        text = '\n  {"name":"wikipedia","arguments":{"input":"Paris"}}  \n'
        self.assertEqual(len(extract_json_tool_calls(text)), 1)

    def test_id_kept(self):
        text = '{"id":"abc","name":"calculate","arguments":{"input":"1"}}'
        self.assertEqual(extract_json_tool_calls(text)[0].id, "abc")

    def test_string_arguments_kept(self):
        text = '{"name":"calculate","arguments":"2+2"}'
        self.assertEqual(extract_json_tool_calls(text)[0].raw_arguments, "2+2")

    def test_nested_braces(self):
        text = (
            'Writing the file: {"name": "file_write", "arguments": '
            '{"input": "{\\"path\\": \\"a.txt\\", \\"content\\": \\"{}\\"}"}}'
            ' done'
        )
        calls = extract_json_tool_calls(text)
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0].tool_name, "file_write")
        inner = json.loads(json.loads(calls[0].raw_arguments)["input"])
        self.assertEqual(inner["content"], "{}")

    def test_non_call_json(self):
        text = '{"answer": 42}'
        self.assertEqual(extract_json_tool_calls(text), [])
        result = normalize_json_text(text)
        self.assertEqual(result, FinalAnswer(text=text))

    def test_malformed_objects_skipped(self):
        text = (
            '{"name": broken} and {"name":"calculate","arguments":{"input":"1"}}'
        )
        calls = extract_json_tool_calls(text)
        self.assertEqual(len(calls), 1)

    def test_missing_arguments_skipped(self):
        text = 'x {"name":"calculate"} y'
        self.assertEqual(extract_json_tool_calls(text), [])

    def test_plain_text(self):
        result = normalize_json_text("The answer is 4.")
        self.assertEqual(result, FinalAnswer(text="The answer is 4."))

    def test_scan_object_inside_non_call(self):
        text = 'x {"wrapper": {"name":"calculate","arguments":{"input":"1"}}}'
        objects = scan_json_objects(text)
        self.assertEqual(len(objects), 1)
        self.assertEqual(objects[0]["name"], "calculate")


class TestActionLine(unittest.TestCase):

    def test_action(self):
        text = "Thought: I should check\nAction: calculate: 4 * 7\nPAUSE"
        result = normalize_action_text(text)
        assert isinstance(result, ToolInvocations)
        self.assertEqual(len(result.calls), 1)
        self.assertEqual(result.calls[0].tool_name, "calculate")
        self.assertEqual(result.calls[0].raw_arguments, "4 * 7")

    def test_first_action_only(self):
        text = "Action: wikipedia: Paris\nAction: calculate: 1 + 1\nPAUSE"
        call = parse_action_line(text)
        assert call is not None
        self.assertEqual(call.tool_name, "wikipedia")

    def test_no_action(self):
        text = "Answer: The capital of France is Paris"
        self.assertEqual(normalize_action_text(text), FinalAnswer(text=text))

    def test_action_must_start_line(self):
        self.assertIsNone(parse_action_line("No Action: calculate: 1"))


class TestNative(unittest.TestCase):

    def test_structured_calls(self):
        calls = [
            ToolCallRequest(id="c1", tool_name="calculate", raw_arguments="{}"),
            ToolCallRequest(id="c2", tool_name="wikipedia", raw_arguments="{}"),
        ]
        result = normalize_native(assistant_message(None, calls))
        assert isinstance(result, ToolInvocations)
        self.assertEqual([c.id for c in result.calls], ["c1", "c2"])

    def test_content(self):
        result = normalize_native(assistant_message("Hi"))
        self.assertEqual(result, FinalAnswer(text="Hi"))

    def test_no_message(self):
        self.assertEqual(normalize_native(None), FinalAnswer(text=None))

    def test_json_content_without_fallback(self):
        text = '{"name":"calculate","arguments":{"input":"2+2"}}'
        result = normalize_native(assistant_message(text))
        self.assertIsInstance(result, FinalAnswer)

    def test_json_content_with_fallback(self):
        text = '{"name":"calculate","arguments":{"input":"2+2"}}'
        result = normalize_native(assistant_message(text), json_fallback=True)
        self.assertIsInstance(result, ToolInvocations)


if __name__ == "__main__":
    unittest.main()
