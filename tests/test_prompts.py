"""Test prompt library"""

import unittest

from agentloop.language_models.prompts import (
    create_prompt,
    default_prompt_for,
    prompt_library,
    render_react_prompt,
)
from agentloop.tools.base import Tool
from agentloop.tools.registry import ToolRegistry


class EchoTool(Tool):
    name = "echo"
    description = "Returns its input"

    def call(self, input: str) -> str:
        return input


class TestPromptLibrary(unittest.TestCase):

    def test_predefined(self):
        for name in [
            "toolcall",
            "concise",
            "therapist",
            "teacher",
            "creative_writer",
            "coding_mentor",
        ]:
            self.assertTrue(bool(prompt_library[name]))  # type: ignore

    def test_react_lists_tools(self):
        prompt = prompt_library["react"]
        self.assertIn("calculate: ", prompt)
        self.assertIn("Action: <action name>: <action input>", prompt)

    def test_invalid_name(self):
        with self.assertRaises(ValueError):
            prompt_library["no_such_prompt"]  # type: ignore

    def test_custom_prompt(self):
        create_prompt("You are a pirate.", "pirate")
        self.assertEqual(prompt_library["pirate"], "You are a pirate.")  # type: ignore
        with self.assertRaises(ValueError):
            create_prompt("Arr.", "pirate")
        del prompt_library["pirate"]  # type: ignore

    def test_render(self):
        prompt = render_react_prompt("echo: Returns its input")
        self.assertIn("echo: Returns its input", prompt)


class TestDefaultPrompt(unittest.TestCase):

    def test_native_modes(self):
        self.assertEqual(default_prompt_for('native'), prompt_library["toolcall"])
        self.assertEqual(
            default_prompt_for('json_fallback'), prompt_library["toolcall"]
        )

    def test_action_line(self):
        registry = ToolRegistry([EchoTool()])
        prompt = default_prompt_for('action_line', registry)
        self.assertIn("echo: Returns its input", prompt)
        self.assertNotIn("calculate: ", prompt)


if __name__ == "__main__":
    unittest.main()
