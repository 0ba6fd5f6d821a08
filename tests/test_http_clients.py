"""Test the chat completions clients, with the HTTP layer mocked"""

import json
import os
import unittest
from typing import Any
from unittest import mock

import requests

from agentloop.errors import BackendError
from agentloop.language_models.http_clients import (
    DeepSeekClient,
    LMStudioClient,
    MoonshotClient,
    OpenAIClient,
    PerplexityClient,
)
from agentloop.language_models.results import FinalAnswer, ToolInvocations
from agentloop.utils.logging import LoglistLogger


def _response(body: Any, status_code: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    response._content = (
        body if isinstance(body, bytes) else json.dumps(body).encode()
    )
    return response


def _completion(message: dict[str, Any]) -> dict[str, Any]:
    return {"choices": [{"index": 0, "message": message}]}


def _session(*responses: requests.Response) -> mock.Mock:
    session = mock.Mock(spec=requests.Session)
    session.post.side_effect = list(responses)
    return session


SCHEMAS = [{"type": "function", "function": {"name": "calculate"}}]


class TestOpenAIClient(unittest.TestCase):

    def test_final_answer(self):
        session = _session(
            _response(_completion({"role": "assistant", "content": "4"}))
        )
        client = OpenAIClient(
            "gpt-4o", "be helpful", api_key="sk-test", session=session
        )
        response = client.send("2+2?", tools=SCHEMAS)
        self.assertEqual(response.normalize(), FinalAnswer(text="4"))

        kwargs = session.post.call_args.kwargs
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk-test")
        payload = kwargs["json"]
        self.assertEqual(payload["model"], "gpt-4o")
        self.assertEqual(payload["max_tokens"], 4000)
        self.assertEqual(payload["tools"], SCHEMAS)
        self.assertEqual(
            [m["role"] for m in payload["messages"]], ["system", "user"]
        )
        self.assertEqual(
            [m.role for m in client.conversation],
            ["system", "user", "assistant"],
        )

    def test_reasoning_model_tokens(self):
        client = OpenAIClient("o3-mini", api_key="sk-test", session=_session())
        self.assertEqual(client.params["max_completion_tokens"], 4000)
        self.assertNotIn("max_tokens", client.params)

    def test_tool_calls(self):
        session = _session(
            _response(
                _completion(
                    {
                        "role": "assistant",
                        "content": None,
                        "tool_calls": [
                            {
                                "id": "call_1",
                                "type": "function",
                                "function": {
                                    "name": "calculate",
                                    "arguments": '{"input": "2+2"}',
                                },
                            },
                            {
                                "type": "function",
                                "function": {
                                    "name": "wikipedia",
                                    "arguments": {"input": "Paris"},
                                },
                            },
                        ],
                    }
                )
            ),
            _response(_completion({"role": "assistant", "content": "done"})),
        )
        client = OpenAIClient(api_key="sk-test", session=session)
        result = client.send("q", tools=SCHEMAS).normalize()
        assert isinstance(result, ToolInvocations)
        self.assertEqual(result.calls[0].id, "call_1")
        self.assertEqual(result.calls[1].tool_name, "wikipedia")
        self.assertTrue(result.calls[1].id)
        self.assertEqual(
            json.loads(result.calls[1].raw_arguments), {"input": "Paris"}
        )

        for call in result.calls:
            client.add_observation(call, "obs")
        client.send(None, tools=SCHEMAS)
        messages = session.post.call_args.kwargs["json"]["messages"]
        self.assertEqual(messages[1]["tool_calls"][0]["id"], "call_1")
        self.assertEqual(
            messages[2], {"role": "tool", "content": "obs", "tool_call_id": "call_1"}
        )

    def test_malformed_tool_calls_skipped(self):
        message = {
            "role": "assistant",
            "content": "plain answer",
            "tool_calls": [
                "x",
                {"id": "call_2", "function": "calculate"},
                {"id": "call_3", "function": {"name": 42}},
                {"id": "call_4", "function": {"arguments": "{}"}},
            ],
        }
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response(_completion(message)))
        )
        response = client.send("q", tools=SCHEMAS)
        self.assertEqual(response.normalize(), FinalAnswer(text="plain answer"))

    def test_tool_calls_not_a_list(self):
        message = {"role": "assistant", "content": "hi", "tool_calls": "x"}
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response(_completion(message)))
        )
        self.assertEqual(
            client.send("q").normalize(), FinalAnswer(text="hi")
        )

    def test_integer_call_id(self):
        message = {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": 7,
                    "type": "function",
                    "function": {"name": "calculate", "arguments": "{}"},
                }
            ],
        }
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response(_completion(message)))
        )
        result = client.send("q", tools=SCHEMAS).normalize()
        assert isinstance(result, ToolInvocations)
        self.assertEqual(result.calls[0].id, "7")

    def test_invalid_message_is_backend_error(self):
        message = {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "call_1",
                    "function": {"name": "calculate", "arguments": "{}"},
                }
            ],
        }
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response(_completion(message)))
        )
        with mock.patch(
            "agentloop.language_models.http_clients.encode_arguments",
            return_value=None,
        ):
            with self.assertRaises(BackendError) as ctx:
                client.send("q", tools=SCHEMAS)
        self.assertEqual(ctx.exception.payload, message)
        self.assertEqual(client.conversation.last.role, "user")  # type: ignore

    def test_error_field(self):
        session = _session(
            _response({"error": {"message": "bad key"}}, status_code=401)
        )
        client = OpenAIClient(api_key="sk-test", session=session)
        with self.assertRaises(BackendError) as ctx:
            client.send("q")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.payload, {"message": "bad key"})
        # the user message stays in the conversation
        self.assertEqual(client.conversation.last.role, "user")  # type: ignore

    def test_http_status(self):
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response({}, status_code=500))
        )
        with self.assertRaises(BackendError) as ctx:
            client.send("q")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_invalid_json(self):
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response(b"<html>oops"))
        )
        with self.assertRaises(BackendError):
            client.send("q")

    def test_network_failure(self):
        session = mock.Mock(spec=requests.Session)
        session.post.side_effect = requests.ConnectionError("down")
        client = OpenAIClient(api_key="sk-test", session=session)
        with self.assertRaises(BackendError):
            client.send("q")

    def test_no_choices(self):
        client = OpenAIClient(
            api_key="sk-test", session=_session(_response({"choices": []}))
        )
        response = client.send("q")
        self.assertEqual(response.normalize(), FinalAnswer(text=None))
        self.assertEqual(client.conversation.count("assistant"), 0)

    def test_missing_key_warning(self):
        logger = LoglistLogger()
        with mock.patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
            OpenAIClient(session=_session(), logger=logger)
        self.assertEqual(logger.count_logs(level=1), 1)

    def test_base_url(self):
        client = OpenAIClient(
            api_key="k",
            base_url="http://localhost:8000/v1/",
            session=_session(),
        )
        self.assertEqual(
            client.api_url, "http://localhost:8000/v1/chat/completions"
        )


class TestJsonFallbackClients(unittest.TestCase):

    def test_moonshot_fallback(self):
        session = _session(
            _response(
                _completion(
                    {
                        "role": "assistant",
                        "content": '{"name": "calculate", '
                        '"arguments": {"input": "2+2"}}',
                    }
                )
            )
        )
        client = MoonshotClient(api_key="k", session=session)
        result = client.send("q", tools=SCHEMAS).normalize()
        assert isinstance(result, ToolInvocations)
        self.assertEqual(result.calls[0].tool_name, "calculate")
        payload = session.post.call_args.kwargs["json"]
        self.assertEqual(payload["temperature"], 0.3)
        self.assertEqual(payload["model"], "moonshot-v1-8k")

        recorded = client.conversation.last
        assert recorded is not None
        self.assertIsNone(recorded.content)
        self.assertEqual(recorded.tool_calls, result.calls)
        client.add_observation(result.calls[0], "4")

    def test_lmstudio_defaults(self):
        session = _session(
            _response(_completion({"role": "assistant", "content": "hi"}))
        )
        client = LMStudioClient(session=session)
        client.send("hello")
        kwargs = session.post.call_args.args, session.post.call_args.kwargs
        self.assertEqual(
            kwargs[0][0], "http://localhost:1234/v1/chat/completions"
        )
        self.assertEqual(kwargs[1]["headers"]["Authorization"], "Bearer lm-studio")
        self.assertEqual(kwargs[1]["json"]["temperature"], 0.7)

    def test_lmstudio_list_models(self):
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = _response(
            {"data": [{"id": "qwen"}, {"id": "llama"}]}
        )
        client = LMStudioClient(session=session)
        self.assertEqual(client.list_models(), ["qwen", "llama"])
        self.assertEqual(
            session.get.call_args.args[0], "http://localhost:1234/v1/models"
        )

    def test_lmstudio_unreachable(self):
        session = mock.Mock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(BackendError):
            LMStudioClient(session=session).list_models()


class TestActionLineClients(unittest.TestCase):

    def test_deepseek_wire(self):
        text = "Thought: compute\nAction: calculate: 4 * 7\nPAUSE"
        session = _session(
            _response(_completion({"role": "assistant", "content": text})),
            _response(
                _completion({"role": "assistant", "content": "Answer: 28"})
            ),
        )
        client = DeepSeekClient(
            system_prompt="react", api_key="k", session=session
        )
        result = client.send("4 * 7?", tools=SCHEMAS).normalize()
        assert isinstance(result, ToolInvocations)
        self.assertEqual(result.calls[0].raw_arguments, "4 * 7")
        self.assertNotIn("tools", session.post.call_args.kwargs["json"])

        client.add_observation(result.calls[0], "28")
        response = client.send(None, tools=SCHEMAS)
        self.assertEqual(response.normalize(), FinalAnswer(text="Answer: 28"))

        payload = session.post.call_args.kwargs["json"]
        self.assertFalse(payload["stream"])
        self.assertEqual(
            payload["messages"],
            [
                {"role": "system", "content": "react"},
                {"role": "user", "content": "4 * 7?"},
                {"role": "assistant", "content": text},
                {"role": "user", "content": "Observation: 28"},
            ],
        )

    def test_perplexity_prompt_forced(self):
        logger = LoglistLogger()
        client = PerplexityClient(
            system_prompt="You are a pirate",
            api_key="k",
            session=_session(),
            logger=logger,
        )
        self.assertEqual(client.conversation[0].content, "Be precise and concise.")
        self.assertEqual(client.params["top_p"], 0.9)
        self.assertEqual(logger.count_logs(level=1), 1)


if __name__ == "__main__":
    unittest.main()
