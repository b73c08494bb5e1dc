import json
import unittest

import httpx

from legal_review.config import ProviderConfig
from legal_review.errors import InvalidProviderError, ProviderError
from legal_review.llm_review import (
    AnthropicProvider,
    LLMReviewer,
    OpenAIProvider,
    create_provider,
)


class RecordingTransport:
    """Answers every request with a fixed response and keeps what was sent."""

    def __init__(self, status_code=200, body=None, text=None, error=None):
        self.status_code = status_code
        self.body = body
        self.text = text
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"cannot reach {request.url.host}", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


OPENAI_REPLY = {"choices": [{"message": {"role": "assistant", "content": "## Review\n- ok"}}]}
ANTHROPIC_REPLY = {"content": [{"type": "text", "text": "Anthropic review"}]}


class TestOpenAIDispatch(unittest.IsolatedAsyncioTestCase):
    async def test_posts_chat_completion_and_returns_reply(self):
        transport = RecordingTransport(body=OPENAI_REPLY)
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="sk-test"), client=client)
            reply = await reviewer.review("Review this")

        self.assertEqual(reply, "## Review\n- ok")
        self.assertEqual(len(transport.requests), 1)
        request = transport.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "https://api.openai.com/v1/chat/completions")
        self.assertEqual(request.headers["Authorization"], "Bearer sk-test")
        payload = json.loads(request.content)
        self.assertEqual(payload["model"], "gpt-4-turbo-preview")
        self.assertEqual(payload["temperature"], 0.7)
        self.assertEqual(payload["max_tokens"], 2000)
        self.assertEqual(payload["messages"][0]["role"], "system")
        self.assertEqual(payload["messages"][1], {"role": "user", "content": "Review this"})

    async def test_error_body_message_is_surfaced(self):
        transport = RecordingTransport(
            status_code=429, body={"error": {"message": "Rate limit reached", "type": "requests"}}
        )
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="k"), client=client)
            with self.assertRaisesRegex(ProviderError, "^Rate limit reached$"):
                await reviewer.review("prompt")

    async def test_unparseable_error_body_uses_generic_message(self):
        transport = RecordingTransport(status_code=502, text="<html>Bad gateway</html>")
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="k"), client=client)
            with self.assertRaisesRegex(ProviderError, "^OpenAI API error$"):
                await reviewer.review("prompt")

    async def test_transport_failure_is_a_provider_error(self):
        transport = RecordingTransport(error=httpx.ConnectError)
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="k"), client=client)
            with self.assertRaisesRegex(ProviderError, "OpenAI request failed"):
                await reviewer.review("prompt")

    async def test_malformed_reply_is_a_provider_error(self):
        transport = RecordingTransport(body={"choices": []})
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="k"), client=client)
            with self.assertRaisesRegex(ProviderError, "unexpected response"):
                await reviewer.review("prompt")

    async def test_model_override(self):
        transport = RecordingTransport(body=OPENAI_REPLY)
        async with transport.client() as client:
            reviewer = LLMReviewer(ProviderConfig(api_key="k", model="gpt-4o"), client=client)
            await reviewer.review("prompt")
        self.assertEqual(json.loads(transport.requests[0].content)["model"], "gpt-4o")


class TestAnthropicDispatch(unittest.IsolatedAsyncioTestCase):
    async def test_posts_message_and_returns_reply(self):
        transport = RecordingTransport(body=ANTHROPIC_REPLY)
        config = ProviderConfig(provider="anthropic", api_key="ant-key")
        async with transport.client() as client:
            reply = await LLMReviewer(config, client=client).review("Review this")

        self.assertEqual(reply, "Anthropic review")
        request = transport.requests[0]
        self.assertEqual(str(request.url), "https://api.anthropic.com/v1/messages")
        self.assertEqual(request.headers["x-api-key"], "ant-key")
        self.assertEqual(request.headers["anthropic-version"], "2023-06-01")
        self.assertNotIn("Authorization", request.headers)
        payload = json.loads(request.content)
        self.assertEqual(
            payload,
            {
                "model": "claude-3-sonnet-20240229",
                "max_tokens": 2000,
                "messages": [{"role": "user", "content": "Review this"}],
            },
        )

    async def test_error_without_message_uses_generic_message(self):
        transport = RecordingTransport(status_code=500, body={"type": "error"})
        config = ProviderConfig(provider="anthropic", api_key="k")
        async with transport.client() as client:
            with self.assertRaisesRegex(ProviderError, "^Anthropic API error$"):
                await LLMReviewer(config, client=client).review("prompt")


class TestProviderSelection(unittest.IsolatedAsyncioTestCase):
    def test_create_provider(self):
        self.assertIsInstance(create_provider(ProviderConfig(api_key="k")), OpenAIProvider)
        self.assertIsInstance(
            create_provider(ProviderConfig(provider="anthropic", api_key="k")), AnthropicProvider
        )

    async def test_unknown_provider_fails_before_any_request(self):
        transport = RecordingTransport(body=OPENAI_REPLY)
        for name in ("gemini", "OpenAI", ""):
            with self.subTest(provider=name):
                async with transport.client() as client:
                    reviewer = LLMReviewer(ProviderConfig(provider=name, api_key="k"), client=client)
                    with self.assertRaisesRegex(InvalidProviderError, "Invalid LLM provider"):
                        await reviewer.review("prompt")
        self.assertEqual(transport.requests, [])


if __name__ == "__main__":
    unittest.main()
