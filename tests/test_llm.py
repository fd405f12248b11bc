"""Tests for the vision LLM client."""

from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sitescout.llm import VisionLLMClient, VisionModel


def openai_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestVisionLLMClientInit:
    """Tests for VisionLLMClient construction."""

    def test_init_with_api_key(self):
        client = VisionLLMClient(api_key="test-key", model="gpt-4o-mini")
        assert client.api_key == "test-key"
        assert client.model == "gpt-4o-mini"
        assert client.provider == "openai"

    def test_init_without_api_key_raises_error(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="API key must be provided"):
                VisionLLMClient()

    def test_init_reads_key_from_environment(self):
        with patch.dict("os.environ", {"LLM_API_KEY": "env-key"}, clear=True):
            assert VisionLLMClient().api_key == "env-key"

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            VisionLLMClient(api_key="k", provider="cohere")

    def test_satisfies_vision_model_protocol(self):
        assert isinstance(VisionLLMClient(api_key="k"), VisionModel)


class TestOpenAIProvider:
    """Tests for the OpenAI call path."""

    @pytest.mark.asyncio
    async def test_sends_image_and_schema(self):
        sdk_client = MagicMock()
        sdk_client.chat.completions.create = AsyncMock(return_value=openai_response('{"ok": true}'))

        with patch("openai.AsyncOpenAI", return_value=sdk_client) as factory:
            client = VisionLLMClient(api_key="k", timeout=12.0)
            text = await client.generate(
                "Where next?", image=b"\x89PNG", response_schema={"type": "object"}, max_tokens=64
            )

        assert text == '{"ok": true}'
        factory.assert_called_once_with(api_key="k", timeout=12.0)
        kwargs = sdk_client.chat.completions.create.await_args.kwargs
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "Where next?"}
        assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert kwargs["response_format"]["json_schema"]["schema"] == {"type": "object"}
        assert kwargs["max_tokens"] == 64

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_string(self):
        sdk_client = MagicMock()
        sdk_client.chat.completions.create = AsyncMock(return_value=openai_response(None))

        with patch("openai.AsyncOpenAI", return_value=sdk_client):
            assert await VisionLLMClient(api_key="k").generate("hi") == ""


class TestAnthropicProvider:
    """Tests for the Anthropic call path."""

    @pytest.mark.asyncio
    async def test_image_first_and_schema_in_prompt(self):
        sdk_client = MagicMock()
        sdk_client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text="yes")]
        ))

        with patch("anthropic.AsyncAnthropic", return_value=sdk_client):
            client = VisionLLMClient(api_key="k", provider="anthropic", model="claude-3-haiku")
            text = await client.generate("Content?", image=b"png", response_schema={"type": "object"})

        assert text == "yes"
        content = sdk_client.messages.create.await_args.kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[1]["type"] == "text"
        assert "Respond ONLY with a JSON object" in content[1]["text"]


class TestRetries:
    """Tests for transient and permanent failures."""

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self):
        client = VisionLLMClient(api_key="k", max_retries=2, retry_delay=1.0)
        client._call_openai = AsyncMock(side_effect=[Exception("Connection reset"), "done"])

        with patch("sitescout.llm.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await client.generate("hi") == "done"

        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        client = VisionLLMClient(api_key="k", max_retries=2, retry_delay=1.0)
        client._call_openai = AsyncMock(side_effect=Exception("Rate limit exceeded"))

        with patch("sitescout.llm.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(Exception, match="Rate limit"):
                await client.generate("hi")

        assert client._call_openai.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_authentication_error_not_retried(self):
        client = VisionLLMClient(api_key="k", max_retries=2)
        client._call_openai = AsyncMock(side_effect=Exception("Invalid API key provided"))

        with patch("sitescout.llm.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(Exception, match="Invalid API key"):
                await client.generate("hi")

        client._call_openai.assert_awaited_once()
        sleep.assert_not_called()
