"""Tests for the vision client."""

import os
from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import pytest

from looker.ai.client import VisionClient


def _response(text: str, stop_reason: str = "end_turn") -> Mock:
    block = Mock(type="text", text=text)
    return Mock(content=[block], stop_reason=stop_reason)


class TestVisionClientInit:
    """Tests for client construction."""

    def test_requires_api_key(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
                VisionClient()

    @patch("anthropic.AsyncAnthropic")
    def test_uses_environment_key(self, mock_anthropic):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "env-key"}):
            client = VisionClient()

        assert mock_anthropic.call_args.kwargs["api_key"] == "env-key"
        assert client.model == "claude-sonnet-4-20250514"
        assert client.call_count == 0

    @patch("anthropic.AsyncAnthropic")
    def test_explicit_key_wins(self, mock_anthropic):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "env-key"}):
            VisionClient(api_key="cli-key", model="claude-opus-4-1")
        assert mock_anthropic.call_args.kwargs["api_key"] == "cli-key"


class TestVisionClientCalls:
    """Tests for analyze / compare requests."""

    @pytest.fixture
    def client(self):
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_anthropic.return_value.messages.create = AsyncMock(return_value=_response("reply"))
            yield VisionClient(api_key="test-key", max_tokens=1000)

    @pytest.mark.asyncio
    async def test_analyze_sends_image_then_prompt(self, client):
        text = await client.analyze(b"\x89PNG", "Review this")

        assert text == "reply"
        assert client.call_count == 1
        kwargs = client.client.messages.create.await_args.kwargs
        assert kwargs["max_tokens"] == 1000
        content = kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[0]["source"]["data"] == "iVBORw=="
        assert content[1] == {"type": "text", "text": "Review this"}

    @pytest.mark.asyncio
    async def test_compare_labels_each_image(self, client):
        await client.compare([("mobile", b"a"), ("desktop", b"b")], "Compare")

        content = client.client.messages.create.await_args.kwargs["messages"][0]["content"]
        assert [c["type"] for c in content] == ["text", "image", "text", "image", "text"]
        assert content[0]["text"] == "--- mobile viewport ---"
        assert content[2]["text"] == "--- desktop viewport ---"
        assert content[-1]["text"] == "Compare"

    @pytest.mark.asyncio
    async def test_api_error_propagates(self, client):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(request=request))

        with pytest.raises(anthropic.APIConnectionError):
            await client.analyze(b"img", "prompt")
        assert client.call_count == 1

    @pytest.mark.asyncio
    async def test_truncated_reply_still_returned(self, client):
        client.client.messages.create = AsyncMock(return_value=_response("partial", stop_reason="max_tokens"))
        assert await client.analyze(b"img", "prompt") == "partial"

    @pytest.mark.asyncio
    async def test_debug_log_written_when_configured(self, tmp_path):
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_anthropic.return_value.messages.create = AsyncMock(return_value=_response("reply"))
            client = VisionClient(api_key="k", debug_dir=tmp_path / "debug")

        await client.analyze(b"img", "prompt")

        logs = list((tmp_path / "debug").glob("vision_call_*_001.log"))
        assert len(logs) == 1
        assert "prompt" in logs[0].read_text()


def _openai_response(text: str, finish_reason: str = "stop") -> Mock:
    choice = Mock(finish_reason=finish_reason)
    choice.message.content = text
    return Mock(choices=[choice])


class TestOpenAIProvider:
    """Tests for the OpenAI-compatible provider path."""

    def test_requires_openai_key(self):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "claude-key"}, clear=True):
            with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
                VisionClient(model="gpt-4o", provider="openai")

    @patch("openai.AsyncOpenAI")
    @patch("anthropic.AsyncAnthropic")
    def test_provider_inferred_from_model(self, mock_anthropic, mock_openai):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "env-key"}, clear=True):
            client = VisionClient(model="gpt-4o", api_url="https://gateway.example/v1")

        assert client.provider == "openai"
        assert mock_openai.call_args.kwargs["api_key"] == "env-key"
        assert mock_openai.call_args.kwargs["base_url"] == "https://gateway.example/v1"
        mock_anthropic.assert_not_called()

    @pytest.fixture
    def client(self):
        with patch("openai.AsyncOpenAI") as mock_openai:
            mock_openai.return_value.chat.completions.create = AsyncMock(
                return_value=_openai_response("reply"))
            yield VisionClient(model="gpt-4o", api_key="test-key", provider="openai", max_tokens=800)

    @pytest.mark.asyncio
    async def test_analyze_sends_data_url_image(self, client):
        text = await client.analyze(b"\x89PNG", "Review this")

        assert text == "reply"
        kwargs = client.client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 800
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw=="}}
        assert content[1] == {"type": "text", "text": "Review this"}

    @pytest.mark.asyncio
    async def test_compare_labels_each_image(self, client):
        await client.compare([("mobile", b"a"), ("desktop", b"b")], "Compare")

        content = client.client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert [c["type"] for c in content] == ["text", "image_url", "text", "image_url", "text"]
        assert content[2]["text"] == "--- desktop viewport ---"

    @pytest.mark.asyncio
    async def test_empty_choices_yield_empty_text(self, client):
        client.client.chat.completions.create = AsyncMock(return_value=Mock(choices=[]))
        assert await client.analyze(b"img", "prompt") == ""
