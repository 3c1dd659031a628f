"""Tests for LLM provider adapters."""

from unittest.mock import MagicMock

import pytest

from llm import LLMAuthError, LLMError, LLMRateLimitError
from llm.providers.claude import ClaudeProvider
from llm.providers.gemini import GeminiProvider
from llm.providers.openai import OpenAIProvider

MESSAGES = [{"role": "user", "content": "hi"}]


def _text_block(text):
    return MagicMock(type="text", text=text)


class TestClaudeProvider:
    def test_generate(self):
        mock_client = MagicMock()
        mock_client.messages.create.return_value = MagicMock(
            content=[_text_block("Hello from Claude")]
        )

        provider = ClaudeProvider(client=mock_client)
        result = provider.generate(
            messages=MESSAGES, system="Be helpful", max_tokens=100, temperature=0.45
        )

        assert result == "Hello from Claude"
        mock_client.messages.create.assert_called_once_with(
            model="claude-sonnet-4-20250514",
            max_tokens=100,
            messages=MESSAGES,
            system="Be helpful",
            temperature=0.45,
        )

    def test_generate_no_system_no_temperature(self):
        mock_client = MagicMock()
        mock_client.messages.create.return_value = MagicMock(content=[_text_block("response")])

        ClaudeProvider(client=mock_client).generate(messages=MESSAGES)

        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert "system" not in call_kwargs
        assert "temperature" not in call_kwargs

    def test_joins_text_blocks_and_handles_empty(self):
        mock_client = MagicMock()
        mock_client.messages.create.return_value = MagicMock(
            content=[_text_block('{"a":'), _text_block(" 1}")]
        )
        provider = ClaudeProvider(client=mock_client)
        assert provider.generate(messages=MESSAGES) == '{"a": 1}'

        mock_client.messages.create.return_value = MagicMock(content=[])
        assert provider.generate(messages=MESSAGES) == ""

    def test_auth_error(self):
        from anthropic import AuthenticationError

        mock_client = MagicMock()
        mock_client.messages.create.side_effect = AuthenticationError(
            message="bad key", response=MagicMock(status_code=401), body={}
        )

        with pytest.raises(LLMAuthError):
            ClaudeProvider(client=mock_client).generate(messages=MESSAGES)

    def test_rate_limit_error(self):
        from anthropic import RateLimitError

        mock_client = MagicMock()
        mock_client.messages.create.side_effect = RateLimitError(
            message="rate limited", response=MagicMock(status_code=429), body={}
        )

        with pytest.raises(LLMRateLimitError):
            ClaudeProvider(client=mock_client).generate(messages=MESSAGES)

    def test_api_error(self):
        from anthropic import APIError

        mock_client = MagicMock()
        mock_client.messages.create.side_effect = APIError(
            message="server error", request=MagicMock(), body=None
        )

        with pytest.raises(LLMError):
            ClaudeProvider(client=mock_client).generate(messages=MESSAGES)


class TestOpenAIProvider:
    def _client(self, content):
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = MagicMock(
            choices=[MagicMock(message=MagicMock(content=content))]
        )
        return mock_client

    def test_generate(self):
        mock_client = self._client("Hello from GPT")

        provider = OpenAIProvider(client=mock_client)
        result = provider.generate(messages=MESSAGES, system="Be helpful", temperature=0.4)

        assert result == "Hello from GPT"
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        # System message should be prepended
        assert call_kwargs["messages"][0] == {"role": "system", "content": "Be helpful"}
        assert call_kwargs["messages"][1] == {"role": "user", "content": "hi"}
        assert call_kwargs["temperature"] == 0.4
        assert call_kwargs["model"] == "gpt-4o-mini"

    def test_generate_no_system(self):
        mock_client = self._client("response")

        OpenAIProvider(client=mock_client).generate(messages=MESSAGES)

        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert len(call_kwargs["messages"]) == 1
        assert "temperature" not in call_kwargs

    def test_null_content_is_empty_string(self):
        assert OpenAIProvider(client=self._client(None)).generate(messages=MESSAGES) == ""

    def test_no_choices_is_empty_string(self):
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = MagicMock(choices=[])
        assert OpenAIProvider(client=mock_client).generate(messages=MESSAGES) == ""

    def test_rate_limit_error(self):
        from openai import RateLimitError

        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = RateLimitError(
            message="slow down", response=MagicMock(status_code=429), body={}
        )

        with pytest.raises(LLMRateLimitError):
            OpenAIProvider(client=mock_client).generate(messages=MESSAGES)

    def test_unknown_error_wrapped(self):
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = RuntimeError("socket closed")

        with pytest.raises(LLMError, match="socket closed"):
            OpenAIProvider(client=mock_client).generate(messages=MESSAGES)


class TestGeminiProvider:
    def test_generate(self):
        mock_client = MagicMock()
        mock_client.models.generate_content.return_value = MagicMock(text="Hello from Gemini")

        provider = GeminiProvider(client=mock_client)
        result = provider.generate(messages=MESSAGES, system="Be helpful", temperature=0.45)

        assert result == "Hello from Gemini"
        call_kwargs = mock_client.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash"
        assert call_kwargs["contents"] == "hi"
        assert call_kwargs["config"].system_instruction == "Be helpful"
        assert call_kwargs["config"].temperature == 0.45

    def test_none_text_is_empty_string(self):
        mock_client = MagicMock()
        mock_client.models.generate_content.return_value = MagicMock(text=None)
        assert GeminiProvider(client=mock_client).generate(messages=MESSAGES) == ""

    @pytest.mark.parametrize(
        "message, error",
        [
            ("API key not valid", LLMAuthError),
            ("429 RESOURCE_EXHAUSTED", LLMRateLimitError),
            ("Rate limit exceeded for model", LLMRateLimitError),
            ("something broke", LLMError),
            ("Failed to generate content", LLMError),
            ("Prompt blocked: moderate risk", LLMError),
        ],
    )
    def test_error_mapping(self, message, error):
        mock_client = MagicMock()
        mock_client.models.generate_content.side_effect = Exception(message)

        with pytest.raises(LLMError) as exc_info:
            GeminiProvider(client=mock_client).generate(messages=MESSAGES)
        assert exc_info.type is error
