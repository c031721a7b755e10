"""
Tests for the OpenAI oracle adapter
"""

import httpx
import openai
import pytest
from unittest.mock import Mock, patch

from config.app_config import AppConfig, LLMConfig
from infrastructure.external.openai_client import OpenAIClient, create_openai_client
from infrastructure.resilience.retry_service import RetryService
from services.mood_service.exceptions import OracleResponseInvalid, OracleUnavailable


REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestOpenAIClient:
    """Test the oracle adapter with a mocked chat model"""

    def setup_method(self):
        self.retry_service = RetryService(max_retries=1, failure_threshold=10, sleep=Mock())
        self.client = OpenAIClient(LLMConfig(), "sk-test", self.retry_service)

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_chat_client_bound_to_json(self, mock_chat_openai):
        """Test the chat model is configured for JSON-object output"""
        self.client.get_chat_client()
        self.client.get_chat_client()

        mock_chat_openai.assert_called_once()
        kwargs = mock_chat_openai.call_args.kwargs
        assert kwargs["model"] == "gpt-3.5-turbo-0125"
        assert kwargs["temperature"] == 0.7
        assert kwargs["api_key"] == "sk-test"
        mock_chat_openai.return_value.bind.assert_called_once_with(response_format={"type": "json_object"})

    def test_missing_api_key(self):
        client = OpenAIClient(LLMConfig(), "", self.retry_service)

        with pytest.raises(OracleUnavailable):
            client.generate_json("prompt")

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_returns_content(self, mock_chat_openai):
        runnable = mock_chat_openai.return_value.bind.return_value
        runnable.invoke.return_value = Mock(content='{"genres": ["pop"]}', usage_metadata={"total_tokens": 42})

        assert self.client.generate_json("How do I feel?") == '{"genres": ["pop"]}'

        messages = runnable.invoke.call_args[0][0]
        assert messages[0].content == "How do I feel?"

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_empty_content(self, mock_chat_openai):
        runnable = mock_chat_openai.return_value.bind.return_value
        runnable.invoke.return_value = Mock(content="  ", usage_metadata=None)

        with pytest.raises(OracleResponseInvalid):
            self.client.generate_json("prompt")

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_transient_errors_retried_then_unavailable(self, mock_chat_openai):
        """Test connection errors are retried and then reported as unavailable"""
        runnable = mock_chat_openai.return_value.bind.return_value
        runnable.invoke.side_effect = openai.APIConnectionError(request=REQUEST)

        with pytest.raises(OracleUnavailable):
            self.client.generate_json("prompt")

        assert runnable.invoke.call_count == 2

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_auth_error_unavailable(self, mock_chat_openai):
        runnable = mock_chat_openai.return_value.bind.return_value
        runnable.invoke.side_effect = openai.AuthenticationError(
            "Invalid API key", response=httpx.Response(401, request=REQUEST), body=None
        )

        with pytest.raises(OracleUnavailable):
            self.client.generate_json("prompt")

        runnable.invoke.assert_called_once()

    @patch("infrastructure.external.openai_client.ChatOpenAI")
    def test_open_circuit_unavailable(self, mock_chat_openai):
        """Test a tripped breaker blocks the call"""
        retry_service = RetryService(max_retries=0, failure_threshold=1, sleep=Mock())
        client = OpenAIClient(LLMConfig(), "sk-test", retry_service)
        runnable = mock_chat_openai.return_value.bind.return_value
        runnable.invoke.side_effect = openai.APIConnectionError(request=REQUEST)

        with pytest.raises(OracleUnavailable):
            client.generate_json("prompt")
        with pytest.raises(OracleUnavailable):
            client.generate_json("prompt")

        runnable.invoke.assert_called_once()


def test_create_openai_client():
    config = AppConfig()
    config.api.openai_api_key = "sk-configured"
    config.retry.max_retries = 3

    client = create_openai_client(config)

    assert client.api_key == "sk-configured"
    assert client.retry_service.max_retries == 3
