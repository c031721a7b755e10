"""
OpenAI client adapter - the text-generation oracle behind mood analysis.
"""

from typing import Optional

import openai
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from config.app_config import AppConfig, LLMConfig
from infrastructure.monitoring.logging_service import get_logger, log_oracle_usage
from infrastructure.resilience.retry_service import CircuitBreakerError, RetryService
from services.mood_service.exceptions import OracleResponseInvalid, OracleUnavailable


class OpenAIClient:
    """
    Adapter that sends a prompt to ChatGPT and returns the raw JSON text.
    Retries and circuit breaking happen here, not in the orchestrator.
    """

    def __init__(self, llm_config: LLMConfig, api_key: str, retry_service: Optional[RetryService] = None):
        self.logger = get_logger(__name__)
        self.llm_config = llm_config
        self.api_key = api_key
        self.retry_service = retry_service or RetryService()
        self._chat_client = None

    def get_chat_client(self):
        """
        Get configured ChatOpenAI client bound to JSON-object output

        Returns:
            Runnable chat client
        """
        if self._chat_client is None:
            if not self.api_key:
                raise OracleUnavailable("OpenAI API key not configured")

            try:
                self._chat_client = ChatOpenAI(
                    model=self.llm_config.model_name,
                    temperature=self.llm_config.temperature,
                    max_tokens=self.llm_config.max_tokens,
                    timeout=self.llm_config.timeout,
                    max_retries=0,
                    api_key=self.api_key
                ).bind(response_format={"type": "json_object"})

                self.logger.info(f"OpenAI chat client initialized: {self.llm_config.model_name}")

            except Exception as e:
                self.logger.error(f"Error initializing OpenAI chat client: {e}")
                raise OracleUnavailable(f"Could not initialize OpenAI client: {e}") from e

        return self._chat_client

    def generate_json(self, prompt: str) -> str:
        """
        Send one prompt and return the model's JSON text

        Raises:
            OracleUnavailable: On transport, auth or circuit-breaker failures
            OracleResponseInvalid: If the model returned no content
        """
        client = self.get_chat_client()

        try:
            response = self.retry_service.retry_with_circuit_breaker(
                lambda: client.invoke([HumanMessage(content=prompt)])
            )
        except CircuitBreakerError as e:
            self.logger.warning(f"Oracle call blocked: {e}")
            raise OracleUnavailable(str(e)) from e
        except openai.OpenAIError as e:
            self.logger.error(f"OpenAI request failed: {e.__class__.__name__}: {e}")
            raise OracleUnavailable(f"OpenAI request failed: {e.__class__.__name__}") from e

        log_oracle_usage(self.logger, self.llm_config.model_name, getattr(response, "usage_metadata", None))

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise OracleResponseInvalid("Invalid response from OpenAI")

        return content


def create_openai_client(config: AppConfig) -> OpenAIClient:
    """Build the process-wide oracle client from configuration"""
    return OpenAIClient(
        llm_config=config.llm,
        api_key=config.api.openai_api_key,
        retry_service=RetryService.from_config(config.retry)
    )
