"""HTTP client for the chat-completion service that writes strategies."""
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ai_client.config import AIClientConfig
from domain.errors import AuthenticationError, ModelTimeoutError, UpstreamError

logger = structlog.get_logger()

CONNECTION_TEST_PROMPT = "请回答：这是一个API连接测试，请回复'连接成功'。"


class RecommendationClient:
    """Sends prompts to the model service and returns the raw reply text."""

    def __init__(
        self,
        config: AIClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._transport = transport

        logger.debug(
            "Recommendation client initialized",
            api_url=config.api_url,
            model=config.model.value,
            timeout_seconds=config.timeout_seconds,
            configured=config.is_configured,
        )

    def with_config(self, config: AIClientConfig) -> "RecommendationClient":
        """Same transport, different settings; used to test a candidate key."""
        return RecommendationClient(config, transport=self._transport)

    def _is_success(self, status_code: int) -> bool:
        return 200 <= status_code < 300

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Model request timed out, retrying",
            attempt=retry_state.attempt_number,
            max_attempts=self.config.max_attempts,
        )

    async def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the model's reply.

        Timeouts are retried once with backoff. Authentication failures and
        upstream errors are raised immediately.

        Raises:
            AuthenticationError: no API key, or the key was rejected
            ModelTimeoutError: every attempt timed out
            UpstreamError: non-2xx status or malformed response envelope
        """
        if not self.config.is_configured:
            raise AuthenticationError("AI API key is not configured")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(multiplier=self.config.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(ModelTimeoutError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._post_completion(prompt)

    async def test_connection(self) -> bool:
        """Send a short test prompt; True if the service answered with text."""
        if not self.config.is_configured:
            raise AuthenticationError("AI API key is not configured")

        reply = await self._post_completion(
            CONNECTION_TEST_PROMPT, temperature=0.5, max_tokens=30
        )
        logger.info("Model connection test answered", reply_length=len(reply))
        return bool(reply.strip())

    def _build_payload(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int]
    ) -> Dict[str, Any]:
        return {
            "model": self.config.model.value,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": self.config.max_tokens if max_tokens is None else max_tokens,
        }

    async def _post_completion(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        payload = self._build_payload(prompt, temperature, max_tokens)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport
            ) as client:
                response = await client.post(self.config.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(
                "Model request timeout",
                endpoint=self.config.api_url,
                timeout_seconds=self.config.timeout_seconds,
            )
            raise ModelTimeoutError(
                f"Model service did not answer within {self.config.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Error calling model service", endpoint=self.config.api_url, error=str(e))
            raise UpstreamError(f"Model service request failed: {e}") from e

        if response.status_code in (401, 403):
            logger.error("Model service rejected credential", status_code=response.status_code)
            raise AuthenticationError(
                f"Model service rejected the API key (HTTP {response.status_code})"
            )

        if not self._is_success(response.status_code):
            logger.error(
                "Model service returned error",
                endpoint=self.config.api_url,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise UpstreamError(
                f"Model service error: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return self._extract_content(response)

    def _extract_content(self, response: httpx.Response) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(
                "Malformed model response envelope",
                response_text=response.text[:500],
                error=str(e),
            )
            raise UpstreamError("Malformed response envelope from model service") from e

        if not isinstance(content, str):
            raise UpstreamError("Model response content is not text")

        usage = data.get("usage") or {}
        logger.info(
            "Model response received",
            model=self.config.model.value,
            content_length=len(content),
            total_tokens=usage.get("total_tokens"),
        )
        return content
