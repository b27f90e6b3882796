"""
Ollama API client used by the confidence adviser.

Talks to a local Ollama server over httpx. The transport can be
injected so tests can serve canned replies.
"""

import logging
import time

import httpx

from scorebot.ai.models import AIMetrics

logger = logging.getLogger(__name__)


class OllamaClient:
    """Client for interacting with a local Ollama server."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "mistral",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.metrics = AIMetrics(model_name=model)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OllamaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def is_available(self) -> bool:
        """True when the server answers the model-list endpoint."""
        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError as e:
            logger.debug(f"Ollama not reachable at {self.base_url}: {e}")
            return False
        return response.is_success

    def _build_request(
        self,
        prompt: str,
        system_prompt: str | None,
        options: dict,
        json_format: bool,
    ) -> tuple[str, dict]:
        """Pick the endpoint and payload: chat when a system prompt is given."""
        payload: dict = {"model": self.model, "stream": False, "options": options}
        if system_prompt:
            endpoint = "/api/chat"
            payload["messages"] = [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ]
        else:
            endpoint = "/api/generate"
            payload["prompt"] = prompt
        if json_format:
            payload["format"] = "json"
        return endpoint, payload

    @staticmethod
    def _reply_text(data: object, chat: bool) -> str:
        """
        Extract the completion text from a chat or generate reply.

        Raises:
            ValueError: If the reply does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Ollama reply: {data!r}")
        reply = data.get("message") if chat else data
        text = None
        if isinstance(reply, dict):
            text = reply.get("content" if chat else "response", "")
        if not isinstance(text, str):
            raise ValueError(f"Ollama reply has no text: {data!r}")
        return text

    async def analyze(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 200,
        system_prompt: str | None = None,
        json_format: bool = False,
    ) -> tuple[str, int, float]:
        """
        Send a prompt to Ollama and get the response.

        Args:
            prompt: The user prompt to send
            temperature: Sampling temperature (lower = more deterministic)
            max_tokens: Maximum tokens to generate
            system_prompt: Optional system prompt to enforce role/format
            json_format: Ask Ollama to constrain the reply to JSON

        Returns:
            Tuple of (response_text, token_count, response_time_ms)

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        start_time = time.time()
        endpoint, payload = self._build_request(
            prompt,
            system_prompt,
            {"temperature": temperature, "num_predict": max_tokens},
            json_format,
        )

        try:
            client = await self._get_client()
            response = await client.post(f"{self.base_url}{endpoint}", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.metrics.record_failure()
            if isinstance(e, httpx.TimeoutException):
                logger.warning(f"Ollama request to {endpoint} timed out after {self.timeout}s")
            else:
                logger.error(f"Ollama request to {endpoint} failed: {e}")
            raise

        data = response.json()
        response_text = self._reply_text(data, chat=bool(system_prompt))
        response_time_ms = (time.time() - start_time) * 1000

        # Prompt and completion token counts
        total_tokens = int(data.get("prompt_eval_count") or 0) + int(data.get("eval_count") or 0)
        self.metrics.record_call(total_tokens, response_time_ms)

        logger.debug(f"{self.model} replied with {total_tokens} tokens in {response_time_ms:.0f}ms")

        return response_text, total_tokens, response_time_ms
